"""
Segmentation API Router - Background removal and portrait mode
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from api.dependencies import get_app_settings, get_segmentation_service, read_upload
from api.exceptions import safe_endpoint
from api.routers.transform import attachment_headers

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/remove-background")
@safe_endpoint
async def remove_background(
    file: UploadFile = File(..., description="Source image"),
    segmentation_service=Depends(get_segmentation_service),
    settings=Depends(get_app_settings),
) -> Response:
    """Cut the subject out onto a transparent background (PNG)."""
    source = await read_upload(file, settings)
    delivered = await segmentation_service.remove_background(source)

    return Response(
        content=delivered.data,
        media_type=delivered.media_type,
        headers=attachment_headers(delivered.filename),
    )


@router.post("/portrait")
@safe_endpoint
async def portrait(
    file: UploadFile = File(..., description="Source image"),
    segmentation_service=Depends(get_segmentation_service),
    settings=Depends(get_app_settings),
) -> Response:
    """Keep the subject sharp over a blurred, darkened copy of the image (PNG)."""
    source = await read_upload(file, settings)
    delivered = await segmentation_service.portrait(source)

    return Response(
        content=delivered.data,
        media_type=delivered.media_type,
        headers=attachment_headers(delivered.filename),
    )
