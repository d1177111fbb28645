"""
Icon API Router - .ico export
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from api.dependencies import get_app_settings, get_pipeline_service, read_upload
from api.exceptions import safe_endpoint
from api.routers.transform import attachment_headers

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
@safe_endpoint
async def export_icon(
    file: UploadFile = File(..., description="Source image"),
    size: Optional[int] = Form(None, ge=1, le=256, description="Square icon side in pixels"),
    pipeline_service=Depends(get_pipeline_service),
    settings=Depends(get_app_settings),
) -> Response:
    """
    Export an image as a single-entry icon file.

    With ``size`` the image is first fitted into a transparent square of
    that side; without it the source dimensions are kept.
    """
    source = await read_upload(file, settings)
    outcome = await pipeline_service.process_icon(source, size)

    if not outcome.success:
        raise outcome.error

    return Response(
        content=outcome.file.data,
        media_type=outcome.file.media_type,
        headers=attachment_headers(outcome.file.filename),
    )
