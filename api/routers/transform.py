"""
Transform API Router - Batch and single-file transforms
"""

import logging
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from api.dependencies import get_app_settings, get_pipeline_service, operation_form, read_upload
from api.exceptions import BatchTooLargeException, safe_endpoint
from schemas import BatchResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def attachment_headers(filename: str) -> dict:
    """
    Content-Disposition for a download.

    Names that are not plain printable ASCII get an RFC 5987 ``filename*``
    parameter next to an ASCII fallback.
    """
    fallback = "".join(
        c if c.isascii() and c.isprintable() and c not in '"\\' else "_" for c in filename
    )
    disposition = f'attachment; filename="{fallback}"'
    if fallback != filename:
        disposition += f"; filename*=utf-8''{quote(filename, safe='')}"
    return {"Content-Disposition": disposition}


@router.post("")
@safe_endpoint
async def transform_batch(
    files: List[UploadFile] = File(..., description="Source images"),
    operation=Depends(operation_form),
    include_data: bool = Query(True, description="Include base64 payloads in the response"),
    pipeline_service=Depends(get_pipeline_service),
    settings=Depends(get_app_settings),
) -> BatchResponse:
    """
    Apply one operation to every uploaded image.

    Images are processed one after another. A failing image is reported in
    its own result and does not stop the rest of the batch.
    """
    limit = settings.pipeline.max_batch_size
    if len(files) > limit:
        raise BatchTooLargeException(len(files), limit)

    sources = [await read_upload(f, settings) for f in files]
    outcomes = await pipeline_service.process_batch(sources, operation)

    results = [o.to_result(include_data=include_data) for o in outcomes]
    succeeded = sum(1 for r in results if r.success)

    return BatchResponse(
        success=succeeded == len(results),
        mode=operation.mode,
        total=len(results),
        succeeded=succeeded,
        failed=len(results) - succeeded,
        results=results,
    )


@router.post("/file")
@safe_endpoint
async def transform_file(
    file: UploadFile = File(..., description="Source image"),
    operation=Depends(operation_form),
    pipeline_service=Depends(get_pipeline_service),
    settings=Depends(get_app_settings),
) -> Response:
    """
    Apply an operation to one image and return the encoded file.

    Pipeline errors are raised so the exception handlers map them to HTTP
    status codes.
    """
    source = await read_upload(file, settings)
    outcome = await pipeline_service.process_image(source, operation)

    if not outcome.success:
        raise outcome.error

    return Response(
        content=outcome.file.data,
        media_type=outcome.file.media_type,
        headers=attachment_headers(outcome.file.filename),
    )
