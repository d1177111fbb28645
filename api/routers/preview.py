"""
Preview API Router - Live enhancement preview sessions

Adjustment changes are debounced: each submission restarts a short quiet
window and only the latest state is rendered once input settles. Export
flushes the pending state and renders the full-resolution source with it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import Response

from api.dependencies import (
    get_app_settings,
    get_pipeline_service,
    get_preview_manager,
    read_upload,
)
from api.exceptions import SessionNotFoundException, safe_endpoint
from api.routers.transform import attachment_headers
from core.preview_manager import PreviewState
from schemas import (
    EnhanceOperation,
    PreviewAdjustmentAccepted,
    PreviewAdjustmentRequest,
    PreviewExportRequest,
    PreviewSessionResponse,
    PreviewStateResponse,
)
from services.pipeline_service import SourceImage

logger = logging.getLogger(__name__)

router = APIRouter()


def require_session(session_id: str, preview_manager):
    session = preview_manager.get(session_id)
    if session is None:
        raise SessionNotFoundException(session_id)
    return session


@router.post("/sessions")
@safe_endpoint
async def create_session(
    file: UploadFile = File(..., description="Preview source image"),
    preview_manager=Depends(get_preview_manager),
    pipeline_service=Depends(get_pipeline_service),
    settings=Depends(get_app_settings),
) -> PreviewSessionResponse:
    """Upload a source and open a preview session for it."""
    source = await pipeline_service.decode(await read_upload(file, settings))
    session = preview_manager.create_session(source.name, source.raster)

    return PreviewSessionResponse(
        session_id=session.id,
        source_name=session.source_name,
        width=source.width,
        height=source.height,
        thumbnail_base64=session.thumbnail_base64,
    )


@router.get("/sessions")
@safe_endpoint
async def list_sessions(preview_manager=Depends(get_preview_manager)) -> dict:
    """List open preview sessions"""
    return {"sessions": preview_manager.list_sessions(), "stats": preview_manager.get_stats()}


@router.post("/sessions/{session_id}/adjustments", status_code=status.HTTP_202_ACCEPTED)
@safe_endpoint
async def submit_adjustments(
    session_id: str,
    request: PreviewAdjustmentRequest,
    preview_manager=Depends(get_preview_manager),
) -> PreviewAdjustmentAccepted:
    """Submit live adjustments; the preview is recomputed once input settles."""
    state = PreviewState(preset=request.preset, adjustments=request.adjustments)
    revision = preview_manager.submit(session_id, state)
    if revision is None:
        raise SessionNotFoundException(session_id)

    return PreviewAdjustmentAccepted(
        session_id=session_id, revision=revision, debounce_ms=preview_manager.debounce_ms
    )


@router.get("/sessions/{session_id}")
@safe_endpoint
async def get_session(
    session_id: str, preview_manager=Depends(get_preview_manager)
) -> PreviewStateResponse:
    """Committed (debounced) state and the latest preview thumbnail"""
    session = require_session(session_id, preview_manager)
    committed = session.committed
    debouncer = session.debouncer

    return PreviewStateResponse(
        session_id=session.id,
        source_name=session.source_name,
        preset=committed.preset,
        adjustments=committed.adjustments,
        submitted_revision=debouncer.submitted_revision,
        committed_revision=debouncer.committed_revision,
        pending=debouncer.has_pending,
        recompute_count=session.recompute_count,
        thumbnail_base64=session.thumbnail_base64,
    )


@router.post("/sessions/{session_id}/export")
@safe_endpoint
async def export_session(
    session_id: str,
    request: Optional[PreviewExportRequest] = None,
    preview_manager=Depends(get_preview_manager),
    pipeline_service=Depends(get_pipeline_service),
) -> Response:
    """Render the full-resolution source with the committed adjustments."""
    session = require_session(session_id, preview_manager)
    request = request or PreviewExportRequest()

    committed = session.debouncer.flush()
    operation = EnhanceOperation(
        target_format=request.target_format,
        preset=committed.preset,
        adjustments=committed.adjustments,
    )

    outcome = await pipeline_service.process_source(
        SourceImage.from_raster(session.source_name, session.source), operation
    )
    if not outcome.success:
        raise outcome.error

    return Response(
        content=outcome.file.data,
        media_type=outcome.file.media_type,
        headers=attachment_headers(outcome.file.filename),
    )


@router.delete("/sessions/{session_id}")
@safe_endpoint
async def delete_session(session_id: str, preview_manager=Depends(get_preview_manager)) -> dict:
    """Close a preview session"""
    if not preview_manager.delete(session_id):
        raise SessionNotFoundException(session_id)

    return {"success": True, "message": f"Session {session_id} deleted"}
