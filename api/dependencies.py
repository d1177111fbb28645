"""
Shared FastAPI dependencies for the Image Transform Pipeline.
Centralizes access to the long-lived collaborators stored on app state.
"""

import logging

from fastapi import Depends, Form, HTTPException, Request, UploadFile
from pydantic import ValidationError

from api.exceptions import InvalidOperationException, UploadTooLargeException
from config import Settings, get_settings
from core.history_buffer import HistoryBuffer
from core.preview_manager import PreviewManager
from schemas.operations import OperationDescriptor, parse_operation
from services.pipeline_service import PipelineService, SourceFile
from services.segmentation_service import SegmentationService

logger = logging.getLogger(__name__)


class Managers:
    """Container for all long-lived instances."""

    def __init__(
        self,
        history_buffer: HistoryBuffer,
        preview_manager: PreviewManager,
        segmentation_service: SegmentationService,
        delivery,
    ):
        self.history_buffer = history_buffer
        self.preview_manager = preview_manager
        self.segmentation_service = segmentation_service
        self.delivery = delivery


def get_managers(request: Request) -> Managers:
    """
    Get all manager instances from app state.

    Raises:
        HTTPException: If managers not initialized
    """
    try:
        return Managers(
            history_buffer=request.app.state.history_buffer,
            preview_manager=request.app.state.preview_manager,
            segmentation_service=request.app.state.segmentation_service,
            delivery=request.app.state.delivery,
        )
    except AttributeError as e:
        logger.error(f"Managers not initialized in app state: {e}")
        raise HTTPException(
            status_code=500, detail="Internal server error: Managers not initialized"
        )


def get_app_settings(request: Request) -> Settings:
    """Settings stored at startup, falling back to the cached global settings."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_history_buffer(managers: Managers = Depends(get_managers)) -> HistoryBuffer:
    """Get HistoryBuffer instance."""
    return managers.history_buffer


def get_preview_manager(managers: Managers = Depends(get_managers)) -> PreviewManager:
    """Get PreviewManager instance."""
    return managers.preview_manager


def get_segmentation_service(managers: Managers = Depends(get_managers)) -> SegmentationService:
    """Get SegmentationService instance."""
    return managers.segmentation_service


def get_pipeline_service(
    managers: Managers = Depends(get_managers),
    settings: Settings = Depends(get_app_settings),
) -> PipelineService:
    """
    Get pipeline service instance.

    Returns:
        PipelineService bound to the shared history and delivery target
    """
    return PipelineService(
        history_buffer=managers.history_buffer,
        delivery=managers.delivery,
        default_quality=settings.pipeline.default_quality,
    )


def operation_form(
    operation: str = Form(..., description="OperationDescriptor as JSON"),
) -> OperationDescriptor:
    """
    Parse the multipart ``operation`` field.

    Raises:
        InvalidOperationException: If the descriptor does not validate
    """
    try:
        return parse_operation(operation)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'operation'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidOperationException(f"Invalid operation: {problems}")


async def read_upload(file: UploadFile, settings: Settings) -> SourceFile:
    """
    Read an upload into a SourceFile, enforcing the size limit.

    Raises:
        UploadTooLargeException: If the upload exceeds the configured limit
    """
    data = await file.read()
    limit_mb = settings.pipeline.max_upload_mb
    if len(data) > limit_mb * 1024 * 1024:
        raise UploadTooLargeException(file.filename or "upload", limit_mb)
    return SourceFile(name=file.filename or "image", data=data)
