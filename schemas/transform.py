"""
Transform API models.

This module contains response models for:
- batch transforms (per-image results)
- live preview sessions
- transform history
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.enums import FilterPreset, TargetFormat

from .operations import AdjustmentSet


class ErrorInfo(BaseModel):
    """Failure attributed to one image and one stage"""

    message: str
    code: str
    stage: Optional[str] = None
    source: Optional[str] = None


class ImageResult(BaseModel):
    """Outcome of one image in a batch"""

    success: bool
    source_name: str
    filename: Optional[str] = None
    media_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size_bytes: int = 0
    data_base64: Optional[str] = None
    processing_time_ms: int = 0
    error: Optional[ErrorInfo] = None


class BatchResponse(BaseModel):
    """Response from a batch transform"""

    success: bool
    mode: str
    total: int
    succeeded: int
    failed: int
    results: List[ImageResult]


class PreviewSessionResponse(BaseModel):
    """Created preview session"""

    session_id: str
    source_name: str
    width: int
    height: int
    thumbnail_base64: Optional[str] = None


class PreviewAdjustmentRequest(BaseModel):
    """Live preset + slider values for a preview session"""

    preset: FilterPreset = FilterPreset.NONE
    adjustments: AdjustmentSet = Field(default_factory=AdjustmentSet)


class PreviewAdjustmentAccepted(BaseModel):
    """Adjustment accepted; recompute is pending"""

    session_id: str
    revision: int
    debounce_ms: int


class PreviewStateResponse(BaseModel):
    """Committed (debounced) preview state"""

    session_id: str
    source_name: str
    preset: FilterPreset
    adjustments: AdjustmentSet
    submitted_revision: int
    committed_revision: int
    pending: bool
    recompute_count: int
    thumbnail_base64: Optional[str] = None


class PreviewExportRequest(BaseModel):
    """Export a preview session at full resolution"""

    target_format: TargetFormat = TargetFormat.JPEG

    @field_validator("target_format")
    @classmethod
    def reject_icon(cls, v: TargetFormat) -> TargetFormat:
        if v == TargetFormat.ICO:
            raise ValueError("Icon output is only available in convert mode")
        return v


class TransformRecordModel(BaseModel):
    """One history entry"""

    id: str
    timestamp: datetime
    source_name: str
    mode: str
    result: str
    processing_time_ms: int
    output_filename: Optional[str] = None
    output_bytes: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    stage: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class HistoryResponse(BaseModel):
    """Recent history with statistics"""

    records: List[TransformRecordModel]
    statistics: Dict[str, Any]
