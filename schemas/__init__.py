"""
Schemas Package

Pydantic models for validation and serialization, shared by the API,
service and transform layers.
"""

# Re-export enums from centralized location for convenience
from core.enums import (
    FilterPreset,
    SocialBackground,
    SocialFit,
    SocialTemplateName,
    TargetFormat,
    TransformMode,
)

# Common models (core data structures)
from .common import CropRegion

# Operation descriptors
from .operations import (
    AdjustmentSet,
    CompressOperation,
    ConvertOperation,
    CropOperation,
    EnhanceOperation,
    OperationDescriptor,
    ResizeOperation,
    ResizeSpec,
    SocialOperation,
    SocialStyle,
    parse_operation,
)

# Response models
from .transform import (
    BatchResponse,
    ErrorInfo,
    HistoryResponse,
    ImageResult,
    PreviewAdjustmentAccepted,
    PreviewAdjustmentRequest,
    PreviewExportRequest,
    PreviewSessionResponse,
    PreviewStateResponse,
    TransformRecordModel,
)

__all__ = [
    # Common models
    "CropRegion",
    # Operations
    "AdjustmentSet",
    "ResizeSpec",
    "SocialStyle",
    "ConvertOperation",
    "CompressOperation",
    "EnhanceOperation",
    "ResizeOperation",
    "CropOperation",
    "SocialOperation",
    "OperationDescriptor",
    "parse_operation",
    # Responses
    "ErrorInfo",
    "ImageResult",
    "BatchResponse",
    "PreviewSessionResponse",
    "PreviewAdjustmentRequest",
    "PreviewAdjustmentAccepted",
    "PreviewStateResponse",
    "PreviewExportRequest",
    "TransformRecordModel",
    "HistoryResponse",
    # Enums (re-exported from core.enums)
    "FilterPreset",
    "SocialBackground",
    "SocialFit",
    "SocialTemplateName",
    "TargetFormat",
    "TransformMode",
]
