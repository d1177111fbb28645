"""
Domain errors of the transform pipeline.

Every error carries the pipeline stage it came from and the name of the
source image it belongs to, so a batch report can attribute each failure.
"""

from typing import Optional

from core.enums import PipelineStage


class PipelineError(Exception):
    """Base class for errors raised while transforming one image"""

    error_code = "PIPELINE_ERROR"
    default_stage: Optional[PipelineStage] = None

    def __init__(
        self,
        message: str,
        stage: Optional[PipelineStage] = None,
        source_name: Optional[str] = None,
    ):
        self.message = message
        self.stage = stage or self.default_stage
        self.source_name = source_name
        super().__init__(message)

    def attribute(self, stage: PipelineStage, source_name: Optional[str]) -> "PipelineError":
        """Fill in stage/source if the raising code did not know them."""
        if self.stage is None:
            self.stage = stage
        if self.source_name is None:
            self.source_name = source_name
        return self

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "code": self.error_code,
            "stage": self.stage.value if self.stage else None,
            "source": self.source_name,
        }


class DecodeError(PipelineError):
    """Source bytes could not be decoded as an image"""

    error_code = "DECODE_ERROR"
    default_stage = PipelineStage.DECODE


class InvalidRegionError(PipelineError):
    """Crop region is empty, negative or outside the source bounds"""

    error_code = "INVALID_REGION"
    default_stage = PipelineStage.GEOMETRY


class EncodeError(PipelineError):
    """Output encoding failed"""

    error_code = "ENCODE_ERROR"
    default_stage = PipelineStage.ENCODE


class ExternalServiceError(PipelineError):
    """Segmentation collaborator failed or was unreachable"""

    error_code = "EXTERNAL_SERVICE_ERROR"
    default_stage = PipelineStage.SEGMENTATION


class ProcessingError(PipelineError):
    """Unexpected failure inside a pipeline stage"""

    error_code = "PROCESSING_ERROR"
