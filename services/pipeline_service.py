"""
Pipeline Service - Orchestrates image transforms.

Runs one OperationDescriptor over a batch of source images, strictly one
image at a time: decode -> mode stages -> encode -> deliver. A failure in
any stage is attributed to that image and stage, recorded in history and
reported; the rest of the batch continues.
"""

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np

from core.constants import EncodeConstants
from core.enums import PipelineStage, TargetFormat, TransformMode, TransformResult
from core.exceptions import PipelineError, ProcessingError
from core.history_buffer import HistoryBuffer
from core.image.converters import ImageConverters
from core.utils.decorators import timer
from core.utils.enum_converter import enum_to_string
from schemas.operations import (
    CompressOperation,
    ConvertOperation,
    EnhanceOperation,
    OperationDescriptor,
    ResizeOperation,
    SocialOperation,
)
from schemas.transform import ErrorInfo, ImageResult
from services.delivery import (
    DeliveredFile,
    MemoryDelivery,
    build_output_filename,
    media_type_for,
)
from transforms.filters import apply_color_operations, compose_filters
from transforms.geometry import map_geometry, render_geometry
from transforms.icon_container import encode_icon, fit_icon_square
from transforms.sharpen import apply_sharpen
from transforms.social_card import compose_social_card
from transforms.vignette import apply_vignette

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """Undecoded upload"""

    name: str
    data: bytes


@dataclass(frozen=True)
class SourceImage:
    """Decoded, read-only source raster"""

    name: str
    raster: np.ndarray

    @classmethod
    def from_raster(cls, name: str, raster: np.ndarray) -> "SourceImage":
        frozen = np.array(raster, dtype=np.uint8, copy=True)
        frozen.setflags(write=False)
        return cls(name=name, raster=frozen)

    @property
    def width(self) -> int:
        return self.raster.shape[1]

    @property
    def height(self) -> int:
        return self.raster.shape[0]


@dataclass
class TransformOutcome:
    """Result of one image's pipeline run"""

    source_name: str
    mode: TransformMode
    processing_time_ms: int = 0
    file: Optional[DeliveredFile] = None
    width: Optional[int] = None
    height: Optional[int] = None
    error: Optional[PipelineError] = None
    history_id: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.file is not None

    def to_result(self, include_data: bool = True) -> ImageResult:
        if not self.success:
            return ImageResult(
                success=False,
                source_name=self.source_name,
                processing_time_ms=self.processing_time_ms,
                error=ErrorInfo(**self.error.to_dict()),
            )

        return ImageResult(
            success=True,
            source_name=self.source_name,
            filename=self.file.filename,
            media_type=self.file.media_type,
            width=self.width,
            height=self.height,
            size_bytes=self.file.size_bytes,
            data_base64=ImageConverters.to_base64(self.file.data) if include_data else None,
            processing_time_ms=self.processing_time_ms,
        )


@contextmanager
def pipeline_stage(stage: PipelineStage, source_name: str) -> Iterator[None]:
    """
    Attribute any failure inside the block to ``stage`` and ``source_name``.

    Domain errors keep their own type; anything else becomes a
    ProcessingError so no failure escapes unattributed.
    """
    logger.debug(f"[{source_name}] stage {stage.value}")
    try:
        yield
    except PipelineError as e:
        raise e.attribute(stage, source_name)
    except Exception as e:
        raise ProcessingError(
            f"{type(e).__name__}: {e}", stage=stage, source_name=source_name
        ) from e


class PipelineService:
    """
    Service for image transform operations.

    Combines the transform stages with decoding, encoding, delivery and
    history tracking.
    """

    def __init__(
        self,
        history_buffer: Optional[HistoryBuffer] = None,
        delivery=None,
        default_quality: float = EncodeConstants.DEFAULT_QUALITY,
    ):
        """
        Initialize pipeline service.

        Args:
            history_buffer: Optional history of per-image outcomes
            delivery: Delivery target (defaults to in-memory)
            default_quality: Encoder quality for every mode except compress
        """
        self.history_buffer = history_buffer
        self.delivery = delivery or MemoryDelivery()
        self.default_quality = default_quality

        self._renderers = {
            TransformMode.CONVERT: self._render_geometry,
            TransformMode.COMPRESS: self._render_geometry,
            TransformMode.RESIZE: self._render_geometry,
            TransformMode.CROP: self._render_geometry,
            TransformMode.ENHANCE: self._render_enhance,
            TransformMode.SOCIAL: self._render_social,
        }

    # ------------------------------------------------------------------
    # Suspension points

    async def decode(self, source: SourceFile) -> SourceImage:
        """Decode an upload into a read-only SourceImage."""
        with pipeline_stage(PipelineStage.DECODE, source.name):
            raster = await asyncio.to_thread(ImageConverters.decode_image, source.data)
            return SourceImage.from_raster(source.name, raster)

    async def encode(self, raster: np.ndarray, operation: OperationDescriptor, source_name: str) -> bytes:
        """Encode the destination raster for the operation's target format."""
        with pipeline_stage(PipelineStage.ENCODE, source_name):
            if operation.target_format == TargetFormat.ICO:
                return await asyncio.to_thread(encode_icon, raster)

            quality = (
                operation.quality
                if isinstance(operation, CompressOperation)
                else self.default_quality
            )
            return await asyncio.to_thread(
                ImageConverters.encode_raster, raster, operation.target_format.value, quality
            )

    # ------------------------------------------------------------------
    # Raster construction (synchronous)

    def render(self, source: SourceImage, operation: OperationDescriptor) -> np.ndarray:
        """
        Build the destination raster for one source.

        Args:
            source: Decoded source (never modified)
            operation: Operation descriptor

        Returns:
            New RGBA raster owned by the caller
        """
        renderer = self._renderers.get(operation.transform_mode)
        if renderer is None:
            raise ProcessingError(
                f"Unsupported mode: {operation.transform_mode}", source_name=source.name
            )
        return renderer(source, operation)

    def _render_geometry(self, source: SourceImage, operation: OperationDescriptor) -> np.ndarray:
        with pipeline_stage(PipelineStage.GEOMETRY, source.name):
            mapping = map_geometry(
                source.width,
                source.height,
                operation.transform_mode,
                crop=getattr(operation, "crop", None),
                resize=operation.resize if isinstance(operation, ResizeOperation) else None,
            )
            return render_geometry(source.raster, mapping)

    def _render_enhance(self, source: SourceImage, operation: EnhanceOperation) -> np.ndarray:
        adjustments = operation.adjustments

        with pipeline_stage(PipelineStage.FILTER, source.name):
            operations = compose_filters(operation.preset, adjustments)
            raster = apply_color_operations(source.raster, operations)

        if adjustments.sharpen > 0:
            with pipeline_stage(PipelineStage.SHARPEN, source.name):
                raster = apply_sharpen(raster, adjustments.sharpen_strength)

        if adjustments.vignette > 0:
            with pipeline_stage(PipelineStage.VIGNETTE, source.name):
                raster = apply_vignette(raster, adjustments.vignette)

        return raster

    def _render_social(self, source: SourceImage, operation: SocialOperation) -> np.ndarray:
        subject = source.raster
        if operation.crop is not None:
            subject = self._render_geometry(source, operation)

        with pipeline_stage(PipelineStage.COMPOSITE, source.name):
            return compose_social_card(subject, operation.template, operation.style, operation.fit)

    # ------------------------------------------------------------------
    # Per-image and batch entry points

    async def process_source(
        self, source: SourceImage, operation: OperationDescriptor
    ) -> TransformOutcome:
        """Run render -> encode -> deliver for an already decoded source."""
        return await self._run(source.name, operation, lambda: self._finish(source, operation))

    async def process_image(self, source: SourceFile, operation: OperationDescriptor) -> TransformOutcome:
        """Run the full pipeline (decode included) for one upload."""

        async def steps():
            decoded = await self.decode(source)
            return await self._finish(decoded, operation)

        return await self._run(source.name, operation, steps)

    async def process_icon(self, source: SourceFile, size: Optional[int] = None) -> TransformOutcome:
        """
        Icon export: optional square fit, then a PNG payload in the icon container.

        Args:
            source: Upload
            size: Optional side length of the square icon
        """
        operation = ConvertOperation(target_format=TargetFormat.ICO)

        async def steps():
            decoded = await self.decode(source)
            if size is not None:
                with pipeline_stage(PipelineStage.GEOMETRY, source.name):
                    squared = fit_icon_square(decoded.raster, size)
                decoded = SourceImage.from_raster(source.name, squared)
            return await self._finish(decoded, operation)

        return await self._run(source.name, operation, steps)

    async def process_batch(
        self, sources: Sequence[SourceFile], operation: OperationDescriptor
    ) -> List[TransformOutcome]:
        """
        Process a batch sequentially.

        One image's failure never aborts the remaining images.
        """
        logger.info(f"Processing batch of {len(sources)} image(s), mode={operation.mode}")

        outcomes = []
        for source in sources:
            outcomes.append(await self.process_image(source, operation))

        failed = sum(1 for o in outcomes if not o.success)
        logger.info(f"Batch complete: {len(outcomes) - failed} ok, {failed} failed")
        return outcomes

    async def _finish(self, source: SourceImage, operation: OperationDescriptor) -> TransformOutcome:
        raster = self.render(source, operation)
        payload = await self.encode(raster, operation, source.name)

        with pipeline_stage(PipelineStage.DELIVER, source.name):
            filename = build_output_filename(
                source.name, operation.transform_mode, operation.target_format
            )
            delivered = await self.delivery.deliver(
                payload, filename, media_type_for(operation.target_format)
            )

        height, width = raster.shape[:2]
        return TransformOutcome(
            source_name=source.name,
            mode=operation.transform_mode,
            file=delivered,
            width=width,
            height=height,
        )

    async def _run(self, source_name: str, operation: OperationDescriptor, steps) -> TransformOutcome:
        mode = operation.transform_mode

        with timer() as t:
            try:
                outcome = await steps()
            except PipelineError as e:
                e.attribute(e.stage, source_name)
                outcome = TransformOutcome(source_name=source_name, mode=mode, error=e)

        outcome.processing_time_ms = t["ms"]

        if outcome.success:
            logger.info(
                f"Delivered {outcome.file.filename} ({mode.value}, {outcome.width}x{outcome.height}, "
                f"{outcome.file.size_bytes} bytes, {outcome.processing_time_ms}ms)"
            )
        else:
            error = outcome.error
            logger.warning(
                f"Failed {source_name} at {enum_to_string(error.stage)}: "
                f"{error.error_code} {error.message}"
            )

        outcome.history_id = self._record(outcome, operation)
        return outcome

    def _record(self, outcome: TransformOutcome, operation: OperationDescriptor) -> Optional[str]:
        if self.history_buffer is None:
            return None

        metadata = {"target_format": operation.target_format.value}
        if outcome.success:
            return self.history_buffer.add_record(
                source_name=outcome.source_name,
                mode=outcome.mode.value,
                result=TransformResult.OK.value,
                processing_time_ms=outcome.processing_time_ms,
                output_filename=outcome.file.filename,
                output_bytes=outcome.file.size_bytes,
                width=outcome.width,
                height=outcome.height,
                metadata=metadata,
            )

        error = outcome.error
        return self.history_buffer.add_record(
            source_name=outcome.source_name,
            mode=outcome.mode.value,
            result=TransformResult.FAILED.value,
            processing_time_ms=outcome.processing_time_ms,
            stage=enum_to_string(error.stage),
            error_code=error.error_code,
            error_message=error.message,
            metadata=metadata,
        )
