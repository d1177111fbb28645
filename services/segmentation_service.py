"""
Segmentation Service - background removal and portrait mode.

The segmentation call is the one slow, truly asynchronous operation. It is
single-flight per source: concurrent requests for the same image content
join the outstanding call and share its result.
"""

import asyncio
import hashlib
import logging
from typing import Tuple

import numpy as np

from core.constants import DeliveryConstants
from core.enums import PipelineStage
from core.exceptions import DecodeError, ExternalServiceError
from core.image.converters import ImageConverters
from core.single_flight import SingleFlight
from services.delivery import DeliveredFile, MemoryDelivery, media_type_for
from services.pipeline_service import SourceFile, pipeline_stage
from services.segmentation_client import SegmentationClient
from transforms.segmentation import compose_portrait, remove_background

logger = logging.getLogger(__name__)


def content_key(data: bytes) -> str:
    """Identity of an upload by content"""
    return hashlib.sha256(data).hexdigest()


class SegmentationService:
    """Composites segmentation results for background removal and portraits"""

    def __init__(self, client: SegmentationClient, delivery=None):
        self.client = client
        self.delivery = delivery or MemoryDelivery()
        self.single_flight = SingleFlight()

    @property
    def in_flight(self) -> int:
        return len(self.single_flight)

    async def _segment(self, source: SourceFile) -> Tuple[np.ndarray, np.ndarray]:
        with pipeline_stage(PipelineStage.DECODE, source.name):
            original = await asyncio.to_thread(ImageConverters.decode_image, source.data)

        with pipeline_stage(PipelineStage.SEGMENTATION, source.name):
            subject_bytes = await self.client.segment(source.data, source.name)
            try:
                subject = await asyncio.to_thread(ImageConverters.decode_image, subject_bytes)
            except DecodeError as e:
                raise ExternalServiceError(
                    f"Segmentation returned an unreadable image: {e.message}"
                ) from e

        return original, subject

    async def segment(self, source: SourceFile) -> Tuple[np.ndarray, np.ndarray]:
        """
        Decode the source and obtain its segmented subject.

        Returns:
            Tuple of (original raster, subject raster); shared between
            concurrent callers, so treat both as read-only
        """
        key = content_key(source.data)
        return await self.single_flight.run(key, lambda: self._segment(source))

    async def remove_background(self, source: SourceFile) -> DeliveredFile:
        """Subject over transparency, delivered as ``nobg_<name>`` (PNG)."""
        original, subject = await self.segment(source)

        with pipeline_stage(PipelineStage.COMPOSITE, source.name):
            raster = remove_background(subject, original)

        return await self._deliver(raster, f"{DeliveryConstants.NOBG_PREFIX}{source.name}", source.name)

    async def portrait(self, source: SourceFile) -> DeliveredFile:
        """Subject over a blurred, darkened original, delivered as ``portrait_<name>`` (PNG)."""
        original, subject = await self.segment(source)

        with pipeline_stage(PipelineStage.COMPOSITE, source.name):
            raster = compose_portrait(subject, original)

        return await self._deliver(
            raster, f"{DeliveryConstants.PORTRAIT_PREFIX}{source.name}", source.name
        )

    async def _deliver(self, raster: np.ndarray, filename: str, source_name: str) -> DeliveredFile:
        with pipeline_stage(PipelineStage.ENCODE, source_name):
            payload = await asyncio.to_thread(ImageConverters.encode_raster, raster, "png", 1.0)

        with pipeline_stage(PipelineStage.DELIVER, source_name):
            delivered = await self.delivery.deliver(payload, filename, media_type_for("png"))

        logger.info(f"Delivered {filename} ({raster.shape[1]}x{raster.shape[0]}, {len(payload)} bytes)")
        return delivered

    async def close(self) -> None:
        await self.client.close()

    def describe(self) -> dict:
        return {
            "configured": self.client.configured,
            "service_url": self.client.service_url,
            "in_flight": self.in_flight,
        }

