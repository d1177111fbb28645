"""
Geometric mapping for crop and resize.

Computes which source rectangle is sampled and how large the destination
raster is, then renders that mapping.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from core.enums import TransformMode
from core.exceptions import InvalidRegionError
from core.image.processors import ImageProcessors
from schemas.common import CropRegion
from schemas.operations import ResizeSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeometryMapping:
    """Source sampling rectangle plus destination size"""

    source_rect: CropRegion
    dest_width: int
    dest_height: int

    @property
    def is_identity_scale(self) -> bool:
        return (self.dest_width, self.dest_height) == self.source_rect.size


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def validate_crop_region(region: CropRegion, source_width: int, source_height: int) -> None:
    """
    Reject empty, negative or out-of-bounds regions.

    Raises:
        InvalidRegionError: If the region cannot be sampled
    """
    if region.is_empty():
        raise InvalidRegionError(
            f"Crop region {region.to_dict()} has zero or negative size"
        )
    if not region.is_within(source_width, source_height):
        raise InvalidRegionError(
            f"Crop region {region.to_dict()} exceeds image bounds "
            f"({source_width}x{source_height})"
        )


def resolve_resize(
    source_width: int, source_height: int, resize: ResizeSpec
) -> tuple[int, int]:
    """
    Destination size for a resize request.

    Both sides given: used as-is. One side given: the other is derived from
    the source aspect ratio when maintain_ratio is set, otherwise it keeps
    the source value.
    """
    if resize.width is not None and resize.height is not None:
        return resize.width, resize.height

    if resize.width is not None:
        height = source_height
        if resize.maintain_ratio:
            height = max(1, round_half_up(source_height * resize.width / source_width))
        return resize.width, height

    if resize.height is not None:
        width = source_width
        if resize.maintain_ratio:
            width = max(1, round_half_up(source_width * resize.height / source_height))
        return width, resize.height

    return source_width, source_height


def map_geometry(
    source_width: int,
    source_height: int,
    mode: TransformMode,
    crop: Optional[CropRegion] = None,
    resize: Optional[ResizeSpec] = None,
) -> GeometryMapping:
    """
    Compute the source rectangle and destination dimensions.

    Args:
        source_width: Source raster width
        source_height: Source raster height
        mode: Pipeline mode
        crop: Optional region (crop mode, or a pre-crop for resize/social)
        resize: Optional resize request (resize mode)

    Returns:
        GeometryMapping

    Raises:
        InvalidRegionError: If the crop region is invalid
    """
    mode = TransformMode(mode)
    source_rect = CropRegion.full(source_width, source_height)
    dest_width, dest_height = source_width, source_height

    if crop is not None and mode in (TransformMode.CROP, TransformMode.RESIZE, TransformMode.SOCIAL):
        validate_crop_region(crop, source_width, source_height)
        source_rect = crop
        dest_width, dest_height = crop.width, crop.height

    if mode == TransformMode.RESIZE and resize is not None and resize.is_set:
        dest_width, dest_height = resolve_resize(source_rect.width, source_rect.height, resize)

    return GeometryMapping(source_rect=source_rect, dest_width=dest_width, dest_height=dest_height)


def render_geometry(source: np.ndarray, mapping: GeometryMapping) -> np.ndarray:
    """
    Produce the destination raster for a mapping.

    Args:
        source: Source raster (not modified)
        mapping: Result of map_geometry

    Returns:
        New raster of size (dest_height, dest_width)
    """
    rect = mapping.source_rect
    region = ImageProcessors.extract_region(source, rect.x, rect.y, rect.width, rect.height)

    if mapping.is_identity_scale:
        return region

    logger.debug(
        f"Resampling {rect.width}x{rect.height} -> {mapping.dest_width}x{mapping.dest_height}"
    )
    return ImageProcessors.resize_raster(region, mapping.dest_width, mapping.dest_height)
