"""
Minimal icon (.ico) container.

Layout (all integers little-endian)::

    ICONDIR        reserved=0 (2)  type=1 (2)  count=1 (2)
    ICONDIRENTRY   width (1)  height (1)  colorCount=0 (1)  reserved=0 (1)
                   planes=1 (2)  bitCount=32 (2)
                   bytesInRes (4)  imageOffset=22 (4)
    payload        embedded PNG

Width and height are single bytes; sides larger than 255 are written as 0.
"""

import logging
import struct

import numpy as np

from core.constants import IconConstants
from core.exceptions import EncodeError
from core.image.converters import ImageConverters
from core.image.processors import ImageProcessors

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<HHH")
_ENTRY = struct.Struct("<BBBBHHII")


def _dimension_byte(value: int) -> int:
    if value <= 0:
        raise EncodeError(f"Invalid icon dimension: {value}")
    return 0 if value > IconConstants.MAX_DIMENSION else value


def build_icon_container(payload: bytes, width: int, height: int) -> bytes:
    """
    Wrap an encoded image payload in a single-entry icon container.

    Args:
        payload: Encoded image bytes (PNG)
        width: Raster width in pixels
        height: Raster height in pixels

    Returns:
        Icon file bytes (22 + len(payload) long)

    Raises:
        EncodeError: If the payload is empty or a dimension is not positive
    """
    if not payload:
        raise EncodeError("Icon payload is empty")

    header = _HEADER.pack(0, IconConstants.TYPE_ICON, 1)
    entry = _ENTRY.pack(
        _dimension_byte(width),
        _dimension_byte(height),
        0,
        0,
        IconConstants.PLANES,
        IconConstants.BIT_COUNT,
        len(payload),
        IconConstants.IMAGE_OFFSET,
    )
    return header + entry + payload


def encode_icon(raster: np.ndarray) -> bytes:
    """
    Encode an RGBA raster as an icon file with a PNG payload.

    Args:
        raster: RGBA raster

    Returns:
        Icon file bytes
    """
    height, width = raster.shape[:2]
    if width != height:
        logger.debug(f"Icon raster is not square ({width}x{height})")

    payload = ImageConverters.encode_raster(raster, "png", 1.0)
    return build_icon_container(payload, width, height)


def fit_icon_square(raster: np.ndarray, size: int) -> np.ndarray:
    """
    Scale a raster to fit a ``size`` x ``size`` square, centered on transparency.

    Args:
        raster: RGBA raster
        size: Side length in pixels

    Returns:
        New square RGBA raster
    """
    if size <= 0:
        raise EncodeError(f"Invalid icon size: {size}")

    height, width = raster.shape[:2]
    scale = min(size / width, size / height)
    new_w = max(1, int(np.floor(width * scale + 0.5)))
    new_h = max(1, int(np.floor(height * scale + 0.5)))
    scaled = ImageProcessors.resize_raster(raster, new_w, new_h)

    canvas = np.zeros((size, size, 4), dtype=np.uint8)
    top = (size - new_h) // 2
    left = (size - new_w) // 2
    canvas[top : top + new_h, left : left + new_w] = scaled
    return canvas
