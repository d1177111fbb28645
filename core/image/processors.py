"""
Image processing operations.

Handles raster manipulation tasks shared by the transform stages:
- Region extraction
- Resizing
- Thumbnail creation
- Blur and brightness helpers
"""

import logging
from typing import Tuple

import cv2
import numpy as np
from PIL import Image

from core.image.converters import ImageConverters

logger = logging.getLogger(__name__)


class ImageProcessors:
    """Raster operations on RGBA NumPy arrays."""

    @staticmethod
    def extract_region(raster: np.ndarray, x: int, y: int, width: int, height: int) -> np.ndarray:
        """
        Copy a rectangular region out of a raster.

        Bounds are not clipped; callers validate the region first.
        """
        return raster[y : y + height, x : x + width].copy()

    @staticmethod
    def resize_raster(raster: np.ndarray, width: int, height: int) -> np.ndarray:
        """
        Resize raster to exact dimensions.

        Uses area interpolation when shrinking and cubic when enlarging.

        Args:
            raster: Input raster
            width: Target width in pixels
            height: Target height in pixels

        Returns:
            New raster of shape (height, width, channels)
        """
        h, w = raster.shape[:2]
        if (w, h) == (width, height):
            return raster.copy()

        shrinking = width * height < w * h
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC
        return cv2.resize(raster, (width, height), interpolation=interpolation)

    @staticmethod
    def gaussian_blur(raster: np.ndarray, radius: float) -> np.ndarray:
        """
        Gaussian blur with standard deviation ``radius`` pixels.

        Args:
            raster: Input raster
            radius: Blur standard deviation in pixels (<= 0 returns a copy)

        Returns:
            Blurred raster
        """
        if radius <= 0:
            return raster.copy()
        return cv2.GaussianBlur(
            raster, (0, 0), sigmaX=radius, sigmaY=radius, borderType=cv2.BORDER_REFLECT
        )

    @staticmethod
    def scale_brightness(raster: np.ndarray, factor: float) -> np.ndarray:
        """Multiply color channels by factor, alpha untouched."""
        out = raster.copy()
        rgb = raster[..., :3].astype(np.float32) * factor
        out[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
        return out

    @staticmethod
    def create_thumbnail(
        raster: np.ndarray, width: int = 320, quality: int = 70
    ) -> Tuple[np.ndarray, str]:
        """
        Create thumbnail from raster.

        Args:
            raster: Input RGBA raster
            width: Maximum width in pixels (aspect ratio maintained)
            quality: JPEG quality of the base64 thumbnail

        Returns:
            Tuple of (thumbnail raster, thumbnail as base64 JPEG)
        """
        try:
            h, w = raster.shape[:2]
            if w > width:
                height = max(1, int(round(h * width / w)))
                thumb = ImageProcessors.resize_raster(raster, width, height)
            else:
                thumb = raster.copy()

            # JPEG has no alpha
            pil_image = Image.fromarray(ImageConverters.flatten_alpha(thumb), mode="RGB")
            thumb_base64 = ImageConverters.to_base64(pil_image, format="JPEG", quality=quality)

            return thumb, thumb_base64

        except Exception as e:
            logger.error(f"Failed to create thumbnail: {e}")
            raise
