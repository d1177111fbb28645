"""
Image codec and format conversion utilities.

Handles conversions between:
- Encoded bytes (JPEG/PNG/WebP/BMP/...) and RGBA rasters
- NumPy RGBA rasters (H x W x 4, uint8, row-major) and PIL Images
- Base64 strings for JSON responses

All rasters in this project are RGBA; OpenCV routines that care about
channel order are only ever given color-agnostic work (resize, blur).
"""

import base64
import io
import logging
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from core.constants import EncodeConstants
from core.exceptions import DecodeError, EncodeError

logger = logging.getLogger(__name__)


class ImageConverters:
    """Utilities for decoding, encoding and converting rasters."""

    @staticmethod
    def decode_image(data: bytes) -> np.ndarray:
        """
        Decode image bytes into an RGBA raster.

        EXIF orientation is applied so the raster matches what a viewer shows.

        Args:
            data: Encoded image bytes

        Returns:
            RGBA raster (H x W x 4, uint8)

        Raises:
            DecodeError: If the bytes are not a decodable image
        """
        if not data:
            raise DecodeError("Empty image data")

        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                image = ImageOps.exif_transpose(image)
                return ImageConverters.pil_to_numpy(image)
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(f"Cannot decode image: {e}") from e

    @staticmethod
    def numpy_to_pil(raster: np.ndarray) -> Image.Image:
        """
        Convert RGBA raster to PIL Image.

        Args:
            raster: NumPy array (H x W x 4, uint8)

        Returns:
            PIL Image in RGBA mode
        """
        return Image.fromarray(np.ascontiguousarray(raster, dtype=np.uint8), mode="RGBA")

    @staticmethod
    def pil_to_numpy(image: Image.Image) -> np.ndarray:
        """
        Convert PIL Image of any mode to an RGBA raster.

        Args:
            image: PIL Image

        Returns:
            NumPy array (H x W x 4, uint8)
        """
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return np.array(image, dtype=np.uint8)

    @staticmethod
    def flatten_alpha(raster: np.ndarray) -> np.ndarray:
        """
        Composite an RGBA raster onto black and drop the alpha channel.

        Args:
            raster: RGBA raster

        Returns:
            RGB raster (H x W x 3, uint8)
        """
        rgb = raster[..., :3].astype(np.float32)
        alpha = raster[..., 3:4].astype(np.float32) / 255.0
        return np.rint(rgb * alpha).astype(np.uint8)

    @staticmethod
    def encode_raster(raster: np.ndarray, target_format: str, quality: float) -> bytes:
        """
        Encode an RGBA raster.

        Args:
            raster: RGBA raster
            target_format: One of jpeg, png, webp, bmp
            quality: Quality in [0, 1] (ignored by lossless formats)

        Returns:
            Encoded bytes

        Raises:
            EncodeError: On unsupported format, bad quality or encoder failure
        """
        fmt = str(getattr(target_format, "value", target_format)).lower()
        pil_format = EncodeConstants.PIL_FORMATS.get(fmt)
        if pil_format is None:
            raise EncodeError(f"Unsupported target format: {target_format}")
        if not 0.0 <= quality <= 1.0:
            raise EncodeError(f"Quality {quality} outside [0, 1]")

        if fmt in EncodeConstants.OPAQUE_FORMATS:
            image = Image.fromarray(ImageConverters.flatten_alpha(raster), mode="RGB")
        else:
            image = ImageConverters.numpy_to_pil(raster)

        save_kwargs = {"format": pil_format}
        if fmt == "jpeg":
            save_kwargs["quality"] = max(1, int(round(quality * 100)))
            save_kwargs["optimize"] = True
        elif fmt == "webp":
            save_kwargs["quality"] = int(round(quality * 100))

        buffer = io.BytesIO()
        try:
            image.save(buffer, **save_kwargs)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Failed to encode {fmt}: {e}") from e

        return buffer.getvalue()

    @staticmethod
    def to_base64(
        image: Union[np.ndarray, Image.Image, bytes], format: str = "JPEG", quality: int = 85
    ) -> str:
        """
        Convert image to base64 string.

        Args:
            image: Input image (RGBA array, PIL Image, or raw bytes)
            format: Image format (JPEG, PNG, etc.)
            quality: JPEG quality (1-100, ignored for PNG)

        Returns:
            Base64 encoded string
        """
        try:
            # If already bytes, directly encode
            if isinstance(image, bytes):
                return base64.b64encode(image).decode("utf-8")

            if isinstance(image, np.ndarray):
                image = ImageConverters.numpy_to_pil(image)

            if format.upper() == "JPEG" and image.mode != "RGB":
                image = image.convert("RGB")

            buffer = io.BytesIO()
            save_kwargs = {"format": format}

            if format.upper() == "JPEG":
                save_kwargs["quality"] = quality
                save_kwargs["optimize"] = True

            image.save(buffer, **save_kwargs)
            return base64.b64encode(buffer.getvalue()).decode("utf-8")

        except Exception as e:
            logger.error(f"Failed to convert image to base64: {e}")
            raise
