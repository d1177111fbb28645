"""
Image processing utilities - modular architecture.

This package provides focused image processing utilities:
- converters: Codecs and format conversions (bytes, NumPy RGBA, PIL, base64)
- processors: Raster operations (region extraction, resize, blur, thumbnail)
"""

from core.image.converters import ImageConverters
from core.image.processors import ImageProcessors

__all__ = ["ImageConverters", "ImageProcessors"]
