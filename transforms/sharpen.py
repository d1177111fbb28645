"""
Convolution sharpening.

A fixed 3x3 edge-enhance kernel is applied to the color channels of every
interior pixel and blended with the original by strength. The outermost
1-pixel border and the alpha channel are left untouched.
"""

import cv2
import numpy as np

from core.constants import SharpenConstants


def apply_sharpen(raster: np.ndarray, strength: float) -> np.ndarray:
    """
    Sharpen a raster.

    The convolution reads only from a snapshot of the input and writes into
    a separate output buffer, so results never depend on neighbours that
    were already modified.

    Args:
        raster: RGBA raster (not modified)
        strength: Blend factor, clamped to [0, 1]

    Returns:
        New RGBA raster
    """
    strength = max(0.0, min(1.0, float(strength)))
    out = raster.copy()
    h, w = raster.shape[:2]

    if strength == 0.0 or h < 3 or w < 3:
        return out

    snapshot = raster[..., :3].astype(np.float32)
    convolved = cv2.filter2D(snapshot, cv2.CV_32F, SharpenConstants.KERNEL)

    original = snapshot[1:-1, 1:-1]
    blended = original * (1.0 - strength) + convolved[1:-1, 1:-1] * strength
    out[1:-1, 1:-1, :3] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)

    return out
