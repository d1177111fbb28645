"""
Radial vignette.

Black is composited over the raster with an alpha that ramps linearly from
0 at one third of the smaller half-dimension to ``percent / 100`` at the
corner radius, centered on the raster.
"""

import numpy as np

from core.constants import VignetteConstants
from transforms.compositing import composite_over


def vignette_alpha(width: int, height: int, percent: float) -> np.ndarray:
    """
    Per-pixel overlay alpha in [0, percent/100].

    Distances are measured from pixel centers.
    """
    cx, cy = width / 2.0, height / 2.0
    inner = min(cx, cy) * VignetteConstants.INNER_RADIUS_FRACTION
    outer = float(np.hypot(cx, cy))

    ys = np.arange(height, dtype=np.float32) + 0.5
    xs = np.arange(width, dtype=np.float32) + 0.5
    distance = np.hypot(xs[np.newaxis, :] - cx, ys[:, np.newaxis] - cy)

    span = max(outer - inner, 1e-6)
    ramp = np.clip((distance - inner) / span, 0.0, 1.0)
    return ramp * (percent / 100.0)


def apply_vignette(raster: np.ndarray, percent: float) -> np.ndarray:
    """
    Darken the raster towards its corners.

    Args:
        raster: RGBA raster (not modified)
        percent: Corner opacity in percent, clamped to [0, 100]

    Returns:
        New RGBA raster
    """
    percent = max(0.0, min(100.0, float(percent)))
    if percent == 0.0:
        return raster.copy()

    h, w = raster.shape[:2]
    alpha = vignette_alpha(w, h, percent)[..., np.newaxis].astype(np.float32)
    color = np.array(VignetteConstants.COLOR, dtype=np.float32)

    return composite_over(color, alpha, raster)
