"""
Porter-Duff source-over compositing on straight (non-premultiplied) RGBA.
"""

import numpy as np


def composite_over(fg_rgb: np.ndarray, fg_alpha: np.ndarray, background: np.ndarray) -> np.ndarray:
    """
    Composite a foreground layer over an RGBA raster.

    Args:
        fg_rgb: Foreground color, float (H x W x 3) or broadcastable, 0..255
        fg_alpha: Foreground coverage, float (H x W x 1) in [0, 1]
        background: RGBA raster (uint8, not modified)

    Returns:
        New RGBA raster (uint8)
    """
    bg_rgb = background[..., :3].astype(np.float32)
    bg_alpha = background[..., 3:4].astype(np.float32) / 255.0

    out_alpha = fg_alpha + bg_alpha * (1.0 - fg_alpha)
    weighted = fg_rgb * fg_alpha + bg_rgb * bg_alpha * (1.0 - fg_alpha)
    out_rgb = np.divide(
        weighted, out_alpha, out=np.zeros_like(weighted), where=out_alpha > 0
    )

    out = np.empty(background.shape, dtype=np.uint8)
    out[..., :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    out[..., 3:4] = np.clip(np.rint(out_alpha * 255.0), 0, 255).astype(np.uint8)
    return out


def alpha_over(foreground: np.ndarray, background: np.ndarray) -> np.ndarray:
    """
    Composite one RGBA raster over another of the same size.

    Args:
        foreground: RGBA raster drawn on top
        background: RGBA raster underneath

    Returns:
        New RGBA raster
    """
    if foreground.shape != background.shape:
        raise ValueError(
            f"Cannot composite {foreground.shape[:2]} over {background.shape[:2]}"
        )
    fg_rgb = foreground[..., :3].astype(np.float32)
    fg_alpha = foreground[..., 3:4].astype(np.float32) / 255.0
    return composite_over(fg_rgb, fg_alpha, background)
