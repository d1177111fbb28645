"""
Enhance sequence: color operations, then sharpening, then vignette.

Each stage hands a fresh buffer to the next one.
"""

import numpy as np

from schemas.operations import AdjustmentSet
from transforms.filters import apply_color_operations, compose_filters
from transforms.sharpen import apply_sharpen
from transforms.vignette import apply_vignette


def apply_enhancements(raster: np.ndarray, preset, adjustments: AdjustmentSet) -> np.ndarray:
    """
    Run the enhance stages over a raster.

    Args:
        raster: RGBA raster (not modified)
        preset: FilterPreset or its name
        adjustments: Slider values

    Returns:
        New RGBA raster
    """
    filtered = apply_color_operations(raster, compose_filters(preset, adjustments))

    sharpened = filtered
    if adjustments.sharpen > 0:
        sharpened = apply_sharpen(filtered, adjustments.sharpen_strength)

    if adjustments.vignette > 0:
        return apply_vignette(sharpened, adjustments.vignette)
    return sharpened
