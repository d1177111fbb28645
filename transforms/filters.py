"""
Filter composition and color operations.

Presets and the brightness/contrast/saturation sliders are translated into
an ordered list of color primitives (preset first, then the sliders), which
are then applied to an RGBA raster. Primitive math follows the W3C Filter
Effects definitions of the CSS filter functions of the same names.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

import numpy as np

from core.constants import FilterConstants
from core.enums import ColorOpKind, FilterPreset
from core.image.processors import ImageProcessors
from core.utils.enum_converter import parse_enum
from schemas.operations import AdjustmentSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColorOperation:
    """
    One color primitive.

    ``amount`` is a factor for the color primitives (1.0 == 100%), a radius
    in pixels for blur and an angle in degrees for hue-rotate.
    """

    kind: ColorOpKind
    amount: float

    @property
    def is_identity(self) -> bool:
        if self.kind in (ColorOpKind.BRIGHTNESS, ColorOpKind.CONTRAST, ColorOpKind.SATURATE):
            return self.amount == 1.0
        if self.kind == ColorOpKind.HUE_ROTATE:
            return self.amount % 360 == 0
        return self.amount == 0.0


def preset_operations(preset) -> List[ColorOperation]:
    """
    Expand a preset name into its primitive recipe.

    ``none`` (or any unknown name) is not a preset and expands to nothing.
    """
    preset = parse_enum(preset, FilterPreset, FilterPreset.NONE, normalize=True)
    recipe = FilterConstants.PRESET_RECIPES.get(preset.value, ())
    return [ColorOperation(ColorOpKind(kind), float(amount)) for kind, amount in recipe]


def compose_filters(preset, adjustments: AdjustmentSet) -> List[ColorOperation]:
    """
    Build the ordered color operation list for a preset plus manual sliders.

    Args:
        preset: FilterPreset or its string value
        adjustments: Slider values (percent)

    Returns:
        Preset primitives followed by brightness, contrast and saturate
    """
    operations = preset_operations(preset)
    operations.extend(
        [
            ColorOperation(ColorOpKind.BRIGHTNESS, adjustments.brightness / 100.0),
            ColorOperation(ColorOpKind.CONTRAST, adjustments.contrast / 100.0),
            ColorOperation(ColorOpKind.SATURATE, adjustments.saturation / 100.0),
        ]
    )
    return operations


# --- Color matrices -------------------------------------------------------


def _grayscale_matrix(amount: float) -> np.ndarray:
    s = 1.0 - min(1.0, amount)
    return np.array(
        [
            [0.2126 + 0.7874 * s, 0.7152 - 0.7152 * s, 0.0722 - 0.0722 * s],
            [0.2126 - 0.2126 * s, 0.7152 + 0.2848 * s, 0.0722 - 0.0722 * s],
            [0.2126 - 0.2126 * s, 0.7152 - 0.7152 * s, 0.0722 + 0.9278 * s],
        ],
        dtype=np.float32,
    )


def _sepia_matrix(amount: float) -> np.ndarray:
    s = 1.0 - min(1.0, amount)
    return np.array(
        [
            [0.393 + 0.607 * s, 0.769 - 0.769 * s, 0.189 - 0.189 * s],
            [0.349 - 0.349 * s, 0.686 + 0.314 * s, 0.168 - 0.168 * s],
            [0.272 - 0.272 * s, 0.534 - 0.534 * s, 0.131 + 0.869 * s],
        ],
        dtype=np.float32,
    )


def _saturate_matrix(s: float) -> np.ndarray:
    return np.array(
        [
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ],
        dtype=np.float32,
    )


def _hue_rotate_matrix(degrees: float) -> np.ndarray:
    c = math.cos(math.radians(degrees))
    s = math.sin(math.radians(degrees))
    return np.array(
        [
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ],
        dtype=np.float32,
    )


def _apply_matrix(rgb: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    return rgb @ matrix.T


_MATRIX_BUILDERS: Dict[ColorOpKind, Callable[[float], np.ndarray]] = {
    ColorOpKind.GRAYSCALE: _grayscale_matrix,
    ColorOpKind.SEPIA: _sepia_matrix,
    ColorOpKind.SATURATE: _saturate_matrix,
    ColorOpKind.HUE_ROTATE: _hue_rotate_matrix,
}


def _apply_rgb_operation(rgb: np.ndarray, op: ColorOperation) -> np.ndarray:
    """Apply a per-pixel primitive to float RGB values in [0, 255]."""
    if op.kind in _MATRIX_BUILDERS:
        result = _apply_matrix(rgb, _MATRIX_BUILDERS[op.kind](op.amount))
    elif op.kind == ColorOpKind.BRIGHTNESS:
        result = rgb * op.amount
    elif op.kind == ColorOpKind.CONTRAST:
        result = (rgb - 127.5) * op.amount + 127.5
    elif op.kind == ColorOpKind.INVERT:
        amount = min(1.0, op.amount)
        result = rgb * (1.0 - amount) + (255.0 - rgb) * amount
    else:
        raise ValueError(f"Not a per-pixel color operation: {op.kind}")

    # Each primitive clamps, as a chain of CSS filters does
    return np.clip(result, 0.0, 255.0)


def apply_color_operations(raster: np.ndarray, operations: Sequence[ColorOperation]) -> np.ndarray:
    """
    Apply color operations in order.

    Identity primitives are skipped, so an all-default list leaves the
    raster bit-for-bit unchanged.

    Args:
        raster: RGBA raster (not modified)
        operations: Ordered primitives

    Returns:
        New RGBA raster
    """
    active = [op for op in operations if not op.is_identity]
    if not active:
        return raster.copy()

    logger.debug(f"Applying color operations: {[(op.kind.value, op.amount) for op in active]}")

    out = raster.copy()
    rgb = None
    for op in active:
        if op.kind == ColorOpKind.BLUR:
            if rgb is not None:
                out[..., :3] = np.rint(rgb).astype(np.uint8)
                rgb = None
            out = ImageProcessors.gaussian_blur(out, op.amount)
            continue

        if rgb is None:
            rgb = out[..., :3].astype(np.float32)
        rgb = _apply_rgb_operation(rgb, op)

    if rgb is not None:
        out[..., :3] = np.rint(rgb).astype(np.uint8)

    return out
