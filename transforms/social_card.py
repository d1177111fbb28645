"""
Social card composition.

Lays a source image out on a fixed-size template canvas:

1. Background (blurred cover copy, solid fill or corner-to-corner gradient)
2. Drop shadow of the placed image
3. Source image clipped to a rounded rectangle
4. Border stroke along the same rounded rectangle
5. Bottom-centered caption with a soft shadow

Each stage is fully composited onto the canvas before the next one starts.
"""

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFilter, ImageFont

from core.constants import SocialConstants
from core.enums import SocialBackground, SocialFit, SocialTemplateName
from core.image.converters import ImageConverters
from core.image.processors import ImageProcessors
from schemas.operations import SocialStyle
from transforms.geometry import round_half_up

logger = logging.getLogger(__name__)

# Blurs at or above this radius run on a reduced copy of the canvas
_BLUR_DOWNSCALE_MIN_RADIUS = 16
_BLUR_DOWNSCALE_FACTOR = 4

# Window edges this close to a pixel boundary snap to it
_WINDOW_EPSILON = 1e-6


@dataclass(frozen=True)
class Box:
    """Integer pixel rectangle, right/bottom exclusive"""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def intersect(self, other: "Box") -> "Box":
        return Box(
            max(self.left, other.left),
            max(self.top, other.top),
            min(self.right, other.right),
            min(self.bottom, other.bottom),
        )

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class Placement:
    """Where the scaled source lands on the canvas"""

    x: float
    y: float
    width: float
    height: float
    content: Box

    @property
    def image_box(self) -> Box:
        left = round_half_up(self.x)
        top = round_half_up(self.y)
        return Box(
            left,
            top,
            max(left + 1, round_half_up(self.x + self.width)),
            max(top + 1, round_half_up(self.y + self.height)),
        )

    @property
    def visible_box(self) -> Box:
        """Image box clipped to the content area (cover overflow is cropped)"""
        return self.image_box.intersect(self.content)


def template_size(template) -> Tuple[int, int]:
    """Canvas (width, height) of a template."""
    template = SocialTemplateName(template)
    return SocialConstants.TEMPLATE_SIZES[template.value]


def padding_pixels(canvas_width: int, canvas_height: int, padding_percent: float) -> float:
    """Inset applied to every edge of the canvas."""
    return (padding_percent / 100.0) * (min(canvas_width, canvas_height) / 2.0)


def compute_placement(
    source_width: int,
    source_height: int,
    canvas_width: int,
    canvas_height: int,
    padding_percent: float,
    fit: SocialFit,
) -> Placement:
    """
    Scale and center the source inside the padded content area.

    Args:
        source_width: Source width
        source_height: Source height
        canvas_width: Template width
        canvas_height: Template height
        padding_percent: Inset as a percentage of half the smaller side
        fit: contain (whole image visible) or cover (area filled)

    Returns:
        Placement with float geometry and the integer content box
    """
    pad = padding_pixels(canvas_width, canvas_height, padding_percent)
    avail_w = max(1.0, canvas_width - 2 * pad)
    avail_h = max(1.0, canvas_height - 2 * pad)

    scale_w = avail_w / source_width
    scale_h = avail_h / source_height
    scale = max(scale_w, scale_h) if SocialFit(fit) == SocialFit.COVER else min(scale_w, scale_h)

    draw_w = source_width * scale
    draw_h = source_height * scale
    content = Box(
        round_half_up(pad),
        round_half_up(pad),
        round_half_up(pad + avail_w),
        round_half_up(pad + avail_h),
    )

    return Placement(
        x=pad + (avail_w - draw_w) / 2,
        y=pad + (avail_h - draw_h) / 2,
        width=draw_w,
        height=draw_h,
        content=content,
    )


def effective_radius(radius: float, width: int, height: int) -> int:
    """Corner radius reduced to at most half of the smaller side."""
    return int(max(0.0, min(radius, width / 2.0, height / 2.0)))


# --- Background -------------------------------------------------------------


def resample_window(
    source: np.ndarray,
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    width: int,
    height: int,
) -> np.ndarray:
    """
    Resample a window of the source to exactly ``width`` x ``height``.

    The window is given in source pixel coordinates and widened to whole
    pixels. Only the window is resampled.
    """
    src_h, src_w = source.shape[:2]
    left = min(src_w - 1, max(0, math.floor(x0 + _WINDOW_EPSILON)))
    top = min(src_h - 1, max(0, math.floor(y0 + _WINDOW_EPSILON)))
    right = max(left + 1, min(src_w, math.ceil(x1 - _WINDOW_EPSILON)))
    bottom = max(top + 1, min(src_h, math.ceil(y1 - _WINDOW_EPSILON)))

    window = ImageProcessors.extract_region(source, left, top, right - left, bottom - top)
    return ImageProcessors.resize_raster(window, width, height)


def _cover_canvas(source: np.ndarray, width: int, height: int) -> np.ndarray:
    """Scale source to cover the canvas, centered, cropped to canvas size."""
    src_h, src_w = source.shape[:2]
    scale = max(width / src_w, height / src_h)
    window_w = width / scale
    window_h = height / scale
    x0 = (src_w - window_w) / 2
    y0 = (src_h - window_h) / 2
    return resample_window(source, x0, y0, x0 + window_w, y0 + window_h, width, height)


def _blurred_background(source: np.ndarray, width: int, height: int) -> np.ndarray:
    covered = _cover_canvas(source, width, height)
    radius = SocialConstants.BLUR_BACKGROUND_RADIUS

    if radius >= _BLUR_DOWNSCALE_MIN_RADIUS:
        factor = _BLUR_DOWNSCALE_FACTOR
        small = ImageProcessors.resize_raster(
            covered, max(1, width // factor), max(1, height // factor)
        )
        small = ImageProcessors.gaussian_blur(small, radius / factor)
        blurred = ImageProcessors.resize_raster(small, width, height)
    else:
        blurred = ImageProcessors.gaussian_blur(covered, radius)

    return ImageProcessors.scale_brightness(blurred, SocialConstants.BLUR_BACKGROUND_BRIGHTNESS)


def linear_gradient(width: int, height: int, stops) -> np.ndarray:
    """
    Gradient along the diagonal from the top-left to the bottom-right corner.

    Args:
        width: Canvas width
        height: Canvas height
        stops: Sequence of (offset, (r, g, b))

    Returns:
        Opaque RGBA raster
    """
    xs = np.arange(width, dtype=np.float64) + 0.5
    ys = np.arange(height, dtype=np.float64) + 0.5
    # Projection of each pixel onto the (0,0)->(w,h) axis, normalized
    t = (xs[np.newaxis, :] * width + ys[:, np.newaxis] * height) / float(width**2 + height**2)

    offsets = [offset for offset, _ in stops]
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    for channel in range(3):
        values = [color[channel] for _, color in stops]
        canvas[..., channel] = np.rint(np.interp(t, offsets, values)).astype(np.uint8)
    canvas[..., 3] = 255
    return canvas


def render_background(
    source: np.ndarray, width: int, height: int, background: SocialBackground
) -> np.ndarray:
    """Paint the canvas background."""
    background = SocialBackground(background)

    if background == SocialBackground.BLUR:
        return _blurred_background(source, width, height)

    if background.value in SocialConstants.SOLID_COLORS:
        canvas = np.empty((height, width, 4), dtype=np.uint8)
        canvas[..., :3] = SocialConstants.SOLID_COLORS[background.value]
        canvas[..., 3] = 255
        return canvas

    return linear_gradient(width, height, SocialConstants.GRADIENT_STOPS[background.value])


# --- Foreground ---------------------------------------------------------------


def _rounded_mask(width: int, height: int, radius: int) -> Image.Image:
    mask = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(mask)
    if radius > 0:
        draw.rounded_rectangle((0, 0, width - 1, height - 1), radius=radius, fill=255)
    else:
        draw.rectangle((0, 0, width - 1, height - 1), fill=255)
    return mask


def _draw_shadow(canvas: Image.Image, box: Box, radius: int, shadow_percent: float) -> None:
    alpha = int(round(255 * shadow_percent / 100.0))
    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    shadow_box = (
        box.left + SocialConstants.SHADOW_OFFSET_X,
        box.top + SocialConstants.SHADOW_OFFSET_Y,
        box.right - 1 + SocialConstants.SHADOW_OFFSET_X,
        box.bottom - 1 + SocialConstants.SHADOW_OFFSET_Y,
    )
    ImageDraw.Draw(layer).rounded_rectangle(shadow_box, radius=radius, fill=(0, 0, 0, alpha))
    # Shadow blur is given as twice the gaussian standard deviation
    layer = layer.filter(ImageFilter.GaussianBlur(SocialConstants.SHADOW_BLUR / 2))
    canvas.alpha_composite(layer)


def _draw_image(
    canvas: Image.Image, source: np.ndarray, placement: Placement, box: Box, radius: int
) -> None:
    image_box = placement.image_box
    src_h, src_w = source.shape[:2]
    scale_x = image_box.width / src_w
    scale_y = image_box.height / src_h

    # Cover overflow is cut from the source before resampling
    visible = resample_window(
        source,
        (box.left - image_box.left) / scale_x,
        (box.top - image_box.top) / scale_y,
        (box.right - image_box.left) / scale_x,
        (box.bottom - image_box.top) / scale_y,
        box.width,
        box.height,
    )

    mask = np.asarray(_rounded_mask(box.width, box.height, radius), dtype=np.uint16)
    visible[..., 3] = (visible[..., 3].astype(np.uint16) * mask // 255).astype(np.uint8)

    canvas.alpha_composite(ImageConverters.numpy_to_pil(visible), dest=(box.left, box.top))


def _draw_border(canvas: Image.Image, box: Box, radius: int, border_width: float) -> None:
    width = max(1, int(round(border_width)))
    half = width / 2.0
    # Stroke is centered on the clip outline
    outline = (
        int(round(box.left - half)),
        int(round(box.top - half)),
        int(round(box.right - 1 + half)),
        int(round(box.bottom - 1 + half)),
    )
    ImageDraw.Draw(canvas).rounded_rectangle(
        outline,
        radius=int(round(radius + half)) if radius > 0 else 0,
        outline=SocialConstants.BORDER_COLOR,
        width=width,
    )


@lru_cache(maxsize=4)
def load_caption_font(size: int = SocialConstants.CAPTION_FONT_SIZE) -> ImageFont.ImageFont:
    """Bold sans font for captions, falling back to Pillow's bundled font."""
    for name in SocialConstants.CAPTION_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.debug("No bold TrueType font found, using Pillow default font")
    return ImageFont.load_default(size=size)


def _draw_caption(canvas: Image.Image, caption: str) -> None:
    font = load_caption_font()
    anchor_point = (canvas.width / 2.0, canvas.height - SocialConstants.CAPTION_BOTTOM_MARGIN)

    shadow = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(shadow).text(
        anchor_point, caption, font=font, fill=SocialConstants.CAPTION_SHADOW, anchor="md"
    )
    shadow = shadow.filter(ImageFilter.GaussianBlur(SocialConstants.CAPTION_SHADOW_BLUR / 2))
    canvas.alpha_composite(shadow)

    text = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(text).text(
        anchor_point, caption, font=font, fill=SocialConstants.CAPTION_FILL, anchor="md"
    )
    canvas.alpha_composite(text)


def compose_social_card(
    source: np.ndarray,
    template: SocialTemplateName,
    style: Optional[SocialStyle] = None,
    fit: SocialFit = SocialFit.CONTAIN,
) -> np.ndarray:
    """
    Render a social card.

    Args:
        source: RGBA source raster (not modified)
        template: Template selecting the canvas size
        style: Padding, radius, shadow, border, background and caption
        fit: contain or cover placement

    Returns:
        RGBA raster of exactly the template's dimensions
    """
    style = style or SocialStyle()
    width, height = template_size(template)
    src_h, src_w = source.shape[:2]

    canvas = ImageConverters.numpy_to_pil(render_background(source, width, height, style.background))

    placement = compute_placement(src_w, src_h, width, height, style.padding_percent, fit)
    box = placement.visible_box
    if box.is_empty():
        logger.warning(f"Placed image is not visible on {width}x{height} canvas")
        return ImageConverters.pil_to_numpy(canvas)

    radius = effective_radius(style.radius_px, box.width, box.height)

    if style.shadow_percent > 0:
        _draw_shadow(canvas, box, radius, style.shadow_percent)

    _draw_image(canvas, source, placement, box, radius)

    if style.border_width > 0:
        _draw_border(canvas, box, radius, style.border_width)

    if style.caption:
        _draw_caption(canvas, style.caption)

    logger.debug(
        f"Social card {template}: {src_w}x{src_h} placed at "
        f"({box.left},{box.top}) {box.width}x{box.height}, radius={radius}"
    )
    return ImageConverters.pil_to_numpy(canvas)
