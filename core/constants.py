"""
Constants and configuration values for the Image Transform Pipeline.
Centralizes all magic numbers and fixed recipe values.
"""

import numpy as np


# Encoding Constants
class EncodeConstants:
    """Constants related to output encoding."""

    # Quality used by every mode except compress
    DEFAULT_QUALITY = 0.92
    MIN_COMPRESS_QUALITY = 0.1
    MAX_COMPRESS_QUALITY = 1.0

    PIL_FORMATS = {
        "jpeg": "JPEG",
        "png": "PNG",
        "webp": "WEBP",
        "bmp": "BMP",
    }

    MEDIA_TYPES = {
        "jpeg": "image/jpeg",
        "png": "image/png",
        "webp": "image/webp",
        "bmp": "image/bmp",
        "ico": "image/x-icon",
    }

    # Formats without an alpha channel are flattened onto black
    OPAQUE_FORMATS = ("jpeg", "bmp")


# Delivery Constants
class DeliveryConstants:
    """Suggested filename suffix per mode."""

    MODE_SUFFIXES = {
        "convert": "_converted",
        "compress": "_compressed",
        "enhance": "_enhanced",
        "resize": "_resized",
        "crop": "_cropped",
        "social": "_social",
    }

    ICON_EXTENSION = "ico"
    NOBG_PREFIX = "nobg_"
    PORTRAIT_PREFIX = "portrait_"


# Filter Constants
class FilterConstants:
    """Slider ranges and preset recipes (CSS filter magnitudes)."""

    COLOR_SLIDER_MIN = 0
    COLOR_SLIDER_MAX = 200
    COLOR_SLIDER_DEFAULT = 100

    EFFECT_SLIDER_MIN = 0
    EFFECT_SLIDER_MAX = 100
    EFFECT_SLIDER_DEFAULT = 0

    # preset -> ((primitive, magnitude), ...); magnitudes are factors,
    # blur in pixels, hue-rotate in degrees
    PRESET_RECIPES = {
        "grayscale": (("grayscale", 1.0),),
        "sepia": (("sepia", 1.0),),
        "invert": (("invert", 1.0),),
        "blur": (("blur", 3.0),),
        "vintage": (("sepia", 0.5), ("contrast", 1.2), ("saturate", 0.8)),
        "technicolor": (("saturate", 2.0), ("contrast", 1.2)),
        "polaroid": (("contrast", 1.2), ("brightness", 1.1), ("saturate", 0.8), ("sepia", 0.2)),
        "hdr": (("contrast", 1.5), ("saturate", 1.5), ("brightness", 1.1)),
        "cinematic": (
            ("contrast", 1.2),
            ("brightness", 0.9),
            ("saturate", 1.1),
            ("hue-rotate", -10.0),
        ),
        "soft": (("brightness", 1.1), ("contrast", 0.9), ("saturate", 0.9), ("blur", 0.5)),
    }


# Sharpen Constants
class SharpenConstants:
    """Edge-enhance convolution."""

    KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32)


# Vignette Constants
class VignetteConstants:
    """Radial darkening gradient."""

    # Inner (transparent) radius as a fraction of the smaller half-dimension
    INNER_RADIUS_FRACTION = 1.0 / 3.0
    COLOR = (0, 0, 0)


# Social Card Constants
class SocialConstants:
    """Template canvases and fixed styling of social cards."""

    TEMPLATE_SIZES = {
        "instagram_square": (1080, 1080),
        "instagram_portrait": (1080, 1350),
        "story": (1080, 1920),
        "linkedin": (1200, 627),
        "twitter": (1200, 675),
    }

    # Background
    BLUR_BACKGROUND_RADIUS = 40
    BLUR_BACKGROUND_BRIGHTNESS = 0.8
    SOLID_COLORS = {
        "solid-white": (255, 255, 255),
        "solid-black": (0, 0, 0),
    }
    GRADIENT_STOPS = {
        "gradient-a": ((0.0, (0x8E, 0xC5, 0xFC)), (1.0, (0xE0, 0xC3, 0xFC))),
        "gradient-b": (
            (0.0, (0xFA, 0x8B, 0xFF)),
            (0.5, (0x2B, 0xD2, 0xFF)),
            (1.0, (0x2B, 0xFF, 0x88)),
        ),
    }

    # Drop shadow
    SHADOW_BLUR = 50
    SHADOW_OFFSET_X = 0
    SHADOW_OFFSET_Y = 20

    # Border
    BORDER_COLOR = (255, 255, 255, 255)

    # Caption
    CAPTION_FONT_SIZE = 60
    CAPTION_FONT_CANDIDATES = (
        "DejaVuSans-Bold.ttf",
        "LiberationSans-Bold.ttf",
        "Arial Bold.ttf",
        "arialbd.ttf",
    )
    CAPTION_FILL = (255, 255, 255, 204)
    CAPTION_SHADOW = (0, 0, 0, 128)
    CAPTION_SHADOW_BLUR = 10
    CAPTION_BOTTOM_MARGIN = 50

    # Style ranges
    MAX_PADDING_PERCENT = 50
    MAX_RADIUS_PX = 100
    MAX_SHADOW_PERCENT = 100
    MAX_BORDER_WIDTH = 50


# Segmentation Constants
class SegmentationConstants:
    """Portrait mode background treatment."""

    PORTRAIT_BLUR_RADIUS = 15
    PORTRAIT_BRIGHTNESS = 0.9


# Icon Container Constants
class IconConstants:
    """Single-image icon file layout."""

    HEADER_SIZE = 6
    ENTRY_SIZE = 16
    IMAGE_OFFSET = HEADER_SIZE + ENTRY_SIZE
    TYPE_ICON = 1
    PLANES = 1
    BIT_COUNT = 32
    MAX_DIMENSION = 255


# Preview Constants
class PreviewConstants:
    """Live preview recomputation."""

    DEBOUNCE_MS = 100
    DEFAULT_MAX_SESSIONS = 20
    THUMBNAIL_WIDTH = 480
    THUMBNAIL_JPEG_QUALITY = 70


# History Constants
class HistoryConstants:
    """Transform history buffer."""

    DEFAULT_BUFFER_SIZE = 200


# System Constants
class SystemConstants:
    """Constants for system operations."""

    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
