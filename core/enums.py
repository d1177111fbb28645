"""
Centralized enums for the Image Transform Pipeline.
"""

from enum import Enum


class TransformMode(str, Enum):
    """Operation modes of the pipeline"""

    CONVERT = "convert"
    COMPRESS = "compress"
    ENHANCE = "enhance"
    RESIZE = "resize"
    CROP = "crop"
    SOCIAL = "social"


class TargetFormat(str, Enum):
    """Output encodings"""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    BMP = "bmp"
    ICO = "ico"


class FilterPreset(str, Enum):
    """Named filter recipes. NONE selects no recipe."""

    NONE = "none"
    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    INVERT = "invert"
    BLUR = "blur"
    VINTAGE = "vintage"
    TECHNICOLOR = "technicolor"
    POLAROID = "polaroid"
    HDR = "hdr"
    CINEMATIC = "cinematic"
    SOFT = "soft"


class ColorOpKind(str, Enum):
    """Color operation primitives"""

    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    INVERT = "invert"
    BLUR = "blur"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    SATURATE = "saturate"
    HUE_ROTATE = "hue-rotate"


class SocialTemplateName(str, Enum):
    """Social card canvases"""

    INSTAGRAM_SQUARE = "instagram_square"
    INSTAGRAM_PORTRAIT = "instagram_portrait"
    STORY = "story"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"


class SocialBackground(str, Enum):
    """Social card background fill"""

    BLUR = "blur"
    SOLID_WHITE = "solid-white"
    SOLID_BLACK = "solid-black"
    GRADIENT_A = "gradient-a"
    GRADIENT_B = "gradient-b"


class SocialFit(str, Enum):
    """Placement of the source inside the content area"""

    CONTAIN = "contain"
    COVER = "cover"


class PipelineStage(str, Enum):
    """Stages an error can be attributed to"""

    DECODE = "decode"
    GEOMETRY = "geometry"
    FILTER = "filter"
    SHARPEN = "sharpen"
    VIGNETTE = "vignette"
    COMPOSITE = "composite"
    ENCODE = "encode"
    DELIVER = "deliver"
    SEGMENTATION = "segmentation"


class TransformResult(str, Enum):
    """Per-image outcome"""

    OK = "OK"
    FAILED = "FAILED"
