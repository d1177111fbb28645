"""
Operation descriptor models.

An OperationDescriptor is a closed tagged union over the pipeline modes;
the ``mode`` field selects the variant. All models are immutable values.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from core.constants import EncodeConstants, FilterConstants, SocialConstants
from core.enums import (
    FilterPreset,
    SocialBackground,
    SocialFit,
    SocialTemplateName,
    TargetFormat,
    TransformMode,
)

from .common import CropRegion


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class AdjustmentSet(BaseModel):
    """
    Manual enhancement sliders, in percent.

    Values outside their range are clamped rather than rejected.
    """

    model_config = ConfigDict(frozen=True)

    brightness: float = FilterConstants.COLOR_SLIDER_DEFAULT
    contrast: float = FilterConstants.COLOR_SLIDER_DEFAULT
    saturation: float = FilterConstants.COLOR_SLIDER_DEFAULT
    sharpen: float = FilterConstants.EFFECT_SLIDER_DEFAULT
    vignette: float = FilterConstants.EFFECT_SLIDER_DEFAULT

    @field_validator("brightness", "contrast", "saturation", mode="after")
    @classmethod
    def clamp_color(cls, v: float) -> float:
        return _clamp(v, FilterConstants.COLOR_SLIDER_MIN, FilterConstants.COLOR_SLIDER_MAX)

    @field_validator("sharpen", "vignette", mode="after")
    @classmethod
    def clamp_effect(cls, v: float) -> float:
        return _clamp(v, FilterConstants.EFFECT_SLIDER_MIN, FilterConstants.EFFECT_SLIDER_MAX)

    @property
    def sharpen_strength(self) -> float:
        """Sharpen as a blend factor in [0, 1]"""
        return self.sharpen / 100.0


class ResizeSpec(BaseModel):
    """Target dimensions; a missing side is derived when maintain_ratio is set"""

    model_config = ConfigDict(frozen=True)

    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    maintain_ratio: bool = True

    @property
    def is_set(self) -> bool:
        return self.width is not None or self.height is not None


class SocialStyle(BaseModel):
    """Styling of a social card"""

    model_config = ConfigDict(frozen=True)

    padding_percent: float = Field(default=0, ge=0, le=SocialConstants.MAX_PADDING_PERCENT)
    radius_px: float = Field(default=0, ge=0, le=SocialConstants.MAX_RADIUS_PX)
    shadow_percent: float = Field(default=0, ge=0, le=SocialConstants.MAX_SHADOW_PERCENT)
    border_width: float = Field(default=0, ge=0, le=SocialConstants.MAX_BORDER_WIDTH)
    background: SocialBackground = SocialBackground.BLUR
    caption: Optional[str] = Field(default=None, max_length=200)


class _OperationBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_format: TargetFormat = TargetFormat.JPEG

    @property
    def transform_mode(self) -> TransformMode:
        return TransformMode(self.mode)

    @model_validator(mode="after")
    def check_icon_target(self):
        if self.target_format == TargetFormat.ICO and self.mode != TransformMode.CONVERT.value:
            raise ValueError("Icon output is only available in convert mode")
        return self


class ConvertOperation(_OperationBase):
    """Re-encode in another format"""

    mode: Literal["convert"] = "convert"


class CompressOperation(_OperationBase):
    """Re-encode at a user-chosen quality"""

    mode: Literal["compress"] = "compress"
    quality: float = Field(
        default=0.9,
        ge=EncodeConstants.MIN_COMPRESS_QUALITY,
        le=EncodeConstants.MAX_COMPRESS_QUALITY,
    )


class EnhanceOperation(_OperationBase):
    """Preset filter, color sliders, sharpen and vignette"""

    mode: Literal["enhance"] = "enhance"
    preset: FilterPreset = FilterPreset.NONE
    adjustments: AdjustmentSet = Field(default_factory=AdjustmentSet)


class ResizeOperation(_OperationBase):
    """Scale to new dimensions, optionally after a crop"""

    mode: Literal["resize"] = "resize"
    resize: ResizeSpec = Field(default_factory=ResizeSpec)
    crop: Optional[CropRegion] = None


class CropOperation(_OperationBase):
    """Cut out a precomputed region"""

    mode: Literal["crop"] = "crop"
    crop: Optional[CropRegion] = None


class SocialOperation(_OperationBase):
    """Compose a social card on a template canvas"""

    mode: Literal["social"] = "social"
    template: SocialTemplateName = SocialTemplateName.INSTAGRAM_SQUARE
    style: SocialStyle = Field(default_factory=SocialStyle)
    fit: SocialFit = SocialFit.CONTAIN
    crop: Optional[CropRegion] = None


OperationDescriptor = Annotated[
    Union[
        ConvertOperation,
        CompressOperation,
        EnhanceOperation,
        ResizeOperation,
        CropOperation,
        SocialOperation,
    ],
    Field(discriminator="mode"),
]

OperationAdapter = TypeAdapter(OperationDescriptor)


def parse_operation(raw: Union[str, bytes, dict]) -> OperationDescriptor:
    """Validate a JSON document or dict into an OperationDescriptor."""
    if isinstance(raw, (str, bytes)):
        return OperationAdapter.validate_json(raw)
    return OperationAdapter.validate_python(raw)
