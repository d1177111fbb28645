"""
Image transform stages.

- filters: preset/slider composition and color operations
- geometry: crop/resize mapping
- sharpen: 3x3 edge-enhance convolution
- vignette: radial darkening
- social_card: template canvas composition
- icon_container: single-entry .ico writer
- segmentation: subject compositing for background removal
"""

from transforms.filters import ColorOperation, apply_color_operations, compose_filters
from transforms.geometry import GeometryMapping, map_geometry, render_geometry
from transforms.icon_container import build_icon_container, encode_icon, fit_icon_square
from transforms.segmentation import compose_portrait, remove_background
from transforms.sharpen import apply_sharpen
from transforms.social_card import compose_social_card, template_size
from transforms.vignette import apply_vignette

__all__ = [
    "ColorOperation",
    "compose_filters",
    "apply_color_operations",
    "GeometryMapping",
    "map_geometry",
    "render_geometry",
    "apply_sharpen",
    "apply_vignette",
    "compose_social_card",
    "template_size",
    "build_icon_container",
    "encode_icon",
    "fit_icon_square",
    "remove_background",
    "compose_portrait",
]
