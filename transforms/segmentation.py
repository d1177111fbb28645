"""
Compositing for background segmentation results.

The segmentation model itself is an external collaborator; it returns a
raster of the source's size with background pixels made transparent. This
module only composites that subject layer.
"""

import numpy as np

from core.constants import SegmentationConstants
from core.exceptions import ExternalServiceError
from core.image.processors import ImageProcessors
from transforms.compositing import alpha_over


def check_subject_shape(subject: np.ndarray, original: np.ndarray) -> None:
    """
    Raises:
        ExternalServiceError: If the collaborator returned a different size
    """
    if subject.shape[:2] != original.shape[:2]:
        raise ExternalServiceError(
            f"Segmentation returned {subject.shape[1]}x{subject.shape[0]}, "
            f"expected {original.shape[1]}x{original.shape[0]}"
        )


def remove_background(subject: np.ndarray, original: np.ndarray) -> np.ndarray:
    """Straight background removal: the subject over nothing."""
    check_subject_shape(subject, original)
    return subject.copy()


def portrait_background(original: np.ndarray) -> np.ndarray:
    """Blurred, slightly darkened copy of the original."""
    blurred = ImageProcessors.gaussian_blur(original, SegmentationConstants.PORTRAIT_BLUR_RADIUS)
    return ImageProcessors.scale_brightness(blurred, SegmentationConstants.PORTRAIT_BRIGHTNESS)


def compose_portrait(subject: np.ndarray, original: np.ndarray) -> np.ndarray:
    """
    Portrait mode: the sharp subject over a blurred copy of the original.

    Args:
        subject: Segmented RGBA raster (background transparent)
        original: Source RGBA raster

    Returns:
        New RGBA raster
    """
    check_subject_shape(subject, original)
    return alpha_over(subject, portrait_background(original))
