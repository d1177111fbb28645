"""
Tests for the convolution sharpener
"""

import numpy as np
import pytest

from transforms.sharpen import apply_sharpen


def reference_sharpen(raster: np.ndarray, strength: float) -> np.ndarray:
    """Straightforward per-pixel evaluation over a snapshot"""
    src = raster.astype(np.float64)
    out = raster.copy()
    h, w = raster.shape[:2]
    for y in range(1, h - 1):
        for x in range(1, w - 1):
            conv = (
                5 * src[y, x, :3]
                - src[y - 1, x, :3]
                - src[y + 1, x, :3]
                - src[y, x - 1, :3]
                - src[y, x + 1, :3]
            )
            value = src[y, x, :3] * (1 - strength) + conv * strength
            out[y, x, :3] = np.clip(np.rint(value), 0, 255)
    return out


class TestSharpen:
    """3x3 edge-enhance kernel"""

    def test_zero_strength_is_identity(self, test_raster):
        result = apply_sharpen(test_raster, 0.0)
        assert np.array_equal(result, test_raster)
        assert result is not test_raster

    def test_matches_reference(self):
        raster = np.random.default_rng(3).integers(0, 256, (9, 11, 4), dtype=np.uint8)
        result = apply_sharpen(raster, 0.7)
        expected = reference_sharpen(raster, 0.7)

        # float32 vs float64 accumulation may differ by one at .5 boundaries
        assert np.abs(result.astype(int) - expected.astype(int)).max() <= 1

    def test_border_untouched(self):
        raster = np.random.default_rng(4).integers(0, 256, (10, 10, 4), dtype=np.uint8)
        result = apply_sharpen(raster, 1.0)

        assert np.array_equal(result[0], raster[0])
        assert np.array_equal(result[-1], raster[-1])
        assert np.array_equal(result[:, 0], raster[:, 0])
        assert np.array_equal(result[:, -1], raster[:, -1])

    def test_alpha_untouched(self):
        raster = np.random.default_rng(5).integers(0, 256, (10, 10, 4), dtype=np.uint8)
        result = apply_sharpen(raster, 1.0)
        assert np.array_equal(result[..., 3], raster[..., 3])

    def test_reads_from_snapshot(self):
        # A single bright pixel: with in-place writes its right neighbour
        # would see the already-sharpened value
        raster = np.zeros((5, 5, 4), dtype=np.uint8)
        raster[..., 3] = 255
        raster[2, 2, :3] = 40

        result = apply_sharpen(raster, 1.0)

        assert tuple(result[2, 2, :3]) == (200, 200, 200)
        assert tuple(result[2, 3, :3]) == (0, 0, 0)
        assert tuple(result[1, 2, :3]) == (0, 0, 0)

    def test_flat_image_unchanged(self):
        raster = np.full((6, 6, 4), 90, dtype=np.uint8)
        assert np.array_equal(apply_sharpen(raster, 1.0), raster)

    @pytest.mark.parametrize("shape", [(2, 10, 4), (10, 2, 4), (1, 1, 4)])
    def test_tiny_rasters_are_copied(self, shape):
        raster = np.full(shape, 77, dtype=np.uint8)
        assert np.array_equal(apply_sharpen(raster, 1.0), raster)

    def test_strength_is_clamped(self, test_raster):
        assert np.array_equal(apply_sharpen(test_raster, 5.0), apply_sharpen(test_raster, 1.0))
        assert np.array_equal(apply_sharpen(test_raster, -1.0), test_raster)
