"""
Tests for the vignette renderer
"""

import numpy as np

from transforms.vignette import apply_vignette, vignette_alpha


class TestVignette:
    """Radial darkening"""

    def test_zero_percent_is_identity(self, test_raster):
        result = apply_vignette(test_raster, 0)
        assert np.array_equal(result, test_raster)
        assert result is not test_raster

    def test_center_untouched(self):
        raster = np.full((90, 120, 4), 200, dtype=np.uint8)
        result = apply_vignette(raster, 100)
        assert np.array_equal(result[45, 60], raster[45, 60])

    def test_corners_darkened(self):
        raster = np.full((90, 120, 4), 200, dtype=np.uint8)
        result = apply_vignette(raster, 100)

        for y, x in [(0, 0), (0, -1), (-1, 0), (-1, -1)]:
            assert result[y, x, 0] < 20

    def test_alpha_ramp(self):
        alpha = vignette_alpha(120, 90, 50)

        assert alpha.shape == (90, 120)
        assert alpha.min() == 0.0
        assert alpha.max() <= 0.5
        assert alpha[0, 0] > 0.45
        # inner radius is a third of the smaller half dimension
        assert alpha[45, 60 + 14] == 0.0

    def test_darkening_is_monotonic_outwards(self):
        raster = np.full((50, 50, 4), 255, dtype=np.uint8)
        row = apply_vignette(raster, 80)[25, 25:, 0].astype(int)
        assert all(a >= b for a, b in zip(row, row[1:]))

    def test_input_not_modified(self, test_raster):
        before = test_raster.copy()
        apply_vignette(test_raster, 60)
        assert np.array_equal(test_raster, before)
