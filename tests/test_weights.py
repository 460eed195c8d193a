import numpy as np
import pytest

from radiosity.weights import (
    SUBTEND_TOTAL,
    calc_forward_light_weights,
    calc_side_light_weights,
    calc_subtend_weights,
    pixel_grid,
    weight_masks,
)


class TestPixelGrid:
    def test_bottom_row_first(self):
        u, v = pixel_grid(4)
        assert u.shape == (4, 4)
        np.testing.assert_allclose(v[:, 0], [-0.75, -0.25, 0.25, 0.75])
        np.testing.assert_allclose(u[0], [-0.75, -0.25, 0.25, 0.75])

    def test_partial_rows(self):
        u, v = pixel_grid(8, rows=4)
        assert u.shape == (4, 8)
        assert np.all(v < 0)


class TestWeights:
    @pytest.mark.parametrize("resolution", [16, 64])
    def test_subtend_covers_sphere(self, resolution):
        total = 6 * calc_subtend_weights(resolution).sum()
        assert total == pytest.approx(SUBTEND_TOTAL, rel=1e-2)

    @pytest.mark.parametrize("resolution", [16, 64])
    def test_light_covers_hemisphere(self, resolution):
        total = calc_forward_light_weights(resolution).sum() + 4 * calc_side_light_weights(resolution).sum()
        assert total == pytest.approx(1.0, rel=1e-2)

    def test_side_weights_are_half_frame(self):
        assert calc_side_light_weights(10).shape == (50,)
        assert np.all(calc_side_light_weights(10) > 0)

    def test_forward_peaks_at_centre(self):
        w = calc_forward_light_weights(8).reshape(8, 8)
        assert w[3, 3] == w.max()
        assert w[0, 0] == w.min()


class TestWeightMasks:
    def test_cached(self):
        assert weight_masks(12) is weight_masks(12)

    def test_read_only(self):
        masks = weight_masks(12)
        with pytest.raises(ValueError):
            masks.subtend[0] = 1.0

    def test_bad_resolution(self):
        with pytest.raises(ValueError):
            weight_masks(0)
