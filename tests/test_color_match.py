"""Tests for palette colour matching."""

import math

import numpy as np
import pytest

from lego_vision.inference.color_match import (
    match_color,
    rgb_to_lab,
)
from lego_vision.inference.grid_sampler import cell_mean_lab, to_cielab
from lego_vision.models.palette import LEGO_COLORS, UNKNOWN_COLOR, ReferenceColor


class TestMatchColor:
    """Tests for the CIEDE2000 nearest-colour search."""

    def test_exact_red(self):
        match = match_color(rgb_to_lab((231, 0, 0)))
        assert match.name == "Red"
        assert match.delta_e == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.parametrize("ref", LEGO_COLORS, ids=lambda c: c.name)
    def test_every_reference_matches_itself(self, ref):
        match = match_color(rgb_to_lab(ref.rgb))
        assert match.name == ref.name

    def test_near_colour_picks_closest(self):
        # Slightly darkened red is still Red, not Dark Red
        match = match_color(rgb_to_lab((220, 5, 5)))
        assert match.name == "Red"
        assert match.delta_e > 0

    def test_ties_go_to_first_declared(self):
        palette = (
            ReferenceColor("First", (10, 200, 30)),
            ReferenceColor("Second", (10, 200, 30)),
        )
        assert match_color(rgb_to_lab((10, 200, 30)), palette).name == "First"

    def test_empty_palette_is_unknown(self):
        match = match_color([50.0, 0.0, 0.0], palette=())
        assert match.name == UNKNOWN_COLOR
        assert math.isinf(match.delta_e)

    def test_accepts_list_palette(self):
        palette = [ReferenceColor("Black", (0, 0, 0)), ReferenceColor("White", (255, 255, 255))]
        assert match_color([95.0, 0.0, 0.0], palette).name == "White"


class TestLabConversions:
    """Tests for Lab helpers."""

    def test_white_lab(self):
        l, a, b = rgb_to_lab((255, 255, 255))
        assert l == pytest.approx(100.0, abs=0.01)
        assert a == pytest.approx(0.0, abs=0.01)
        assert b == pytest.approx(0.0, abs=0.01)

    def test_opencv_raster_agrees_with_reference(self):
        # A solid patch converted by OpenCV should land on the same palette entry
        patch = np.zeros((16, 16, 3), dtype=np.uint8)
        patch[:] = (191, 85, 0)  # Blue, BGR
        mean = cell_mean_lab(to_cielab(patch), (0, 0, 16, 16))
        match = match_color(mean)
        assert match.name == "Blue"
        assert match.delta_e < 2.0


class TestCellMeanLab:
    """Tests for ROI sampling."""

    def test_empty_roi(self):
        lab = np.zeros((10, 10, 3), dtype=np.float32)
        assert cell_mean_lab(lab, (20, 20, 4, 4)) is None

    def test_blur_disabled(self):
        lab = np.zeros((10, 10, 3), dtype=np.float32)
        lab[..., 0] = 42.0
        mean = cell_mean_lab(lab, (2, 2, 4, 4), blur_kernel=None)
        np.testing.assert_allclose(mean, [42.0, 0.0, 0.0])
