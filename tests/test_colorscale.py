"""Test colour range derivation and value-to-colour mapping."""

import math

import pytest

from pvpr_engine.core.colorscale import ColorScale, compute_scale_stats, text_color
from pvpr_engine.core.constants import NEUTRAL_BACKGROUND, NEUTRAL_FOREGROUND
from pvpr_engine.core.schemas import ColorScaleStats

LOW_COLOR = "#004c99"
HIGH_COLOR = "#ff8c00"


@pytest.fixture
def scale():
    """Create a 60-100 colour scale."""
    return ColorScale(ColorScaleStats(low=60.0, high=100.0))


def test_percentile_bounds_use_truncated_indices():
    """Test low/high are taken at floor(n*0.05) and floor(n*0.95)."""
    values = [float(v) for v in range(100, 0, -1)]

    stats = compute_scale_stats(values)

    assert stats.low == 6.0
    assert stats.high == 96.0


def test_single_outlier_does_not_stretch_range():
    """Test that one extreme value is clipped out of the range."""
    values = [float(v) for v in range(60, 99)] + [5000.0]

    stats = compute_scale_stats(values)

    assert stats.low == 62.0
    assert stats.high == 98.0


def test_narrow_range_is_widened():
    """Test that ranges under 5 points are padded by 5 on both sides."""
    stats = compute_scale_stats([90.0, 91.0, 92.0])

    assert stats.low == 85.0
    assert stats.high == 97.0


def test_widened_low_never_goes_negative():
    """Test that padding clamps the low bound at zero."""
    stats = compute_scale_stats([1.0, 2.0])

    assert stats.low == 0.0
    assert stats.high == 7.0


def test_empty_population_uses_default_range():
    """Test the 60-100 default when no PR value is defined."""
    stats = compute_scale_stats([])

    assert (stats.low, stats.high) == (60.0, 100.0)


def test_nan_values_are_ignored():
    """Test that NaN never enters range statistics."""
    stats = compute_scale_stats([math.nan, 90.0, math.nan, 91.0])

    assert stats == compute_scale_stats([90.0, 91.0])


def test_bounds_map_to_end_stops(scale):
    """Test that low maps to the first stop and high to the last."""
    assert scale.heat_color(60.0) == LOW_COLOR
    assert scale.heat_color(100.0) == HIGH_COLOR


def test_out_of_range_values_clamp(scale):
    """Test that values outside the range do not extrapolate."""
    assert scale.heat_color(10.0) == LOW_COLOR
    assert scale.heat_color(-50.0) == LOW_COLOR
    assert scale.heat_color(150.0) == HIGH_COLOR


def test_inner_stops():
    """Test the light blue and yellow stops at t=0.33 and t=0.66."""
    scale = ColorScale(ColorScaleStats(low=0.0, high=100.0))

    assert scale.heat_color(33.0) == "#66b2ff"
    assert scale.heat_color(66.0) == "#ffe066"


def test_interpolation_within_segment():
    """Test linear RGB interpolation halfway through the first segment."""
    scale = ColorScale(ColorScaleStats(low=0.0, high=100.0))

    # t = 0.165 -> u = 0.5 between #004C99 and #66B2FF
    assert scale.heat_color(16.5) == "#337fcc"


def test_undefined_values_get_neutral_background(scale):
    """Test that None and NaN never get a ramp colour."""
    assert scale.heat_color(None) == NEUTRAL_BACKGROUND
    assert scale.heat_color(math.nan) == NEUTRAL_BACKGROUND


def test_inverted_range_falls_back_to_full_scale():
    """Test that high <= low is replaced by a 0-100 range."""
    scale = ColorScale(ColorScaleStats(low=100.0, high=50.0))

    assert scale.heat_color(0.0) == LOW_COLOR
    assert scale.heat_color(100.0) == HIGH_COLOR


def test_text_color_by_luminance():
    """Test white text on dark colours and black text on light colours."""
    assert text_color(LOW_COLOR) == "#ffffff"
    assert text_color("#ffe066") == "#000000"
    assert text_color(HIGH_COLOR) == "#000000"


def test_text_color_for_neutral_background():
    """Test the muted gray for undefined cells."""
    assert text_color(NEUTRAL_BACKGROUND) == NEUTRAL_FOREGROUND
    assert text_color(None) == NEUTRAL_FOREGROUND


def test_cell_colors_pair(scale):
    """Test background and foreground are returned together."""
    assert scale.cell_colors(60.0) == (LOW_COLOR, "#ffffff")
    assert scale.cell_colors(None) == (NEUTRAL_BACKGROUND, NEUTRAL_FOREGROUND)
