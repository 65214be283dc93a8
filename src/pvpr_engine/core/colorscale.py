"""Heat map colour scale for PR values.

The range is clipped to the 5th-95th percentile of the dataset's valid PR
values so a single outlier cannot flatten the colours of every other cell.
It is computed once per loaded dataset and reused for every cell.
"""

import math
from typing import Iterable, Optional

from pvpr_engine.core.constants import (
    DEFAULT_HIGH,
    DEFAULT_LOW,
    FOREGROUND_DARK,
    FOREGROUND_LIGHT,
    HEAT_COLORS,
    HEAT_STOPS,
    INVERTED_RANGE_HIGH,
    INVERTED_RANGE_LOW,
    LUMINANCE_THRESHOLD,
    NEUTRAL_BACKGROUND,
    NEUTRAL_FOREGROUND,
)
from pvpr_engine.core.schemas import ColorScaleStats


def compute_scale_stats(
    values: Iterable[float],
    lower_percentile: float = 0.05,
    upper_percentile: float = 0.95,
    min_span: float = 5.0,
    default_low: float = DEFAULT_LOW,
    default_high: float = DEFAULT_HIGH,
) -> ColorScaleStats:
    """Derive the colour range from a PR population.

    Args:
        values: Valid (defined) PR values
        lower_percentile: Fraction used for the low bound index
        upper_percentile: Fraction used for the high bound index
        min_span: Ranges narrower than this are widened by this much on both sides
        default_low: Low bound when the population is empty
        default_high: High bound when the population is empty

    Returns:
        ColorScaleStats
    """
    population = sorted(v for v in values if v is not None and not math.isnan(v))
    if not population:
        return ColorScaleStats(low=default_low, high=default_high)

    n = len(population)
    low = population[math.floor(n * lower_percentile)]
    high = population[math.floor(n * upper_percentile)]

    if high - low < min_span:
        low = max(0.0, low - min_span)
        high = high + min_span

    return ColorScaleStats(low=low, high=high)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _lerp_rgb(c0: tuple[int, int, int], c1: tuple[int, int, int], u: float) -> tuple[int, int, int]:
    return tuple(_round_half_up(a * (1 - u) + b * u) for a, b in zip(c0, c1))


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    """Format an RGB triple as a lowercase #rrggbb string."""
    return "#" + "".join(f"{channel:02x}" for channel in rgb)


def text_color(background: Optional[str]) -> str:
    """Choose a readable foreground colour for a background colour.

    Uses the luminance weighting 0.299R + 0.587G + 0.114B. The neutral
    background (undefined PR) gets a muted gray.

    Args:
        background: #rrggbb background colour

    Returns:
        #rrggbb foreground colour
    """
    if not background or background.lower() == NEUTRAL_BACKGROUND:
        return NEUTRAL_FOREGROUND

    r = int(background[1:3], 16)
    g = int(background[3:5], 16)
    b = int(background[5:7], 16)
    yiq = (r * 299 + g * 587 + b * 114) / 1000
    return FOREGROUND_DARK if yiq >= LUMINANCE_THRESHOLD else FOREGROUND_LIGHT


class ColorScale:
    """Maps PR values onto a 4-stop blue-to-orange ramp."""

    def __init__(self, stats: ColorScaleStats):
        self.stats = stats
        low, high = stats.low, stats.high
        if high <= low:
            low, high = INVERTED_RANGE_LOW, INVERTED_RANGE_HIGH
        self.low = low
        self.high = high

    def normalize(self, value: float) -> float:
        """Position of a value on the ramp, clamped to [0, 1]."""
        t = (value - self.low) / (self.high - self.low)
        return max(0.0, min(1.0, t))

    def heat_color(self, value: Optional[float]) -> str:
        """Background colour for a PR value.

        Args:
            value: PR value, or None/NaN when undefined

        Returns:
            #rrggbb colour; the neutral background for undefined values
        """
        if value is None or math.isnan(value):
            return NEUTRAL_BACKGROUND

        t = self.normalize(value)

        if t < HEAT_STOPS[1]:
            segment = 0
        elif t < HEAT_STOPS[2]:
            segment = 1
        else:
            segment = 2

        start, end = HEAT_STOPS[segment], HEAT_STOPS[segment + 1]
        u = (t - start) / (end - start)
        return rgb_to_hex(_lerp_rgb(HEAT_COLORS[segment], HEAT_COLORS[segment + 1], u))

    def cell_colors(self, value: Optional[float]) -> tuple[str, str]:
        """Return (background, foreground) for a PR value."""
        background = self.heat_color(value)
        return background, text_color(background)
