"""Panel area calculator for filling in panel_area_m2."""

import math
from typing import Optional

from pvpr_engine.core.schemas import PanelPreset

PANEL_PRESETS = [
    PanelPreset(id="custom", name="カスタム入力"),
    PanelPreset(id="wake", name="プリセット和気", length_m=0.992, width_m=1.956),
    PanelPreset(id="nasu", name="プリセット那須", length_m=0.992, width_m=2.000),
]


def get_preset(preset_id: str) -> PanelPreset:
    """Look up a panel preset by id."""
    for preset in PANEL_PRESETS:
        if preset.id == preset_id:
            return preset
    known = ", ".join(p.id for p in PANEL_PRESETS)
    raise ValueError(f"Unknown panel preset {preset_id!r} (known: {known})")


def area_per_panel(length_m: Optional[float], width_m: Optional[float]) -> Optional[float]:
    """Area of one panel in m², rounded to 4 places, or None for invalid dimensions."""
    if length_m is None or width_m is None:
        return None
    if math.isnan(length_m) or math.isnan(width_m) or length_m <= 0 or width_m <= 0:
        return None
    return round(length_m * width_m, 4)


def total_area(panel_area_m2: Optional[float], count: Optional[int]) -> Optional[float]:
    """Total panel area in m², rounded to 2 places, or None for invalid input."""
    if panel_area_m2 is None or count is None or count <= 0:
        return None
    return round(panel_area_m2 * count, 2)
