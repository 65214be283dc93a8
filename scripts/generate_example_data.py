"""Generate synthetic example data for testing and demonstration.

Writes to examples/:
- plant_daily.csv: analysis input (required columns + pcs_<id>_kwh)
- raw/export_<n>.csv: raw logger exports for the merge command
- pvdata.xlsx: master table for the classify command
"""

from pathlib import Path

import numpy as np
import pandas as pd

from pvpr_engine.core.constants import REQUIRED_COLUMNS

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"

# PCS id -> panel count
PCS_PANELS = {
    "1-1-1": 24,
    "1-1-2": 24,
    "1-2-1": 24,
    "2-1-1": 18,
    "2-1-2": 18,
    "3-1-1": 12,
}
PANEL_AREA_M2 = 0.992 * 1.956
EFFICIENCY_PERCENT = 20.1


def synthetic_generation(num_days: int, seed: int = 42) -> tuple[pd.DatetimeIndex, np.ndarray, dict]:
    """Daily irradiation and per-PCS generation with a realistic PR around 80%."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2025-11-01", periods=num_days, freq="D")

    # Seasonal irradiation with weather noise
    irradiation = 3.5 + 0.8 * np.sin(np.arange(num_days) * 2 * np.pi / 30)
    irradiation = np.maximum(irradiation + rng.normal(0, 0.6, num_days), 0.3)

    generation = {}
    for pcs_id, panels in PCS_PANELS.items():
        area = panels * PANEL_AREA_M2
        pr = np.clip(rng.normal(0.8, 0.05, num_days), 0.5, 0.95)
        generation[pcs_id] = irradiation * area * EFFICIENCY_PERCENT / 100 * pr

    return dates, irradiation, generation


def generate_plant_daily(num_days: int = 30):
    """Generate the analysis input CSV."""
    print("Generating plant_daily.csv...")

    dates, irradiation, generation = synthetic_generation(num_days)
    total_area = sum(PCS_PANELS.values()) * PANEL_AREA_M2

    df = pd.DataFrame(
        {
            REQUIRED_COLUMNS[0]: dates.strftime("%Y-%m-%d"),
            REQUIRED_COLUMNS[1]: irradiation.round(2),
            REQUIRED_COLUMNS[2]: round(total_area / len(PCS_PANELS), 2),
            REQUIRED_COLUMNS[3]: EFFICIENCY_PERCENT,
        }
    )
    for pcs_id, values in generation.items():
        df[f"pcs_{pcs_id}_kwh"] = values.round(1)

    # A day with a missing irradiation reading
    df.loc[5, REQUIRED_COLUMNS[1]] = np.nan

    path = EXAMPLES_DIR / "plant_daily.csv"
    df.to_csv(path, index=False)
    print(f"✓ Created {path}")


def generate_raw_exports(num_days: int = 30):
    """Generate raw logger exports, split by PCS block, Shift-JIS encoded."""
    print("Generating raw exports...")

    dates, _, generation = synthetic_generation(num_days)
    raw_dir = EXAMPLES_DIR / "raw"
    raw_dir.mkdir(parents=True, exist_ok=True)

    blocks: dict[str, list[str]] = {}
    for pcs_id in generation:
        blocks.setdefault(pcs_id.split("-")[0], []).append(pcs_id)

    for n, (block, pcs_ids) in enumerate(sorted(blocks.items()), start=1):
        df = pd.DataFrame({"日時": dates.strftime("%Y/%m/%d")})
        for pcs_id in pcs_ids:
            df[f"{pcs_id}_PCS 有効電力量(kWh)"] = generation[pcs_id].round(1)

        path = raw_dir / f"export_{n}.csv"
        df.to_csv(path, index=False, encoding="cp932")
        print(f"✓ Created {path} (block {block})")


def generate_master():
    """Generate the PV master workbook (one PCS deliberately left out)."""
    print("Generating pvdata.xlsx...")

    pcs_ids = [pcs_id for pcs_id in PCS_PANELS if pcs_id != "3-1-1"]
    df = pd.DataFrame(
        {
            "No": range(1, len(pcs_ids) + 1),
            "PCS番号（通し）": [f"PCS {pcs_id}" for pcs_id in pcs_ids],
            "枚数": [PCS_PANELS[pcs_id] for pcs_id in pcs_ids],
            "面積": [round(PCS_PANELS[pcs_id] * PANEL_AREA_M2, 2) for pcs_id in pcs_ids],
        }
    )

    path = EXAMPLES_DIR / "pvdata.xlsx"
    df.to_excel(path, index=False)
    print(f"✓ Created {path}")


if __name__ == "__main__":
    EXAMPLES_DIR.mkdir(exist_ok=True)

    generate_plant_daily()
    generate_raw_exports()
    generate_master()

    print("\n✓ All example data generated successfully!")
