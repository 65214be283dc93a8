"""PR (performance ratio) computation for daily PCS generation tables."""

import logging
import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from pvpr_engine.core.colorscale import ColorScale, compute_scale_stats
from pvpr_engine.core.constants import (
    COL_DATE,
    COL_EFFICIENCY,
    COL_IRRADIATION,
    COL_PANEL_AREA,
    PR_EXPORT_HEADERS,
    REQUIRED_COLUMNS,
)
from pvpr_engine.core.errors import RowDataError
from pvpr_engine.core.schemas import ColorScaleStats, DailyRecord, EngineConfig, PcsColumn
from pvpr_engine.core.validate import discover_pcs_columns, validate_headers

logger = logging.getLogger(__name__)


def _to_number(series: pd.Series) -> pd.Series:
    """Parse a column of strings, mapping unparsable and non-finite values to NaN."""
    numbers = pd.to_numeric(series.astype(str).str.strip(), errors="coerce")
    return numbers.where(np.isfinite(numbers))


def _optional(value: Any) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def compute_pr(
    pcs_kwh: Optional[float],
    irradiation: Optional[float],
    panel_area: Optional[float],
    efficiency: Optional[float],
) -> Optional[float]:
    """Compute the PR of one PCS on one day.

    PR(%) = (pcs_kwh / (irradiation * panel_area * (efficiency / 100))) * 100

    Args:
        pcs_kwh: PCS daily generation in kWh
        irradiation: Daily irradiation in kWh/m²
        panel_area: Panel area in m²
        efficiency: Panel efficiency in %

    Returns:
        PR in %, or None when any shared input is missing or <= 0, the PCS
        value is missing or negative, or the denominator is <= 0
    """
    shared = (irradiation, panel_area, efficiency)
    if any(v is None or math.isnan(v) or v <= 0 for v in shared):
        return None
    if pcs_kwh is None or math.isnan(pcs_kwh) or pcs_kwh < 0:
        return None

    denominator = irradiation * panel_area * (efficiency / 100)
    if denominator <= 0:
        return None

    return (pcs_kwh / denominator) * 100


def compute_pr_frame(df: pd.DataFrame, pcs_columns: Sequence[PcsColumn]) -> pd.DataFrame:
    """Compute PR for every row and PCS column of a string-valued dataframe.

    Args:
        df: Input rows with the required columns and the PCS columns
        pcs_columns: Discovered PCS columns

    Returns:
        DataFrame with one column per PCS id (NaN where PR is undefined),
        same index as df. Duplicate ids keep the last column.
    """
    irradiation = _to_number(df[COL_IRRADIATION])
    panel_area = _to_number(df[COL_PANEL_AREA])
    efficiency = _to_number(df[COL_EFFICIENCY])

    # NaN comparisons are False, so missing inputs invalidate the row
    valid_base = (irradiation > 0) & (panel_area > 0) & (efficiency > 0)
    denominator = irradiation * panel_area * (efficiency / 100)

    pr = pd.DataFrame(index=df.index)
    for col in pcs_columns:
        value = _to_number(df[col.header])
        mask = valid_base & (value >= 0) & (denominator > 0)
        pr[col.pcs_id] = ((value / denominator) * 100).where(mask)

    return pr


@dataclass
class PRDataset:
    """Derived PR data for one loaded file.

    Records keep the input row order. The colour range is computed once
    from the valid PR population and reused for every cell.
    """

    records: list[DailyRecord]
    pcs_columns: list[PcsColumn]
    pr_values: list[float] = field(default_factory=list)
    stats: ColorScaleStats = field(default_factory=lambda: ColorScaleStats(low=0.0, high=100.0))

    @property
    def pcs_list(self) -> list[str]:
        """PCS ids in header order."""
        return [col.pcs_id for col in self.pcs_columns]

    @cached_property
    def color_scale(self) -> ColorScale:
        return ColorScale(self.stats)

    def to_frame(self) -> pd.DataFrame:
        """Records as a dataframe with one column per PCS id (NaN = undefined)."""
        data = []
        for record in self.records:
            row = {
                COL_DATE: record.date,
                COL_IRRADIATION: record.irradiation,
                COL_PANEL_AREA: record.panel_area,
                COL_EFFICIENCY: record.efficiency,
            }
            for pcs_id in self.pcs_list:
                row[pcs_id] = record.pcs_details.get(pcs_id)
            data.append(row)
        return pd.DataFrame(data, columns=REQUIRED_COLUMNS + self.pcs_list, dtype=object)

    def to_export_matrix(self, decimals: Optional[int] = 2) -> tuple[list[str], list[list[Any]]]:
        """Header and rows for export.

        Args:
            decimals: Round PR values to this many places (None keeps full precision)

        Returns:
            Tuple of (header, rows); undefined values are None
        """
        header = PR_EXPORT_HEADERS + self.pcs_list
        rows = []
        for record in self.records:
            values = []
            for pcs_id in self.pcs_list:
                pr = record.pcs_details.get(pcs_id)
                if pr is not None and decimals is not None:
                    pr = round(pr, decimals)
                values.append(pr)
            rows.append([record.date, record.irradiation, record.panel_area, record.efficiency] + values)
        return header, rows


def compute_daily_pr(
    headers: Sequence[str],
    rows: Sequence[dict[str, str]],
    config: Optional[EngineConfig] = None,
) -> PRDataset:
    """Validate a parsed table and derive PR values for every dated row.

    Args:
        headers: Header row
        rows: Header-keyed body rows
        config: Engine configuration (percentiles, default range)

    Returns:
        PRDataset

    Raises:
        SchemaError: If a required column is missing
        NoDeviceColumnsError: If no PCS column is found
        RowDataError: If no row has a date
    """
    config = config or EngineConfig()

    validate_headers(headers)
    pcs_columns = discover_pcs_columns(headers)

    df = pd.DataFrame(list(rows), columns=list(headers)).fillna("")
    df = df[df[COL_DATE] != ""].reset_index(drop=True)
    if df.empty:
        raise RowDataError("日付のある有効なデータ行が見つかりません。")

    pr = compute_pr_frame(df, pcs_columns)

    irradiation = _to_number(df[COL_IRRADIATION])
    panel_area = _to_number(df[COL_PANEL_AREA])
    efficiency = _to_number(df[COL_EFFICIENCY])

    records = []
    for i in df.index:
        records.append(
            DailyRecord(
                date=df.at[i, COL_DATE],
                irradiation=_optional(irradiation[i]),
                panel_area=_optional(panel_area[i]),
                efficiency=_optional(efficiency[i]),
                pcs_details={pcs_id: _optional(pr.at[i, pcs_id]) for pcs_id in pr.columns},
            )
        )

    # Row-major order, NaN (undefined) excluded
    flat = pr.to_numpy(dtype=float).ravel()
    pr_values = flat[~np.isnan(flat)].tolist()

    stats = compute_scale_stats(
        pr_values,
        lower_percentile=config.lower_percentile,
        upper_percentile=config.upper_percentile,
        min_span=config.min_span,
        default_low=config.default_low,
        default_high=config.default_high,
    )

    logger.info(
        "Computed PR for %d rows x %d PCS columns (%d defined values)",
        len(records),
        len(pcs_columns),
        len(pr_values),
    )

    return PRDataset(records=records, pcs_columns=pcs_columns, pr_values=pr_values, stats=stats)
