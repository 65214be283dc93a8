"""PV master table loading.

The master workbook maps a PCS id ("PCS 1-7-1") to its panel count (枚数)
and area (面積). Only the first sheet is read. The id column has been
exported under several spellings over time, so each known spelling is
tried in order.
"""

import logging
import math
import numbers
import re
from pathlib import Path
from typing import Any, BinaryIO, Optional

import pandas as pd

from pvpr_engine.core.constants import MASTER_AREA_COLUMN, MASTER_COUNT_COLUMN, MASTER_ID_COLUMNS
from pvpr_engine.core.errors import MasterLoadError
from pvpr_engine.core.schemas import MasterEntry

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value


def _parse_int(value: Any) -> Optional[int]:
    """Parse a panel count the way a spreadsheet user typed it ("24", 24.0, "24枚")."""
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _parse_float(value: Any) -> Optional[float]:
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return float(value) if math.isfinite(value) else None
    match = _LEADING_FLOAT.match(str(value))
    return float(match.group(1)) if match else None


def _normalize_id(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def build_master_map(df: pd.DataFrame) -> dict[str, MasterEntry]:
    """Build the id -> MasterEntry lookup from a master sheet.

    Args:
        df: First sheet of the master workbook

    Returns:
        Mapping keyed by the trimmed id string

    Raises:
        MasterLoadError: If no row yields a usable id
    """
    master = {}
    for row in df.to_dict("records"):
        pcs_id = next(
            (row[col] for col in MASTER_ID_COLUMNS if col in row and not _is_blank(row[col])),
            None,
        )
        if pcs_id is None:
            continue

        key = _normalize_id(pcs_id)
        if not key:
            continue

        master[key] = MasterEntry(
            pcs_id=key,
            count=_parse_int(row.get(MASTER_COUNT_COLUMN)),
            area=_parse_float(row.get(MASTER_AREA_COLUMN)),
        )

    if not master:
        raise MasterLoadError(
            "マスタデータから有効なレコードを読み込めませんでした。カラム名を確認してください。"
        )

    logger.info("Master map built: %d records", len(master))
    return master


def load_master_table(source: str | Path | BinaryIO) -> dict[str, MasterEntry]:
    """Read the master workbook and build the lookup.

    Args:
        source: Path or binary file object of the .xlsx workbook

    Returns:
        Mapping keyed by the trimmed id string

    Raises:
        MasterLoadError: If the workbook is unreachable, has no sheet, or no valid records
    """
    if isinstance(source, (str, Path)) and not Path(source).exists():
        raise MasterLoadError(f"Master table not found: {source}")

    try:
        df = pd.read_excel(source, sheet_name=0, dtype=object, engine="openpyxl")
    except Exception as e:
        raise MasterLoadError(f"Parse Error: {e}") from e

    if df.empty:
        raise MasterLoadError("Excelファイルにシートが存在しないか、シートが空です。")

    return build_master_map(df)
