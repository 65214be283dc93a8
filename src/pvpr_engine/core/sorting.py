"""User-triggered display sort for daily records.

The engine never reorders records itself; this returns a sorted copy for
display, and the original order is always available from the dataset.
"""

from typing import Literal, Optional, Sequence

from pvpr_engine.core.schemas import DailyRecord

SortKey = Literal["date", "irradiation", "panel_area", "efficiency", "pcs_pr"]


def _sort_value(record: DailyRecord, key: SortKey, pcs_id: Optional[str]):
    if key == "pcs_pr":
        value = record.pcs_details.get(pcs_id)
    else:
        value = getattr(record, key)

    # Undefined values sort as the lowest value
    if value is None:
        return (0, 0)
    return (1, value)


def sort_records(
    records: Sequence[DailyRecord],
    key: SortKey,
    direction: Literal["asc", "desc"] = "asc",
    pcs_id: Optional[str] = None,
) -> list[DailyRecord]:
    """Return records sorted by a column.

    Args:
        records: Records in dataset order
        key: Column to sort by
        direction: "asc" or "desc"
        pcs_id: PCS id, required when key is "pcs_pr"

    Returns:
        New sorted list; ties keep dataset order
    """
    if key == "pcs_pr" and pcs_id is None:
        raise ValueError("pcs_id is required when sorting by pcs_pr")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction: {direction}")

    return sorted(
        records,
        key=lambda record: _sort_value(record, key, pcs_id),
        reverse=direction == "desc",
    )
