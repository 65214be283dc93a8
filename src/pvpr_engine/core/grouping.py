"""Classification of PCS columns into groups by master panel count.

Each pcs_<id>_kwh column is looked up as "PCS <id>" in the master table
and grouped by the panel count found there. Columns without a usable
master entry go to the "unclassified" group, which always sorts last.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Sequence

from pvpr_engine.core.constants import (
    GROUP_LABEL_TEMPLATE,
    MASTER_KEY_PREFIX,
    MAX_UNMATCHED_EXAMPLES,
    REQUIRED_COLUMNS,
    UNCLASSIFIED_KEY,
    UNCLASSIFIED_LABEL,
)
from pvpr_engine.core.errors import RowDataError
from pvpr_engine.core.schemas import FileProcessingWarning, MasterEntry, PcsColumn, PcsGroup
from pvpr_engine.core.validate import discover_pcs_columns, validate_headers
from pvpr_engine.io.formats import ParsedMatrix, matrix_to_csv_text, write_csv, write_xlsx

logger = logging.getLogger(__name__)


def _group_sort_key(group: PcsGroup) -> tuple:
    if group.key == UNCLASSIFIED_KEY:
        return (1, 0, 0)
    return (0, -len(group.columns), -(group.count or 0))


def group_pcs_columns(
    pcs_columns: Sequence[PcsColumn], master: dict[str, MasterEntry]
) -> tuple[list[PcsGroup], list[str]]:
    """Bucket PCS columns by master panel count.

    Groups are ordered with "unclassified" last; the rest by number of
    member columns (desc), then by panel count (desc).

    Args:
        pcs_columns: Columns discovered with the case-sensitive pattern
        master: Master lookup keyed by "PCS <id>"

    Returns:
        Tuple of (sorted groups, unmatched column headers in header order)
    """
    groups: dict[str, PcsGroup] = {}
    unmatched: list[str] = []

    for col in pcs_columns:
        entry = master.get(f"{MASTER_KEY_PREFIX}{col.pcs_id}")

        if entry is not None and entry.count is not None:
            key = str(entry.count)
            label = GROUP_LABEL_TEMPLATE.format(entry.count)
            count = entry.count
        else:
            key, label, count = UNCLASSIFIED_KEY, UNCLASSIFIED_LABEL, None
            unmatched.append(col.header)

        if key not in groups:
            groups[key] = PcsGroup(key=key, label=label, count=count)
        groups[key].columns.append(col.header)

    return sorted(groups.values(), key=_group_sort_key), unmatched


@dataclass
class GroupingResult:
    """Classified view of one loaded table.

    Rows are kept positionally; exports pick columns through the header map.
    """

    header: list[str]
    rows: list[list[str]]
    groups: list[PcsGroup]
    unmatched_columns: list[str] = field(default_factory=list)
    warnings: list[FileProcessingWarning] = field(default_factory=list)
    active_key: Optional[str] = None

    def __post_init__(self):
        self.header_map = {name: index for index, name in enumerate(self.header)}
        if self.active_key is None and self.groups:
            self.active_key = self.groups[0].key

    def get_group(self, key: str) -> PcsGroup:
        """Look up a group by key."""
        for group in self.groups:
            if group.key == key:
                return group
        raise KeyError(f"Unknown group: {key}")

    @property
    def active_group(self) -> Optional[PcsGroup]:
        return self.get_group(self.active_key) if self.active_key is not None else None

    def select(self, key: str) -> PcsGroup:
        """Make a group the active selection."""
        group = self.get_group(key)
        self.active_key = key
        return group

    def export_matrix(self, key: Optional[str] = None) -> tuple[list[str], list[list[str]]]:
        """Subset the table to the required columns plus one group's columns.

        Args:
            key: Group key (defaults to the active group)

        Returns:
            Tuple of (header, rows) in input row order
        """
        group = self.get_group(key if key is not None else self.active_key)
        columns = list(REQUIRED_COLUMNS) + group.columns
        indices = [self.header_map[col] for col in columns]
        rows = [[row[i] if i < len(row) else "" for i in indices] for row in self.rows]
        return columns, rows

    def export_csv_text(self, key: Optional[str] = None) -> str:
        header, rows = self.export_matrix(key)
        return matrix_to_csv_text(header, rows)

    def export_all(self) -> dict[str, tuple[list[str], list[list[str]]]]:
        """Every group's export matrix keyed by group label, in group order."""
        return {group.label: self.export_matrix(group.key) for group in self.groups}

    def write_group(
        self, path: str | Path, key: Optional[str] = None, fmt: Literal["csv", "xlsx"] = "csv"
    ) -> None:
        """Write one group's export to a CSV or single-sheet workbook."""
        group = self.get_group(key if key is not None else self.active_key)
        header, rows = self.export_matrix(group.key)
        if fmt == "csv":
            write_csv(header, rows, path)
        elif fmt == "xlsx":
            write_xlsx({group.label: (header, rows)}, path)
        else:
            raise ValueError(f"Unknown export format: {fmt}")

    def write_all(self, path: str | Path) -> None:
        """Write every group to one workbook, one sheet per group."""
        write_xlsx(self.export_all(), path)


def classify_matrix(
    matrix: ParsedMatrix, master: dict[str, MasterEntry], source: str = "<input>"
) -> GroupingResult:
    """Validate a positional table and group its PCS columns.

    Args:
        matrix: Header row plus body rows
        master: Master lookup keyed by "PCS <id>"
        source: Name used in warnings

    Returns:
        GroupingResult with the first group selected

    Raises:
        RowDataError: If the header or body rows are missing
        SchemaError: If a required column is missing
        NoDeviceColumnsError: If no PCS column is found
    """
    if not matrix.header or not matrix.rows:
        raise RowDataError("有効なデータが見つかりません（ヘッダまたはデータ行が不足しています）。")

    header = [name.strip() for name in matrix.header]
    validate_headers(header)
    pcs_columns = discover_pcs_columns(header, case_sensitive=True)

    groups, unmatched = group_pcs_columns(pcs_columns, master)

    warnings = []
    if unmatched:
        examples = ", ".join(unmatched[:MAX_UNMATCHED_EXAMPLES])
        message = (
            f"マスタ未登録のPCS列があります（{examples}...）。"
            f"これらは「{UNCLASSIFIED_LABEL}」タブに含まれます。"
        )
        logger.warning("%s: %d PCS columns not in master (%s)", source, len(unmatched), examples)
        warnings.append(FileProcessingWarning(source=source, kind="unmatched_master", message=message))

    logger.info(
        "Classified %d PCS columns into %d groups", len(pcs_columns), len(groups)
    )

    return GroupingResult(
        header=header,
        rows=matrix.rows,
        groups=groups,
        unmatched_columns=unmatched,
        warnings=warnings,
    )
