"""Column-wise merge of raw logger exports.

Each export has a date in column A and one column per PCS. Files are
aligned by row position, not by date: the Nth dated row of every file is
assumed to be the same day, and the first processed file's dates are
authoritative. Later files' dates are ignored.

Headers like "1-7-1_PCS 有効電力量(kWh)" are renamed to "pcs_1-7-1_kwh";
anything else is kept verbatim with a warning.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from pvpr_engine.core.constants import COL_DATE, RAW_PCS_REGEX, RENAMED_PCS_TEMPLATE, REQUIRED_COLUMNS
from pvpr_engine.core.errors import MergeError, ParseError
from pvpr_engine.core.schemas import FileProcessingWarning
from pvpr_engine.io.formats import ParsedMatrix, matrix_to_csv_text, parse_csv_matrix, write_csv

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Unified record set built from several exports."""

    headers: list[str]
    rows: list[dict[str, str]]
    warnings: list[FileProcessingWarning] = field(default_factory=list)
    processed_files: list[str] = field(default_factory=list)

    def to_matrix(self) -> ParsedMatrix:
        """Header row plus positional rows, in header order."""
        return ParsedMatrix(
            header=list(self.headers),
            rows=[[row[h] for h in self.headers] for row in self.rows],
        )

    def to_csv_text(self) -> str:
        """CSV text with CRLF line endings."""
        matrix = self.to_matrix()
        return matrix_to_csv_text(matrix.header, matrix.rows, lineterminator="\r\n")

    def write_csv(self, path: str | Path) -> None:
        """Write the merged CSV with a UTF-8 BOM for Excel."""
        matrix = self.to_matrix()
        write_csv(matrix.header, matrix.rows, path, bom=True, lineterminator="\r\n")


def rename_column(header: str) -> str | None:
    """Map a raw PCS header to pcs_<a-b-c>_kwh, or None when it does not match."""
    match = RAW_PCS_REGEX.search(header)
    if match:
        return RENAMED_PCS_TEMPLATE.format(match.group(1))
    return None


def _warn(warnings: list, source: str, kind: str, message: str) -> None:
    warning = FileProcessingWarning(source=source, kind=kind, message=message)
    logger.warning("%s: %s", source, message)
    warnings.append(warning)


def merge_tables(
    sources: Sequence[tuple[str, str]], warnings: Optional[list[FileProcessingWarning]] = None
) -> MergeResult:
    """Merge decoded CSV exports column-wise by row position.

    Short files leave their columns empty on the missing trailing rows;
    longer files append rows dated from that file. Row-count differences
    are reported as warnings, never errors.

    Args:
        sources: Sequence of (file name, decoded CSV text), in merge order
        warnings: Warnings already raised for inputs that could not be read

    Returns:
        MergeResult whose headers are the required columns followed by every
        data column seen, in first-seen order

    Raises:
        MergeError: If no file could be processed
    """
    rows: list[dict[str, str]] = []
    dynamic_headers: list[str] = []
    warnings = list(warnings) if warnings is not None else []
    processed: list[str] = []

    for name, text in sources:
        try:
            matrix = parse_csv_matrix(text)
        except ParseError as e:
            _warn(warnings, name, "file_skipped", f"Failed to parse: {e}")
            continue

        if not matrix.header:
            _warn(warnings, name, "file_skipped", "Skipping empty file")
            continue

        # Column A is the date; data columns start at column B
        column_mapping: list[tuple[int, str]] = []
        rename_count = 0
        for index, old_name in enumerate(matrix.header[1:], start=1):
            if not old_name:
                continue
            new_name = rename_column(old_name)
            if new_name is None:
                new_name = old_name
                _warn(
                    warnings,
                    name,
                    "naming_mismatch",
                    f'Column "{old_name}" did not match pattern. Keeping original name.',
                )
            else:
                rename_count += 1
            column_mapping.append((index, new_name))
            if new_name not in dynamic_headers:
                dynamic_headers.append(new_name)

        if not column_mapping:
            _warn(warnings, name, "file_skipped", "No data columns found")
            continue

        logger.info(
            "%s: extracted %d data columns, renamed %d", name, len(column_mapping), rename_count
        )

        is_master = not processed
        master_row_count = len(rows)
        file_row_count = 0

        for row in matrix.rows:
            date = row[0] if row else ""
            if not date:
                continue

            if file_row_count >= len(rows):
                rows.append({COL_DATE: date})
            if is_master:
                rows[file_row_count][COL_DATE] = date

            record = rows[file_row_count]
            for index, new_name in column_mapping:
                record[new_name] = row[index] if index < len(row) else ""

            file_row_count += 1

        logger.info("%s: processed %d rows", name, file_row_count)

        if not is_master and file_row_count != master_row_count:
            _warn(
                warnings,
                name,
                "row_count_mismatch",
                f"Row count mismatch. Master: {master_row_count}, This: {file_row_count}. "
                f"Alignment may be off.",
            )

        processed.append(name)

    if not processed:
        raise MergeError("No files were successfully processed.")

    headers = list(REQUIRED_COLUMNS) + [h for h in dynamic_headers if h not in REQUIRED_COLUMNS]
    merged = [{h: record.get(h, "") for h in headers} for record in rows]

    logger.info("Merged %d files: %d rows, %d columns", len(processed), len(merged), len(headers))

    return MergeResult(headers=headers, rows=merged, warnings=warnings, processed_files=processed)
