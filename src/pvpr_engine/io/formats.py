"""Delimited-text parsing and CSV/XLSX writing helpers."""

import csv
import io
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence

import pandas as pd

from pvpr_engine.core.constants import EXCEL_SHEET_TITLE_LIMIT
from pvpr_engine.core.errors import ParseError


@dataclass
class ParsedTable:
    """Header-mode parse result: column names plus header-keyed rows."""

    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)


@dataclass
class ParsedMatrix:
    """Matrix-mode parse result: header row plus positional body rows."""

    header: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)


def _read_text(text: str, header: Optional[int], names: Optional[Sequence[int]] = None) -> pd.DataFrame:
    """Read delimited text with every cell kept as a string."""
    try:
        with warnings.catch_warnings():
            # Header mode drops cells beyond the header on purpose
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                header=header,
                names=names,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
            )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (pd.errors.ParserError, ValueError) as e:
        raise ParseError(f"CSV解析エラー: {e}") from e

    # Short rows come back as NaN even with keep_default_na=False
    return df.fillna("")


def _max_field_count(text: str) -> int:
    try:
        return max((len(row) for row in csv.reader(io.StringIO(text))), default=0)
    except csv.Error as e:
        raise ParseError(f"CSV解析エラー: {e}") from e


def parse_csv_records(text: str) -> ParsedTable:
    """Parse text into header-keyed records, skipping empty lines.

    The header row fixes the columns: short rows are padded with empty
    strings and cells beyond the last header are dropped.

    Args:
        text: Decoded CSV text

    Returns:
        ParsedTable with ordered headers and one mapping per body row

    Raises:
        ParseError: If the text is not valid delimited text
    """
    df = _read_text(text, header=0)
    headers = [str(col) for col in df.columns]
    rows = [dict(zip(headers, values)) for values in df.itertuples(index=False, name=None)]
    return ParsedTable(headers=headers, rows=rows)


def parse_csv_matrix(text: str) -> ParsedMatrix:
    """Parse text into a header row and positional body rows.

    Lines that are blank after trimming are skipped, which is more permissive
    than header mode (whitespace-only lines count as empty). Rows may be
    ragged: every row is padded to the widest line, and trailing columns
    that are empty everywhere (e.g. from trailing commas) are dropped.

    Args:
        text: Decoded CSV text

    Returns:
        ParsedMatrix; both parts are empty when the text has no content

    Raises:
        ParseError: If the text is not valid delimited text
    """
    width = _max_field_count(text)
    if width == 0:
        return ParsedMatrix()

    df = _read_text(text, header=None, names=list(range(width)))
    matrix = [
        [str(value) for value in values]
        for values in df.itertuples(index=False, name=None)
        if any(str(value).strip() for value in values)
    ]
    if not matrix:
        return ParsedMatrix()

    while width > 1 and not any(row[width - 1] for row in matrix):
        width -= 1
    matrix = [row[:width] for row in matrix]

    return ParsedMatrix(header=matrix[0], rows=matrix[1:])


def matrix_to_frame(header: Sequence[str], rows: Sequence[Sequence[Any]]) -> pd.DataFrame:
    """Build a dataframe from a header row and body rows."""
    return pd.DataFrame([list(row) for row in rows], columns=list(header))


def matrix_to_csv_text(
    header: Sequence[str], rows: Sequence[Sequence[Any]], lineterminator: str = "\n"
) -> str:
    """Render a header row and body rows as CSV text."""
    df = matrix_to_frame(header, rows)
    return df.to_csv(index=False, lineterminator=lineterminator)


def write_csv(
    header: Sequence[str],
    rows: Sequence[Sequence[Any]],
    path: str | Path,
    bom: bool = False,
    lineterminator: str = "\n",
) -> None:
    """Write a header row and body rows to a CSV file.

    Args:
        header: Column names
        rows: Body rows
        path: Output path
        bom: Prefix a UTF-8 BOM (Excel compatibility)
        lineterminator: Line ending
    """
    df = matrix_to_frame(header, rows)
    encoding = "utf-8-sig" if bom else "utf-8"
    df.to_csv(path, index=False, encoding=encoding, lineterminator=lineterminator)


def sheet_title(label: str) -> str:
    """Clip a label to a valid worksheet title."""
    for char in "[]:*?/\\":
        label = label.replace(char, "_")
    return label[:EXCEL_SHEET_TITLE_LIMIT] or "Sheet1"


def write_xlsx(sheets: dict[str, tuple[Sequence[str], Sequence[Sequence[Any]]]], path: str | Path) -> None:
    """Write one or more matrices to a workbook, one sheet each.

    Args:
        sheets: Mapping of sheet label to (header, rows)
        path: Output .xlsx path
    """
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for label, (header, rows) in sheets.items():
            df = matrix_to_frame(header, rows)
            df.to_excel(writer, sheet_name=sheet_title(label), index=False)
