"""Header validation and PCS column discovery."""

from typing import Sequence

from pvpr_engine.core.constants import PCS_REGEX, PCS_REGEX_CI, REQUIRED_COLUMNS
from pvpr_engine.core.errors import NoDeviceColumnsError, SchemaError
from pvpr_engine.core.schemas import PcsColumn


def find_missing_columns(headers: Sequence[str], required: Sequence[str] = REQUIRED_COLUMNS) -> list[str]:
    """Return required columns absent from headers, in required-column order."""
    present = set(headers)
    return [col for col in required if col not in present]


def validate_headers(headers: Sequence[str], required: Sequence[str] = REQUIRED_COLUMNS) -> None:
    """Check that every required column is present.

    Args:
        headers: Header row of the input table
        required: Required column names

    Raises:
        SchemaError: If any required column is missing
    """
    missing = find_missing_columns(headers, required)
    if missing:
        raise SchemaError(missing)


def discover_pcs_columns(
    headers: Sequence[str], case_sensitive: bool = False, require: bool = True
) -> list[PcsColumn]:
    """Find pcs_<id>_kwh columns and extract their ids.

    The ingestion path matches case-insensitively, the classification path
    case-sensitively. The id is captured verbatim and the result follows
    header order.

    Args:
        headers: Header row of the input table
        case_sensitive: Match the pcs_/_kwh wrapper case-sensitively
        require: Raise when nothing matches

    Returns:
        Discovered PCS columns

    Raises:
        NoDeviceColumnsError: If require is set and no header matches
    """
    regex = PCS_REGEX if case_sensitive else PCS_REGEX_CI

    columns = []
    for header in headers:
        match = regex.match(header)
        if match:
            columns.append(PcsColumn(header=header, pcs_id=match.group(1)))

    if require and not columns:
        raise NoDeviceColumnsError("PCS発電量のカラム（pcs_◯◯◯_kwh）が1つも見つかりません。")

    return columns
