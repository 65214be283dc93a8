"""Error types raised by the engine.

Every error carries a human-readable message meant to be shown verbatim.
Per-cell PR failures are not errors: they are represented as ``None``.
"""


class PVPRError(Exception):
    """Base class for all engine errors."""

    pass


class DecodingExhausted(PVPRError):
    """Raised when neither the primary nor the fallback encoding could decode a buffer."""

    pass


class ParseError(PVPRError):
    """Raised when delimited text cannot be parsed."""

    pass


class SchemaError(PVPRError):
    """Raised when required columns are missing.

    Attributes:
        missing: Missing column names, in required-column order
    """

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"必須カラムが不足しています: {', '.join(self.missing)}")


class NoDeviceColumnsError(PVPRError):
    """Raised when no pcs_<id>_kwh column is found."""

    pass


class RowDataError(PVPRError):
    """Raised when a table has no usable data rows."""

    pass


class MasterLoadError(PVPRError):
    """Raised when the master table is unreachable, empty, or has no valid records."""

    pass


class MergeError(PVPRError):
    """Raised when no input file could be merged."""

    pass
