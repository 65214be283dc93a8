"""Pydantic schemas for configuration and engine data."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pvpr_engine.core.constants import DEFAULT_HIGH, DEFAULT_LOW


class EngineConfig(BaseModel):
    """Engine configuration (every field has a default, a config file is optional)."""

    primary_encoding: str = Field(default="utf-8-sig", description="Strict first-try encoding")
    fallback_encoding: str = Field(default="cp932", description="Lossy fallback encoding")
    default_low: float = Field(default=DEFAULT_LOW, description="Colour range low when no PR values exist")
    default_high: float = Field(default=DEFAULT_HIGH, description="Colour range high when no PR values exist")
    min_span: float = Field(default=5.0, ge=0, description="Widen the colour range when narrower than this")
    lower_percentile: float = Field(default=0.05, ge=0, lt=1)
    upper_percentile: float = Field(default=0.95, gt=0, lt=1)
    export_decimals: int = Field(default=2, ge=0, description="PR rounding on spreadsheet export")
    master_path: Optional[str] = Field(default=None, description="Default master workbook path")
    preview_rows: int = Field(default=50, gt=0)
    preview_columns: int = Field(default=20, gt=0)

    @model_validator(mode="after")
    def validate_percentiles(self) -> "EngineConfig":
        """Ensure the lower percentile is below the upper one."""
        if self.lower_percentile >= self.upper_percentile:
            raise ValueError(
                f"lower_percentile {self.lower_percentile} must be below "
                f"upper_percentile {self.upper_percentile}"
            )
        return self


class PcsColumn(BaseModel):
    """A header that matched the PCS naming pattern."""

    model_config = ConfigDict(frozen=True)

    header: str
    pcs_id: str


class DailyRecord(BaseModel):
    """One dated input row with its derived PR values.

    Shared inputs are None when they do not parse as numbers. A PR value is
    None when it is undefined for that row.
    """

    model_config = ConfigDict(frozen=True)

    date: str
    irradiation: Optional[float] = None
    panel_area: Optional[float] = None
    efficiency: Optional[float] = None
    pcs_details: dict[str, Optional[float]] = Field(default_factory=dict)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Reject rows without a date."""
        if not v:
            raise ValueError("date must not be empty")
        return v


class ColorScaleStats(BaseModel):
    """Colour range over the valid PR population of one dataset."""

    model_config = ConfigDict(frozen=True)

    low: float
    high: float


class FileProcessingWarning(BaseModel):
    """Non-fatal issue collected while processing input files."""

    source: str
    kind: Literal["naming_mismatch", "row_count_mismatch", "unmatched_master", "file_skipped"]
    message: str


class MasterEntry(BaseModel):
    """One row of the PV master table."""

    model_config = ConfigDict(frozen=True)

    pcs_id: str = Field(..., description="Normalized id, e.g. 'PCS 1-7-1'")
    count: Optional[int] = Field(default=None, description="Number of panels")
    area: Optional[float] = Field(default=None, description="Panel area in m²")


class PcsGroup(BaseModel):
    """PCS columns sharing the same master panel count."""

    key: str
    label: str
    count: Optional[int] = None
    columns: list[str] = Field(default_factory=list)


class PanelPreset(BaseModel):
    """Panel dimensions preset for the area calculator."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    length_m: Optional[float] = Field(default=None, gt=0)
    width_m: Optional[float] = Field(default=None, gt=0)
