"""Canonical column names, naming patterns, and colour constants.

INPUT COLUMNS (ingestion path, exact names):
- date: opaque display/sort key, never parsed as a calendar date
- irradiation_kwhm2: daily irradiation in kWh/m²
- panel_area_m2: total panel area in m²
- panel_efficiency_percent: panel conversion efficiency in %
- pcs_<id>_kwh: daily energy of one PCS (power conditioning system) in kWh

PR FORMULA:
PR(%) = (pcs_kwh / (irradiation_kwhm2 * panel_area_m2 * (panel_efficiency_percent / 100))) * 100

A PR value is undefined (None) when any shared input is missing or <= 0,
when the PCS value is missing or negative, or when the denominator is <= 0.
"""

import re

# Required input columns
COL_DATE = "date"
COL_IRRADIATION = "irradiation_kwhm2"
COL_PANEL_AREA = "panel_area_m2"
COL_EFFICIENCY = "panel_efficiency_percent"

REQUIRED_COLUMNS = [
    COL_DATE,
    COL_IRRADIATION,
    COL_PANEL_AREA,
    COL_EFFICIENCY,
]

# PCS column naming
PCS_PATTERN = r"^pcs_(.+)_kwh$"
PCS_REGEX_CI = re.compile(PCS_PATTERN, re.IGNORECASE)  # ingestion side
PCS_REGEX = re.compile(PCS_PATTERN)  # classification side

# Raw logger export header, e.g. "1-7-1_PCS 有効電力量(kWh)" -> "pcs_1-7-1_kwh"
RAW_PCS_REGEX = re.compile(r"(\d+-\d+-\d+)_PCS.*kWh")
RENAMED_PCS_TEMPLATE = "pcs_{}_kwh"

# Master table
MASTER_KEY_PREFIX = "PCS "
MASTER_ID_COLUMNS = ["PCS番号（通し）", "PCS番号(通し)", "PCS番号", "No.", "No"]
MASTER_COUNT_COLUMN = "枚数"
MASTER_AREA_COLUMN = "面積"

# Grouping
UNCLASSIFIED_KEY = "unclassified"
UNCLASSIFIED_LABEL = "未分類"
GROUP_LABEL_TEMPLATE = "{}枚"
MAX_UNMATCHED_EXAMPLES = 3

# Heat map colour ramp (low PR -> high PR)
HEAT_COLORS = [
    (0, 76, 153),  # #004C99 deep blue
    (102, 178, 255),  # #66B2FF light blue
    (255, 224, 102),  # #FFE066 yellow
    (255, 140, 0),  # #FF8C00 deep orange
]
HEAT_STOPS = [0.0, 0.33, 0.66, 1.0]
NEUTRAL_BACKGROUND = "#f3f4f6"
NEUTRAL_FOREGROUND = "#9ca3af"
FOREGROUND_DARK = "#000000"
FOREGROUND_LIGHT = "#ffffff"
LUMINANCE_THRESHOLD = 128

# Fallback range when the PR population is empty, and when an explicit range is inverted
DEFAULT_LOW = 60.0
DEFAULT_HIGH = 100.0
INVERTED_RANGE_LOW = 0.0
INVERTED_RANGE_HIGH = 100.0

# Spreadsheet export
PR_SHEET_NAME = "PR Analysis"
PR_EXPORT_HEADERS = [
    "Date",
    "Irradiation (kWh/m²)",
    "Panel Area (m²)",
    "Efficiency (%)",
]
EXCEL_SHEET_TITLE_LIMIT = 31

TEMPLATE_CSV = (
    "date,irradiation_kwhm2,panel_area_m2,panel_efficiency_percent,pcs_1_kwh,pcs_2_kwh\n"
    "2025-11-01,3.95,1500,20.1,124.5,126.2\n"
    "2025-11-02,3.10,1500,20.1,109.2,111.0\n"
)
