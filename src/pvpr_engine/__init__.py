"""PV PR engine: daily Performance Ratio analysis for PCS generation data."""

__version__ = "1.0.1"
