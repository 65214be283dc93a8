"""PR analysis runner for a single daily generation CSV."""

from pathlib import Path
from typing import Optional

from pvpr_engine.core.constants import PR_SHEET_NAME
from pvpr_engine.core.metrics import PRDataset
from pvpr_engine.core.schemas import EngineConfig
from pvpr_engine.io.formats import write_xlsx
from pvpr_engine.session import PRSession


def export_dataset(dataset: PRDataset, output_path: str | Path, decimals: int = 2) -> None:
    """Write PR results to .xlsx (rounded) or .csv (full precision).

    Args:
        dataset: Computed PR dataset
        output_path: Output file; the suffix selects the format
        decimals: Rounding applied to PR values in the workbook
    """
    output_path = Path(output_path)
    if output_path.suffix.lower() == ".xlsx":
        header, rows = dataset.to_export_matrix(decimals)
        write_xlsx({PR_SHEET_NAME: (header, rows)}, output_path)
    else:
        dataset.to_frame().to_csv(output_path, index=False)


def run_analysis(
    csv_path: str,
    output_path: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> PRDataset:
    """Compute daily PR for every PCS column of a CSV file.

    Args:
        csv_path: Input CSV (UTF-8 or Shift-JIS)
        output_path: Optional .xlsx or .csv export path
        config: Engine configuration

    Returns:
        PRDataset
    """
    session = PRSession(config)

    print(f"Loading {csv_path}...")
    dataset = session.analyze_file(csv_path)

    print(f"Rows: {len(dataset.records)} days from {dataset.records[0].date} to {dataset.records[-1].date}")
    print(f"PCS columns: {len(dataset.pcs_columns)} ({', '.join(dataset.pcs_list)})")
    print(f"Defined PR values: {len(dataset.pr_values)}")
    print(f"Colour range: {dataset.stats.low:.2f}% - {dataset.stats.high:.2f}%")

    if output_path is not None:
        print(f"\nWriting results to {output_path}...")
        export_dataset(dataset, output_path, session.config.export_decimals)

    return dataset
