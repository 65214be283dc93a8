"""Merge runner for raw per-PCS logger exports."""

from pathlib import Path
from typing import Optional, Sequence

from pvpr_engine.core.merge import MergeResult
from pvpr_engine.core.schemas import EngineConfig
from pvpr_engine.session import PRSession


def run_merge(
    csv_paths: Sequence[str],
    output_path: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> MergeResult:
    """Merge several exports column-wise by row position.

    Args:
        csv_paths: Input CSV files; the first one provides the dates
        output_path: Optional merged CSV path (UTF-8 with BOM, CRLF)
        config: Engine configuration

    Returns:
        MergeResult
    """
    session = PRSession(config)

    print(f"Starting merge of {len(csv_paths)} files (index-based)...")
    result = session.merge_files(csv_paths)

    for warning in result.warnings:
        print(f"  [Warning] {warning.source}: {warning.message}")

    print(f"Processed files: {len(result.processed_files)}/{len(csv_paths)}")
    print(f"Total rows: {len(result.rows)}")
    print(f"Total columns: {len(result.headers)}")

    if output_path is not None:
        print(f"\nWriting merged CSV to {output_path}...")
        result.write_csv(Path(output_path))

    return result
