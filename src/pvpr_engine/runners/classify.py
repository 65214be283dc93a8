"""Classification runner: group PCS columns by master panel count and export."""

from pathlib import Path
from typing import Literal, Optional

from pvpr_engine.core.grouping import GroupingResult
from pvpr_engine.core.schemas import EngineConfig
from pvpr_engine.session import PRSession


def run_classification(
    csv_path: str,
    master_path: Optional[str] = None,
    output_dir: Optional[str] = None,
    fmt: Literal["csv", "xlsx"] = "csv",
    group_key: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> GroupingResult:
    """Classify a merged CSV and optionally export its groups.

    Args:
        csv_path: Merged CSV with the required columns and pcs_<id>_kwh columns
        master_path: Master workbook (defaults to config.master_path)
        output_dir: Directory for exports; nothing is written when None
        fmt: "csv"/"xlsx" exports one file per group (or only group_key);
            "xlsx" without group_key also writes a combined workbook
        group_key: Export only this group
        config: Engine configuration

    Returns:
        GroupingResult
    """
    session = PRSession(config)

    print("Loading master table...")
    master = session.load_master(master_path)
    print(f"Master records: {len(master)}")

    print(f"Loading {csv_path}...")
    result = session.classify_file(csv_path)
    if group_key is not None:
        result.select(group_key)

    for warning in result.warnings:
        print(f"  [Warning] {warning.message}")

    print(f"Groups: {len(result.groups)}")
    for group in result.groups:
        marker = "*" if group.key == result.active_key else " "
        print(f" {marker} {group.label}: {len(group.columns)} columns")

    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        keys = [group_key] if group_key is not None else [g.key for g in result.groups]
        for key in keys:
            path = output_dir / f"pcs_group_{key}.{fmt}"
            result.write_group(path, key=key, fmt=fmt)
            print(f"Wrote {path}")

        if fmt == "xlsx" and group_key is None:
            path = output_dir / "pcs_groups_all.xlsx"
            result.write_all(path)
            print(f"Wrote {path}")

    return result
