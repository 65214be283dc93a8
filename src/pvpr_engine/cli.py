"""Command-line interface for the PV PR engine."""

import logging
from pathlib import Path
from typing import Optional

import typer

from pvpr_engine import __version__
from pvpr_engine.core.errors import PVPRError

app = typer.Typer(
    help="PV PR (Performance Ratio) Analysis Engine",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine log messages")):
    """PV PR (Performance Ratio) Analysis Engine."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _config(config_path: Optional[str]):
    from pvpr_engine.io.config import load_config

    return load_config(config_path)


def _fail(message: str) -> None:
    typer.secho(f"✗ {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


@app.command()
def version():
    """Show engine version."""
    typer.echo(f"PV PR Engine v{__version__}")


@app.command()
def analyze(
    csv_path: str,
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Export path (.xlsx or .csv)"),
    config: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
    sort_by: Optional[str] = typer.Option(
        None, help="Preview sort key: date, irradiation, panel_area, efficiency or a PCS id"
    ),
    desc: bool = typer.Option(False, "--desc", help="Sort preview descending"),
    preview: bool = typer.Option(True, help="Print a preview table"),
):
    """Compute daily PR per PCS column.

    Args:
        csv_path: Path to input CSV
    """
    from pvpr_engine.core.sorting import sort_records
    from pvpr_engine.runners.analyze import run_analysis

    try:
        engine_config = _config(config)
        dataset = run_analysis(csv_path, output, engine_config)
    except (PVPRError, FileNotFoundError, ValueError) as e:
        _fail(f"Analysis failed: {e}")

    if preview:
        records = dataset.records
        if sort_by is not None:
            direction = "desc" if desc else "asc"
            if sort_by in ("date", "irradiation", "panel_area", "efficiency"):
                records = sort_records(records, sort_by, direction)
            elif sort_by in dataset.pcs_list:
                records = sort_records(records, "pcs_pr", direction, pcs_id=sort_by)
            else:
                _fail(f"Unknown sort key: {sort_by}")

        pcs_ids = dataset.pcs_list[: engine_config.preview_columns]
        typer.echo("\n" + "=" * 60)
        typer.echo("DAILY PR (%)")
        typer.echo("=" * 60)
        typer.echo("date".ljust(12) + "".join(pcs_id[:10].rjust(11) for pcs_id in pcs_ids))
        for record in records[: engine_config.preview_rows]:
            cells = []
            for pcs_id in pcs_ids:
                pr = record.pcs_details.get(pcs_id)
                cells.append(("-" if pr is None else f"{pr:.2f}").rjust(11))
            typer.echo(record.date[:12].ljust(12) + "".join(cells))
        typer.echo("=" * 60 + "\n")

    typer.secho("✓ Analysis completed", fg=typer.colors.GREEN)


@app.command()
def merge(
    csv_paths: list[str],
    output: str = typer.Option("merged.csv", "--output", "-o", help="Merged CSV path"),
    config: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
):
    """Merge raw PCS exports column-wise by row position.

    Args:
        csv_paths: Input CSV files; the first one provides the dates
    """
    from pvpr_engine.runners.merge import run_merge

    try:
        result = run_merge(csv_paths, output, _config(config))
    except (PVPRError, FileNotFoundError, ValueError) as e:
        _fail(f"Merge failed: {e}")

    if result.warnings:
        typer.secho(f"⚠ {len(result.warnings)} warnings", fg=typer.colors.YELLOW)
    typer.secho(f"✓ Merged CSV written to {output}", fg=typer.colors.GREEN)


@app.command()
def classify(
    csv_path: str,
    master: Optional[str] = typer.Option(None, "--master", "-m", help="Master workbook (.xlsx)"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Export directory"),
    fmt: str = typer.Option("csv", "--format", help="Export format: csv or xlsx"),
    group: Optional[str] = typer.Option(None, "--group", help="Export only this group key"),
    config: Optional[str] = typer.Option(None, "--config", help="YAML config file"),
):
    """Group PCS columns by master panel count and export each group.

    Args:
        csv_path: Path to merged CSV
    """
    from pvpr_engine.runners.classify import run_classification

    if fmt not in ("csv", "xlsx"):
        _fail(f"Unknown export format: {fmt}")

    try:
        result = run_classification(csv_path, master, output_dir, fmt, group, _config(config))
    except (PVPRError, FileNotFoundError, KeyError, ValueError) as e:
        _fail(f"Classification failed: {e}")

    if result.warnings:
        typer.secho(f"⚠ {result.warnings[0].message}", fg=typer.colors.YELLOW)
    typer.secho("✓ Classification completed", fg=typer.colors.GREEN)


@app.command()
def template(path: str = typer.Argument("input_template.csv")):
    """Write an input CSV template.

    Args:
        path: Output path
    """
    from pvpr_engine.core.constants import TEMPLATE_CSV

    Path(path).write_text(TEMPLATE_CSV, encoding="utf-8")
    typer.secho(f"✓ Template written to {path}", fg=typer.colors.GREEN)


@app.command()
def panel_area(
    preset: str = typer.Option("custom", help="Preset id: custom, wake or nasu"),
    length: Optional[float] = typer.Option(None, help="Panel length in m"),
    width: Optional[float] = typer.Option(None, help="Panel width in m"),
    count: Optional[int] = typer.Option(None, help="Number of panels"),
):
    """Calculate total panel area for panel_area_m2."""
    from pvpr_engine.core.panel import area_per_panel, get_preset, total_area

    try:
        selected = get_preset(preset)
    except ValueError as e:
        _fail(str(e))

    # Explicit dimensions override the preset
    length = length if length is not None else selected.length_m
    width = width if width is not None else selected.width_m

    per_panel = area_per_panel(length, width)
    total = total_area(per_panel, count)

    typer.echo(f"Area per panel: {'-' if per_panel is None else f'{per_panel:.4f}'} m²")
    typer.echo(f"Total area:     {'-' if total is None else f'{total:.2f}'} m²")

    if total is None:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
