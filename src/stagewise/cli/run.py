# Copyright (c) Syntropy Systems
"""stagewise run command."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stagewise.cli.describe import load_or_exit, stage_overview
from stagewise.config import load_config
from stagewise.errors import StagewiseError
from stagewise.models.base import RESULT_COLUMN
from stagewise.pipeline import run_pipeline
from stagewise.table import pipeline_collapse
from stagewise.timing import TimedResult

if TYPE_CHECKING:
    from stagewise.models.table import BenchmarkTable

console = Console()
_EXPORT_ADAPTER = TypeAdapter(list[dict[str, str | float | None]])
MAX_RESULT_WIDTH = 60


def render_result(result: object) -> str:
    """Render a result artifact as a short string."""
    if isinstance(result, TimedResult):
        result = result.result
    text = repr(result)
    if len(text) > MAX_RESULT_WIDTH:
        text = text[: MAX_RESULT_WIDTH - 3] + "..."
    return text


def export_records(table: BenchmarkTable) -> list[dict[str, str | float | None]]:
    """Rows with rendered results, plus timing when results are timed."""
    records: list[dict[str, str | float | None]] = []
    for row in table.rows:
        record: dict[str, str | float | None] = dict(zip(table.stages, row.choices))
        record[RESULT_COLUMN] = render_result(row.result)
        if isinstance(row.result, TimedResult):
            record["seconds"] = row.result.seconds
        records.append(record)
    return records


def _write_output(output: Path, records: list[dict[str, str | float | None]]) -> None:
    if output.suffix.lower() == ".json":
        _ = output.write_bytes(_EXPORT_ADAPTER.dump_json(records, indent=2))
        return

    fieldnames = list(records[0]) if records else []
    with output.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(records)


def run(
    pipeline_file: Path = typer.Argument(
        ...,
        help="Path to pipeline definition YAML file",
        exists=True,
    ),
    workers: int | None = typer.Option(
        None,
        "--workers", "-w",
        min=1,
        help="Concurrent candidate calls (overrides pipeline and config)",
    ),
    timed: bool = typer.Option(
        False,
        "--timed", "-t",
        help="Record how long every candidate call took",
    ),
    output: Path | None = typer.Option(
        None,
        "--output", "-o",
        help="Write the final table to a .csv or .json file",
    ),
    collapse: bool = typer.Option(
        False,
        "--collapse", "-c",
        help="Show stage choices as one pipeline column",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run", "-n",
        help="Preview stages without running anything",
    ),
) -> None:
    r"""Run a benchmark pipeline and show the resulting table.

    Example pipeline.yaml:

    \b
        name: demo
        data:
          small: {value: [1, 2, 3]}
        stages:
          - name: scale
            sweep:
              callable: mypkg.methods:scale
              parameters:
                factor: [1, 2, 4]
    """
    if output is not None and output.suffix.lower() not in (".csv", ".json"):
        console.print("[red]Output must be .csv or .json[/red]")
        raise typer.Exit(1)

    spec = load_or_exit(pipeline_file)

    console.print(stage_overview(spec))
    console.print(f"\n[bold]{spec.expected_rows()} rows[/bold] will be computed")

    if dry_run:
        console.print("\n[yellow]Dry run - nothing executed[/yellow]")
        return

    try:
        config = load_config()
        table = run_pipeline(spec, workers=workers, config=config, timed=timed)
    except (StagewiseError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    records = export_records(table)

    display = Table(title=f"Results: {spec.name or pipeline_file.stem}")
    if collapse:
        display.add_column("pipeline", style="cyan")
    else:
        for stage in table.stages:
            display.add_column(stage, style="cyan")
    display.add_column(RESULT_COLUMN)
    if timed:
        display.add_column("seconds", justify="right")

    labels = [
        str(item["pipeline"])
        for item in pipeline_collapse(table, sep=config.collapse_sep)
    ]
    for row, label, record in zip(table.rows, labels, records):
        cells = [label] if collapse else list(row.choices)
        cells = [escape(cell) for cell in cells]
        cells.append(escape(str(record[RESULT_COLUMN])))
        if timed:
            seconds = record.get("seconds")
            cells.append(f"{seconds:.4f}" if isinstance(seconds, float) else "-")
        display.add_row(*cells)

    console.print(display)

    if output is not None:
        _write_output(output, records)
        console.print(f"[green]Wrote {len(records)} row(s) to {output}[/green]")
