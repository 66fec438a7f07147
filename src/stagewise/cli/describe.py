# Copyright (c) Syntropy Systems
"""stagewise describe command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stagewise.errors import PipelineConfigError
from stagewise.models.pipeline import PipelineSpec, StageSpec
from stagewise.pipeline import load_pipeline
from stagewise.sequence import format_value

console = Console()


def _candidate_names(stage: StageSpec) -> list[str]:
    names = list(stage.methods)
    if stage.sweep is not None:
        params = ", ".join(
            f"{name}={[format_value(v) for v in values]}"
            for name, values in stage.sweep.parameters.items()
        )
        names.append(f"{stage.sweep.target} [{stage.sweep.mode}: {params}]")
    return names


def stage_overview(spec: PipelineSpec) -> Table:
    """Build a table listing every stage and its candidates."""
    table = Table(title=f"Pipeline: {spec.name or 'unnamed'}")
    table.add_column("#", style="dim")
    table.add_column("Stage", style="cyan")
    table.add_column("Candidates", justify="right")
    table.add_column("Names")

    table.add_row(
        "0", escape(spec.data_stage), str(len(spec.data)), escape(", ".join(spec.data))
    )
    for i, stage in enumerate(spec.stages, start=1):
        names = ", ".join(_candidate_names(stage))
        # Truncate names if too long
        if len(names) > 60:
            names = names[:57] + "..."
        table.add_row(str(i), escape(stage.name), str(stage.count()), escape(names))
    return table


def load_or_exit(pipeline_file: Path) -> PipelineSpec:
    """Load a pipeline file, printing the error and exiting on failure."""
    try:
        return load_pipeline(pipeline_file)
    except PipelineConfigError as e:
        console.print(f"[red]Error loading pipeline:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


def describe(
    pipeline_file: Path = typer.Argument(
        ...,
        help="Path to pipeline definition YAML file",
        exists=True,
    ),
) -> None:
    """Show the stages and candidates of a pipeline without running it."""
    spec = load_or_exit(pipeline_file)

    console.print(stage_overview(spec))
    console.print(
        f"\n[bold]{spec.expected_rows()} rows[/bold] in the final table"
    )
