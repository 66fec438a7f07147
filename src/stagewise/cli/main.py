# Copyright (c) Syntropy Systems
"""Main CLI entry point for stagewise."""

import typer

from stagewise.cli.describe import describe
from stagewise.cli.run import run

app = typer.Typer(
    name="stagewise",
    help=(
        "Combinatorial benchmarking of pipeline methods. Apply every "
        "candidate of every stage and compare the results."
    ),
    no_args_is_help=True,
    add_completion=False,
)

# Register commands
_ = app.command()(run)
_ = app.command()(describe)


if __name__ == "__main__":
    app()
