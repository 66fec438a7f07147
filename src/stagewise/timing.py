# Copyright (c) Syntropy Systems
"""Timed results for benchmarking method run times."""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import TYPE_CHECKING, Any

from stagewise.models.table import BenchmarkRow, BenchmarkTable

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True)
class TimedResult:
    """An artifact together with the seconds spent producing it.

    ``seconds`` accumulates across every timed stage the artifact went
    through.
    """

    result: Any
    seconds: float = 0.0


def unwrap(artifact: object) -> object:
    """Return the plain artifact, dropping any timing wrapper."""
    if isinstance(artifact, TimedResult):
        return artifact.result
    return artifact


def strip_timing(table: BenchmarkTable) -> BenchmarkTable:
    """Replace every timed result with its underlying artifact."""
    return BenchmarkTable(
        stages=table.stages,
        rows=tuple(
            BenchmarkRow(choices=row.choices, result=unwrap(row.result))
            for row in table.rows
        ),
    )


def unpack_timing(table: BenchmarkTable) -> list[dict[str, str | float | None]]:
    """Return stage choices and timing for every row, dropping the results.

    Rows whose result is not timed get ``None``.
    """
    records: list[dict[str, str | float | None]] = []
    for row in table.rows:
        record: dict[str, str | float | None] = dict(zip(table.stages, row.choices))
        record["timing"] = (
            row.result.seconds if isinstance(row.result, TimedResult) else None
        )
        records.append(record)
    return records


class TimedCall:
    """Picklable wrapper that times a candidate call.

    A prior timed result is unwrapped before the call, and its seconds are
    carried into the new result.
    """

    func: Callable[[Any], Any]

    def __init__(self, func: Callable[[Any], Any]) -> None:
        self.func = func

    def __call__(self, artifact: object) -> TimedResult:
        prior = artifact.seconds if isinstance(artifact, TimedResult) else 0.0
        start = perf_counter()
        result = self.func(unwrap(artifact))
        elapsed = perf_counter() - start
        return TimedResult(result=result, seconds=prior + elapsed)
