# Copyright (c) Syntropy Systems
"""Pydantic models for benchmark tables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field, model_validator
from typing_extensions import Self, override

from .base import RESULT_COLUMN, StagewiseBaseModel

if TYPE_CHECKING:
    from collections.abc import Iterator


class BenchmarkRow(StagewiseBaseModel):
    """One combination of stage choices and the artifact it produced.

    ``choices`` holds one candidate name per stage column, in column order.
    """

    choices: tuple[str, ...] = ()
    result: Any = None


class BenchmarkTable(StagewiseBaseModel):
    """Accumulating provenance table.

    Columns are the stage columns in the order they were applied, followed by
    the ``result`` column. Tables are never modified; every engine operation
    returns a new one.
    """

    stages: tuple[str, ...] = ()
    rows: tuple[BenchmarkRow, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_shape(self) -> Self:
        seen: set[str] = set()
        for stage in self.stages:
            if stage == RESULT_COLUMN or stage in seen:
                msg = f"Stage '{stage}' already exists in the table"
                raise ValueError(msg)
            seen.add(stage)

        width = len(self.stages)
        for index, row in enumerate(self.rows):
            if len(row.choices) != width:
                msg = (
                    f"Row {index} has {len(row.choices)} stage values, "
                    f"expected {width}"
                )
                raise ValueError(msg)
        return self

    @property
    def columns(self) -> tuple[str, ...]:
        """Stage columns followed by the result column."""
        return (*self.stages, RESULT_COLUMN)

    @property
    def results(self) -> list[Any]:
        """The result artifact of every row, in row order."""
        return [row.result for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)

    @override
    def __iter__(self) -> Iterator[BenchmarkRow]:  # type: ignore[override]
        return iter(self.rows)

    def column(self, name: str) -> list[Any]:
        """Return all values of one column, in row order."""
        if name == RESULT_COLUMN:
            return self.results
        try:
            position = self.stages.index(name)
        except ValueError:
            msg = f"Unknown column: '{name}'"
            raise KeyError(msg) from None
        return [row.choices[position] for row in self.rows]

    def row(self, index: int) -> dict[str, Any]:
        """Return one row as a column -> value dict."""
        row = self.rows[index]
        return {**dict(zip(self.stages, row.choices)), RESULT_COLUMN: row.result}

    def to_records(self) -> list[dict[str, Any]]:
        """Return every row as a column -> value dict."""
        return [
            {**dict(zip(self.stages, row.choices)), RESULT_COLUMN: row.result}
            for row in self.rows
        ]
