# Copyright (c) Syntropy Systems
"""Building, collapsing and flattening benchmark tables."""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from stagewise.errors import (
    DuplicateNameError,
    DuplicateStageError,
    EmptyInputError,
    ResultShapeError,
)
from stagewise.models.base import RESULT_COLUMN
from stagewise.models.table import BenchmarkRow, BenchmarkTable
from stagewise.sequence import function_name

DEFAULT_DATA_STAGE = "data"
DEFAULT_COLLAPSE_SEP = " » "


def _unique_pairs(
    items: Mapping[str, Any] | Iterable[tuple[str, Any]],
) -> list[tuple[str, Any]]:
    pairs = list(items.items()) if isinstance(items, Mapping) else list(items)
    seen: set[str] = set()
    for name, _ in pairs:
        if not isinstance(name, str):
            msg = f"Names must be strings, got {name!r}"
            raise TypeError(msg)
        if name in seen:
            raise DuplicateNameError(name)
        seen.add(name)
    return pairs


def load_all_data(
    data: Mapping[str, Any] | Iterable[tuple[str, Any]],
    stage: str = DEFAULT_DATA_STAGE,
) -> BenchmarkTable:
    """Create a benchmark table with one row per named dataset.

    Accepts a mapping or a sequence of (name, artifact) pairs. Row order
    follows iteration order.
    """
    if stage == RESULT_COLUMN:
        raise DuplicateStageError(stage)

    pairs = _unique_pairs(data)
    if not pairs:
        msg = "Cannot build a benchmark table from no data"
        raise EmptyInputError(msg)

    return BenchmarkTable(
        stages=(stage,),
        rows=tuple(
            BenchmarkRow(choices=(name,), result=value) for name, value in pairs
        ),
    )


def data_list(*objs: Any, **named: Any) -> dict[str, Any]:
    """Build a name -> artifact mapping.

    Positional artifacts are named by their ``__name__`` when they have one,
    otherwise by position (``data1``, ``data2``, ...).
    """
    pairs: list[tuple[str, Any]] = []
    for position, obj in enumerate(objs, start=1):
        name = getattr(obj, "__name__", None)
        pairs.append((name if isinstance(name, str) else f"data{position}", obj))
    pairs.extend(named.items())
    return dict(_unique_pairs(pairs))


def fn_list(
    *funcs: Callable[[Any], Any],
    **named: Callable[[Any], Any],
) -> dict[str, Callable[[Any], Any]]:
    """Build a name -> method mapping, naming positional functions by __name__."""
    pairs: list[tuple[str, Callable[[Any], Any]]] = [
        (function_name(func), func) for func in funcs
    ]
    pairs.extend(named.items())
    for name, func in pairs:
        if not callable(func):
            msg = f"Method '{name}' is not callable"
            raise TypeError(msg)
    return dict(_unique_pairs(pairs))


def pipeline_collapse(
    table: BenchmarkTable,
    sep: str = DEFAULT_COLLAPSE_SEP,
    column: str = "pipeline",
) -> list[dict[str, Any]]:
    """Collapse the stage choices of every row into one pipeline label.

    Example: ``{"pipeline": "sample1 » scran » knn(k = 2)", "result": ...}``
    """
    return [
        {column: sep.join(row.choices), RESULT_COLUMN: row.result}
        for row in table.rows
    ]


def summarize(table: BenchmarkTable) -> dict[str, Any]:
    """Summarize a table: the row count and distinct candidates per stage.

    Returns ``{"rows": n, "stages": {stage: [candidate, ...]}}``.
    """
    stages = {
        stage: list(dict.fromkeys(table.column(stage))) for stage in table.stages
    }
    return {"rows": len(table.rows), "stages": stages}


def _default_flatten(result: object) -> list[Mapping[str, Any]]:
    if isinstance(result, Mapping):
        return [result]
    if isinstance(result, Sequence) and not isinstance(result, (str, bytes)):
        records = list(result)
        if all(isinstance(item, Mapping) for item in records):
            return records
    msg = (
        f"Cannot flatten result of type {type(result).__name__}; "
        "pass a flatten function"
    )
    raise ResultShapeError(msg)


def explode(
    table: BenchmarkTable,
    flatten: Callable[[Any], Iterable[Mapping[str, Any]]] | None = None,
) -> list[dict[str, Any]]:
    """Flatten structured results into one record per result item.

    ``flatten`` turns one result into an iterable of mappings. By default a
    mapping result gives one record and a sequence of mappings gives one
    record per item. Every result must flatten to the same set of keys.
    Each record starts with the row's stage choices.
    """
    flatten_fn = flatten or _default_flatten
    expected: frozenset[str] | None = None
    records: list[dict[str, Any]] = []

    for index, row in enumerate(table.rows):
        for item in flatten_fn(row.result):
            keys = frozenset(item.keys())
            if expected is None:
                clash = keys.intersection(table.stages)
                if clash:
                    msg = f"Result keys collide with stage columns: {sorted(clash)}"
                    raise ResultShapeError(msg)
                expected = keys
            elif keys != expected:
                msg = (
                    f"Row {index} result has columns {sorted(keys)}, "
                    f"expected {sorted(expected)}"
                )
                raise ResultShapeError(msg)
            records.append({**dict(zip(table.stages, row.choices)), **item})

    return records
