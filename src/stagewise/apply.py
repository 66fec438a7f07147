# Copyright (c) Syntropy Systems
"""Stage application: expand a benchmark table by a set of candidate methods."""
from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from concurrent.futures import (
    FIRST_EXCEPTION,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from stagewise.config import EngineConfig, get_workers
from stagewise.errors import (
    CandidateInvocationError,
    DuplicateStageError,
    EmptyMethodsError,
)
from stagewise.models.base import RESULT_COLUMN
from stagewise.models.table import BenchmarkRow, BenchmarkTable
from stagewise.timing import TimedCall

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Call:
    """One candidate applied to one input row."""

    row_index: int
    candidate: str
    func: Callable[[Any], Any]


def _validate(
    table: BenchmarkTable,
    stage: str,
    methods: Mapping[str, Callable[[Any], Any]],
) -> None:
    if stage == RESULT_COLUMN or stage in table.stages:
        raise DuplicateStageError(stage)
    if not isinstance(methods, Mapping):
        msg = (
            "methods must be a mapping of name to callable, "
            f"got {type(methods).__name__}"
        )
        raise TypeError(msg)
    if not methods:
        raise EmptyMethodsError(stage)
    for name, func in methods.items():
        if not isinstance(name, str):
            msg = f"Candidate names must be strings, got {name!r}"
            raise TypeError(msg)
        if not callable(func):
            msg = f"Candidate '{name}' of stage '{stage}' is not callable"
            raise TypeError(msg)


def _resolve_workers(workers: int | None, config: EngineConfig | None) -> int:
    if workers is None:
        workers = config.workers if config is not None else get_workers()
    if workers < 1:
        msg = f"workers must be at least 1, got {workers}"
        raise ValueError(msg)
    return workers


def _failure(stage: str, call: _Call, exc: BaseException) -> CandidateInvocationError:
    logger.error(
        "Candidate %r of stage %r failed on row %d",
        call.candidate,
        stage,
        call.row_index,
        exc_info=exc,
    )
    return CandidateInvocationError(stage, call.candidate, call.row_index, exc)


def _isolated(artifact: Any) -> Any:
    try:
        return copy.deepcopy(artifact)
    except (TypeError, copy.Error) as exc:
        logger.debug(
            "Passing uncopyable %s artifact as is: %s", type(artifact).__name__, exc
        )
        return artifact


def _invoke(func: Callable[[Any], Any], artifact: Any, copy_inputs: bool) -> Any:
    if copy_inputs:
        artifact = _isolated(artifact)
    return func(artifact)


def _run_sequential(
    stage: str,
    calls: list[_Call],
    inputs: list[Any],
    copy_inputs: bool,
) -> list[Any]:
    results: list[Any] = []
    for call in calls:
        try:
            results.append(_invoke(call.func, inputs[call.row_index], copy_inputs))
        except Exception as exc:
            raise _failure(stage, call, exc) from exc
    return results


def _make_executor(workers: int, backend: str) -> Executor:
    if backend == "process":
        return ProcessPoolExecutor(max_workers=workers)
    return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="stagewise")


def _run_parallel(
    stage: str,
    calls: list[_Call],
    inputs: list[Any],
    workers: int,
    config: EngineConfig,
) -> list[Any]:
    # Process workers receive pickled copies already.
    copy_inputs = config.copy_inputs and config.backend != "process"

    with _make_executor(workers, config.backend) as executor:
        # Copies are made inside the workers, so at most one per worker is alive.
        futures: list[Future[Any]] = [
            executor.submit(_invoke, call.func, inputs[call.row_index], copy_inputs)
            for call in calls
        ]

        _, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        for future in not_done:
            _ = future.cancel()

    # Results are collected by position, never by completion order.
    results: list[Any] = [None] * len(calls)
    for index, future in enumerate(futures):
        if future.cancelled():
            continue
        exc = future.exception()
        if exc is not None:
            raise _failure(stage, calls[index], exc) from exc
        results[index] = future.result()
    return results


def apply_methods(
    table: BenchmarkTable,
    stage: str,
    methods: Mapping[str, Callable[[Any], Any]],
    *,
    workers: int | None = None,
    config: EngineConfig | None = None,
) -> BenchmarkTable:
    """Apply every candidate method to every row of a benchmark table.

    Each input row is expanded into one output row per candidate, in method
    order, and the candidate name is recorded in a new ``stage`` column.
    Output row ``i * len(methods) + j`` holds candidate ``j`` applied to the
    result of input row ``i``.

    Args:
        table: Table whose results feed the candidates
        stage: Name of the new stage column
        methods: Mapping of candidate name to one-argument callable
        workers: Concurrent calls; overrides config and the process default
        config: Engine configuration (backend, copying, default workers)

    Returns:
        A new table; the input table is never modified.

    Raises:
        DuplicateStageError: stage is already a column of the table
        EmptyMethodsError: methods is empty
        CandidateInvocationError: a candidate raised; nothing is returned

    """
    _validate(table, stage, methods)
    n_workers = _resolve_workers(workers, config)
    if config is None:
        config = EngineConfig()

    items = list(methods.items())
    calls = [
        _Call(row_index=i, candidate=name, func=func)
        for i in range(len(table.rows))
        for name, func in items
    ]
    inputs = table.results

    logger.debug(
        "Applying stage %r: %d rows x %d candidates with %d worker(s)",
        stage,
        len(table.rows),
        len(items),
        n_workers,
    )

    if n_workers == 1 or len(calls) <= 1:
        results = _run_sequential(stage, calls, inputs, config.copy_inputs)
    else:
        results = _run_parallel(stage, calls, inputs, n_workers, config)

    rows = tuple(
        BenchmarkRow(
            choices=(*table.rows[call.row_index].choices, call.candidate),
            result=result,
        )
        for call, result in zip(calls, results)
    )
    return BenchmarkTable(stages=(*table.stages, stage), rows=rows)


def time_methods(
    table: BenchmarkTable,
    stage: str,
    methods: Mapping[str, Callable[[Any], Any]],
    *,
    workers: int | None = None,
    config: EngineConfig | None = None,
) -> BenchmarkTable:
    """Apply methods like apply_methods, recording how long each call took.

    Every result becomes a TimedResult. Timings accumulate over successive
    timed stages.
    """
    _validate(table, stage, methods)
    timed = {name: TimedCall(func) for name, func in methods.items()}
    return apply_methods(table, stage, timed, workers=workers, config=config)
