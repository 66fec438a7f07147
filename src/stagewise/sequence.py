# Copyright (c) Syntropy Systems
"""Parameter sequences: named partial applications of one function."""
from __future__ import annotations

import functools
import inspect
import itertools
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from stagewise.errors import (
    EmptyValuesError,
    InvalidParameterError,
    LabelCollisionError,
    LengthMismatchError,
)

SCI_NOTATION_THRESHOLD = 1e-4
MODES = ("product", "zip")


class ArgSequence(dict[str, Callable[[Any], Any]]):
    """Mapping of label to partially-applied function.

    Remembers how the combinations were built (``mode``) and which values
    were bound for each label (``bindings``).
    """

    mode: str
    bindings: dict[str, dict[str, Any]]

    def __init__(self, mode: str) -> None:
        super().__init__()
        self.mode = mode
        self.bindings = {}


def function_name(func: Callable[..., Any]) -> str:
    """Best-effort readable name of a callable."""
    name = getattr(func, "__name__", None)
    if isinstance(name, str):
        return name
    if isinstance(func, functools.partial):
        return function_name(func.func)
    return type(func).__name__


def format_value(value: object) -> str:
    """Format a parameter value for a label."""
    if isinstance(value, str):
        return repr(value)
    if isinstance(value, float):
        # Use scientific notation for very small values
        if abs(value) < SCI_NOTATION_THRESHOLD and value != 0.0:
            return f"{value:.2e}"
    return str(value)


def _check_parameter(func: Callable[..., Any], name: str) -> None:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # No introspectable signature (some builtins); let the call decide.
        return

    parameters = list(signature.parameters.values())
    param = signature.parameters.get(name)
    if param is None:
        if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters):
            return
        msg = f"'{name}' is not a parameter of {function_name(func)}"
        raise InvalidParameterError(msg)

    if param.kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.VAR_POSITIONAL,
    ):
        msg = f"'{name}' of {function_name(func)} cannot be bound by keyword"
        raise InvalidParameterError(msg)

    positional = [
        p
        for p in parameters
        if p.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    if positional and positional[0].name == name:
        msg = (
            f"'{name}' is the first positional parameter of "
            f"{function_name(func)} and receives the artifact"
        )
        raise InvalidParameterError(msg)


def _collect_parameters(
    param: str | Mapping[str, Iterable[Any]] | None,
    values: Iterable[Any] | None,
    params: dict[str, Iterable[Any]],
) -> list[tuple[str, list[Any]]]:
    collected: list[tuple[str, Iterable[Any]]] = []

    if isinstance(param, Mapping):
        if values is not None:
            msg = "values must not be given when parameters are passed as a mapping"
            raise TypeError(msg)
        collected.extend(param.items())
    elif param is not None:
        if values is None:
            msg = f"No values given for parameter '{param}'"
            raise EmptyValuesError(msg)
        collected.append((param, values))

    collected.extend(params.items())

    if not collected:
        msg = "No parameters to vary"
        raise EmptyValuesError(msg)

    seen: set[str] = set()
    result: list[tuple[str, list[Any]]] = []
    for name, seq in collected:
        if name in seen:
            msg = f"Parameter '{name}' given more than once"
            raise InvalidParameterError(msg)
        seen.add(name)
        if isinstance(seq, (str, bytes)):
            msg = f"Values for '{name}' must be a sequence, not a string"
            raise TypeError(msg)
        value_list = list(seq)
        if not value_list:
            msg = f"Parameter '{name}' has no values"
            raise EmptyValuesError(msg)
        result.append((name, value_list))
    return result


def generate_combinations(
    parameters: list[tuple[str, list[Any]]],
    mode: str = "product",
) -> list[dict[str, Any]]:
    """Generate parameter combinations.

    ``product`` yields the full grid with the first parameter varying slowest.
    ``zip`` pairs values position by position.
    """
    names = [name for name, _ in parameters]
    value_lists = [values for _, values in parameters]

    if mode == "product":
        combos = itertools.product(*value_lists)
    elif mode == "zip":
        lengths = {name: len(values) for name, values in parameters}
        if len(set(lengths.values())) > 1:
            detail = ", ".join(f"{name}={n}" for name, n in lengths.items())
            msg = f"Zipped parameters have different lengths: {detail}"
            raise LengthMismatchError(msg)
        combos = zip(*value_lists)
    else:
        msg = f"Unknown mode: {mode} (expected one of {MODES})"
        raise ValueError(msg)

    return [dict(zip(names, combo)) for combo in combos]


def fn_arg_seq(
    func: Callable[..., Any],
    param: str | Mapping[str, Iterable[Any]] | None = None,
    values: Iterable[Any] | None = None,
    /,
    *,
    mode: str = "product",
    **params: Iterable[Any],
) -> ArgSequence:
    """Create one partial application of ``func`` per parameter combination.

    Examples:
        fn_arg_seq(knn_impute, "k", [2, 4, 8])
        fn_arg_seq(scale, factor=[1, 2], center=[True, False])
        fn_arg_seq(scale, {"factor": [1, 2], "center": [True, False]}, mode="zip")

    Each entry is labelled like ``"knn_impute(k = 2)"`` and calls
    ``func(artifact, k=2)``.

    Raises:
        EmptyValuesError: no parameters, or a parameter without values
        InvalidParameterError: func cannot take a parameter by keyword
        LengthMismatchError: zipped value sequences differ in length
        LabelCollisionError: two combinations render to the same label

    """
    if not callable(func):
        msg = f"Expected a callable, got {type(func).__name__}"
        raise TypeError(msg)

    parameters = _collect_parameters(param, values, params)
    for name, _ in parameters:
        _check_parameter(func, name)

    base_name = function_name(func)
    sequence = ArgSequence(mode)
    for bound in generate_combinations(parameters, mode):
        args = ", ".join(
            f"{name} = {format_value(value)}" for name, value in bound.items()
        )
        label = f"{base_name}({args})"
        if label in sequence:
            raise LabelCollisionError(label)
        sequence[label] = functools.partial(func, **bound)
        sequence.bindings[label] = bound

    return sequence
