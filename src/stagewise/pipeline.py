# Copyright (c) Syntropy Systems
"""Pipeline definition files and running them through the engine."""
from __future__ import annotations

import functools
import importlib
import logging
from typing import TYPE_CHECKING, Any, cast

import yaml
from pydantic import ValidationError

from stagewise.apply import apply_methods, time_methods
from stagewise.errors import DuplicateNameError, PipelineConfigError
from stagewise.models.pipeline import PipelineSpec, StageSpec
from stagewise.sequence import fn_arg_seq
from stagewise.table import load_all_data

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from stagewise.config import EngineConfig
    from stagewise.models.table import BenchmarkTable

logger = logging.getLogger(__name__)


def load_pipeline(path: Path) -> PipelineSpec:
    """Load a pipeline definition from a YAML file."""
    try:
        with path.open() as f:
            data = cast("object", yaml.safe_load(f))
    except (OSError, yaml.YAMLError) as e:
        msg = f"Cannot read pipeline file {path}: {e}"
        raise PipelineConfigError(msg) from e

    if not isinstance(data, dict):
        msg = "Pipeline file must contain a mapping"
        raise PipelineConfigError(msg)

    data_dict = cast("dict[str, object]", data)
    if "data" not in data_dict:
        msg = "Pipeline must have 'data' field"
        raise PipelineConfigError(msg)
    if "stages" not in data_dict:
        msg = "Pipeline must have 'stages' field"
        raise PipelineConfigError(msg)

    try:
        return PipelineSpec.model_validate(data_dict)
    except ValidationError as e:
        msg = f"Invalid pipeline file {path}: {e}"
        raise PipelineConfigError(msg) from e


def resolve_callable(target: str) -> Callable[..., Any]:
    """Import ``package.module:attribute`` and return the callable it names."""
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        msg = f"Callable must look like 'package.module:function', got '{target}'"
        raise PipelineConfigError(msg)

    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as e:
        msg = f"Cannot import module '{module_name}': {e}"
        raise PipelineConfigError(msg) from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            msg = f"'{module_name}' has no attribute '{attr_path}'"
            raise PipelineConfigError(msg) from e

    if not callable(obj):
        msg = f"'{target}' is not callable"
        raise PipelineConfigError(msg)
    return cast("Callable[..., Any]", obj)


def _bind(func: Callable[..., Any], args: dict[str, Any]) -> Callable[..., Any]:
    if not args:
        return func
    return functools.partial(func, **args)


def build_data(spec: PipelineSpec) -> dict[str, Any]:
    """Produce the named input artifacts, calling loaders where given."""
    data: dict[str, Any] = {}
    for name, entry in spec.data.items():
        if entry.target is None:
            data[name] = entry.value
        else:
            loader = resolve_callable(entry.target)
            logger.debug("Loading data %r with %s", name, entry.target)
            try:
                data[name] = loader(**entry.args)
            except Exception as e:
                msg = f"Data loader {entry.target} for '{name}' failed: {e}"
                raise PipelineConfigError(msg) from e
    return data


def build_methods(stage: StageSpec) -> dict[str, Callable[[Any], Any]]:
    """Produce the candidate mapping of one stage."""
    methods: dict[str, Callable[[Any], Any]] = {}
    for name, method in stage.methods.items():
        methods[name] = _bind(resolve_callable(method.target), method.args)

    if stage.sweep is not None:
        sweep = stage.sweep
        base = _bind(resolve_callable(sweep.target), sweep.args)
        for label, func in fn_arg_seq(base, sweep.parameters, mode=sweep.mode).items():
            if label in methods:
                raise DuplicateNameError(label)
            methods[label] = func

    return methods


def run_pipeline(
    spec: PipelineSpec,
    *,
    workers: int | None = None,
    config: EngineConfig | None = None,
    timed: bool = False,
) -> BenchmarkTable:
    """Run every stage of a pipeline and return the final table.

    ``workers`` falls back to the pipeline's own setting, then to the engine
    configuration.
    """
    if workers is None:
        workers = spec.workers
    apply = time_methods if timed else apply_methods

    table = load_all_data(build_data(spec), stage=spec.data_stage)
    for stage in spec.stages:
        methods = build_methods(stage)
        logger.info(
            "Stage %r: %d candidates over %d rows", stage.name, len(methods), len(table)
        )
        table = apply(table, stage.name, methods, workers=workers, config=config)
    return table
