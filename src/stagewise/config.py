# Copyright (c) Syntropy Systems
"""Configuration management for stagewise."""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml

from stagewise.errors import ConfigError

logger = logging.getLogger(__name__)

BACKENDS = ("thread", "process")
CONFIG_FILENAME = "config.yaml"
PROJECT_FILENAME = "stagewise.yaml"
WORKERS_ENV = "STAGEWISE_WORKERS"


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the benchmark table engine."""

    # Number of concurrent candidate calls per stage
    workers: int = 1

    # Worker pool flavour: thread or process
    backend: str = "thread"

    # Separator used when collapsing stage choices into one pipeline label
    collapse_sep: str = " » "

    # Give every candidate call its own deep copy of the input artifact
    copy_inputs: bool = True

    def __post_init__(self) -> None:
        if self.workers < 1:
            msg = f"workers must be at least 1, got {self.workers}"
            raise ValueError(msg)
        if self.backend not in BACKENDS:
            msg = f"Unknown backend: {self.backend} (expected one of {BACKENDS})"
            raise ValueError(msg)


def find_stagewise_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .stagewise directory by walking up from start_path.

    Returns None if no .stagewise directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        stagewise_dir = current / ".stagewise"
        if stagewise_dir.is_dir():
            return stagewise_dir
        current = current.parent

    # Check root
    stagewise_dir = current / ".stagewise"
    if stagewise_dir.is_dir():
        return stagewise_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global stagewise config directory (~/.stagewise)."""
    return Path.home() / ".stagewise"


def _find_config_path(path: Path | None) -> Path | None:
    if path is not None:
        if path.is_dir():
            return path / PROJECT_FILENAME
        return path

    found_dir = find_stagewise_dir()
    if found_dir is not None:
        return found_dir / CONFIG_FILENAME

    global_config = get_global_config_dir() / CONFIG_FILENAME
    if global_config.exists():
        return global_config
    return None


def load_config(path: Path | None = None) -> EngineConfig:
    """Load configuration from a YAML file or defaults.

    Looks for config in:
    1. Provided path (a file, or a directory holding stagewise.yaml)
    2. Nearest .stagewise/config.yaml walking up
    3. ~/.stagewise/config.yaml
    4. Defaults

    The STAGEWISE_WORKERS environment variable overrides the worker count.

    Raises ConfigError when a config file exists but cannot be parsed.
    """
    workers = 1
    backend = "thread"
    collapse_sep = " » "
    copy_inputs = True

    config_path = _find_config_path(path)

    if config_path is not None and config_path.exists():
        try:
            with config_path.open() as f:
                loaded = cast("object", yaml.safe_load(f))
        except (OSError, yaml.YAMLError) as e:
            msg = f"Cannot read config file {config_path}: {e}"
            raise ConfigError(msg) from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            msg = f"Config file {config_path} must contain a mapping"
            raise ConfigError(msg)
        data = cast("dict[str, object]", loaded)

        file_workers = data.get("workers")
        if isinstance(file_workers, int) and not isinstance(file_workers, bool):
            workers = file_workers
        file_backend = data.get("backend")
        if isinstance(file_backend, str):
            backend = file_backend
        file_sep = data.get("collapse_sep")
        if isinstance(file_sep, str):
            collapse_sep = file_sep
        file_copy = data.get("copy_inputs")
        if isinstance(file_copy, bool):
            copy_inputs = file_copy

    env_workers = os.environ.get(WORKERS_ENV)
    if env_workers:
        try:
            workers = int(env_workers)
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", WORKERS_ENV, env_workers)

    return EngineConfig(
        workers=workers,
        backend=backend,
        collapse_sep=collapse_sep,
        copy_inputs=copy_inputs,
    )


_workers_lock = threading.Lock()
_workers: int | None = None


def set_workers(workers: int) -> None:
    """Set the process-wide default worker count.

    Intended to be called once at startup. Explicit ``workers`` arguments
    and ``EngineConfig`` values passed to the engine take precedence.
    """
    if workers < 1:
        msg = f"workers must be at least 1, got {workers}"
        raise ValueError(msg)
    global _workers
    with _workers_lock:
        _workers = workers


def get_workers() -> int:
    """Get the process-wide default worker count.

    Initialized from the configuration on first read.
    """
    global _workers
    with _workers_lock:
        if _workers is None:
            _workers = load_config().workers
        return _workers


def reset_workers() -> None:
    """Forget the process-wide worker count so it is reloaded on next read."""
    global _workers
    with _workers_lock:
        _workers = None
