# Copyright (c) Syntropy Systems
"""Pytest fixtures for stagewise tests."""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from stagewise import BenchmarkTable, load_all_data
from stagewise.config import WORKERS_ENV, reset_workers

# Store original cwd at module load time
_original_cwd = Path.cwd()


@pytest.fixture(autouse=True)
def isolated_config(
    tmp_path_factory: pytest.TempPathFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Keep user config and the process-wide worker count out of tests."""
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))
    monkeypatch.delenv(WORKERS_ENV, raising=False)
    reset_workers()
    yield
    reset_workers()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def stagewise_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary project directory with a .stagewise directory."""
    stagewise_dir = temp_dir / ".stagewise"
    stagewise_dir.mkdir()

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def small_table() -> BenchmarkTable:
    """Two datasets, no stages applied yet."""
    return load_all_data({"a": 1, "b": 2})
