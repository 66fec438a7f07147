# Copyright (c) Syntropy Systems
"""Tests for pipeline definition files."""

from __future__ import annotations

from pathlib import Path

import pytest

from stagewise import CandidateInvocationError, PipelineConfigError, TimedResult
from stagewise.pipeline import (
    build_data,
    build_methods,
    load_pipeline,
    resolve_callable,
    run_pipeline,
)

PIPELINE_YAML = """\
name: demo
data:
  small: {value: [1, 2]}
  generated: {callable: "sample_methods:load_range", args: {n: 3}}
stages:
  - name: norm
    methods:
      none: {callable: "sample_methods:identity"}
      double: {callable: "sample_methods:scale", args: {factor: 2}}
  - name: shift
    sweep:
      callable: "sample_methods:shift"
      parameters:
        offset: [0, 10]
  - name: total
    methods:
      sum: {callable: "sample_methods:total"}
"""


def write_pipeline(directory: Path, text: str = PIPELINE_YAML) -> Path:
    path = directory / "pipeline.yaml"
    _ = path.write_text(text)
    return path


class TestLoadPipeline:
    """Tests for parsing pipeline files."""

    def test_load(self, temp_dir: Path) -> None:
        """A valid file parses into stages and data entries."""
        spec = load_pipeline(write_pipeline(temp_dir))

        assert spec.name == "demo"
        assert list(spec.data) == ["small", "generated"]
        assert [stage.name for stage in spec.stages] == ["norm", "shift", "total"]
        assert spec.stages[1].sweep is not None
        assert spec.stages[1].sweep.target == "sample_methods:shift"
        assert spec.expected_rows() == 2 * 2 * 2 * 1

    def test_missing_stages(self, temp_dir: Path) -> None:
        """'stages' is required."""
        path = write_pipeline(temp_dir, "data:\n  a: {value: 1}\n")
        with pytest.raises(PipelineConfigError, match="stages"):
            _ = load_pipeline(path)

    def test_missing_data(self, temp_dir: Path) -> None:
        """'data' is required."""
        path = write_pipeline(temp_dir, "stages: []\n")
        with pytest.raises(PipelineConfigError, match="data"):
            _ = load_pipeline(path)

    def test_not_a_mapping(self, temp_dir: Path) -> None:
        """The top level must be a mapping."""
        path = write_pipeline(temp_dir, "- just\n- a list\n")
        with pytest.raises(PipelineConfigError):
            _ = load_pipeline(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """Unparseable YAML is reported as a config error."""
        path = write_pipeline(temp_dir, "data: [unclosed\n")
        with pytest.raises(PipelineConfigError):
            _ = load_pipeline(path)

    def test_duplicate_stage_names(self, temp_dir: Path) -> None:
        """Stage names must be unique, including the data stage."""
        text = (
            "data:\n  a: {value: 1}\n"
            "stages:\n"
            "  - name: data\n"
            "    methods:\n      id: {callable: 'sample_methods:identity'}\n"
        )
        with pytest.raises(PipelineConfigError, match="unique"):
            _ = load_pipeline(write_pipeline(temp_dir, text))

    def test_stage_without_candidates(self, temp_dir: Path) -> None:
        """Every stage needs methods or a sweep."""
        text = "data:\n  a: {value: 1}\nstages:\n  - name: empty\n"
        with pytest.raises(PipelineConfigError):
            _ = load_pipeline(write_pipeline(temp_dir, text))

    def test_data_entry_needs_value_or_callable(self, temp_dir: Path) -> None:
        """A data entry with neither value nor callable is rejected."""
        text = (
            "data:\n  a: {args: {n: 1}}\n"
            "stages:\n  - name: s\n"
            "    methods:\n      id: {callable: 'sample_methods:identity'}\n"
        )
        with pytest.raises(PipelineConfigError):
            _ = load_pipeline(write_pipeline(temp_dir, text))

    def test_null_value_is_allowed(self, temp_dir: Path) -> None:
        """An explicit null value is a valid artifact."""
        text = (
            "data:\n  a: {value: null}\n"
            "stages:\n  - name: s\n"
            "    methods:\n      id: {callable: 'sample_methods:identity'}\n"
        )
        spec = load_pipeline(write_pipeline(temp_dir, text))
        assert build_data(spec) == {"a": None}

    def test_unknown_sweep_mode(self, temp_dir: Path) -> None:
        """Sweep modes are validated at load time."""
        text = (
            "data:\n  a: {value: 1}\n"
            "stages:\n  - name: s\n"
            "    sweep:\n      callable: 'sample_methods:scale'\n"
            "      mode: random\n      parameters: {factor: [1]}\n"
        )
        with pytest.raises(PipelineConfigError):
            _ = load_pipeline(write_pipeline(temp_dir, text))

    def test_zip_sweep_length_mismatch(self, temp_dir: Path) -> None:
        """Zipped sweep parameters must have equal lengths at load time."""
        text = (
            "data:\n  a: {value: [1]}\n"
            "stages:\n  - name: s\n"
            "    sweep:\n      callable: 'sample_methods:shift'\n"
            "      mode: zip\n      parameters: {offset: [1, 2, 3], factor: [1]}\n"
        )
        with pytest.raises(PipelineConfigError, match="different lengths"):
            _ = load_pipeline(write_pipeline(temp_dir, text))

    def test_zip_sweep_count(self, temp_dir: Path) -> None:
        """A zip sweep yields one candidate per position."""
        text = (
            "data:\n  a: {value: [1]}\n"
            "stages:\n  - name: s\n"
            "    sweep:\n      callable: 'sample_methods:shift'\n"
            "      mode: zip\n      parameters: {offset: [1, 2], factor: [3, 4]}\n"
        )
        spec = load_pipeline(write_pipeline(temp_dir, text))
        assert spec.expected_rows() == 2
        assert run_pipeline(spec).results == [[6], [12]]


class TestResolveCallable:
    """Tests for import path resolution."""

    def test_resolve(self) -> None:
        """module:attribute paths resolve to the object."""
        import sample_methods

        assert resolve_callable("sample_methods:identity") is sample_methods.identity

    def test_nested_attribute(self) -> None:
        """Dotted attribute paths are followed."""
        join = resolve_callable("os:path.join")
        assert join("a", "b") in ("a/b", "a\\b")

    @pytest.mark.parametrize(
        "target",
        [
            "sample_methods.identity",
            "no_such_module_xyz:func",
            "sample_methods:missing",
            "sample_methods:NOT_CALLABLE",
        ],
    )
    def test_bad_targets(self, target: str) -> None:
        """Malformed, missing and non-callable targets are config errors."""
        with pytest.raises(PipelineConfigError):
            _ = resolve_callable(target)


class TestRunPipeline:
    """Tests for running a pipeline end to end."""

    def test_run(self, temp_dir: Path) -> None:
        """Every combination is computed in stage order."""
        spec = load_pipeline(write_pipeline(temp_dir))
        table = run_pipeline(spec)

        assert table.columns == ("data", "norm", "shift", "total", "result")
        assert len(table) == spec.expected_rows()
        assert table.to_records()[:4] == [
            {"data": "small", "norm": "none", "shift": "shift(offset = 0)",
             "total": "sum", "result": 3},
            {"data": "small", "norm": "none", "shift": "shift(offset = 10)",
             "total": "sum", "result": 23},
            {"data": "small", "norm": "double", "shift": "shift(offset = 0)",
             "total": "sum", "result": 6},
            {"data": "small", "norm": "double", "shift": "shift(offset = 10)",
             "total": "sum", "result": 26},
        ]
        # generated = [0, 1, 2]
        assert table.results[4:] == [3, 33, 6, 36]

    def test_run_parallel_matches(self, temp_dir: Path) -> None:
        """Worker count does not change the outcome."""
        spec = load_pipeline(write_pipeline(temp_dir))
        assert run_pipeline(spec, workers=4).to_records() == run_pipeline(spec).to_records()

    def test_run_timed(self, temp_dir: Path) -> None:
        """Timed runs wrap every result."""
        spec = load_pipeline(write_pipeline(temp_dir))
        table = run_pipeline(spec, timed=True)
        assert all(isinstance(r, TimedResult) for r in table.results)
        assert table.results[0].result == 3

    def test_sweep_with_fixed_args(self, temp_dir: Path) -> None:
        """Fixed sweep args are bound alongside the varied parameter."""
        text = (
            "data:\n  a: {value: [1]}\n"
            "stages:\n  - name: s\n"
            "    sweep:\n      callable: 'sample_methods:shift'\n"
            "      args: {factor: 10}\n      parameters: {offset: [1, 2]}\n"
        )
        spec = load_pipeline(write_pipeline(temp_dir, text))
        methods = build_methods(spec.stages[0])
        assert list(methods) == ["shift(offset = 1)", "shift(offset = 2)"]
        assert run_pipeline(spec).results == [[20], [30]]

    def test_failing_candidate(self, temp_dir: Path) -> None:
        """Candidate failures surface as CandidateInvocationError."""
        text = (
            "data:\n  ok: {value: [1]}\n  empty: {value: []}\n"
            "stages:\n  - name: check\n"
            "    methods:\n      strict: {callable: 'sample_methods:explode_on_empty'}\n"
        )
        spec = load_pipeline(write_pipeline(temp_dir, text))
        with pytest.raises(CandidateInvocationError) as exc_info:
            _ = run_pipeline(spec)
        assert exc_info.value.stage == "check"
        assert exc_info.value.candidate == "strict"
        assert exc_info.value.row_index == 1

    def test_failing_data_loader(self, temp_dir: Path) -> None:
        """A loader that raises is reported as a pipeline error."""
        text = (
            "data:\n  a: {callable: 'sample_methods:failing_loader'}\n"
            "stages:\n  - name: s\n"
            "    methods:\n      id: {callable: 'sample_methods:identity'}\n"
        )
        spec = load_pipeline(write_pipeline(temp_dir, text))
        with pytest.raises(PipelineConfigError, match="source unavailable") as exc_info:
            _ = build_data(spec)
        assert isinstance(exc_info.value.__cause__, OSError)
