# Copyright (c) Syntropy Systems
"""Pydantic models for pipeline definition files."""

from __future__ import annotations

import math

from pydantic import Field, field_validator, model_validator
from typing_extensions import Self

from .base import RESULT_COLUMN, JSONObject, JSONValue, StagewiseBaseModel


class DataSpec(StagewiseBaseModel):
    """One named input: a literal value or a loader callable."""

    value: JSONValue = None
    target: str | None = Field(default=None, alias="callable")
    args: JSONObject = Field(default_factory=dict)

    @model_validator(mode="after")
    def _value_or_callable(self) -> Self:
        has_value = "value" in self.model_fields_set
        if has_value == (self.target is not None):
            msg = "Data entries need exactly one of 'value' or 'callable'"
            raise ValueError(msg)
        if has_value and self.args:
            msg = "'args' only applies to 'callable' data entries"
            raise ValueError(msg)
        return self


class MethodSpec(StagewiseBaseModel):
    """One candidate method: an import path plus fixed keyword arguments."""

    target: str = Field(alias="callable")
    args: JSONObject = Field(default_factory=dict)


class SweepSpec(StagewiseBaseModel):
    """Candidates generated by varying parameters of one callable."""

    target: str = Field(alias="callable")
    parameters: dict[str, list[JSONValue]]
    mode: str = "product"
    args: JSONObject = Field(default_factory=dict)

    @field_validator("parameters")
    @classmethod
    def _non_empty(
        cls, value: dict[str, list[JSONValue]]
    ) -> dict[str, list[JSONValue]]:
        if not value:
            msg = "Sweep needs at least one parameter"
            raise ValueError(msg)
        for name, values in value.items():
            if not values:
                msg = f"Sweep parameter '{name}' has no values"
                raise ValueError(msg)
        return value

    @field_validator("mode")
    @classmethod
    def _known_mode(cls, value: str) -> str:
        if value not in ("product", "zip"):
            msg = f"Unknown sweep mode: {value}"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _zip_lengths_match(self) -> Self:
        lengths = {name: len(values) for name, values in self.parameters.items()}
        if self.mode == "zip" and len(set(lengths.values())) > 1:
            detail = ", ".join(f"{name}={n}" for name, n in lengths.items())
            msg = f"Zipped sweep parameters have different lengths: {detail}"
            raise ValueError(msg)
        return self

    def count(self) -> int:
        """Number of candidates this sweep generates."""
        lengths = [len(values) for values in self.parameters.values()]
        if self.mode == "zip":
            return lengths[0]
        return math.prod(lengths)


class StageSpec(StagewiseBaseModel):
    """One stage: explicit methods, a parameter sweep, or both."""

    name: str
    methods: dict[str, MethodSpec] = Field(default_factory=dict)
    sweep: SweepSpec | None = None

    @model_validator(mode="after")
    def _has_candidates(self) -> Self:
        if self.name == RESULT_COLUMN:
            msg = f"'{RESULT_COLUMN}' is reserved and cannot name a stage"
            raise ValueError(msg)
        if not self.methods and self.sweep is None:
            msg = f"Stage '{self.name}' needs 'methods' or 'sweep'"
            raise ValueError(msg)
        return self

    def count(self) -> int:
        """Number of candidates in this stage."""
        return len(self.methods) + (self.sweep.count() if self.sweep else 0)


class PipelineSpec(StagewiseBaseModel):
    """A whole benchmark: named inputs and an ordered list of stages."""

    name: str | None = None
    data_stage: str = "data"
    data: dict[str, DataSpec]
    stages: list[StageSpec]
    workers: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_names(self) -> Self:
        if not self.data:
            msg = "Pipeline needs at least one data entry"
            raise ValueError(msg)
        if not self.stages:
            msg = "Pipeline needs at least one stage"
            raise ValueError(msg)
        names = [self.data_stage, *(stage.name for stage in self.stages)]
        if len(set(names)) != len(names):
            msg = f"Stage names must be unique, got {names}"
            raise ValueError(msg)
        return self

    def expected_rows(self) -> int:
        """Number of rows the final table will have."""
        return len(self.data) * math.prod(stage.count() for stage in self.stages)
