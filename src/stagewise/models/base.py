# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for stagewise."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, JsonValue
from typing_extensions import TypeAlias

RESULT_COLUMN = "result"

JSONValue: TypeAlias = JsonValue
JSONObject: TypeAlias = dict[str, JSONValue]


class StagewiseBaseModel(BaseModel):
    """Base model with shared config for stagewise schemas.

    Models are frozen since tables and rows are never edited in place.
    Artifacts are arbitrary Python objects, so arbitrary types are allowed.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
        arbitrary_types_allowed=True,
    )
