# Copyright (c) Syntropy Systems
"""Data models for stagewise."""

from stagewise.models.base import RESULT_COLUMN, StagewiseBaseModel
from stagewise.models.table import BenchmarkRow, BenchmarkTable

__all__ = ["RESULT_COLUMN", "BenchmarkRow", "BenchmarkTable", "StagewiseBaseModel"]
