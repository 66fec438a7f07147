# Copyright (c) Syntropy Systems
"""Error types raised by the benchmark table engine."""
from __future__ import annotations


class StagewiseError(Exception):
    """Base class for all stagewise errors."""


class EmptyInputError(StagewiseError, ValueError):
    """No initial artifacts were given to build a table from."""


class DuplicateNameError(StagewiseError, ValueError):
    """A name occurs more than once where names must be unique."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Duplicate name: '{name}'")


class EmptyMethodsError(StagewiseError, ValueError):
    """A stage was applied with no candidate methods."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Stage '{stage}' has no candidate methods")


class DuplicateStageError(StagewiseError, ValueError):
    """A stage name is already a column of the table."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Stage '{stage}' already exists in the table")


class CandidateInvocationError(StagewiseError, RuntimeError):
    """A candidate method raised while being applied to a row."""

    def __init__(
        self,
        stage: str,
        candidate: str,
        row_index: int,
        cause: BaseException,
    ) -> None:
        self.stage = stage
        self.candidate = candidate
        self.row_index = row_index
        self.cause = cause
        super().__init__(
            f"Candidate '{candidate}' of stage '{stage}' failed on row "
            f"{row_index}: {type(cause).__name__}: {cause}"
        )


class EmptyValuesError(StagewiseError, ValueError):
    """A parameter sequence has no values to vary over."""


class InvalidParameterError(StagewiseError, ValueError):
    """A parameter is not accepted by the function being varied."""


class LengthMismatchError(StagewiseError, ValueError):
    """Zipped parameter sequences have different lengths."""


class LabelCollisionError(StagewiseError, ValueError):
    """Two parameter combinations render to the same label."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Parameter combinations collide on label '{label}'")


class ResultShapeError(StagewiseError, ValueError):
    """Results cannot be flattened into a common set of columns."""


class PipelineConfigError(StagewiseError, ValueError):
    """A pipeline definition file is malformed."""


class ConfigError(StagewiseError, ValueError):
    """An engine configuration file cannot be read."""
