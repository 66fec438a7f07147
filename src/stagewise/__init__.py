"""
stagewise - Combinatorial benchmarking of pipeline methods.

Apply every candidate method of every stage to every dataset, and keep
track of which combination produced which result.
"""

from stagewise.apply import apply_methods, time_methods
from stagewise.config import EngineConfig, get_workers, load_config, set_workers
from stagewise.errors import (
    CandidateInvocationError,
    ConfigError,
    DuplicateNameError,
    DuplicateStageError,
    EmptyInputError,
    EmptyMethodsError,
    EmptyValuesError,
    InvalidParameterError,
    LabelCollisionError,
    LengthMismatchError,
    PipelineConfigError,
    ResultShapeError,
    StagewiseError,
)
from stagewise.models.table import BenchmarkRow, BenchmarkTable
from stagewise.sequence import ArgSequence, fn_arg_seq
from stagewise.table import (
    data_list,
    explode,
    fn_list,
    load_all_data,
    pipeline_collapse,
    summarize,
)
from stagewise.timing import TimedResult, strip_timing, unpack_timing

__version__ = "0.1.0"
__all__ = [
    "ArgSequence",
    "BenchmarkRow",
    "BenchmarkTable",
    "CandidateInvocationError",
    "ConfigError",
    "DuplicateNameError",
    "DuplicateStageError",
    "EmptyInputError",
    "EmptyMethodsError",
    "EmptyValuesError",
    "EngineConfig",
    "InvalidParameterError",
    "LabelCollisionError",
    "LengthMismatchError",
    "PipelineConfigError",
    "ResultShapeError",
    "StagewiseError",
    "TimedResult",
    "__version__",
    "apply_methods",
    "data_list",
    "explode",
    "fn_arg_seq",
    "fn_list",
    "get_workers",
    "load_all_data",
    "load_config",
    "pipeline_collapse",
    "set_workers",
    "strip_timing",
    "summarize",
    "time_methods",
    "unpack_timing",
]
