from .client import ExecutionClient, normalize_result
from .schema import (DEFAULT_LANGUAGE, ExecutionRequest, ExecutionResult,
                     Language, OutputKind)

__all__ = [
    "DEFAULT_LANGUAGE",
    "ExecutionClient",
    "ExecutionRequest",
    "ExecutionResult",
    "Language",
    "OutputKind",
    "normalize_result",
]
