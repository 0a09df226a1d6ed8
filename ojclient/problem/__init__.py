from .identity import (PROBLEM_ID_SEPARATOR, ProblemIdentity, SolvedKey,
                       SourceType, compose, persistence_key, resolve,
                       solved_key)
from .schemas import ProblemExample, ProblemSummary
from .service import ProblemService, mark_solved

__all__ = [
    "PROBLEM_ID_SEPARATOR",
    "ProblemIdentity",
    "SolvedKey",
    "SourceType",
    "compose",
    "persistence_key",
    "resolve",
    "solved_key",
    "ProblemExample",
    "ProblemSummary",
    "ProblemService",
    "mark_solved",
]
