"""
Composite problem identifiers.

Contest problems only exist inside their contest, so a reference to one has
to carry both ids. At URL and storage boundaries the pair travels as a single
string, ``"<contestId>-<problemId>"``; everywhere else it is passed around as a
`ProblemIdentity` so nothing has to split the string again.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from ojclient.errors import PreconditionException

PROBLEM_ID_SEPARATOR = "-"

# (contest_id, problem_id); contest_id is None for standalone problems
SolvedKey = Tuple[Optional[str], str]


class SourceType(str, Enum):
    STANDALONE = "standalone"
    CONTEST_SCOPED = "contest_scoped"


class ProblemIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    problem_id: str
    contest_id: Optional[str] = None

    @model_validator(mode="after")
    def check_contest_id(self):
        if self.source_type == SourceType.CONTEST_SCOPED and not self.contest_id:
            raise ValueError("contest_id is required for contest problems")
        if self.contest_id and PROBLEM_ID_SEPARATOR in self.contest_id:
            raise ValueError(
                f"contest_id {self.contest_id!r} contains {PROBLEM_ID_SEPARATOR!r} and would not resolve back"
            )
        if self.source_type == SourceType.STANDALONE and self.contest_id is not None:
            raise ValueError("standalone problems have no contest_id")
        return self

    @classmethod
    def standalone(cls, problem_id: str) -> "ProblemIdentity":
        return cls(source_type=SourceType.STANDALONE, problem_id=problem_id)

    @classmethod
    def contest_scoped(cls, contest_id: str, problem_id: str) -> "ProblemIdentity":
        return cls(
            source_type=SourceType.CONTEST_SCOPED,
            contest_id=contest_id,
            problem_id=problem_id,
        )

    @property
    def is_contest_scoped(self) -> bool:
        return self.source_type == SourceType.CONTEST_SCOPED

    @property
    def raw_id(self) -> str:
        if self.is_contest_scoped:
            return compose(self.contest_id, self.problem_id)
        return self.problem_id

    def __str__(self) -> str:
        return self.raw_id


def resolve(raw_id: Optional[str]) -> ProblemIdentity:
    """
    Parse an external problem reference.

    The string is split on the first separator: the left part is the contest
    id, the rest is the problem id. Input without a separator, or with an
    empty part on either side, is treated as a standalone problem whose id is
    the whole string. That fallback is the policy for malformed references;
    no error is raised for them.

    Args:
        raw_id: The identifier as it appears in URLs or list payloads

    Returns:
        The resolved identity

    Raises:
        PreconditionException: when no identifier is given at all
    """
    if raw_id is None or not str(raw_id).strip():
        raise PreconditionException(detail="No problem ID provided")

    raw_id = str(raw_id)
    contest_id, separator, problem_id = raw_id.partition(PROBLEM_ID_SEPARATOR)
    if not separator or not contest_id or not problem_id:
        return ProblemIdentity.standalone(raw_id)
    return ProblemIdentity.contest_scoped(contest_id, problem_id)


def compose(contest_id: str, problem_id: str) -> str:
    """Build the raw id used to open a contest problem from its contest's list."""
    if not contest_id or not problem_id:
        raise ValueError("contest_id and problem_id must both be non-empty")
    if PROBLEM_ID_SEPARATOR in contest_id:
        raise ValueError(
            f"contest_id {contest_id!r} contains {PROBLEM_ID_SEPARATOR!r} and would not resolve back"
        )
    return f"{contest_id}{PROBLEM_ID_SEPARATOR}{problem_id}"


def persistence_key(identity: ProblemIdentity) -> Dict[str, str]:
    """Fields identifying a problem in a solution record; contestId only for contest problems."""
    key = {"problemId": identity.problem_id}
    if identity.is_contest_scoped:
        key["contestId"] = identity.contest_id
    return key


def solved_key(identity: ProblemIdentity) -> SolvedKey:
    return (identity.contest_id, identity.problem_id)
