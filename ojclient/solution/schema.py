from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ojclient.judge.schema import DEFAULT_LANGUAGE, Language
from ojclient.problem.identity import ProblemIdentity, persistence_key

# (user_id, contest_id, problem_id); at most one record exists per key
SolutionKey = Tuple[str, Optional[str], str]


class Solution(BaseModel):
    """A user's saved code for one problem, plus whether they solved it."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    user_id: str = Field(alias="userId")
    problem_id: str = Field(alias="problemId")
    contest_id: Optional[str] = Field(default=None, alias="contestId")
    code: str = ""
    language: Language = DEFAULT_LANGUAGE
    is_solved: bool = Field(default=False, alias="isSolved")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def for_problem(
        cls,
        user_id: str,
        identity: ProblemIdentity,
        code: str,
        language: Language,
        is_solved: bool = False,
    ) -> "Solution":
        return cls(
            user_id=user_id,
            problem_id=identity.problem_id,
            contest_id=identity.contest_id,
            code=code,
            language=language,
            is_solved=is_solved,
        )

    @property
    def identity(self) -> ProblemIdentity:
        if self.contest_id:
            return ProblemIdentity.contest_scoped(self.contest_id, self.problem_id)
        return ProblemIdentity.standalone(self.problem_id)

    @property
    def key(self) -> SolutionKey:
        return (self.user_id, self.contest_id or None, self.problem_id)

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "userId": self.user_id,
            **persistence_key(self.identity),
            "code": self.code,
            "language": self.language.value,
            "isSolved": self.is_solved,
        }
        return payload
