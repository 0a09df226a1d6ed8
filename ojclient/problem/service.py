from typing import Iterable, List, Optional, Set

from pydantic import ValidationError

from ojclient.api.client import ApiClient
from ojclient.config import logger
from ojclient.errors import ValidationException
from ojclient.problem.identity import ProblemIdentity, SolvedKey
from ojclient.problem.schemas import ProblemSummary

problem_logger = logger.getChild("problem")


class ProblemService:
    """Looks up problems in whichever source owns them."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def get_problem(self, identity: ProblemIdentity) -> ProblemSummary:
        if identity.is_contest_scoped:
            path = f"/api/contests/problems/{identity.contest_id}/{identity.problem_id}"
        else:
            path = f"/api/individual-problems/{identity.problem_id}"

        problem_logger.info(f"Fetching problem {identity.raw_id} from {path}")
        data = await self.api.get(path)
        try:
            return ProblemSummary.model_validate(data.get("problem", data))
        except (AttributeError, ValidationError) as e:
            problem_logger.error(f"Unexpected problem payload for {identity.raw_id}: {str(e)}")
            raise ValidationException(detail="Failed to load problem") from e

    async def list_problems(self, contest_id: Optional[str] = None) -> List[ProblemSummary]:
        """
        List standalone problems, or the problems of one contest.
        """
        if contest_id:
            data = await self.api.get(f"/api/contests/{contest_id}")
            problems = (data.get("contest") or data).get("problems", [])
        else:
            data = await self.api.get("/api/individual-problems")
            problems = data.get("problems", [])
        return [ProblemSummary.model_validate(p) for p in problems]


def mark_solved(
    problems: Iterable[ProblemSummary],
    solved_keys: Set[SolvedKey],
    contest_id: Optional[str] = None,
) -> List[ProblemSummary]:
    """
    Return copies of `problems` with `solved` taken from the user's solved keys.

    Args:
        problems: Problems of one listing
        solved_keys: (contest_id, problem_id) pairs the user has solved
        contest_id: Contest the listing belongs to, None for standalone problems

    Returns:
        New summaries; the inputs are left untouched
    """
    return [
        problem.model_copy(update={"solved": (contest_id, problem.id) in solved_keys})
        for problem in problems
    ]
