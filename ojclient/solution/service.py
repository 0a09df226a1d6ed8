from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError

from ojclient.api.client import ApiClient
from ojclient.config import logger
from ojclient.errors import (PreconditionException, ResourceNotFoundException,
                             ValidationException)
from ojclient.problem.identity import ProblemIdentity, SolvedKey
from ojclient.solution.events import SolvedEvent, SolvedEventBus, solved_events
from ojclient.solution.schema import Solution, SolutionKey

# Create a module-specific logger
solution_logger = logger.getChild("solution")


def _parse_solution(data: Any) -> Solution:
    payload = data.get("solution", data) if isinstance(data, dict) else data
    try:
        return Solution.model_validate(payload)
    except ValidationError as e:
        solution_logger.error(f"Unexpected solution payload: {str(e)}")
        raise ValidationException(detail="Received a malformed solution record") from e


class SolutionSynchronizer:
    """
    Loads and saves a user's per-problem solution and broadcasts solved changes.

    The solved flag only moves from false to true. The synchronizer remembers
    every key it has seen solved, and before an ordinary save of a record it
    has never seen it loads that record once, so a plain save cannot clear a
    solved flag even when the caller does not know about it.
    """

    def __init__(self, api: ApiClient, bus: Optional[SolvedEventBus] = None):
        self.api = api
        self.bus = bus if bus is not None else solved_events
        self.known_solved: Dict[SolutionKey, bool] = {}

    def _remember(self, solution: Solution) -> None:
        key = solution.key
        self.known_solved[key] = self.known_solved.get(key, False) or solution.is_solved

    def forget(self, user_id: Optional[str] = None) -> None:
        """Drop remembered solved flags for `user_id`, or for everyone."""
        if user_id is None:
            self.known_solved.clear()
            return
        self.known_solved = {
            key: solved for key, solved in self.known_solved.items() if key[0] != user_id
        }

    async def load(self, user_id: str, identity: ProblemIdentity) -> Optional[Solution]:
        """
        Fetch the user's saved solution for a problem.

        Args:
            user_id: The signed-in user
            identity: The problem whose solution is wanted

        Returns:
            The stored solution, or None if the user never saved one
        """
        if not user_id:
            raise PreconditionException(detail="You must be logged in to load solutions")

        params = {"contestId": identity.contest_id} if identity.is_contest_scoped else None
        try:
            data = await self.api.get(
                f"/api/solutions/{user_id}/{identity.problem_id}", params=params
            )
        except ResourceNotFoundException:
            solution_logger.info(f"No saved solution for user {user_id}, problem {identity.raw_id}")
            self.known_solved.setdefault((user_id, identity.contest_id, identity.problem_id), False)
            return None

        solution = _parse_solution(data)
        self._remember(solution)
        solution_logger.info(
            f"Loaded solution for user {user_id}, problem {identity.raw_id} "
            f"(solved: {solution.is_solved})"
        )
        return solution

    async def save(self, solution: Solution, mark_as_solved: bool = False) -> Solution:
        """
        Create or update the record for `solution`'s (user, problem, contest).

        Args:
            solution: Code and language to persist
            mark_as_solved: Force the stored solved flag to true

        Returns:
            The record as persisted
        """
        if not solution.user_id:
            raise PreconditionException(detail="You must be logged in to save solutions")

        key = solution.key
        if not mark_as_solved and key not in self.known_solved:
            await self.load(solution.user_id, solution.identity)

        is_solved = mark_as_solved or solution.is_solved or self.known_solved.get(key, False)
        outgoing = solution.model_copy(update={"is_solved": is_solved})

        solution_logger.info(
            f"Saving solution: user {solution.user_id}, problem {solution.identity.raw_id}, "
            f"language {solution.language.value}, solved {is_solved}"
        )
        data = await self.api.post("/api/solutions", outgoing.to_payload())

        saved = _parse_solution(data) if data else outgoing
        if saved.key != key:
            solution_logger.warning(
                f"Server returned solution for {saved.key}, expected {key}; keeping local copy"
            )
            saved = outgoing
        if is_solved and not saved.is_solved:
            saved = saved.model_copy(update={"is_solved": True})
        self._remember(saved)
        return saved

    def notify_solved(self, identity: ProblemIdentity, user_id: Optional[str] = None) -> int:
        """Tell every open view showing this problem that it is now solved."""
        return self.bus.publish(SolvedEvent(identity=identity, user_id=user_id))

    async def list_solutions(self, user_id: str) -> List[Solution]:
        if not user_id:
            raise PreconditionException(detail="You must be logged in to view solutions")

        data = await self.api.get(f"/api/solutions/user/{user_id}")
        records = data.get("solutions", []) if isinstance(data, dict) else data
        solutions = [_parse_solution(record) for record in records or []]
        for solution in solutions:
            self._remember(solution)
        return solutions

    async def solved_keys(self, user_id: str) -> Set[SolvedKey]:
        solutions = await self.list_solutions(user_id)
        return {
            (solution.contest_id or None, solution.problem_id)
            for solution in solutions
            if solution.is_solved
        }
