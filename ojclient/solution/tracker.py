from typing import Optional, Set

from ojclient.auth.session import AuthSession
from ojclient.config import logger
from ojclient.errors import AppException
from ojclient.problem.identity import ProblemIdentity, SolvedKey, solved_key
from ojclient.solution.events import SolvedEvent, SolvedEventBus, Subscription
from ojclient.solution.service import SolutionSynchronizer

tracker_logger = logger.getChild("solution.tracker")


class SolvedStateTracker:
    """
    Solved indicators for one view (a problem list, a problem page).

    Listens for solved events only while attached, and refreshes the user's
    solved set from the server whenever one arrives.
    """

    def __init__(
        self,
        synchronizer: SolutionSynchronizer,
        session: AuthSession,
        bus: Optional[SolvedEventBus] = None,
    ):
        self.synchronizer = synchronizer
        self.session = session
        self.bus = bus if bus is not None else synchronizer.bus
        self.solved: Set[SolvedKey] = set()
        self.last_error: Optional[str] = None
        self._subscription: Optional[Subscription] = None
        self._refresh_sequence = 0
        # Keys this view saw solved through events; the server may lag behind them
        self._confirmed: Set[SolvedKey] = set()

    @property
    def attached(self) -> bool:
        return self._subscription is not None

    def attach(self, problem: Optional[ProblemIdentity] = None) -> None:
        if self._subscription is None:
            self._subscription = self.bus.subscribe(self._on_solved, problem)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def is_solved(self, identity: ProblemIdentity) -> bool:
        return solved_key(identity) in self.solved

    async def refresh(self) -> Set[SolvedKey]:
        """Replace the solved set with the server's; listings older than the latest request are dropped."""
        self._refresh_sequence += 1
        sequence = self._refresh_sequence
        user = self.session.get_current_user()
        if user is None:
            self._confirmed = set()
            self.solved = set()
            return self.solved
        try:
            solved = await self.synchronizer.solved_keys(user.id)
        except AppException as e:
            if sequence != self._refresh_sequence:
                return self.solved
            # Keep the indicators we already have
            tracker_logger.error(f"Error fetching user solutions: {e.detail}")
            self.last_error = str(e.detail)
            return self.solved

        if sequence != self._refresh_sequence:
            tracker_logger.debug(
                f"Dropping solved listing #{sequence}; listing #{self._refresh_sequence} is newer"
            )
            return self.solved
        self.solved = solved | self._confirmed
        self.last_error = None
        return self.solved

    async def _on_solved(self, event: SolvedEvent) -> None:
        user = self.session.get_current_user()
        if event.user_id and user is not None and event.user_id != user.id:
            return
        key = solved_key(event.identity)
        self._confirmed.add(key)
        self.solved.add(key)
        await self.refresh()

    async def __aenter__(self) -> "SolvedStateTracker":
        self.attach()
        await self.refresh()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.detach()
