from typing import Optional

import requests

from ojclient.api.client import ApiClient
from ojclient.auth.session import AuthSession
from ojclient.config import Config, Settings, logger
from ojclient.contest.schemas import ContestTiming
from ojclient.judge.client import ExecutionClient
from ojclient.problem.identity import resolve
from ojclient.problem.service import ProblemService
from ojclient.solution.events import SolvedEventBus, solved_events
from ojclient.solution.service import SolutionSynchronizer
from ojclient.solution.tracker import SolvedStateTracker
from ojclient.submission.orchestrator import SubmissionOrchestrator


class ClientContext:
    """Components shared by every view of one running client."""

    def __init__(
        self,
        session: Optional[AuthSession] = None,
        settings: Settings = Config,
        http: Optional[requests.Session] = None,
        bus: Optional[SolvedEventBus] = None,
    ):
        self.settings = settings
        self.session = session or AuthSession()
        self.bus = bus if bus is not None else solved_events
        self.api = ApiClient(
            settings.API_URL,
            session=self.session,
            timeout=settings.API_REQUEST_TIMEOUT,
            http=http,
        )
        self.execution_client = ExecutionClient(self.api, timeout=settings.EXECUTION_TIMEOUT)
        self.synchronizer = SolutionSynchronizer(self.api, bus=self.bus)
        self.problems = ProblemService(self.api)
        logger.info(f"Client ready - API: {settings.API_URL} - Environment: {settings.ENVIRONMENT}")

    def orchestrator(
        self, raw_id: Optional[str], contest: Optional[ContestTiming] = None
    ) -> SubmissionOrchestrator:
        """Editor state for the problem referenced by `raw_id`."""
        identity = resolve(raw_id) if raw_id else None
        return SubmissionOrchestrator(
            identity,
            self.session,
            self.execution_client,
            self.synchronizer,
            contest=contest,
            settings=self.settings,
        )

    def solved_tracker(self) -> SolvedStateTracker:
        return SolvedStateTracker(self.synchronizer, self.session, bus=self.bus)

    def logout(self) -> None:
        user = self.session.get_current_user()
        self.session.logout()
        if user is not None:
            self.synchronizer.forget(user.id)

    def close(self) -> None:
        self.api.close()


def build_orchestrator(
    raw_id: Optional[str],
    session: AuthSession,
    contest: Optional[ContestTiming] = None,
    settings: Settings = Config,
) -> SubmissionOrchestrator:
    return ClientContext(session=session, settings=settings).orchestrator(raw_id, contest)
