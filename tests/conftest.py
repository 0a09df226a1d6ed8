# Set environment variable to indicate we're running tests
import os

os.environ["TESTING"] = "True"

from typing import Any, Dict, List, Optional, Tuple

import pytest

from ojclient.auth.session import AuthSession
from ojclient.config import logger
from ojclient.errors import ResourceNotFoundException
from ojclient.judge.client import ExecutionClient
from ojclient.solution.events import SolvedEventBus
from ojclient.solution.service import SolutionSynchronizer


class FakeBackend:
    """
    An in-memory stand-in for the platform backend.
    Implements the same awaitable get/post surface as ApiClient.
    """

    def __init__(self):
        self.solutions: Dict[Tuple[str, Optional[str], str], Dict[str, Any]] = {}
        self.execution_result: Dict[str, Any] = {
            "stdout": "42\n",
            "stderr": "",
            "compile_output": "",
        }
        self.calls: List[Tuple[str, str, Any]] = []
        self.failures: Dict[Tuple[str, str], Exception] = {}

    def fail(self, method: str, path_prefix: str, exc: Exception) -> None:
        self.failures[(method, path_prefix)] = exc

    def _maybe_fail(self, method: str, path: str) -> None:
        for (fail_method, prefix), exc in self.failures.items():
            if fail_method == method and path.startswith(prefix):
                raise exc

    def calls_to(self, method: str, path_prefix: str) -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == method and c[1].startswith(path_prefix)]

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        self.calls.append(("GET", path, params))
        self._maybe_fail("GET", path)

        if path.startswith("/api/solutions/user/"):
            user_id = path.rsplit("/", 1)[1]
            return {
                "solutions": [
                    dict(record)
                    for key, record in self.solutions.items()
                    if key[0] == user_id
                ]
            }
        if path.startswith("/api/solutions/"):
            _, _, _, user_id, problem_id = path.split("/")
            contest_id = (params or {}).get("contestId")
            record = self.solutions.get((user_id, contest_id, problem_id))
            if record is None:
                raise ResourceNotFoundException(detail="Solution not found")
            return {"solution": dict(record)}
        raise ResourceNotFoundException(detail=f"No route for {path}")

    async def post(self, path: str, payload: Dict[str, Any], **kwargs) -> Any:
        self.calls.append(("POST", path, dict(payload)))
        self._maybe_fail("POST", path)

        if path == "/api/code/execute":
            return {"result": dict(self.execution_result)}
        if path == "/api/solutions":
            key = (payload["userId"], payload.get("contestId"), payload["problemId"])
            record = {**payload, "updatedAt": "2024-01-01T10:00:00"}
            self.solutions[key] = record
            return {"solution": dict(record)}
        raise ResourceNotFoundException(detail=f"No route for {path}")

    def close(self) -> None:
        pass


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session():
    return AuthSession(token="test-token", user={"id": "u1", "username": "testuser"})


@pytest.fixture
def bus():
    return SolvedEventBus()


@pytest.fixture
def synchronizer(backend, bus):
    return SolutionSynchronizer(backend, bus=bus)


@pytest.fixture
def execution_client(backend):
    return ExecutionClient(backend)


# Disable logging during tests
@pytest.fixture(autouse=True)
def disable_logging():
    logger.disabled = True
    yield
    logger.disabled = False
