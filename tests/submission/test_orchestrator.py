import asyncio

import pytest

from ojclient.auth.session import AuthSession
from ojclient.config import Settings
from ojclient.contest.schemas import ContestTiming
from ojclient.errors import TransportException
from ojclient.judge.schema import ExecutionResult, Language, OutputKind
from ojclient.problem.identity import resolve
from ojclient.submission.orchestrator import SubmissionOrchestrator
from ojclient.submission.schemas import AttemptStatus


@pytest.fixture
def settings():
    return Settings(SAVE_INDICATOR_SECONDS=0.01, OPTIMISTIC_SOLVE=True)


@pytest.fixture
def make_orchestrator(session, execution_client, synchronizer, settings):
    def factory(raw_id="p2", **kwargs):
        options = {
            "session": session,
            "execution_client": execution_client,
            "synchronizer": synchronizer,
            "settings": settings,
        }
        options.update(kwargs)
        identity = resolve(raw_id) if raw_id else None
        return SubmissionOrchestrator(identity, **options)

    return factory


class GatedExecutionClient:
    """Execution client whose responses are released by the test."""

    def __init__(self):
        self.pending = []

    async def run(self, request):
        future = asyncio.get_running_loop().create_future()
        self.pending.append((request, future))
        return await future


@pytest.mark.asyncio
async def test_submit_on_new_standalone_problem(make_orchestrator, backend, bus):
    solved_events = []
    bus.subscribe(solved_events.append, resolve("p2"))
    orchestrator = make_orchestrator("p2")

    await orchestrator.load_saved_solution()
    snapshot = await orchestrator.submit()

    assert [(method, path) for method, path, _ in backend.calls] == [
        ("GET", "/api/solutions/u1/p2"),
        ("POST", "/api/code/execute"),
        ("POST", "/api/solutions"),
    ]
    assert list(backend.solutions) == [("u1", None, "p2")]
    assert backend.solutions[("u1", None, "p2")]["isSolved"] is True
    assert snapshot.status == AttemptStatus.SAVED
    assert snapshot.is_solved is True
    assert snapshot.output == "Solution submitted for problem p2!\n42\n"
    assert [e.identity for e in solved_events] == [resolve("p2")]


@pytest.mark.asyncio
async def test_load_falls_back_to_template(make_orchestrator):
    orchestrator = make_orchestrator("p2")
    orchestrator.select_language(Language.PYTHON)

    snapshot = await orchestrator.load_saved_solution()

    assert snapshot.code == Language.PYTHON.template
    assert snapshot.is_solved is False
    assert snapshot.error is None


@pytest.mark.asyncio
async def test_load_restores_saved_solution(make_orchestrator, backend):
    backend.solutions[("u1", "c9", "p2")] = {
        "userId": "u1", "problemId": "p2", "contestId": "c9",
        "code": "int main() {}", "language": "cpp", "isSolved": True,
    }
    orchestrator = make_orchestrator("c9-p2")

    snapshot = await orchestrator.load_saved_solution()

    assert snapshot.code == "int main() {}"
    assert snapshot.language == Language.CPP
    assert snapshot.is_solved is True


@pytest.mark.asyncio
async def test_run_exposes_normalized_output(make_orchestrator, backend):
    backend.execution_result = {"stdout": "", "stderr": "err1", "compile_output": ""}
    orchestrator = make_orchestrator()

    snapshot = await orchestrator.run(code="raise SystemExit(1)", language="python")

    assert snapshot.status == AttemptStatus.SUCCEEDED
    assert snapshot.result.kind == OutputKind.STDERR
    assert snapshot.output == "Error: err1"
    assert backend.calls[0][2] == {"sourceCode": "raise SystemExit(1)", "language": "python"}


@pytest.mark.asyncio
async def test_run_failure_is_reported_and_not_retried(make_orchestrator, backend):
    backend.fail("POST", "/api/code/execute", TransportException(detail="Judge is down"))
    orchestrator = make_orchestrator()

    snapshot = await orchestrator.run()

    assert snapshot.status == AttemptStatus.FAILED
    assert snapshot.error == "Judge is down"
    assert len(backend.calls_to("POST", "/api/code/execute")) == 1


@pytest.mark.asyncio
async def test_missing_problem_id_fails_before_network(make_orchestrator, backend):
    orchestrator = make_orchestrator(raw_id=None)

    for action in (orchestrator.run, orchestrator.save, orchestrator.submit):
        snapshot = await action()
        assert snapshot.error == "No problem ID provided"
        assert snapshot.status == AttemptStatus.IDLE

    assert backend.calls == []


@pytest.mark.asyncio
async def test_save_requires_signed_in_user(make_orchestrator, backend):
    orchestrator = make_orchestrator(session=AuthSession())

    snapshot = await orchestrator.save()

    assert snapshot.error == "You must be logged in to save solutions"
    assert backend.calls == []


@pytest.mark.asyncio
async def test_save_indicator_clears_itself(make_orchestrator, backend):
    orchestrator = make_orchestrator()
    orchestrator.update_code("print('hi')")

    snapshot = await orchestrator.save()

    assert snapshot.save_success is True
    assert snapshot.is_solved is False
    assert snapshot.status == AttemptStatus.IDLE
    assert backend.solutions[("u1", None, "p2")]["code"] == "print('hi')"

    await asyncio.sleep(0.05)
    assert orchestrator.snapshot().save_success is False


@pytest.mark.asyncio
async def test_save_failure_leaves_state_unchanged(make_orchestrator, backend):
    orchestrator = make_orchestrator()
    await orchestrator.run()
    backend.fail("POST", "/api/solutions", TransportException(detail="Database unavailable"))

    snapshot = await orchestrator.save()

    assert snapshot.error == "Database unavailable"
    assert snapshot.status == AttemptStatus.SUCCEEDED
    assert snapshot.is_saving is False
    assert snapshot.save_success is False


@pytest.mark.asyncio
async def test_plain_save_keeps_run_error_visible(make_orchestrator, backend):
    backend.fail("POST", "/api/code/execute", TransportException(detail="Judge is down"))
    orchestrator = make_orchestrator()
    await orchestrator.run()

    snapshot = await orchestrator.save()

    assert snapshot.save_success is True
    assert snapshot.status == AttemptStatus.FAILED
    assert snapshot.error == "Judge is down"


@pytest.mark.asyncio
async def test_successful_save_clears_previous_save_error(make_orchestrator, backend):
    orchestrator = make_orchestrator()
    backend.fail("POST", "/api/solutions", TransportException(detail="Database unavailable"))
    assert (await orchestrator.save()).error == "Database unavailable"

    backend.failures.clear()
    snapshot = await orchestrator.save()

    assert snapshot.error is None
    assert snapshot.save_success is True


@pytest.mark.asyncio
async def test_stale_run_response_is_discarded(make_orchestrator):
    client = GatedExecutionClient()
    orchestrator = make_orchestrator(execution_client=client)

    first = asyncio.create_task(orchestrator.run(code="slow"))
    await asyncio.sleep(0)
    second = asyncio.create_task(orchestrator.run(code="fast"))
    await asyncio.sleep(0)

    assert [request.source_code for request, _ in client.pending] == ["slow", "fast"]
    client.pending[1][1].set_result(ExecutionResult(kind=OutputKind.STDOUT, output="fast"))
    await second
    client.pending[0][1].set_result(ExecutionResult(kind=OutputKind.STDOUT, output="slow"))
    await first

    snapshot = orchestrator.snapshot()
    assert snapshot.sequence == 2
    assert snapshot.output == "fast"
    assert snapshot.status == AttemptStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_submit_does_not_save_when_run_fails(make_orchestrator, backend, bus):
    received = []
    bus.subscribe(received.append)
    backend.fail("POST", "/api/code/execute", TransportException(detail="Judge is down"))
    orchestrator = make_orchestrator()

    snapshot = await orchestrator.submit()

    assert snapshot.status == AttemptStatus.FAILED
    assert backend.solutions == {}
    assert received == []


@pytest.mark.asyncio
async def test_submit_failing_save_ends_failed(make_orchestrator, backend, bus):
    received = []
    bus.subscribe(received.append)
    backend.fail("POST", "/api/solutions", TransportException(detail="Database unavailable"))
    orchestrator = make_orchestrator()

    snapshot = await orchestrator.submit()

    assert snapshot.status == AttemptStatus.FAILED
    assert snapshot.error == "Database unavailable"
    assert snapshot.is_solved is False
    assert received == []


@pytest.mark.asyncio
async def test_verdict_gated_submit_keeps_rejected_problem_unsolved(make_orchestrator, backend):
    backend.execution_result = {"stdout": "41", "status": {"id": 4, "description": "Wrong Answer"}}
    orchestrator = make_orchestrator(settings=Settings(OPTIMISTIC_SOLVE=False))

    snapshot = await orchestrator.submit()

    assert snapshot.status == AttemptStatus.SAVED
    assert snapshot.is_solved is False
    assert backend.solutions[("u1", None, "p2")]["isSolved"] is False


@pytest.mark.asyncio
async def test_verdict_gated_submit_marks_accepted_problem(make_orchestrator, backend):
    backend.execution_result = {"stdout": "42", "status": {"id": 3, "description": "Accepted"}}
    orchestrator = make_orchestrator(settings=Settings(OPTIMISTIC_SOLVE=False))

    snapshot = await orchestrator.submit()

    assert snapshot.is_solved is True


@pytest.mark.asyncio
async def test_submit_blocked_outside_contest_window(make_orchestrator, backend):
    finished = ContestTiming(start_date="2020-01-01", start_time="10:00", duration=60)
    orchestrator = make_orchestrator("c9-p2", contest=finished)

    snapshot = await orchestrator.submit()

    assert snapshot.error == "Contest is not running"
    assert backend.calls == []


@pytest.mark.asyncio
async def test_submit_refuses_timing_of_another_contest(make_orchestrator, backend):
    other_contest = ContestTiming(id="c7", start_date="2020-01-01", start_time="10:00")
    orchestrator = make_orchestrator("c9-p2", contest=other_contest)

    snapshot = await orchestrator.submit()

    assert snapshot.error == "Contest details do not match this problem"
    assert backend.calls == []


@pytest.mark.asyncio
async def test_unknown_contest_timing_does_not_block_submit(make_orchestrator, backend):
    unknown = ContestTiming(start_date="someday", start_time="10:00", duration=60)
    orchestrator = make_orchestrator("c9-p2", contest=unknown)

    snapshot = await orchestrator.submit()

    assert snapshot.error is None
    assert backend.solutions[("u1", "c9", "p2")]["isSolved"] is True


@pytest.mark.asyncio
async def test_solved_problem_stays_solved_after_plain_save(make_orchestrator, backend):
    orchestrator = make_orchestrator()
    await orchestrator.submit()

    orchestrator.update_code("refactored")
    snapshot = await orchestrator.save()

    assert snapshot.is_solved is True
    assert backend.solutions[("u1", None, "p2")]["isSolved"] is True
    assert backend.solutions[("u1", None, "p2")]["code"] == "refactored"


def test_select_language_resets_code(make_orchestrator):
    orchestrator = make_orchestrator()
    orchestrator.update_code("something")

    snapshot = orchestrator.select_language("java")

    assert snapshot.language == Language.JAVA
    assert snapshot.code == Language.JAVA.template
