from typing import Any, Dict, Optional

from ojclient.api.client import ApiClient
from ojclient.config import logger
from ojclient.errors import ValidationException
from ojclient.judge.schema import ExecutionRequest, ExecutionResult, OutputKind

judge_logger = logger.getChild("judge")

# Judge0-style status ids: 3 is "Accepted", 1 and 2 are still in the queue
ACCEPTED_STATUS_ID = 3
PENDING_STATUS_IDS = {1, 2}


def normalize_result(raw: Dict[str, Any]) -> ExecutionResult:
    """
    Collapse the judge's multi-field reply into one output stream.

    stdout wins if it has any text, then stderr, then compiler diagnostics;
    when all three are empty the run produced no output. Empty strings count
    as absent.
    """
    if not isinstance(raw, dict):
        raise ValidationException(detail="Malformed execution result")

    accepted = _verdict(raw)
    compile_output = raw.get("compile_output") or raw.get("compileOutput")
    for kind, value in (
        (OutputKind.STDOUT, raw.get("stdout")),
        (OutputKind.STDERR, raw.get("stderr")),
        (OutputKind.COMPILE_OUTPUT, compile_output),
    ):
        if value:
            return ExecutionResult(kind=kind, output=str(value), accepted=accepted)
    return ExecutionResult(kind=OutputKind.NONE, accepted=accepted)


def _verdict(raw: Dict[str, Any]) -> Optional[bool]:
    if isinstance(raw.get("accepted"), bool):
        return raw["accepted"]
    status = raw.get("status")
    if isinstance(status, dict):
        status_id = status.get("id")
        if status_id is None or status_id in PENDING_STATUS_IDS:
            return None
        return status_id == ACCEPTED_STATUS_ID
    if isinstance(status, str) and status:
        return status.strip().lower() == "accepted"
    return None


class ExecutionClient:
    """
    Sends source code to the judge and returns the normalized result.

    The client keeps no state between calls, so concurrent runs never see
    each other. Failures are raised once; there are no retries.
    """

    def __init__(self, api: ApiClient, timeout: Optional[float] = None):
        self.api = api
        self.timeout = timeout

    async def run(self, request: ExecutionRequest) -> ExecutionResult:
        judge_logger.info(
            f"Running {len(request.source_code)} chars of {request.language.value}"
        )
        payload = request.model_dump(mode="json", by_alias=True)
        kwargs = {"timeout": self.timeout} if self.timeout else {}
        data = await self.api.post("/api/code/execute", payload, **kwargs)

        raw = data.get("result", data) if isinstance(data, dict) else data
        result = normalize_result(raw)
        judge_logger.info(f"Run finished with {result.kind.value} output")
        return result
