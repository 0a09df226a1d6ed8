from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ojclient.judge.schema import ExecutionResult, Language


class AttemptStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SAVING = "saving"
    SAVED = "saved"


class AttemptSnapshot(BaseModel):
    """What the editing surface needs to render after an action."""

    status: AttemptStatus
    sequence: int
    code: str
    language: Language
    result: Optional[ExecutionResult] = None
    output: str = ""
    error: Optional[str] = None
    is_solved: bool = False
    is_saving: bool = False
    save_success: bool = False
