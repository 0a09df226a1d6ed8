from .orchestrator import SubmissionOrchestrator
from .schemas import AttemptSnapshot, AttemptStatus

__all__ = ["AttemptSnapshot", "AttemptStatus", "SubmissionOrchestrator"]
