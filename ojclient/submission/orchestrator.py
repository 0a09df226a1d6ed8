import asyncio
from typing import Optional, Union

from ojclient.auth.schemas import CurrentUser
from ojclient.auth.session import AuthSession, require_user
from ojclient.config import Config, Settings, logger
from ojclient.contest.lifecycle import ContestStatus
from ojclient.contest.schemas import ContestTiming
from ojclient.errors import PreconditionException, format_error_message
from ojclient.judge.client import ExecutionClient
from ojclient.judge.schema import DEFAULT_LANGUAGE, ExecutionRequest, Language
from ojclient.problem.identity import ProblemIdentity
from ojclient.solution.schema import Solution
from ojclient.solution.service import SolutionSynchronizer
from ojclient.submission.schemas import AttemptSnapshot, AttemptStatus

# Create a module-specific logger
submission_logger = logger.getChild("submission")

RUN_FAILED_MESSAGE = "Failed to execute code. Please try again."
SAVE_FAILED_MESSAGE = "Failed to save solution. Please try again."


class SubmissionOrchestrator:
    """
    Drives run, save and submit for one problem in one editor.

    Every run gets a sequence number. A response that comes back after a
    newer run was started is dropped, so the state always reflects the
    latest request. Errors never escape the public actions; they end up in
    the snapshot's `error` as text that can be shown to the user.
    """

    def __init__(
        self,
        identity: Optional[ProblemIdentity],
        session: AuthSession,
        execution_client: ExecutionClient,
        synchronizer: SolutionSynchronizer,
        contest: Optional[ContestTiming] = None,
        settings: Settings = Config,
    ):
        self.identity = identity
        self.session = session
        self.execution_client = execution_client
        self.synchronizer = synchronizer
        self.contest = contest
        self.settings = settings

        self.language: Language = DEFAULT_LANGUAGE
        self.code: str = self.language.template
        self.status = AttemptStatus.IDLE
        self.result = None
        self.output = ""
        self.error: Optional[str] = None
        self.is_solved = False
        self.is_saving = False
        self.save_success = False

        self._sequence = 0
        self._save_error: Optional[str] = None
        self._save_indicator: Optional[asyncio.TimerHandle] = None

    def snapshot(self) -> AttemptSnapshot:
        return AttemptSnapshot(
            status=self.status,
            sequence=self._sequence,
            code=self.code,
            language=self.language,
            result=self.result,
            output=self.output,
            error=self.error,
            is_solved=self.is_solved,
            is_saving=self.is_saving,
            save_success=self.save_success,
        )

    def _require_identity(self) -> ProblemIdentity:
        if self.identity is None:
            raise PreconditionException(detail="No problem ID provided")
        return self.identity

    def _check_contest_open(self, identity: ProblemIdentity) -> None:
        if self.contest is None or not identity.is_contest_scoped:
            return
        if self.contest.id and self.contest.id != identity.contest_id:
            submission_logger.warning(
                f"Contest {self.contest.id} does not match problem contest {identity.contest_id}"
            )
            raise PreconditionException(detail="Contest details do not match this problem")
        status = self.contest.status()
        # Unknown timing does not block; it is a display state, not an error
        if status in (ContestStatus.UPCOMING, ContestStatus.FINISHED):
            submission_logger.warning(
                f"Submission blocked: contest {identity.contest_id} is {status.value}"
            )
            raise PreconditionException(detail="Contest is not running")

    def _fail_save(self, message: str) -> None:
        self.error = message
        self._save_error = message

    def select_language(self, language: Union[Language, str]) -> AttemptSnapshot:
        self.language = Language(language)
        self.code = self.language.template
        return self.snapshot()

    def update_code(self, code: str) -> None:
        self.code = code

    async def load_saved_solution(self) -> AttemptSnapshot:
        """Restore the user's saved code, or fall back to the language template."""
        try:
            identity = self._require_identity()
            user = require_user(self.session, "You must be logged in to load solutions")
        except PreconditionException as e:
            self.error = e.detail
            return self.snapshot()

        try:
            solution = await self.synchronizer.load(user.id, identity)
        except Exception as e:
            self.error = format_error_message(e, "Failed to load your saved solution.")
            self._save_error = None
            return self.snapshot()

        if solution is None:
            self.code = self.language.template
            self.is_solved = False
        else:
            self.language = solution.language
            self.code = solution.code
            self.is_solved = solution.is_solved
        self.error = None
        return self.snapshot()

    async def _run(self) -> int:
        self._sequence += 1
        sequence = self._sequence
        self.status = AttemptStatus.RUNNING
        self.error = None
        self._save_error = None
        self.result = None
        self.output = "Running code..."

        request = ExecutionRequest(source_code=self.code, language=self.language)
        try:
            result = await self.execution_client.run(request)
        except Exception as e:
            if sequence != self._sequence:
                submission_logger.debug(f"Dropping failure of superseded run #{sequence}")
                return sequence
            submission_logger.error(f"Run #{sequence} failed: {str(e)}")
            self.status = AttemptStatus.FAILED
            self.output = ""
            self.error = format_error_message(e, RUN_FAILED_MESSAGE)
            return sequence

        if sequence != self._sequence:
            submission_logger.debug(
                f"Dropping result of run #{sequence}; run #{self._sequence} is newer"
            )
            return sequence

        self.status = AttemptStatus.SUCCEEDED
        self.result = result
        self.output = result.display_text()
        return sequence

    async def run(
        self, code: Optional[str] = None, language: Union[Language, str, None] = None
    ) -> AttemptSnapshot:
        """
        Execute the current code against the judge.

        A run started while another is in flight supersedes it.
        """
        if code is not None:
            self.code = code
        if language is not None:
            self.language = Language(language)
        try:
            self._require_identity()
        except PreconditionException as e:
            self.error = e.detail
            return self.snapshot()

        await self._run()
        return self.snapshot()

    def _flash_saved(self) -> None:
        self.save_success = True
        if self._save_indicator is not None:
            self._save_indicator.cancel()
        loop = asyncio.get_running_loop()
        self._save_indicator = loop.call_later(
            self.settings.SAVE_INDICATOR_SECONDS, self._clear_saved
        )

    def _clear_saved(self) -> None:
        self.save_success = False
        self._save_indicator = None

    async def _save(
        self, identity: ProblemIdentity, user: CurrentUser, mark_as_solved: bool
    ) -> Optional[Solution]:
        self.is_saving = True
        # Errors left by a run stay visible
        if self.error is not None and self.error == self._save_error:
            self.error = None
        self._save_error = None
        solution = Solution.for_problem(
            user.id, identity, self.code, self.language, is_solved=self.is_solved
        )
        try:
            saved = await self.synchronizer.save(solution, mark_as_solved=mark_as_solved)
        except Exception as e:
            submission_logger.error(f"Saving solution for {identity!r} failed: {str(e)}")
            self._fail_save(format_error_message(e, SAVE_FAILED_MESSAGE))
            return None
        finally:
            self.is_saving = False

        self.is_solved = saved.is_solved
        self._flash_saved()
        if mark_as_solved:
            self.synchronizer.notify_solved(identity, user.id)
        return saved

    async def save(self, mark_as_solved: bool = False) -> AttemptSnapshot:
        """Persist the current code and language; independent of any run."""
        try:
            identity = self._require_identity()
            user = require_user(self.session)
        except PreconditionException as e:
            self._fail_save(e.detail)
            return self.snapshot()

        await self._save(identity, user, mark_as_solved)
        return self.snapshot()

    def _should_mark_solved(self) -> bool:
        if self.settings.OPTIMISTIC_SOLVE:
            return True
        return self.result is not None and self.result.accepted is True

    async def submit(self) -> AttemptSnapshot:
        """
        Run the code, then save it and mark the problem solved.

        With OPTIMISTIC_SOLVE on (the default) any completed run counts as
        solved; otherwise the judge has to report an accepted verdict.
        """
        try:
            identity = self._require_identity()
            user = require_user(self.session, "You must be logged in to submit solutions")
            self._check_contest_open(identity)
        except PreconditionException as e:
            self.error = e.detail
            return self.snapshot()

        submission_logger.info(
            f"Solution submission: problem {identity.raw_id}, user {user.id}, "
            f"language {self.language.value}"
        )
        sequence = await self._run()
        if sequence != self._sequence:
            submission_logger.info(f"Submission #{sequence} superseded by a newer run")
            return self.snapshot()
        if self.status != AttemptStatus.SUCCEEDED:
            return self.snapshot()

        run_output = self.output
        mark_as_solved = self._should_mark_solved()
        self.status = AttemptStatus.SAVING
        saved = await self._save(identity, user, mark_as_solved)
        if sequence != self._sequence:
            # A run started while saving owns the status now
            return self.snapshot()
        if saved is None:
            self.status = AttemptStatus.FAILED
            return self.snapshot()

        self.status = AttemptStatus.SAVED
        if mark_as_solved:
            self.output = f"Solution submitted for problem {identity.raw_id}!\n{run_output}"
            submission_logger.info(f"Problem {identity.raw_id} solved by user {user.id}")
        else:
            self.output = (
                f"Solution for problem {identity.raw_id} was saved but not accepted.\n{run_output}"
            )
            submission_logger.info(
                f"Incorrect solution submitted: problem {identity.raw_id}, user {user.id}"
            )
        return self.snapshot()

    def close(self) -> None:
        if self._save_indicator is not None:
            self._save_indicator.cancel()
            self._save_indicator = None
