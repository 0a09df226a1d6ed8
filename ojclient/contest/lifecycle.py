from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, List, Optional, TypeVar, Union

from ojclient.config import logger

contest_logger = logger.getChild("contest")

DateInput = Union[str, date, datetime, None]
TimeInput = Union[str, time, None]


class ContestStatus(str, Enum):
    UPCOMING = "Upcoming"
    RUNNING = "Running"
    FINISHED = "Finished"
    UNKNOWN = "Unknown"

    @property
    def accepts_submissions(self) -> bool:
        return self is ContestStatus.RUNNING


def parse_start(start_date: DateInput, start_time: TimeInput) -> Optional[datetime]:
    """
    Combine a contest's start date and start time into an aware datetime.

    `start_date` may already be a full ISO datetime (it contains a "T"), in
    which case `start_time` is ignored. Naive values are read as local time.
    Returns None when no valid instant can be built.
    """
    try:
        if isinstance(start_date, datetime):
            start = start_date
        elif isinstance(start_date, date):
            start = datetime.combine(start_date, _parse_time(start_time))
        elif isinstance(start_date, str) and start_date.strip():
            value = start_date.strip()
            if "T" in value:
                start = _parse_iso(value)
            else:
                start = datetime.combine(date.fromisoformat(value), _parse_time(start_time))
        else:
            return None
        return start.astimezone() if start.tzinfo is None else start
    except (TypeError, ValueError, OverflowError, OSError) as e:
        contest_logger.debug(f"Unparsable contest start {start_date!r} {start_time!r}: {e}")
        return None


def _parse_iso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _parse_time(start_time: TimeInput) -> time:
    if isinstance(start_time, time):
        return start_time
    if not isinstance(start_time, str) or not start_time.strip():
        raise ValueError("missing start time")
    return time.fromisoformat(start_time.strip())


def _duration(duration_minutes) -> Optional[timedelta]:
    if isinstance(duration_minutes, bool):
        return None
    try:
        minutes = float(duration_minutes)
    except (TypeError, ValueError):
        return None
    if minutes != minutes or minutes < 0:  # NaN or negative
        return None
    try:
        return timedelta(minutes=minutes)
    except OverflowError:
        return None


def classify(
    start_date: DateInput,
    start_time: TimeInput,
    duration_minutes,
    now: Optional[datetime] = None,
) -> ContestStatus:
    """
    Work out where a contest is in its lifecycle.

    The result depends on the wall clock, so it is computed fresh on every
    call; `now` is only there to pin the clock in tests.

    Args:
        start_date: ISO date ("2024-01-01"), ISO datetime, or a date/datetime
        start_time: "HH:MM" (or a time) used when start_date has no time part
        duration_minutes: Contest length in minutes
        now: Reference instant, defaults to the current time

    Returns:
        Upcoming before the start, Running from start to end inclusive,
        Finished afterwards, and Unknown if the timing cannot be read
    """
    start = parse_start(start_date, start_time)
    duration = _duration(duration_minutes)
    if start is None or duration is None:
        return ContestStatus.UNKNOWN

    try:
        end = start + duration
    except OverflowError:
        return ContestStatus.UNKNOWN
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    if now < start:
        return ContestStatus.UPCOMING
    if now <= end:
        return ContestStatus.RUNNING
    return ContestStatus.FINISHED


T = TypeVar("T")


def filter_by_status(
    contests: Iterable[T],
    status: Union[ContestStatus, str, None],
    now: Optional[datetime] = None,
) -> List[T]:
    """Keep contests whose current status matches `status` (case-insensitive); empty keeps all."""
    contests = list(contests)
    if not status:
        return contests
    wanted = status.value if isinstance(status, ContestStatus) else str(status)
    return [
        contest
        for contest in contests
        if contest.status(now).value.lower() == wanted.lower()
    ]


def sort_by_start(contests: Iterable[T]) -> List[T]:
    """Order contests by start instant; contests with an unreadable start go last."""

    def key(contest):
        start = parse_start(contest.start_date, contest.start_time)
        return (start is None, start.timestamp() if start else 0.0)

    return sorted(contests, key=key)
