import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict

from ojclient.config import logger
from ojclient.problem.identity import ProblemIdentity

events_logger = logger.getChild("solution.events")


class SolvedEvent(BaseModel):
    """Payload broadcast after a problem has been saved as solved."""

    model_config = ConfigDict(frozen=True)

    identity: ProblemIdentity
    user_id: Optional[str] = None


Listener = Callable[[SolvedEvent], Any]


class Subscription:
    """
    Handle returned by `SolvedEventBus.subscribe`.
    Close it (or leave its `with` block) when the subscriber goes away.
    """

    def __init__(self, bus: "SolvedEventBus", listener: Listener, topic: Optional[str]):
        self.bus = bus
        self.listener = listener
        self.topic = topic
        self.active = True

    def close(self) -> None:
        self.bus.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SolvedEventBus:
    """
    In-process publish/subscribe channel for "problem solved" signals.

    Listeners subscribe to one problem (by identity or raw id) or to all
    problems. Delivery is best-effort: a listener that fails is logged and
    the remaining listeners still get the event. Coroutine listeners are
    scheduled on the running event loop and not awaited.
    """

    def __init__(self):
        # Maps raw problem id (None for "every problem") to its subscriptions
        self.subscriptions: Dict[Optional[str], List[Subscription]] = {}
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(
        self,
        listener: Listener,
        problem: Union[ProblemIdentity, str, None] = None,
    ) -> Subscription:
        topic = problem.raw_id if isinstance(problem, ProblemIdentity) else problem
        subscription = Subscription(self, listener, topic)
        self.subscriptions.setdefault(topic, []).append(subscription)
        events_logger.debug(
            f"Listener subscribed to {topic or 'all problems'}. "
            f"Total listeners: {self.listener_count()}"
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        listeners = self.subscriptions.get(subscription.topic)
        if listeners and subscription in listeners:
            listeners.remove(subscription)
            if not listeners:
                del self.subscriptions[subscription.topic]
            events_logger.debug(f"Listener unsubscribed from {subscription.topic or 'all problems'}")

    def listener_count(self) -> int:
        return sum(len(listeners) for listeners in self.subscriptions.values())

    def publish(self, event: SolvedEvent) -> int:
        """
        Deliver `event` to every matching listener.

        Returns:
            The number of listeners the event was handed to
        """
        topic = event.identity.raw_id
        targets = list(self.subscriptions.get(topic, [])) + list(
            self.subscriptions.get(None, [])
        )
        if not targets:
            events_logger.info(f"No listeners for solved event on {topic}")
            return 0

        delivered = 0
        for subscription in targets:
            if not subscription.active:
                continue
            try:
                outcome = subscription.listener(event)
                if inspect.isawaitable(outcome):
                    self._schedule(outcome, topic)
                delivered += 1
            except Exception as e:
                events_logger.error(f"Error delivering solved event for {topic}: {str(e)}")

        events_logger.info(f"Solved event for {topic} sent to {delivered} listener(s)")
        return delivered

    def _schedule(self, awaitable, topic: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)

        def done(finished: asyncio.Future) -> None:
            self._tasks.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                events_logger.error(
                    f"Solved listener for {topic} failed: {str(finished.exception())}"
                )

        task.add_done_callback(done)

    async def drain(self) -> None:
        """Wait for coroutine listeners that are still running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# Default channel shared by every view in this client instance
solved_events = SolvedEventBus()
