from .events import SolvedEvent, SolvedEventBus, Subscription, solved_events
from .schema import Solution, SolutionKey
from .service import SolutionSynchronizer
from .tracker import SolvedStateTracker

__all__ = [
    "Solution",
    "SolutionKey",
    "SolutionSynchronizer",
    "SolvedEvent",
    "SolvedEventBus",
    "SolvedStateTracker",
    "Subscription",
    "solved_events",
]
