from .lifecycle import (ContestStatus, classify, filter_by_status,
                        parse_start, sort_by_start)
from .schemas import ContestTiming

__all__ = [
    "ContestStatus",
    "ContestTiming",
    "classify",
    "filter_by_status",
    "parse_start",
    "sort_by_start",
]
