"""Wall-clock helpers.

All persisted timestamps are epoch milliseconds.
"""

import time
from collections.abc import Callable

__all__ = [
    "Clock",
    "now_ms",
]

Clock = Callable[[], int]


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)
