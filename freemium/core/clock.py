"""Wall-clock helpers.

Quota windows and premium expiry must survive process restarts, so all
comparisons use wall-clock epoch milliseconds rather than monotonic ticks.
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]

MS_PER_SECOND = 1000
MS_PER_DAY = 24 * 60 * 60 * MS_PER_SECOND
SECONDS_PER_DAY = 24 * 60 * 60


def now_ms() -> int:
    """Current UNIX time in whole milliseconds."""
    return int(time.time() * MS_PER_SECOND)
