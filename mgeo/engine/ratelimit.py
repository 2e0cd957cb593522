# mgeo/engine/ratelimit.py

from typing import Optional


def allows(now: float, last_dispatch: Optional[float], min_interval: float) -> bool:
    """
    Return True when `now` is at least `min_interval` past `last_dispatch`.

    All values share one unit (milliseconds in this package). A limiter that
    has never dispatched always allows.
    """
    if last_dispatch is None:
        return True
    return now >= last_dispatch + min_interval


class RateLimiter:
    """
    Remembers when the last lookup attempt finished.

    Not thread-safe on its own; the arbiter calls it under its lock.
    """

    def __init__(self, min_interval_ms: float) -> None:
        self.min_interval_ms = min_interval_ms
        self.last_dispatch: Optional[float] = None

    def allow(self, now: float) -> bool:
        return allows(now, self.last_dispatch, self.min_interval_ms)

    def stamp(self, now: float) -> None:
        self.last_dispatch = now
