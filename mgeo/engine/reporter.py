# mgeo/engine/reporter.py
"""
Sinks that receive resolved location estimates.
"""

import threading
from typing import Optional, Protocol

from mgeo.utils.log import get_logger
from mgeo.utils.validate import LocationEstimate

logger = get_logger(__name__)


class Reporter(Protocol):
    """Consumer-facing sink. Delivery is fire-and-forget."""

    def report(self, estimate: LocationEstimate) -> None: ...


class LoggingReporter:
    """
    Log every estimate at INFO.
    """

    def report(self, estimate: LocationEstimate) -> None:
        logger.info(
            "reporting: provider=%s lat=%.6f lon=%.6f accuracy=%.1f",
            estimate.provider, estimate.lat, estimate.lon, estimate.accuracy,
        )


class LatestEstimateReporter(LoggingReporter):
    """
    Keep the most recent estimate and a report counter for the HTTP host.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Optional[LocationEstimate] = None
        self._count = 0

    def report(self, estimate: LocationEstimate) -> None:
        super().report(estimate)
        with self._lock:
            self._latest = estimate
            self._count += 1

    @property
    def latest(self) -> Optional[LocationEstimate]:
        with self._lock:
            return self._latest

    @property
    def count(self) -> int:
        with self._lock:
            return self._count
