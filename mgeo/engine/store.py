# mgeo/engine/store.py
"""
Holder for the most recent Wi-Fi and cell observation sets.
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from typing import Callable, Hashable, Iterable, Optional, TypeVar

from mgeo.engine.types import SignalSnapshot
from mgeo.utils.validate import CellObservation, WifiObservation

T = TypeVar("T")


def _unique(observations: Iterable[T], key: Callable[[T], Hashable]) -> frozenset[T]:
    """Keep one observation per identity; the last one seen wins."""
    by_key = {key(o): o for o in observations}
    return frozenset(by_key.values())


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class SignalStore:
    """
    Pure holder of the current `SignalSnapshot`.

    Each update swaps one half of the snapshot under `lock` and returns the
    new snapshot. Pass the owner's lock so store swaps and the owner's own
    bookkeeping share one mutual-exclusion discipline.
    """

    def __init__(
        self,
        lock: Optional[threading.RLock] = None,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._lock = lock if lock is not None else threading.RLock()
        self._clock = clock
        self._snapshot = SignalSnapshot()

    def snapshot(self) -> SignalSnapshot:
        with self._lock:
            return self._snapshot

    def update_wifis(self, observations: Iterable[WifiObservation]) -> SignalSnapshot:
        wifis = _unique(observations, lambda o: o.identity)
        with self._lock:
            self._snapshot = replace(self._snapshot, wifis=wifis, captured_at=self._clock())
            return self._snapshot

    def update_cells(self, observations: Iterable[CellObservation]) -> SignalSnapshot:
        cells = _unique(observations, lambda o: o.identity)
        with self._lock:
            self._snapshot = replace(self._snapshot, cells=cells, captured_at=self._clock())
            return self._snapshot

    def clear_wifis(self) -> SignalSnapshot:
        return self.update_wifis(())

    def clear_cells(self) -> SignalSnapshot:
        return self.update_cells(())
