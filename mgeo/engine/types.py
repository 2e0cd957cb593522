# mgeo/engine/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from mgeo.utils.validate import CellObservation, WifiObservation

MIN_WIFIS = 2


@dataclass(frozen=True)
class SignalSnapshot:
    """
    Latest known radio environment.

    Parameters
    ----------
    wifis : FrozenSet[WifiObservation]
        Visible access points, one per BSSID.
    cells : FrozenSet[CellObservation]
        Visible cell towers, one per cell identity.
    captured_at : float, optional
        Monotonic time (ms) of the last update, None while empty.
    """
    wifis: FrozenSet[WifiObservation] = field(default_factory=frozenset)
    cells: FrozenSet[CellObservation] = field(default_factory=frozenset)
    captured_at: Optional[float] = None

    def is_eligible(self) -> bool:
        """
        True when a lookup may be dispatched: any cell, or at least two
        access points. A single access point is too coarse to resolve.
        """
        return len(self.cells) > 0 or len(self.wifis) >= MIN_WIFIS
