# mgeo/engine/session.py

import threading
from typing import Optional

from mgeo.engine.arbiter import Arbiter
from mgeo.utils.log import get_logger

logger = get_logger(__name__)


class SessionRegistry:
    """
    Tracks the live arbiter so configuration reloads can reach it from
    outside (e.g. a settings endpoint).

    The host registers an arbiter after starting it and unregisters it on
    shutdown. Only one arbiter is active at a time; registering another
    replaces it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Optional[Arbiter] = None

    def register(self, arbiter: Arbiter) -> None:
        with self._lock:
            if self._active is not None and self._active is not arbiter:
                logger.info("Replacing active session")
            self._active = arbiter
        logger.debug("Session registered")

    def unregister(self, arbiter: Arbiter) -> None:
        """Drop `arbiter` if it is the active session; otherwise do nothing."""
        with self._lock:
            if self._active is not arbiter:
                return
            self._active = None
        logger.debug("Session unregistered")

    @property
    def active(self) -> Optional[Arbiter]:
        with self._lock:
            return self._active

    def reload_configuration(self) -> bool:
        """
        Reload settings on the active session. Returns False when there is
        no active session.
        """
        arbiter = self.active
        if arbiter is None:
            logger.debug("No session found active.")
            return False
        arbiter.reload_configuration()
        return True
