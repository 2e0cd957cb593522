"""
Request arbiter: decides when accumulated observations are worth a lookup
and runs at most one lookup at a time.

A lookup is admitted when the arbiter is running, no other lookup is in
flight, the rate limiter allows it and the snapshot is eligible (any cell,
or at least two access points). Admitted lookups run on a single worker
thread, trying Wi-Fi first and falling back to cells. Triggers that arrive
while a lookup is in flight are dropped.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, FrozenSet, Iterable, Optional

from mgeo.codec.encoder import LookupRequest, RequestEncoder
from mgeo.codec.parser import parse_response
from mgeo.engine.config import BackendConfig
from mgeo.engine.errors import GeolocationError
from mgeo.engine.ratelimit import RateLimiter
from mgeo.engine.reporter import Reporter
from mgeo.engine.store import SignalStore, monotonic_ms
from mgeo.engine.types import MIN_WIFIS, SignalSnapshot
from mgeo.transport.fetcher import Fetcher
from mgeo.utils.log import get_logger
from mgeo.utils.validate import CellObservation, LocationEstimate, WifiObservation

logger = get_logger(__name__)


def _single_worker() -> Executor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="mgeo-dispatch")


class Arbiter:
    """
    Stateful orchestrator between the signal store and the lookup service.

    Parameters
    ----------
    fetcher
        Transport used for lookups.
    reporter
        Sink for resolved estimates.
    config_source
        Callable returning the current `BackendConfig`; called on `start()`
        and on every `reload_configuration()`.
    clock
        Monotonic clock in milliseconds.
    executor_factory
        Builds the worker executor on `start()`.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        reporter: Reporter,
        config_source: Callable[[], BackendConfig] = BackendConfig.default,
        clock: Callable[[], float] = monotonic_ms,
        executor_factory: Callable[[], Executor] = _single_worker,
    ) -> None:
        self._fetcher = fetcher
        self._reporter = reporter
        self._config_source = config_source
        self._clock = clock
        self._executor_factory = executor_factory

        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._store = SignalStore(self._lock, clock)
        self._executor: Optional[Executor] = None
        self._running = False
        self._in_flight = False
        self._limiter: Optional[RateLimiter] = None

        self._apply_config(config_source())

    # -- lifecycle ------------------------------------------------------------

    def start(self) -> None:
        """Reload settings and start the dispatch worker."""
        self.reload_configuration()
        with self._lock:
            if self._running:
                return
            self._executor = self._executor_factory()
            self._running = True
        logger.debug("Arbiter started")

    def stop(self) -> None:
        """
        Stop accepting triggers and shut the worker down. A lookup already
        in flight runs to completion in the background.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
        logger.debug("Arbiter stopped")

    def reload_configuration(self) -> None:
        """
        Pull a fresh config from the config source. Takes effect on the next
        trigger; a lookup already in flight keeps its old settings.
        """
        self._apply_config(self._config_source())

    def _apply_config(self, cfg: BackendConfig) -> None:
        with self._lock:
            self._config = cfg
            self._encoder = RequestEncoder(cfg.wifi_url, cfg.cell_url)
            limiter = RateLimiter(cfg.min_interval_ms)
            if self._limiter is not None:
                limiter.last_dispatch = self._limiter.last_dispatch
            self._limiter = limiter
            if not cfg.use_wifis:
                self._store.clear_wifis()
            if not cfg.use_cells:
                self._store.clear_cells()
        logger.debug(
            "Config applied: use_wifis=%s use_cells=%s min_interval_ms=%s",
            cfg.use_wifis, cfg.use_cells, cfg.min_interval_ms,
        )

    # -- state ----------------------------------------------------------------

    @property
    def config(self) -> BackendConfig:
        with self._lock:
            return self._config

    @property
    def store(self) -> SignalStore:
        return self._store

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    @property
    def last_dispatch(self) -> Optional[float]:
        with self._lock:
            return self._limiter.last_dispatch

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no lookup is in flight. Returns False on timeout.
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._in_flight, timeout)

    # -- listener entry points ------------------------------------------------

    def on_wifis_changed(self, observations: Iterable[WifiObservation]) -> bool:
        """
        Replace the Wi-Fi half of the snapshot and trigger a lookup.
        Ignored while Wi-Fi is disabled.
        """
        with self._lock:
            if not self._config.use_wifis:
                logger.debug("Wi-Fi disabled, ignoring update")
                return False
            self._store.update_wifis(observations)
            return self.trigger()

    def on_cells_changed(self, observations: Iterable[CellObservation]) -> bool:
        """
        Replace the cell half of the snapshot and trigger a lookup.
        Ignored while cells are disabled.
        """
        with self._lock:
            if not self._config.use_cells:
                logger.debug("Cells disabled, ignoring update")
                return False
            snapshot = self._store.update_cells(observations)
            logger.debug("Cells: %d", len(snapshot.cells))
            return self.trigger()

    def trigger(self) -> bool:
        """
        Admit a lookup for the current snapshot if allowed.

        Returns True when a lookup was handed to the worker. A refused
        trigger leaves the rate limiter untouched.
        """
        with self._lock:
            if not self._running or self._executor is None:
                return False
            if self._in_flight:
                logger.debug("Lookup in flight, dropping trigger")
                return False
            if not self._limiter.allow(self._clock()):
                return False
            snapshot = self._enabled_view(self._store.snapshot())
            if not snapshot.is_eligible():
                return False

            self._in_flight = True
            try:
                self._executor.submit(self._dispatch, snapshot, self._config, self._encoder)
            except RuntimeError:
                self._in_flight = False
                self._idle.notify_all()
                logger.warning("Dispatch worker is shut down, dropping trigger")
                return False
            return True

    def _enabled_view(self, snapshot: SignalSnapshot) -> SignalSnapshot:
        return SignalSnapshot(
            wifis=snapshot.wifis if self._config.use_wifis else frozenset(),
            cells=snapshot.cells if self._config.use_cells else frozenset(),
            captured_at=snapshot.captured_at,
        )

    # -- worker ---------------------------------------------------------------

    def _dispatch(self, snapshot: SignalSnapshot, cfg: BackendConfig, encoder: RequestEncoder) -> None:
        try:
            estimate = self._resolve(snapshot.wifis, snapshot.cells, cfg, encoder)
            if estimate is not None:
                self._reporter.report(estimate)
        except Exception:
            logger.exception("Lookup dispatch failed")
        finally:
            with self._lock:
                self._in_flight = False
                self._limiter.stamp(self._clock())
                self._idle.notify_all()

    def _resolve(
        self,
        wifis: FrozenSet[WifiObservation],
        cells: FrozenSet[CellObservation],
        cfg: BackendConfig,
        encoder: RequestEncoder,
    ) -> Optional[LocationEstimate]:
        lookups: list[LookupRequest] = []
        if len(wifis) >= MIN_WIFIS:
            lookups.append(encoder.encode_wifis(wifis))
        if cells:
            lookups.append(encoder.encode_cells(cells))

        last_error: Optional[GeolocationError] = None
        for request in lookups:
            try:
                return self._lookup(request, cfg.provider)
            except GeolocationError as exc:
                logger.debug("%s lookup failed: %s", request.source, exc)
                last_error = exc
        if last_error is not None:
            logger.warning("No location resolved: %s", last_error)
        return None

    def _lookup(self, request: LookupRequest, provider: str) -> LocationEstimate:
        response = self._fetcher.fetch(request.url)
        logger.debug("response: %r", response.body)
        return parse_response(response.body, provider)

