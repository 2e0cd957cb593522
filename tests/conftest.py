from __future__ import annotations

import json
from concurrent.futures import Executor, Future

import pytest

from mgeo.engine.arbiter import Arbiter
from mgeo.engine.config import BackendConfig
from mgeo.engine.errors import TransportError
from mgeo.transport.fetcher import FetchResponse
from mgeo.utils.validate import CellObservation, RadioType, WifiObservation


def wifi(bssid: str, signal: int) -> WifiObservation:
    return WifiObservation(bssid=bssid, signal=signal)


def cell(mcc: int, mnc: int, lac: int, cid: int, signal: int, radio: RadioType = RadioType.GSM) -> CellObservation:
    return CellObservation(mcc=mcc, mnc=mnc, lac=lac, cid=cid, signal=signal, radio=radio)


def ok_body(lat: float, lon: float, accuracy: float) -> bytes:
    return json.dumps({"result": 200, "data": {"lat": lat, "lon": lon, "accuracy": accuracy}}).encode()


MISS_BODY = b'{"result":404}'

TWO_WIFIS = [wifi("AA:BB:CC:DD:EE:FF", -50), wifi("11:22:33:44:55:66", -60)]
ONE_CELL = [cell(310, 260, 100, 200, -85)]


class FakeClock:
    """Manually advanced monotonic clock in milliseconds."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeFetcher:
    """
    Answer per source ("wifi" / "cell") with a queued body or exception.
    Records every requested URL.
    """

    def __init__(self, wifi=None, cell=None) -> None:
        self.answers = {"wifi": wifi, "cell": cell}
        self.urls: list[str] = []

    def fetch(self, url: str) -> FetchResponse:
        self.urls.append(url)
        source = "wifi" if "/geolocation/wifi" in url else "cell"
        answer = self.answers[source]
        if answer is None:
            raise TransportError(f"no answer configured for {source}")
        if isinstance(answer, Exception):
            raise answer
        return FetchResponse(body=answer, status=200)

    def sources(self) -> list[str]:
        return ["wifi" if "/geolocation/wifi" in u else "cell" for u in self.urls]


class RecordingReporter:
    def __init__(self) -> None:
        self.estimates = []

    def report(self, estimate) -> None:
        self.estimates.append(estimate)


class ManualExecutor(Executor):
    """Hold submitted work until `run_all()` is called."""

    def __init__(self) -> None:
        self.pending: list = []
        self.shut_down = False

    def submit(self, fn, /, *args, **kwargs):
        if self.shut_down:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            future.set_result(fn(*args, **kwargs))

    def shutdown(self, wait=True, *, cancel_futures=False) -> None:
        self.shut_down = True


class ImmediateExecutor(ManualExecutor):
    """Run submitted work synchronously on the caller's thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = super().submit(fn, *args, **kwargs)
        self.run_all()
        return future


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(100_000.0)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def make_arbiter(clock, reporter):
    """
    Build and start an arbiter around a fetcher, using the shared clock and
    reporter. Returns (arbiter, executor).
    """
    started: list[Arbiter] = []

    def _make(fetcher, cfg: BackendConfig | None = None, executor: Executor | None = None):
        executor = executor or ImmediateExecutor()
        cfg = cfg or BackendConfig.default()
        arbiter = Arbiter(
            fetcher,
            reporter,
            config_source=lambda: cfg,
            clock=clock,
            executor_factory=lambda: executor,
        )
        arbiter.start()
        started.append(arbiter)
        return arbiter, executor

    yield _make
    for arbiter in started:
        arbiter.stop()
