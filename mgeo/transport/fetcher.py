"""
HTTP fetch capability used by the arbiter.
"""

from dataclasses import dataclass
from typing import Callable, Protocol, Union

import requests

from mgeo.engine.errors import TransportError
from mgeo.utils.log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FetchResponse:
    body: bytes
    status: int


class Fetcher(Protocol):
    """
    Issue one GET and return the body, or raise `TransportError`.
    """

    def fetch(self, url: str) -> FetchResponse: ...


class HttpFetcher:
    """
    `requests`-backed fetcher with a per-request timeout.

    `timeout_s` is either a number or a callable read before every request,
    so a host can tie it to the live configuration. HTTP error statuses are
    turned into `TransportError` after the error body has been logged.
    """

    def __init__(
        self,
        timeout_s: Union[float, Callable[[], float]] = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def current_timeout(self) -> float:
        return self.timeout_s() if callable(self.timeout_s) else self.timeout_s

    def fetch(self, url: str) -> FetchResponse:
        try:
            r = self.session.get(url, timeout=self.current_timeout())
        except requests.RequestException as exc:
            raise TransportError(f"GET failed: {exc}") from exc
        except ValueError as exc:
            # bad timeout or URL rejected by urllib3 before any I/O
            raise TransportError(f"GET rejected: {exc}") from exc
        if r.status_code >= 400:
            logger.warning("Error: HTTP %d: %s", r.status_code, r.text[:500])
            raise TransportError(f"HTTP {r.status_code}")
        return FetchResponse(body=r.content, status=r.status_code)

    def close(self) -> None:
        self.session.close()
