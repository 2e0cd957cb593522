# mgeo/engine/errors.py
"""
Failure taxonomy for lookup attempts.

Every `GeolocationError` raised during a dispatch drives the Wi-Fi -> cell
fallback and is logged; none reaches the location consumer.
"""


class GeolocationError(Exception):
    """Base class for a failed lookup attempt."""


class TransportError(GeolocationError):
    """The lookup service could not be reached or answered with an HTTP error."""


class MalformedResponse(GeolocationError):
    """The response body is not the expected JSON envelope."""


class LookupMiss(GeolocationError):
    """
    The service answered but had no match (`result != 200`).

    This is an expected negative outcome, not a fault.
    """

    def __init__(self, result: int) -> None:
        super().__init__(f"lookup miss (result={result})")
        self.result = result


class ConfigError(Exception):
    """The settings file exists but cannot be used."""
