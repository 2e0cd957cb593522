"""
Lookup response parser.

Turns the service's JSON envelope into a `LocationEstimate` or raises
`MalformedResponse` / `LookupMiss`.
"""

import json

from pydantic import ValidationError

from mgeo.engine.errors import LookupMiss, MalformedResponse
from mgeo.utils.validate import LocationEstimate, LookupData, LookupStatus

RESULT_OK = 200


def parse_response(body: bytes, provider: str) -> LocationEstimate:
    """
    Parse a raw response body.

    Parameters
    ----------
    body : bytes
        Raw HTTP response body.
    provider : str
        Provider label to stamp on the estimate.

    Returns
    -------
    LocationEstimate
        The resolved fix.

    Raises
    ------
    MalformedResponse
        Body is not JSON, not an object, or lacks a well-typed `result`, or
        a successful result lacks numeric `lat`/`lon`/non-negative `accuracy`.
    LookupMiss
        `result` is anything other than 200.
    """
    try:
        doc = json.loads(body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedResponse(f"response is not JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise MalformedResponse(f"response is not a JSON object: {type(doc).__name__}")

    try:
        status = LookupStatus.model_validate(doc)
    except ValidationError as exc:
        raise MalformedResponse(f"bad result field: {exc.errors()}") from exc
    if status.result != RESULT_OK:
        raise LookupMiss(status.result)

    if "data" not in doc:
        raise MalformedResponse("successful response without data")
    try:
        data = LookupData.model_validate(doc["data"])
    except ValidationError as exc:
        raise MalformedResponse(f"bad data field: {exc.errors()}") from exc
    return LocationEstimate(provider=provider, lat=data.lat, lon=data.lon, accuracy=data.accuracy)
