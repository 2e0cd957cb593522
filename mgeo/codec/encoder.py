"""
Lookup request encoder: serialize observation sets into the service's
`search` query parameter.

Wi-Fi records are `<bssid>,<signal>;`, cell records are
`<mcc>,<mnc>,<lac>,<cid>,<signal>;`. The concatenation is base64-encoded
and percent-quoted before being appended to the source endpoint.
"""

import base64
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import quote, unquote

from mgeo.utils.validate import CellObservation, WifiObservation

SEARCH_PARAM = "&search="
RECORD_SEP = ";"
FIELD_SEP = ","


@dataclass(frozen=True)
class LookupRequest:
    """
    One GET request against a lookup endpoint.

    Parameters
    ----------
    source : str
        "wifi" or "cell".
    endpoint : str
        Service URL, already carrying its own query string.
    payload : str
        Encoded `search` value (base64, URL-quoted).
    """
    source: str
    endpoint: str
    payload: str

    @property
    def url(self) -> str:
        return self.endpoint + SEARCH_PARAM + self.payload


def _encode_payload(records: list[str]) -> str:
    raw = "".join(records).encode("utf-8")
    return quote(base64.b64encode(raw).decode("ascii"), safe="")


def decode_payload(payload: str) -> list[list[str]]:
    """
    Inverse of the payload encoding: return the list of records, each split
    into its fields. Used for diagnostics.
    """
    text = base64.b64decode(unquote(payload)).decode("utf-8")
    return [record.split(FIELD_SEP) for record in text.split(RECORD_SEP) if record]


class RequestEncoder:
    """
    Build per-source lookup requests.

    Records are emitted in sorted identity order so equal inputs always
    produce equal URLs. No eligibility threshold is applied here.
    """

    def __init__(self, wifi_url: str, cell_url: str) -> None:
        self.wifi_url = wifi_url
        self.cell_url = cell_url

    def encode_wifis(self, observations: Iterable[WifiObservation]) -> Optional[LookupRequest]:
        ordered = sorted(observations, key=lambda o: o.identity)
        if not ordered:
            return None
        records = [f"{o.bssid}{FIELD_SEP}{o.signal}{RECORD_SEP}" for o in ordered]
        return LookupRequest("wifi", self.wifi_url, _encode_payload(records))

    def encode_cells(self, observations: Iterable[CellObservation]) -> Optional[LookupRequest]:
        ordered = sorted(observations, key=lambda o: o.identity)
        if not ordered:
            return None
        records = [
            FIELD_SEP.join(str(v) for v in (o.mcc, o.mnc, o.lac, o.cid, o.signal)) + RECORD_SEP
            for o in ordered
        ]
        return LookupRequest("cell", self.cell_url, _encode_payload(records))
