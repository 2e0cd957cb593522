import base64
from urllib.parse import unquote

import pytest

from mgeo.codec.encoder import RequestEncoder, decode_payload
from mgeo.engine.config import SERVICE_URL_CELL, SERVICE_URL_WIFI
from mgeo.utils.validate import RadioType
from tests.conftest import ONE_CELL, TWO_WIFIS, cell, wifi


@pytest.fixture
def encoder() -> RequestEncoder:
    return RequestEncoder(SERVICE_URL_WIFI, SERVICE_URL_CELL)


def _plain(payload: str) -> str:
    return base64.b64decode(unquote(payload)).decode("utf-8")


def test_wifi_payload_format(encoder):
    req = encoder.encode_wifis(TWO_WIFIS)

    assert req.source == "wifi"
    assert _plain(req.payload) == "11:22:33:44:55:66,-60;AA:BB:CC:DD:EE:FF,-50;"
    assert req.url.startswith(SERVICE_URL_WIFI + "&search=")


def test_cell_payload_format(encoder):
    req = encoder.encode_cells(ONE_CELL)

    assert req.source == "cell"
    assert _plain(req.payload) == "310,260,100,200,-85;"
    assert req.url == SERVICE_URL_CELL + "&search=" + req.payload


def test_payload_is_url_safe(encoder):
    # enough records to make base64 emit '+', '/' or '=' padding
    wifis = [wifi(f"FF:FF:FF:FF:FF:{i:02X}", -90 - i) for i in range(40)]
    req = encoder.encode_wifis(wifis)

    assert not set(req.payload) & set("+/=&?# ")


def test_empty_sets_encode_to_none(encoder):
    assert encoder.encode_wifis([]) is None
    assert encoder.encode_cells(frozenset()) is None


def test_encoding_is_independent_of_iteration_order(encoder):
    forward = encoder.encode_wifis(TWO_WIFIS)
    backward = encoder.encode_wifis(list(reversed(TWO_WIFIS)))

    assert forward == backward


def test_records_split_back_into_fields(encoder):
    cells = [
        cell(250, 1, 7840, 200719106, -71, RadioType.LTE),
        cell(250, 2, 7840, 13541, -99),
        cell(310, 260, 100, 200, -85, RadioType.UMTS),
    ]
    records = decode_payload(encoder.encode_cells(cells).payload)

    assert len(records) == 3
    assert sorted(records) == sorted(
        [str(c.mcc), str(c.mnc), str(c.lac), str(c.cid), str(c.signal)] for c in cells
    )


def test_wifi_records_split_back_into_fields(encoder):
    wifis = [
        wifi("F0:9F:C2:11:22:33", -48),
        wifi("00:1A:2B:3C:4D:5E", -77),
        wifi("9c:5c:8e:aa:bb:cc", -61),
        wifi("00:1A:2B:3C:4D:5F", -90),
    ]
    forward = encoder.encode_wifis(wifis)
    backward = encoder.encode_wifis(list(reversed(wifis)))

    records = decode_payload(forward.payload)
    assert forward.payload == backward.payload
    assert records == [
        ["00:1A:2B:3C:4D:5E", "-77"],
        ["00:1A:2B:3C:4D:5F", "-90"],
        ["9C:5C:8E:AA:BB:CC", "-61"],
        ["F0:9F:C2:11:22:33", "-48"],
    ]


def test_single_wifi_is_still_encoded(encoder):
    req = encoder.encode_wifis([wifi("AA:BB:CC:DD:EE:FF", -50)])

    assert decode_payload(req.payload) == [["AA:BB:CC:DD:EE:FF", "-50"]]
