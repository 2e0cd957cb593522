import pytest

from mgeo.codec.parser import parse_response
from mgeo.engine.errors import LookupMiss, MalformedResponse
from mgeo.utils.validate import LocationEstimate

PROVIDER = "mylnikov-geo"


def test_success_yields_estimate():
    body = b'{"result":200,"data":{"lat":1.0,"lon":2.0,"accuracy":10.0}}'

    assert parse_response(body, PROVIDER) == LocationEstimate(
        provider=PROVIDER, lat=1.0, lon=2.0, accuracy=10.0
    )


def test_integer_coordinates_are_accepted():
    body = b'{"result":200,"data":{"lat":55,"lon":37,"accuracy":120,"range":"x"}}'

    est = parse_response(body, PROVIDER)

    assert (est.lat, est.lon, est.accuracy) == (55.0, 37.0, 120.0)


@pytest.mark.parametrize("body", [b'{"result":404}', b'{"result":404,"data":"nope"}', b'{"result":500,"data":{}}'])
def test_non_200_result_is_a_miss(body):
    with pytest.raises(LookupMiss) as exc_info:
        parse_response(body, PROVIDER)
    assert exc_info.value.result != 200


@pytest.mark.parametrize(
    "body",
    [
        b"",
        b"not json",
        b"\xff\xfe",
        b"[1, 2]",
        b"{}",
        b'{"result":"200"}',
        b'{"result":true}',
        b'{"result":200}',
        b'{"result":200,"data":null}',
        b'{"result":200,"data":{"lat":1.0,"lon":2.0}}',
        b'{"result":200,"data":{"lat":"1.0","lon":2.0,"accuracy":3.0}}',
        b'{"result":200,"data":{"lat":1.0,"lon":2.0,"accuracy":-1.0}}',
        b'{"result":200,"data":{"lat":NaN,"lon":2.0,"accuracy":1.0}}',
        b'{"result":200,"data":{"lat":1.0,"lon":Infinity,"accuracy":1.0}}',
        b'{"result":200,"data":{"lat":1.0,"lon":2.0,"accuracy":Infinity}}',
        b'{"result":200,"data":{"lat":91.0,"lon":2.0,"accuracy":1.0}}',
        b'{"result":200,"data":{"lat":1.0,"lon":-181.0,"accuracy":1.0}}',
    ],
)
def test_malformed_bodies(body):
    with pytest.raises(MalformedResponse):
        parse_response(body, PROVIDER)
