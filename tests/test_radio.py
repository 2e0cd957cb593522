import pytest

from mgeo.utils.radio import calculate_asu, radio_type_name
from mgeo.utils.validate import RadioType
from tests.conftest import cell


@pytest.mark.parametrize(
    "radio, signal, asu",
    [
        (RadioType.GSM, -113, 0),
        (RadioType.GSM, -73, 20),
        (RadioType.GSM, -40, 31),
        (RadioType.GSM, -140, 0),
        (RadioType.UMTS, -121, -5),
        (RadioType.UMTS, -100, 16),
        (RadioType.UMTS, -10, 91),
        (RadioType.LTE, -150, 0),
        (RadioType.LTE, -100, 40),
        (RadioType.LTE, -30, 95),
        (RadioType.CDMA, -70, 16),
        (RadioType.CDMA, -80, 8),
        (RadioType.CDMA, -85, 4),
        (RadioType.CDMA, -93, 2),
        (RadioType.CDMA, -99, 1),
        (RadioType.CDMA, -110, 0),
    ],
)
def test_asu(radio, signal, asu):
    assert calculate_asu(cell(1, 1, 1, 1, signal, radio)) == asu


def test_radio_names():
    assert [radio_type_name(r) for r in RadioType] == ["gsm", "wcdma", "lte", "cdma"]
