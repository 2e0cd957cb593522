"""
Radio helpers: signal strength to ASU and radio naming.

Not used when building lookup requests (the service takes raw dBm); exposed
for diagnostics on the HTTP snapshot endpoint.
"""

from mgeo.utils.validate import CellObservation, RadioType


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def calculate_asu(cell: CellObservation) -> int:
    """
    Convert a cell's raw dBm signal to Arbitrary Strength Units.

    Ranges follow the Mozilla Location Service cell reference
    (https://ichnaea.readthedocs.io/en/latest/api/geolocate.html):
    GSM 0..31, UMTS -5..91, LTE 0..95, CDMA one of 0/1/2/4/8/16.

    Parameters
    ----------
    cell : CellObservation
        Observed cell tower.

    Returns
    -------
    int
        ASU value within the range of the cell's radio type. Radio types
        outside the known set are treated as GSM.
    """
    signal = cell.signal
    match cell.radio:
        case RadioType.UMTS:
            return _clamp(signal + 116, -5, 91)
        case RadioType.LTE:
            return _clamp(signal + 140, 0, 95)
        case RadioType.CDMA:
            for threshold, asu in ((-75, 16), (-82, 8), (-90, 4), (-95, 2), (-100, 1)):
                if signal >= threshold:
                    return asu
            return 0
        case _:
            # GSM, and the fallback for any other radio
            return _clamp((signal + 113) // 2, 0, 31)


def radio_type_name(radio: RadioType) -> str:
    """
    Lower-case radio name as used by geolocation web APIs.

    UMTS is reported as "wcdma". Anything not LTE, UMTS or CDMA falls back
    to "gsm".
    """
    match radio:
        case RadioType.CDMA:
            return "cdma"
        case RadioType.LTE:
            return "lte"
        case RadioType.UMTS:
            return "wcdma"
        case _:
            # GSM, and the fallback for any other radio
            return "gsm"
