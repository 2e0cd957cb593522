"""
Pydantic schemas for radio observations, resolved fixes and the lookup
service's response envelope.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

BSSID_PATTERN = r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$"


class RadioType(str, Enum):
    """
    Closed set of cellular radio technologies.
    """
    GSM = "GSM"
    UMTS = "UMTS"
    LTE = "LTE"
    CDMA = "CDMA"


class WifiObservation(BaseModel):
    """
    One visible access point.
    """
    model_config = ConfigDict(frozen=True)

    bssid: str = Field(pattern=BSSID_PATTERN)
    signal: int

    @field_validator("bssid")
    @classmethod
    def _normalize_bssid(cls, value: str) -> str:
        # BSSIDs compare case-insensitively
        return value.upper()

    @property
    def identity(self) -> str:
        return self.bssid


class CellObservation(BaseModel):
    """
    One visible cell tower. `signal` is the raw dBm value, not ASU.
    """
    model_config = ConfigDict(frozen=True)

    mcc: int
    mnc: int
    lac: int
    cid: int
    signal: int
    radio: RadioType = RadioType.GSM

    @property
    def identity(self) -> tuple[str, int, int, int, int]:
        return (self.radio.value, self.mcc, self.mnc, self.lac, self.cid)


class LocationEstimate(BaseModel):
    """
    A resolved position fix, tagged with the provider that produced it.
    """
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    provider: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    accuracy: float = Field(ge=0)


class LookupData(BaseModel):
    """
    Coordinates carried by a successful lookup response.
    """
    model_config = ConfigDict(strict=True, allow_inf_nan=False)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    accuracy: float = Field(ge=0)


class LookupStatus(BaseModel):
    """
    Status part of the lookup envelope:
    `{"result": <int>, "data"?: {"lat": .., "lon": .., "accuracy": ..}}`

    Only `result` is checked here so that a miss is recognised even when
    `data` is absent or garbage.
    """
    model_config = ConfigDict(strict=True)

    result: int
