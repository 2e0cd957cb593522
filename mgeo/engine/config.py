# mgeo/engine/config.py

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mgeo.engine.errors import ConfigError
from mgeo.utils.log import get_logger

logger = get_logger(__name__)

PROVIDER = "mylnikov-geo"
SERVICE_URL_WIFI = "https://api.mylnikov.org/geolocation/wifi?v=1.1"
SERVICE_URL_CELL = "https://api.mylnikov.org/geolocation/cell?v=1.1"


@dataclass(frozen=True)
class BackendConfig:
    """
    Runtime settings for the lookup arbiter.

    Attributes
    ----------
    use_wifis
        Feed Wi-Fi observations into lookups.
    use_cells
        Feed cell observations into lookups.
    min_interval_ms
        Minimum time between the end of one lookup and the start of the next.
    timeout_s
        Per-request HTTP timeout; bounds a hung transport.
    provider
        Provider label attached to every reported estimate.
    wifi_url
        Wi-Fi lookup endpoint (the `search` parameter is appended).
    cell_url
        Cell lookup endpoint (the `search` parameter is appended).
    """
    use_wifis:       bool  = True
    use_cells:       bool  = True
    min_interval_ms: int   = 5000
    timeout_s:       float = 10.0
    provider:        str   = PROVIDER
    wifi_url:        str   = SERVICE_URL_WIFI
    cell_url:        str   = SERVICE_URL_CELL

    @classmethod
    def default(cls):
        """Preset with both sources enabled and a 5 s interval."""
        return cls()

    @classmethod
    def wifi_only(cls):
        """Preset that never issues cell lookups."""
        return cls(use_cells=False)


class Settings(BaseModel):
    """
    Schema of the JSON settings file. Keys mirror `BackendConfig`.
    """
    model_config = ConfigDict(extra="forbid", strict=True)

    use_wifis:       bool  = True
    use_cells:       bool  = True
    min_interval_ms: int   = Field(default=5000, ge=0)
    timeout_s:       float = Field(default=10.0, gt=0, allow_inf_nan=False)
    provider:        str   = Field(default=PROVIDER, min_length=1)
    wifi_url:        str   = Field(default=SERVICE_URL_WIFI, pattern=r"^https?://")
    cell_url:        str   = Field(default=SERVICE_URL_CELL, pattern=r"^https?://")


class SettingsFile:
    """
    JSON settings file acting as the configuration source.

    Keys mirror the `BackendConfig` attributes, e.g.
    `{"use_wifis": true, "use_cells": false}`. Unknown keys are rejected.
    A missing file yields the defaults. `load()` re-reads the file every time
    so it can be handed to the arbiter as a reload source.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> BackendConfig:
        if not self.path.exists():
            logger.debug("Settings file %s not found, using defaults", self.path)
            return BackendConfig.default()
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot read settings file {self.path}: {exc}") from exc
        try:
            settings = Settings.model_validate_json(text)
        except ValidationError as exc:
            raise ConfigError(f"invalid settings file {self.path}: {exc}") from exc
        logger.info("Loaded settings from %s", self.path)
        return BackendConfig(**settings.model_dump())
