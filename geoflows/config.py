"""Settings loading from the TOML configuration file."""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from geoflows.exceptions import ConfigError

DEFAULT_SETTINGS_PATH = Path("config/settings.toml")
SETTINGS_ENV_VAR = "GEOFLOWS_SETTINGS"


class FetchSettings(BaseModel):
    """Transport options for provider lookups."""

    timeout_seconds: Optional[float] = Field(default=None, gt=0)
    max_connections: int = Field(default=100, gt=0)


class LoggingSettings(BaseModel):
    config_path: Path = Path("config/logging.yaml")


class Settings(BaseModel):
    fetch: FetchSettings = FetchSettings()
    logging: LoggingSettings = LoggingSettings()


def settings_path_from_env() -> Path:
    """Return the settings path, honouring ``GEOFLOWS_SETTINGS`` when set."""
    override = os.environ.get(SETTINGS_ENV_VAR)
    return Path(override) if override else DEFAULT_SETTINGS_PATH


def load_settings(path: Path) -> Settings:
    """Read the TOML configuration file; a missing file yields the defaults."""
    if not path.exists():
        return Settings()
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
        return Settings.model_validate(data)
    except (tomllib.TOMLDecodeError, ValidationError) as exc:
        raise ConfigError(str(path), str(exc)) from exc
