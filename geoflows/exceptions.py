"""Exception hierarchy for the configuration and CLI surfaces."""


class GeoflowsError(Exception):
    """Base exception for all geoflows errors."""


class ConfigError(GeoflowsError):
    """A settings or pairs file could not be read or failed validation."""

    def __init__(self, path: str, detail: str):
        self.path = path
        super().__init__(f"Invalid configuration at {path}: {detail}")
