"""Descriptors for the external IP geolocation services, in fallback order."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from pydantic import TypeAdapter

from geoflows.geo.models import Coordinates

_COORDINATES = TypeAdapter(Coordinates)


@dataclass(frozen=True)
class Provider:
    """One lookup endpoint and the fields its JSON response carries."""

    name: str
    url_template: str
    lon_field: str
    lat_field: str
    status_field: Optional[str] = None
    success_status: Optional[str] = None

    def url_for(self, ip: str) -> str:
        return self.url_template.format(ip=ip)

    def extract(self, payload: object) -> Optional[Coordinates]:
        """Return coordinates from a decoded response, or None when unusable.

        Zero is treated like a missing value, so a coordinate on the equator or
        the prime meridian is rejected and the next provider gets its turn.
        Raises ``ValueError`` when the fields hold something that is not a number.
        """
        if not isinstance(payload, Mapping):
            return None
        if self.status_field is not None and payload.get(self.status_field) != self.success_status:
            return None
        lon = payload.get(self.lon_field)
        lat = payload.get(self.lat_field)
        if not (lon and lat):
            return None
        return _COORDINATES.validate_python((lon, lat))


PROVIDERS: Tuple[Provider, ...] = (
    Provider(
        name="ip-api.com",
        url_template="http://ip-api.com/json/{ip}?fields=status,message,lon,lat",
        lon_field="lon",
        lat_field="lat",
        status_field="status",
        success_status="success",
    ),
    Provider(
        name="ipapi.co",
        url_template="https://ipapi.co/{ip}/json/",
        lon_field="longitude",
        lat_field="latitude",
    ),
    Provider(
        name="ip-api.io",
        url_template="https://ip-api.io/json/{ip}",
        lon_field="longitude",
        lat_field="latitude",
    ),
)
