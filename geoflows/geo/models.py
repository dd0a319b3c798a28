"""Pydantic models for resolved coordinates, batch entries and flows."""
from __future__ import annotations

from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(NamedTuple):
    """Ordered ``(longitude, latitude)`` pair as reported by the provider."""

    longitude: float
    latitude: float


class BatchEntry(BaseModel):
    """Outcome of resolving one address inside a batch."""

    ip: str
    coords: Optional[Coordinates] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class IPPair(BaseModel):
    """Source/destination addresses for one flow."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    src_ip: str = Field(alias="srcIP")
    dst_ip: str = Field(alias="dstIP")


class Flow(BaseModel):
    """Directional link between two resolved locations."""

    src: Coordinates
    dst: Coordinates

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
