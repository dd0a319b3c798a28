"""Concurrent resolution of many addresses."""
from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

from geoflows.fetch.session import LookupSession, ensure_session
from geoflows.geo.models import BatchEntry
from geoflows.geo.resolver import get_coordinates_from_ip
from geoflows.observability.metrics import MetricsRegistry


async def get_coordinates_from_ips(
    ips: Iterable[str],
    *,
    session: Optional[LookupSession] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> List[BatchEntry]:
    """Resolve every address concurrently, returning one entry per input in input order."""
    addresses = list(ips)
    async with ensure_session(session) as active:
        results = await asyncio.gather(
            *(get_coordinates_from_ip(ip, session=active, metrics=metrics) for ip in addresses)
        )
    return [BatchEntry(ip=ip, coords=coords) for ip, coords in zip(addresses, results)]
