"""Resolve a single IPv4 address to coordinates with provider fallback."""
from __future__ import annotations

import re
from typing import Optional

import httpx

from geoflows.fetch.session import LookupSession, ensure_session
from geoflows.geo.models import Coordinates
from geoflows.geo.providers import PROVIDERS, Provider
from geoflows.observability.log import get_logger
from geoflows.observability.metrics import MetricsRegistry
from geoflows.observability.tracing import (
    log_provider_failure,
    log_provider_hit,
    log_provider_unusable,
    span,
)

LOGGER = get_logger(__name__)

# Dotted-quad syntax only; octet values are not range checked.
_IPV4_RE = re.compile(r"(\d{1,3}\.){3}\d{1,3}", re.ASCII)


def is_valid_ip(value: object) -> bool:
    """Return True if *value* is a string in dotted-quad form."""
    return isinstance(value, str) and _IPV4_RE.fullmatch(value) is not None


async def _query_provider(
    session: LookupSession,
    provider: Provider,
    ip: str,
    metrics: Optional[MetricsRegistry],
) -> Optional[Coordinates]:
    if metrics is not None:
        metrics.incr("provider_requests")
    try:
        with span(name="provider_lookup", ip=ip, provider=provider.name):
            payload = await session.get_json(provider.url_for(ip))
        coords = provider.extract(payload)
    # RecursionError: json decoding of pathologically nested bodies.
    except (httpx.HTTPError, httpx.InvalidURL, ValueError, RecursionError) as exc:
        if metrics is not None:
            metrics.incr("provider_failures")
        log_provider_failure(provider=provider.name, ip=ip, reason=repr(exc))
        return None
    if coords is None:
        if metrics is not None:
            metrics.incr("provider_unusable")
        log_provider_unusable(provider=provider.name, ip=ip)
    return coords


async def get_coordinates_from_ip(
    ip: str,
    *,
    session: Optional[LookupSession] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> Optional[Coordinates]:
    """
    Resolve *ip* to ``(longitude, latitude)``.

    Providers are queried one after another and the first usable answer wins.
    Every failure, including a malformed address, yields None; nothing is raised.
    """
    if metrics is not None:
        metrics.incr("lookups")
    if not is_valid_ip(ip):
        if metrics is not None:
            metrics.incr("invalid_ips")
        LOGGER.error("invalid_ip", ip=ip)
        return None

    async with ensure_session(session) as active:
        for provider in PROVIDERS:
            coords = await _query_provider(active, provider, ip, metrics)
            if coords is not None:
                if metrics is not None:
                    metrics.incr("resolved")
                    metrics.incr(f"hits_{provider.name}")
                log_provider_hit(provider=provider.name, ip=ip, coords=coords)
                return coords

    if metrics is not None:
        metrics.incr("unresolved")
    LOGGER.error("unresolved", ip=ip, providers=[provider.name for provider in PROVIDERS])
    return None
