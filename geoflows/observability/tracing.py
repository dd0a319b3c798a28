"""Tracing helpers for provider lookups."""
from __future__ import annotations

import contextlib
import time
from typing import Iterator, Optional, Sequence

from geoflows.observability.log import get_logger


def _logger():
    return get_logger("geoflows.trace")


@contextlib.contextmanager
def span(*, name: str, ip: Optional[str] = None, provider: Optional[str] = None) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        _logger().debug("trace_span", span=name, ip=ip, provider=provider, elapsed_ms=elapsed_ms)


def log_provider_hit(*, provider: str, ip: str, coords: Sequence[object]) -> None:
    _logger().info("provider_hit", provider=provider, ip=ip, coords=list(coords))


def log_provider_failure(*, provider: str, ip: str, reason: str) -> None:
    _logger().warning("provider_failed", provider=provider, ip=ip, reason=reason)


def log_provider_unusable(*, provider: str, ip: str) -> None:
    _logger().warning("provider_unusable", provider=provider, ip=ip)
