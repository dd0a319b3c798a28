"""In-process lookup counters with a JSON export."""
from __future__ import annotations

import contextlib
import time
from collections import Counter
from pathlib import Path
from typing import Iterator

import orjson

from geoflows.observability.log import get_logger

LOGGER = get_logger(__name__)

_DEFAULT_COUNTERS = (
    "lookups",
    "invalid_ips",
    "provider_requests",
    "provider_failures",
    "provider_unusable",
    "resolved",
    "unresolved",
    "flows_built",
    "flows_dropped",
    "run_duration_ms",
)


class MetricsRegistry:
    """Counters for one run; per-provider hits are added as ``hits_<provider>``."""

    def __init__(self) -> None:
        self._counters: Counter[str] = Counter(dict.fromkeys(_DEFAULT_COUNTERS, 0))

    def incr(self, name: str, value: int = 1) -> None:
        self._counters[name] += value

    def get(self, name: str) -> int:
        return self._counters[name]

    def export(self, *, path: Path) -> Path:
        """Write all counters, including zero ones, to ``path`` as JSON."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "counters": dict(self._counters),
            "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        }
        path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        return path


@contextlib.contextmanager
def record_duration(registry: MetricsRegistry, metric_name: str) -> Iterator[None]:
    """Add the wall-clock milliseconds spent in the block to ``metric_name``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        registry.incr(metric_name, elapsed_ms)
        LOGGER.debug("duration_recorded", metric=metric_name, duration_ms=elapsed_ms)
