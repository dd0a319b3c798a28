"""Build source/destination flows from address pairs."""
from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from geoflows.fetch.session import LookupSession, ensure_session
from geoflows.geo.models import Flow, IPPair
from geoflows.geo.resolver import get_coordinates_from_ip
from geoflows.observability.log import get_logger
from geoflows.observability.metrics import MetricsRegistry

LOGGER = get_logger(__name__)

PairLike = Union[IPPair, Mapping[str, str]]


def _coerce_pair(raw: PairLike) -> Optional[IPPair]:
    if isinstance(raw, IPPair):
        return raw
    try:
        return IPPair.model_validate(raw)
    except ValidationError as exc:
        LOGGER.warning("invalid_pair", pair=repr(raw), errors=exc.error_count())
        return None


async def create_flows_from_ips(
    pairs: Iterable[PairLike],
    *,
    session: Optional[LookupSession] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> List[Flow]:
    """
    Resolve each pair in turn and keep the ones where both ends resolved.

    Pairs are handled strictly one at a time, source before destination.
    Pairs with an unresolved end are dropped without a trace in the output.
    """
    flows: List[Flow] = []
    async with ensure_session(session) as active:
        for raw in pairs:
            pair = _coerce_pair(raw)
            if pair is None:
                if metrics is not None:
                    metrics.incr("flows_dropped")
                continue
            src = await get_coordinates_from_ip(pair.src_ip, session=active, metrics=metrics)
            dst = await get_coordinates_from_ip(pair.dst_ip, session=active, metrics=metrics)
            if src is None or dst is None:
                if metrics is not None:
                    metrics.incr("flows_dropped")
                continue
            flows.append(Flow(src=src, dst=dst))
            if metrics is not None:
                metrics.incr("flows_built")
    return flows
