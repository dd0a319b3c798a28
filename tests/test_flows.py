import asyncio

import httpx
from structlog.testing import capture_logs

from conftest import IP_API_COM, IP_API_IO, ProviderStub, load_payload
from geoflows.fetch.session import create_lookup_session
from geoflows.geo.flows import create_flows_from_ips
from geoflows.geo.models import Flow, IPPair
from geoflows.observability.metrics import MetricsRegistry

GOOGLE = {"status": "success", "lon": -122.0785, "lat": 37.4056}
CLOUDFLARE = {"status": "success", "lon": 151.209, "lat": -33.8688}
OPENDNS = {"status": "success", "lon": -122.3971, "lat": 37.7621}


def _flows(stub: ProviderStub, pairs, metrics=None):
    async def _run():
        async with create_lookup_session(transport=stub.transport()) as session:
            return await create_flows_from_ips(pairs, session=session, metrics=metrics)

    return asyncio.run(_run())


def _routed_stub() -> ProviderStub:
    return ProviderStub({
        (IP_API_COM, "8.8.8.8"): GOOGLE,
        (IP_API_COM, "1.1.1.1"): CLOUDFLARE,
        (IP_API_COM, "208.67.222.222"): OPENDNS,
    })


def test_pair_with_malformed_address_is_dropped():
    stub = _routed_stub()
    flows = _flows(stub, [{"srcIP": "8.8.8.8", "dstIP": "1.1.1.1"}, {"srcIP": "bad", "dstIP": "8.8.8.8"}])
    assert len(flows) == 1
    assert flows[0].src == (-122.0785, 37.4056)
    assert flows[0].dst == (151.209, -33.8688)


def test_flows_keep_input_order():
    stub = _routed_stub()
    pairs = [
        IPPair(src_ip="8.8.8.8", dst_ip="1.1.1.1"),
        IPPair(src_ip="208.67.222.222", dst_ip="8.8.8.8"),
        IPPair(src_ip="1.1.1.1", dst_ip="208.67.222.222"),
    ]
    flows = _flows(stub, pairs)
    assert [(flow.src, flow.dst) for flow in flows] == [
        ((-122.0785, 37.4056), (151.209, -33.8688)),
        ((-122.3971, 37.7621), (-122.0785, 37.4056)),
        ((151.209, -33.8688), (-122.3971, 37.7621)),
    ]


def test_lookups_are_sequential_source_first():
    stub = _routed_stub()
    _flows(stub, [{"srcIP": "8.8.8.8", "dstIP": "1.1.1.1"}, {"srcIP": "208.67.222.222", "dstIP": "8.8.8.8"}])
    assert [ip for _, ip in stub.calls] == ["8.8.8.8", "1.1.1.1", "208.67.222.222", "8.8.8.8"]


def test_destination_is_still_resolved_when_source_fails():
    stub = _routed_stub()
    metrics = MetricsRegistry()
    flows = _flows(stub, [{"srcIP": "10.1.1.1", "dstIP": "8.8.8.8"}], metrics)
    assert flows == []
    assert ("ip-api.com", "8.8.8.8") in stub.calls
    assert metrics.get("flows_dropped") == 1
    assert metrics.get("flows_built") == 0


def test_unresolved_destination_drops_pair():
    stub = _routed_stub()
    stub.routes[(IP_API_IO, "9.9.9.9")] = httpx.ConnectTimeout("slow")
    flows = _flows(stub, [{"src_ip": "8.8.8.8", "dst_ip": "9.9.9.9"}, {"src_ip": "1.1.1.1", "dst_ip": "8.8.8.8"}])
    assert len(flows) == 1
    assert flows[0].src == (151.209, -33.8688)


def test_pair_missing_keys_is_dropped_and_logged():
    stub = _routed_stub()
    metrics = MetricsRegistry()
    with capture_logs() as logs:
        flows = _flows(stub, [{"srcIP": "8.8.8.8"}, {"srcIP": "8.8.8.8", "dstIP": "1.1.1.1"}], metrics)
    assert len(flows) == 1
    assert metrics.get("flows_dropped") == 1
    assert metrics.get("flows_built") == 1
    assert any(entry["event"] == "invalid_pair" for entry in logs)


def test_empty_input(stub):
    assert _flows(stub, []) == []


def test_flow_to_dict():
    flow = Flow(src=(-122.0785, 37.4056), dst=(151.209, -33.8688))
    assert flow.to_dict() == {"src": [-122.0785, 37.4056], "dst": [151.209, -33.8688]}


def test_ip_pair_accepts_both_spellings():
    assert IPPair.model_validate({"srcIP": "8.8.8.8", "dstIP": "1.1.1.1"}) == IPPair(
        src_ip="8.8.8.8", dst_ip="1.1.1.1"
    )
    assert IPPair.model_validate({"src_ip": "8.8.8.8", "dst_ip": "1.1.1.1"}).dst_ip == "1.1.1.1"
