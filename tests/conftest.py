"""Shared fixtures: a routed httpx.MockTransport standing in for the providers."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

FIXTURES = Path(__file__).parent / "fixtures" / "providers"

IP_API_COM = "ip-api.com"
IPAPI_CO = "ipapi.co"
IP_API_IO = "ip-api.io"


def load_payload(name: str) -> Dict[str, object]:
    return json.loads((FIXTURES / f"{name}.json").read_text(encoding="utf-8"))


def _ip_from_path(path: str) -> str:
    return next(segment for segment in path.split("/") if segment.count(".") == 3)


class ProviderStub:
    """Answers provider requests from a routing table and records every call.

    Routes are keyed by host, optionally narrowed to one address with a
    ``(host, ip)`` key. A value is either a JSON-serialisable body, a ``bytes``
    body sent verbatim, or an exception instance to raise.
    """

    def __init__(self, routes: Optional[Dict[object, object]] = None) -> None:
        self.routes: Dict[object, object] = dict(routes or {})
        self.calls: List[Tuple[str, str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        ip = _ip_from_path(request.url.path)
        self.calls.append((host, ip))
        route = self.routes.get((host, ip), self.routes.get(host))
        if route is None:
            raise httpx.ConnectError("no route to host", request=request)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, bytes):
            return httpx.Response(200, content=route, request=request)
        return httpx.Response(200, json=route, request=request)

    def hosts(self) -> List[str]:
        return [host for host, _ in self.calls]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture()
def stub() -> ProviderStub:
    return ProviderStub()
