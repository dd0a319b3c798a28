"""Factories for httpx-backed lookup sessions."""
from __future__ import annotations

import contextlib
from typing import AsyncIterator, Optional

import httpx

# httpx's own default; lookups carry no timeout policy of their own.
DEFAULT_TIMEOUT = 5.0


class LookupSession:
    """Thin wrapper over an ``httpx.AsyncClient`` that returns decoded JSON bodies."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get_json(self, url: str, *, timeout: Optional[float] = None) -> object:
        """GET ``url`` and decode the body as JSON regardless of the status code.

        Raises ``httpx.HTTPError`` on transport failures and ``ValueError`` when
        the body is not valid JSON.
        """
        if timeout is None:
            response = await self._client.get(url)
        else:
            response = await self._client.get(url, timeout=timeout)
        return response.json()


@contextlib.asynccontextmanager
async def create_lookup_session(
    *,
    timeout: Optional[float] = None,
    max_connections: int = 100,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[LookupSession]:
    """Yield a configured `LookupSession` for the duration of the context."""
    limits = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections)
    client_timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
    async with httpx.AsyncClient(
        limits=limits,
        timeout=client_timeout,
        transport=transport,
        follow_redirects=True,
    ) as client:
        yield LookupSession(client)


@contextlib.asynccontextmanager
async def ensure_session(session: Optional[LookupSession]) -> AsyncIterator[LookupSession]:
    """Yield ``session`` unchanged, or a fresh default session closed on exit."""
    if session is not None:
        yield session
        return
    async with create_lookup_session() as created:
        yield created
