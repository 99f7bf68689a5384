from __future__ import annotations

import asyncio
from typing import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from avantis_trader_sdk.common.exceptions import (
    MalformedResponseError,
    RemoteTimeoutError,
    RemoteUnreachableError,
)
from avantis_trader_sdk.infra.http.http_client import HttpJsonClient


@pytest_asyncio.fixture
async def price_server() -> AsyncIterator[tuple[test_utils.TestServer, asyncio.Event]]:
    release = asyncio.Event()

    async def latest(request: web.Request) -> web.Response:
        return web.json_response({"ids": request.query.getall("ids[]", [])})

    async def failing(request: web.Request) -> web.Response:
        return web.Response(status=500, text="upstream error")

    async def broken_json(request: web.Request) -> web.Response:
        return web.Response(text="{not json", content_type="application/json")

    async def slow(request: web.Request) -> web.Response:
        await release.wait()
        return web.json_response({})

    app = web.Application()
    app.router.add_get("/latest", latest)
    app.router.add_get("/failing", failing)
    app.router.add_get("/broken", broken_json)
    app.router.add_get("/slow", slow)

    async with test_utils.TestServer(app) as server:
        yield server, release
        release.set()


@pytest.mark.asyncio
async def test_get_json_decodes_body_and_repeats_query_keys(price_server) -> None:
    server, _ = price_server
    async with HttpJsonClient(timeout=5.0) as client:
        body = await client.get_json(
            str(server.make_url("/latest")), params=[("ids[]", "aa"), ("ids[]", "bb")]
        )

    assert body == {"ids": ["aa", "bb"]}


@pytest.mark.asyncio
async def test_error_status_is_remote_unreachable(price_server) -> None:
    server, _ = price_server
    async with HttpJsonClient(timeout=5.0) as client:
        with pytest.raises(RemoteUnreachableError, match="HTTP 500"):
            await client.get_json(str(server.make_url("/failing")))


@pytest.mark.asyncio
async def test_invalid_json_is_malformed_response(price_server) -> None:
    server, _ = price_server
    async with HttpJsonClient(timeout=5.0) as client:
        with pytest.raises(MalformedResponseError):
            await client.get_json(str(server.make_url("/broken")))


@pytest.mark.asyncio
async def test_slow_response_past_deadline_is_remote_timeout(price_server) -> None:
    server, release = price_server
    async with HttpJsonClient(timeout=5.0) as client:
        with pytest.raises(RemoteTimeoutError):
            await client.get_json(str(server.make_url("/slow")), timeout=0.05)
    release.set()


@pytest.mark.asyncio
async def test_unreachable_host_is_remote_unreachable() -> None:
    server = test_utils.TestServer(web.Application())
    await server.start_server()
    url = str(server.make_url("/latest"))
    await server.close()

    async with HttpJsonClient(timeout=5.0) as client:
        with pytest.raises(RemoteUnreachableError) as exc_info:
            await client.get_json(url)
    assert not isinstance(exc_info.value, RemoteTimeoutError)


@pytest.mark.asyncio
async def test_session_is_recreated_after_close() -> None:
    client = HttpJsonClient()
    first = await client._ensure_session()
    await client.close()
    second = await client._ensure_session()

    assert first.closed
    assert second is not first
    await client.close()
