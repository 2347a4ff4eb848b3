from __future__ import annotations

import json
from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from pyfuelprices._kv import KvRestClient
from pyfuelprices._transport import HttpTransport, is_transient_status
from pyfuelprices.exceptions import (
    FuelCacheTransportError,
    FuelParseError,
    FuelPermanentFetchError,
    FuelTransientFetchError,
)


def _upstream_app() -> web.Application:
    async def ok(request: web.Request) -> web.Response:
        return web.json_response({"result": [{"city": request.query.get("city"), "ua": request.headers["user-agent"]}]})

    async def limited(_request: web.Request) -> web.Response:
        return web.Response(status=429, text="slow down")

    async def missing(_request: web.Request) -> web.Response:
        return web.Response(status=404, text="no such city")

    async def broken(_request: web.Request) -> web.Response:
        return web.Response(status=200, text="<html>maintenance</html>")

    async def undecodable(request: web.Request) -> web.Response:
        status = int(request.query.get("status", "200"))
        return web.Response(status=status, body=b"\xff\xfe", content_type="text/plain", charset="utf-8")

    app = web.Application()
    app.router.add_get("/ok", ok)
    app.router.add_get("/limited", limited)
    app.router.add_get("/missing", missing)
    app.router.add_get("/broken", broken)
    app.router.add_get("/undecodable", undecodable)
    return app


def _kv_app(store: dict[str, str]) -> web.Application:
    async def command(request: web.Request) -> web.Response:
        if request.headers.get("Authorization") != "Bearer kv-token":
            return web.Response(status=401)
        args = await request.json()
        if args[0] == "GET":
            return web.json_response({"result": store.get(args[1])})
        if args[0] == "SET":
            store[args[1]] = args[2]
            return web.json_response({"result": "OK"})
        return web.json_response({"error": f"ERR unknown command '{args[0]}'"})

    app = web.Application()
    app.router.add_post("/", command)
    return app


def _undecodable_kv_app() -> web.Application:
    async def command(_request: web.Request) -> web.Response:
        return web.Response(body=b'{"result": "\xff\xfe"}', content_type="application/json", charset="utf-8")

    app = web.Application()
    app.router.add_post("/", command)
    return app


@pytest_asyncio.fixture
async def upstream() -> AsyncIterator[test_utils.TestServer]:
    async with test_utils.TestServer(_upstream_app()) as server:
        yield server


@pytest_asyncio.fixture
async def session() -> AsyncIterator[aiohttp.ClientSession]:
    async with aiohttp.ClientSession() as http_session:
        yield http_session


def test_transient_status_classification() -> None:
    assert is_transient_status(429)
    assert is_transient_status(503)
    assert not is_transient_status(404)
    assert not is_transient_status(200)


@pytest.mark.asyncio
async def test_get_json_passes_params_and_user_agent(
    upstream: test_utils.TestServer,
    session: aiohttp.ClientSession,
) -> None:
    transport = HttpTransport(session)

    body = await transport.get_json(str(upstream.make_url("/ok")), params={"city": "ankara"})

    assert body["result"][0]["city"] == "ankara"
    assert "pyfuelprices" in body["result"][0]["ua"]


@pytest.mark.asyncio
async def test_status_codes_map_to_retry_classes(
    upstream: test_utils.TestServer,
    session: aiohttp.ClientSession,
) -> None:
    transport = HttpTransport(session)

    with pytest.raises(FuelTransientFetchError) as transient:
        await transport.get_text(str(upstream.make_url("/limited")))
    with pytest.raises(FuelPermanentFetchError) as permanent:
        await transport.get_text(str(upstream.make_url("/missing")))

    assert transient.value.status_code == 429
    assert permanent.value.status_code == 404


@pytest.mark.asyncio
async def test_non_json_body_is_parse_error(upstream: test_utils.TestServer, session: aiohttp.ClientSession) -> None:
    with pytest.raises(FuelParseError):
        await HttpTransport(session).get_json(str(upstream.make_url("/broken")))


@pytest.mark.asyncio
async def test_connection_failure_is_transient(session: aiohttp.ClientSession) -> None:
    with pytest.raises(FuelTransientFetchError):
        await HttpTransport(session, request_timeout=2.0).get_text("http://127.0.0.1:9/unreachable")


@pytest.mark.asyncio
async def test_kv_client_round_trip(session: aiohttp.ClientSession) -> None:
    data: dict[str, str] = {}
    async with test_utils.TestServer(_kv_app(data)) as server:
        kv = KvRestClient(session, str(server.make_url("/")), "kv-token")

        assert kv.is_configured
        assert await kv.get("fuel:prices") is None
        assert await kv.set("fuel:prices", json.dumps({"a": 1}))
        assert await kv.get("fuel:prices") == '{"a": 1}'
        assert data == {"fuel:prices": '{"a": 1}'}

        with pytest.raises(FuelCacheTransportError, match="unknown command"):
            await kv.command("DEL", "fuel:prices")


@pytest.mark.asyncio
async def test_kv_client_rejected_token(session: aiohttp.ClientSession) -> None:
    async with test_utils.TestServer(_kv_app({})) as server:
        kv = KvRestClient(session, str(server.make_url("/")), "wrong")

        with pytest.raises(FuelCacheTransportError) as excinfo:
            await kv.get("fuel:prices")

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_kv_client_without_env_raises(session: aiohttp.ClientSession) -> None:
    kv = KvRestClient(session, None, None)

    assert not kv.is_configured
    with pytest.raises(FuelCacheTransportError, match="KV env missing"):
        await kv.get("fuel:prices")


@pytest.mark.asyncio
async def test_undecodable_body_is_parse_error(
    upstream: test_utils.TestServer,
    session: aiohttp.ClientSession,
) -> None:
    transport = HttpTransport(session)

    with pytest.raises(FuelParseError, match="Undecodable"):
        await transport.get_text(str(upstream.make_url("/undecodable")))
    # Error statuses keep their retry class even when the body does not decode.
    with pytest.raises(FuelTransientFetchError) as excinfo:
        await transport.get_text(str(upstream.make_url("/undecodable")), params={"status": "503"})

    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_kv_client_undecodable_reply_is_transport_error(session: aiohttp.ClientSession) -> None:
    async with test_utils.TestServer(_undecodable_kv_app()) as server:
        kv = KvRestClient(session, str(server.make_url("/")), "kv-token")

        with pytest.raises(FuelCacheTransportError, match="KV bad json"):
            await kv.get("fuel:prices")
