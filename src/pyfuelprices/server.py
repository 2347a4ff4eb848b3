"""HTTP endpoints (aiohttp.web) over :class:`FuelPriceClient`.

Routes::

    GET      /api/prices?city=&source=   cached prices (never an error)
    GET|POST /api/update?token=          token-protected full refresh
    GET      /api/health                 KV + snapshot status
    GET      /api/source?token=&type=&city=&limit=
                                         raw aggregator sample
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import AsyncIterator
from typing import Any

from aiohttp import web
from pydantic import BaseModel

from pyfuelprices.client import FuelPriceClient
from pyfuelprices.config import FuelConfig
from pyfuelprices.exceptions import (
    FuelConfigError,
    FuelFetchError,
    FuelParseError,
    FuelRefreshError,
    FuelSnapshotWriteError,
)
from pyfuelprices.models.prices import FuelType

_logger = logging.getLogger(__name__)

CLIENT_KEY: web.AppKey[FuelPriceClient] = web.AppKey("client", FuelPriceClient)


def json_response(data: BaseModel | dict[str, Any], status: int = 200) -> web.Response:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    return web.json_response(data, status=status)


def _error(status: int, message: str, **extra: Any) -> web.Response:
    return json_response({"ok": False, "error": message, **extra}, status=status)


class FuelPriceApi:
    """Request handlers; all state lives in the client."""

    def __init__(self, client: FuelPriceClient) -> None:
        self._client = client

    def _authorized(self, request: web.Request) -> bool:
        token = request.query.get("token", "")
        expected = self._client.config.update_token
        if not expected:
            return False
        return secrets.compare_digest(token.encode(), expected.encode())

    async def prices(self, request: web.Request) -> web.Response:
        city = request.query.get("city") or None
        source = request.query.get("source") or request.query.get("brand") or None
        response = await self._client.get_prices(location=city, source=source)
        return json_response(response)

    async def update(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return _error(401, "unauthorized")
        try:
            summary = await self._client.refresh()
        except FuelSnapshotWriteError as exc:
            return _error(500, str(exc), sources=[s.model_dump(by_alias=True) for s in exc.sources])
        except FuelRefreshError as exc:
            return _error(400, str(exc), sources=[s.model_dump(by_alias=True) for s in exc.sources])
        return json_response(summary)

    async def health(self, request: web.Request) -> web.Response:
        return json_response(await self._client.health())

    async def source(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return _error(401, "unauthorized")

        type_name = request.query.get("type", "gasoline").strip().lower()
        try:
            fuel_type = FuelType(type_name)
        except ValueError:
            return _error(400, "type must be gasoline|diesel|lpg")
        city = request.query.get("city", "istanbul")
        try:
            limit = int(request.query.get("limit", "10"))
        except ValueError:
            limit = 10

        try:
            body = await self._client.probe_source(fuel_type, city, limit=limit)
        except FuelConfigError as exc:
            return _error(400, str(exc))
        except FuelFetchError as exc:
            status = exc.status_code if exc.status_code and exc.status_code >= 400 else 502
            return _error(status, f"upstream {exc.status_code or 'unreachable'}", detail=str(exc))
        except FuelParseError as exc:
            return _error(502, str(exc))
        return json_response(body)


def create_app(client: FuelPriceClient) -> web.Application:
    """Application serving an already-entered client."""
    app = web.Application()
    app[CLIENT_KEY] = client
    api = FuelPriceApi(client)
    app.router.add_get("/api/health", api.health)
    app.router.add_get("/api/prices", api.prices)
    app.router.add_route("GET", "/api/update", api.update)
    app.router.add_route("POST", "/api/update", api.update)
    app.router.add_get("/api/source", api.source)
    # Unknown paths fall back to prices.
    app.router.add_get("/api/{tail:.*}", api.prices)
    return app


def build_app(config: FuelConfig) -> web.Application:
    """Application that owns the client lifecycle (for ``web.run_app``)."""
    client = FuelPriceClient(config)
    app = create_app(client)

    async def _client_ctx(_app: web.Application) -> AsyncIterator[None]:
        await client.__aenter__()
        _logger.info("Serving %d sources, cache key %s", len(client.adapters), config.cache_key)
        yield
        await client.__aexit__(None, None, None)

    app.cleanup_ctx.append(_client_ctx)
    return app
