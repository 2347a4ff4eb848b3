"""Key-value store transport (Upstash/Vercel KV REST protocol).

Commands are POSTed as a JSON array (``["GET", key]``) with a bearer token;
replies carry ``{"result": ..., "error": ...}``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pyfuelprices.exceptions import FuelCacheTransportError

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """The two operations the cache store needs."""

    @property
    def is_configured(self) -> bool:
        ...

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> bool:
        ...


class KvRestClient:
    """Minimal REST client for an Upstash-compatible KV store."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        url: str | None,
        token: str | None,
        *,
        request_timeout: float = 10.0,
    ) -> None:
        self._http = http_session
        self._url = url
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self._url and self._token)

    async def command(self, *args: str) -> Any:
        """Run one command and return its ``result`` field."""
        if not self._url or not self._token:
            raise FuelCacheTransportError("KV env missing")

        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }
        try:
            async with self._http.post(
                self._url,
                data=json.dumps(list(args)),
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                if resp.status != 200:
                    raise FuelCacheTransportError(f"KV HTTP {resp.status}", status_code=resp.status)
                text = await resp.text()
        except FuelCacheTransportError:
            raise
        except UnicodeDecodeError as exc:
            raise FuelCacheTransportError("KV bad json") from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise FuelCacheTransportError(f"KV request failed: {exc!r}") from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FuelCacheTransportError("KV bad json") from exc
        if not isinstance(body, dict):
            raise FuelCacheTransportError("KV bad json")
        if body.get("error"):
            raise FuelCacheTransportError(str(body["error"]))
        return body.get("result")

    async def get(self, key: str) -> str | None:
        result = await self.command("GET", key)
        if result is None:
            return None
        if not isinstance(result, str):
            raise FuelCacheTransportError(f"KV GET returned {type(result).__name__}, expected string")
        return result

    async def set(self, key: str, value: str) -> bool:
        result = await self.command("SET", key, value)
        _logger.debug("KV SET %s (%d bytes) -> %s", key, len(value), result)
        # Any reply without an error field counts as written.
        return True
