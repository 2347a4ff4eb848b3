"""HTTP transport for upstream fetches with status classification."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyfuelprices._constants import USER_AGENT
from pyfuelprices._redact import redact_for_log, redact_url
from pyfuelprices.exceptions import FuelParseError, FuelPermanentFetchError, FuelTransientFetchError

_logger = logging.getLogger(__name__)


def is_transient_status(status: int) -> bool:
    """Rate limiting and server-side errors are worth retrying."""
    return status == 429 or 500 <= status <= 599


class Transport(Protocol):
    """Structural transport interface used by source adapters.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_text(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        ...

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...


class HttpTransport:
    """aiohttp-backed transport.

    Non-2xx responses and connection failures are raised as
    :class:`FuelTransientFetchError` (429, 5xx, network, timeout) or
    :class:`FuelPermanentFetchError` (other 4xx) so the fetch executor can
    decide whether to retry.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        request_timeout: float = 20.0,
        trace: bool = False,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=request_timeout)
        self._trace = trace

    async def get_text(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        request_headers: dict[str, str] = {"user-agent": USER_AGENT}
        if headers:
            request_headers.update(headers)

        _logger.debug("GET %s params=%s", redact_url(url), redact_for_log(dict(params or {})))

        try:
            async with self._http.get(
                url,
                params=dict(params) if params else None,
                headers=request_headers,
                timeout=self._timeout,
            ) as resp:
                if not 200 <= resp.status < 300:
                    detail = await resp.text(errors="replace")
                    error_cls = FuelTransientFetchError if is_transient_status(resp.status) else FuelPermanentFetchError
                    raise error_cls(
                        f"HTTP {resp.status} from {redact_url(url)}: {detail[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
                text = await resp.text()
        except (FuelTransientFetchError, FuelPermanentFetchError):
            raise
        except UnicodeDecodeError as exc:
            raise FuelParseError(f"Undecodable response from {redact_url(url)}: {exc.reason}") from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise FuelTransientFetchError(
                f"Request to {redact_url(url)} failed: {exc!r}",
                url=url,
            ) from exc

        if self._trace:
            _logger.debug("Response from %s: %s", redact_url(url), redact_for_log(text))
        return text

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        text = await self.get_text(url, params=params, headers=headers)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise FuelParseError(f"Invalid JSON from {redact_url(url)}: {text[:200]}") from exc
