"""High-level async service facade for cached fuel prices."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import aiohttp

from pyfuelprices._kv import KeyValueStore, KvRestClient
from pyfuelprices._transport import HttpTransport, Transport
from pyfuelprices.config import FuelConfig
from pyfuelprices.exceptions import FuelConfigError, FuelError
from pyfuelprices.fetch.executor import FetchExecutor
from pyfuelprices.fetch.retry import RetryPolicy, Sleep
from pyfuelprices.ingestion.normalize import normalize_location_key
from pyfuelprices.models.prices import FuelType
from pyfuelprices.models.responses import HealthStatus, LocationPriceResponse, PricesResponse, RefreshSummary
from pyfuelprices.sources.base import SourceAdapter, extract_array
from pyfuelprices.sources.brands import build_brand_adapters
from pyfuelprices.sources.collectapi import CollectApiAdapter
from pyfuelprices.sources.gas_price_api import GasPriceApiAdapter
from pyfuelprices.state.refresh import RefreshCoordinator, SnapshotRefresher
from pyfuelprices.state.store import SnapshotStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_adapters(config: FuelConfig, transport: Transport) -> list[SourceAdapter]:
    """Default source set: brand pages first, then the aggregator APIs."""
    adapters: list[SourceAdapter] = []
    adapters.extend(build_brand_adapters(transport, config.brands))
    adapters.append(
        CollectApiAdapter(transport, config.collectapi_key, base_url=config.collectapi_base_url),
    )
    adapters.append(
        GasPriceApiAdapter(transport, config.rapidapi_key, base_url=config.gas_price_api_base_url),
    )
    return adapters


class FuelPriceClient:
    """Async facade over the fetch, merge and cache engine.

    Usage::

        async with FuelPriceClient(FuelConfig.from_env()) as client:
            prices = await client.get_prices(location="İzmir")
    """

    def __init__(
        self,
        config: FuelConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        adapters: Sequence[SourceAdapter] | None = None,
        kv: KeyValueStore | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._custom_adapters = list(adapters) if adapters is not None else None
        self._custom_kv = kv
        self._sleep = sleep
        self._clock = clock
        self._transport: HttpTransport | None = None
        self._adapters: list[SourceAdapter] = []
        self._store: SnapshotStore | None = None
        self._coordinator: RefreshCoordinator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FuelPriceClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(
            self._http_session,
            request_timeout=self._config.request_timeout,
            trace=self._config.api_trace_enabled,
        )
        kv = self._custom_kv or KvRestClient(self._http_session, self._config.kv_url, self._config.kv_token)
        self._store = SnapshotStore(kv, key=self._config.cache_key)
        if self._custom_adapters is not None:
            self._adapters = self._custom_adapters
        else:
            self._adapters = build_adapters(self._config, self._transport)

        executor = FetchExecutor(
            concurrency_limit=self._config.concurrency_limit,
            retry_policy=RetryPolicy(
                max_retries=self._config.max_retries,
                base_delay=self._config.retry_base_delay,
                max_delay=self._config.retry_max_delay,
            ),
            sleep=self._sleep,
        )
        refresher = SnapshotRefresher(
            executor=executor,
            adapters=self._adapters,
            locations=self._config.locations,
            store=self._store,
            mode=self._config.merge_mode,
            priority=self._config.source_priority,
            deadline=self._config.refresh_deadline or None,
            clock=self._clock,
        )
        self._coordinator = RefreshCoordinator(
            self._store,
            refresher,
            stale_after=timedelta(seconds=self._config.stale_after),
            clock=self._clock,
        )
        _logger.debug("Sources: %s", [adapter.name for adapter in self._adapters])
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._coordinator is not None:
            await self._coordinator.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None
        self._coordinator = None
        self._store = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_coordinator(self) -> RefreshCoordinator:
        if self._coordinator is None:
            raise FuelError("Client not initialized. Use 'async with FuelPriceClient(...) as client:'")
        return self._coordinator

    def _require_store(self) -> SnapshotStore:
        if self._store is None:
            raise FuelError("Client not initialized. Use 'async with FuelPriceClient(...) as client:'")
        return self._store

    @property
    def config(self) -> FuelConfig:
        return self._config

    @property
    def adapters(self) -> list[SourceAdapter]:
        return list(self._adapters)

    @property
    def coordinator(self) -> RefreshCoordinator:
        return self._require_coordinator()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get_prices(
        self,
        *,
        location: str | None = None,
        source: str | None = None,
    ) -> PricesResponse | LocationPriceResponse:
        """Current prices, optionally for one location and/or one source.

        Never raises for missing data: without a snapshot the response is
        empty but well formed.
        """
        snapshot = await self._require_coordinator().read()
        if location is not None:
            key = normalize_location_key(location)
            if snapshot is None:
                return LocationPriceResponse(location=key)
            return LocationPriceResponse(
                location=key,
                price=snapshot.price_table(source).get(key),
                last_update=snapshot.last_update,
                sources=snapshot.sources,
            )
        if snapshot is None:
            return PricesResponse()
        return PricesResponse(
            prices=snapshot.price_table(source),
            last_update=snapshot.last_update,
            sources=snapshot.sources,
        )

    async def refresh(self) -> RefreshSummary:
        """Run (or join) a full refresh.

        Raises
        ------
        FuelRefreshError
            No source returned data, or the snapshot could not be stored.
            The previous snapshot is untouched.
        """
        snapshot = await self._require_coordinator().refresh()
        return RefreshSummary(
            cities=snapshot.location_count,
            sources=snapshot.sources,
            last_update=snapshot.last_update,
        )

    async def health(self) -> HealthStatus:
        """Cache transport and snapshot status; never triggers a refresh."""
        store = self._require_store()
        reachable, snapshot = await store.inspect()
        return HealthStatus(
            has_kv_env=store.is_configured,
            kv_reachable=reachable,
            has_data=snapshot is not None and snapshot.location_count > 0,
            last_update=snapshot.last_update if snapshot is not None else None,
            refresh_in_progress=self._require_coordinator().refresh_in_progress,
        )

    async def probe_source(self, fuel_type: FuelType, city: str, *, limit: int = 10) -> dict[str, Any]:
        """Raw sample from the CollectAPI aggregator, for diagnosing format drift.

        Raises
        ------
        FuelConfigError
            ``COLLECTAPI_KEY`` is not configured.
        FuelFetchError
            The upstream rejected or failed the request.
        """
        if self._transport is None:
            raise FuelError("Client not initialized. Use 'async with FuelPriceClient(...) as client:'")
        adapter = CollectApiAdapter(
            self._transport,
            self._config.collectapi_key,
            base_url=self._config.collectapi_base_url,
        )
        if not adapter.is_configured:
            raise FuelConfigError("COLLECTAPI_KEY missing")
        limit = max(1, min(50, limit))
        payload = await adapter.fetch_raw(fuel_type, city)
        url = adapter.url_for(fuel_type)
        items = extract_array(payload)
        if items is not None:
            return {"ok": True, "url": url, "count": len(items), "sample": items[:limit]}
        return {"ok": True, "url": url, "body": payload}
