"""CollectAPI ``gasPrice`` aggregator (one request per city and fuel type)."""

from __future__ import annotations

import logging
from typing import Any

from pyfuelprices._constants import COLLECTAPI_BASE_URL
from pyfuelprices._transport import Transport
from pyfuelprices.exceptions import FuelParseError, FuelPermanentFetchError
from pyfuelprices.ingestion.normalize import SeparatorConvention, normalize_location_key
from pyfuelprices.models.prices import FuelType, PartialRecord
from pyfuelprices.sources.base import AdapterKind, empty_record, extract_array, first_price

_logger = logging.getLogger(__name__)

FUEL_PATHS: dict[FuelType, str] = {
    FuelType.GASOLINE: "turkeyGasoline",
    FuelType.DIESEL: "turkeyDiesel",
    FuelType.LPG: "turkeyLpg",
}


class CollectApiAdapter:
    """Per-location adapter for ``api.collectapi.com/gasPrice``.

    Each city costs three requests (gasoline, diesel, LPG). A fuel type the
    API rejects (4xx) or answers with nothing parseable is left out of the
    record; the other fuel types are still reported.
    """

    name = "collectapi"
    kind = AdapterKind.PER_LOCATION

    def __init__(
        self,
        transport: Transport,
        api_key: str | None,
        *,
        base_url: str = COLLECTAPI_BASE_URL,
        convention: SeparatorConvention = SeparatorConvention.AUTO,
    ) -> None:
        self._transport = transport
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._convention = convention

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "authorization": f"apikey {self._api_key}",
            "content-type": "application/json",
        }

    def url_for(self, fuel_type: FuelType) -> str:
        return f"{self._base_url}/{FUEL_PATHS[fuel_type]}"

    async def fetch_raw(self, fuel_type: FuelType, city: str) -> Any:
        """Raw JSON for one fuel type and city (used by the source probe)."""
        return await self._transport.get_json(
            self.url_for(fuel_type),
            params={"city": city},
            headers=self._headers(),
        )

    async def fetch(self, target: str) -> PartialRecord:
        if not self.is_configured:
            _logger.debug("CollectAPI key missing; skipping %s", target)
            return empty_record(self.name, "COLLECTAPI_KEY missing")

        key = normalize_location_key(target)
        if not key:
            return empty_record(self.name, f"unusable location {target!r}")

        prices: dict[FuelType, float] = {}
        issues: list[str] = []
        for fuel_type in FUEL_PATHS:
            try:
                payload = await self.fetch_raw(fuel_type, target)
            except (FuelPermanentFetchError, FuelParseError) as exc:
                issues.append(f"{key}/{fuel_type}: {exc}")
                continue

            items = extract_array(payload)
            if not items:
                issues.append(f"{key}/{fuel_type}: empty result")
                continue
            price = first_price(items, fuel_type, convention=self._convention)
            if price is None:
                issues.append(f"{key}/{fuel_type}: no parseable price")
                continue
            prices[fuel_type] = price

        return PartialRecord(source=self.name, prices={key: prices}, issues=issues)
