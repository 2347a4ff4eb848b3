"""RapidAPI ``gas-price`` aggregator (one request per city)."""

from __future__ import annotations

import logging

from pyfuelprices._constants import GAS_PRICE_API_BASE_URL, GAS_PRICE_API_HOST
from pyfuelprices._transport import Transport
from pyfuelprices.exceptions import FuelParseError
from pyfuelprices.ingestion.normalize import SeparatorConvention, normalize_location_key
from pyfuelprices.models.prices import FuelType, PartialRecord
from pyfuelprices.sources.base import AdapterKind, empty_record, extract_array, extract_city, extract_price

_logger = logging.getLogger(__name__)


class GasPriceApiAdapter:
    """Per-location adapter for ``gas-price.p.rapidapi.com``.

    The reply is either one object or a list of items. Items may carry
    one column per fuel type (``gasoline``, ``diesel``, ``lpg``) or a
    ``type``/``price`` pair; both shapes are read. Items naming a
    different city than the one requested are attributed to that city.
    """

    name = "gas_price_api"
    kind = AdapterKind.PER_LOCATION

    def __init__(
        self,
        transport: Transport,
        api_key: str | None,
        *,
        base_url: str = GAS_PRICE_API_BASE_URL,
        host: str = GAS_PRICE_API_HOST,
        convention: SeparatorConvention = SeparatorConvention.AUTO,
    ) -> None:
        self._transport = transport
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._host = host
        self._convention = convention

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def fetch(self, target: str) -> PartialRecord:
        if not self.is_configured:
            _logger.debug("RapidAPI key missing; skipping %s", target)
            return empty_record(self.name, "RAPIDAPI_KEY missing")

        key = normalize_location_key(target)
        if not key:
            return empty_record(self.name, f"unusable location {target!r}")

        try:
            payload = await self._transport.get_json(
                f"{self._base_url}/prices",
                params={"city": target.strip().lower()},
                headers={"X-RapidAPI-Key": str(self._api_key), "X-RapidAPI-Host": self._host},
            )
        except FuelParseError as exc:
            return empty_record(self.name, f"{key}: {exc}")

        items = extract_array(payload)
        if items is None:
            items = [payload] if isinstance(payload, dict) else []

        prices: dict[str, dict[FuelType, float]] = {}
        issues: list[str] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                issues.append(f"{key}: item {index} is not an object")
                continue
            item_key = normalize_location_key(extract_city(item)) or key
            row = prices.setdefault(item_key, {})

            labelled = FuelType.from_label(str(item.get("type") or item.get("fuel") or ""))
            if labelled is not None:
                found = {labelled: extract_price(item, labelled, convention=self._convention)}
            else:
                # Without a type label only fuel-specific columns say which fuel a price is for.
                found = {
                    fuel_type: extract_price(item, fuel_type, convention=self._convention, generic=False)
                    for fuel_type in FuelType
                }
            for fuel_type, price in found.items():
                if price is not None:
                    current = row.get(fuel_type)
                    row[fuel_type] = price if current is None else min(current, price)

        if not any(prices.values()):
            issues.append(f"{key}: no parseable price")
        return PartialRecord(source=self.name, prices=prices, issues=issues)
