"""Source adapter contract and shared JSON extraction helpers."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import Any, Protocol

from pyfuelprices.ingestion.normalize import SeparatorConvention, parse_price
from pyfuelprices.models.prices import FuelType, PartialRecord

#: Target passed to bulk adapters: every location the upstream lists.
ALL = "ALL"


class AdapterKind(StrEnum):
    BULK = "bulk"
    PER_LOCATION = "per_location"


class SourceAdapter(Protocol):
    """Structural interface implemented by every upstream adapter.

    ``fetch`` receives :data:`ALL` (bulk adapters) or one configured
    location name (per-location adapters). It raises
    :class:`~pyfuelprices.exceptions.FuelFetchError` subclasses on network
    failure and records parse problems in the returned record.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def kind(self) -> AdapterKind:
        ...

    async def fetch(self, target: str) -> PartialRecord:
        ...


def extract_array(payload: Any) -> list[Any] | None:
    """Unwrap the item list from the envelopes aggregator APIs use."""
    if payload is None:
        return None
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return None
    for key in ("result", "data", "response"):
        value = payload.get(key)
        if isinstance(value, list):
            return value
    return None


_CITY_KEYS = ("city", "name", "il", "sehir", "şehir", "province")
_GENERIC_PRICE_KEYS = ("price", "value", "fiyat")
_FUEL_PRICE_KEYS: dict[FuelType, tuple[str, ...]] = {
    FuelType.GASOLINE: ("gasoline", "benzin"),
    FuelType.DIESEL: ("diesel", "motorin"),
    FuelType.LPG: ("lpg", "autogas", "otogaz"),
}


def _lower_keys(item: dict[str, Any]) -> dict[str, Any]:
    return {str(key).lower(): value for key, value in item.items()}


def extract_city(item: Any) -> str:
    if not isinstance(item, dict):
        return ""
    lowered = _lower_keys(item)
    for key in _CITY_KEYS:
        value = lowered.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def extract_price(
    item: Any,
    fuel_type: FuelType | None = None,
    *,
    convention: SeparatorConvention = SeparatorConvention.AUTO,
    generic: bool = True,
) -> float | None:
    """First parseable price field of *item*.

    Fuel-specific fields are preferred when *fuel_type* is given; the
    generic ``price``/``value`` fields are the fallback unless *generic*
    is false.
    """
    if not isinstance(item, dict):
        return None
    lowered = _lower_keys(item)
    keys: list[str] = []
    if fuel_type is not None:
        keys.extend(_FUEL_PRICE_KEYS[fuel_type])
    if generic:
        keys.extend(_GENERIC_PRICE_KEYS)
    for key in keys:
        if key in lowered:
            price = parse_price(lowered[key], convention)
            if price is not None:
                return price
    return None


def first_price(
    items: Iterable[Any],
    fuel_type: FuelType | None = None,
    *,
    convention: SeparatorConvention = SeparatorConvention.AUTO,
) -> float | None:
    for item in items:
        price = extract_price(item, fuel_type, convention=convention)
        if price is not None:
            return price
    return None


def empty_record(source: str, *issues: str) -> PartialRecord:
    return PartialRecord(source=source, issues=list(issues))
