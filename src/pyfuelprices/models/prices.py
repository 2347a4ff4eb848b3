"""Fuel readings and per-source partial records."""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from pyfuelprices.models._base import FuelBaseModel

#: A normalized location key (see :func:`pyfuelprices.ingestion.normalize.normalize_location_key`).
LocationKey = str


class FuelType(StrEnum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    LPG = "lpg"

    @classmethod
    def from_label(cls, label: str) -> FuelType | None:
        """Map an upstream column/field label to a fuel type.

        Recognizes English and Turkish labels (``benzin``, ``motorin``,
        ``otogaz``...). Returns ``None`` for anything else.
        """
        text = label.strip().lower()
        for fuel_type, aliases in _FUEL_LABELS.items():
            if any(alias in text for alias in aliases):
                return fuel_type
        return None


# Checked in order: "lpg" before "gasoline" so "Otogaz (LPG)" is not read as gas.
_FUEL_LABELS: dict[FuelType, tuple[str, ...]] = {
    FuelType.LPG: ("lpg", "otogaz", "autogas", "autogaz"),
    FuelType.DIESEL: ("diesel", "motorin", "dizel", "eurodiesel"),
    FuelType.GASOLINE: ("gasoline", "benzin", "kurşunsuz", "kursunsuz", "petrol"),
}


def is_valid_price(value: Any) -> bool:
    """Return ``True`` for a positive finite number (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


class FuelReading(FuelBaseModel):
    """A single parsed price for one fuel type."""

    fuel_type: FuelType
    price: float = Field(gt=0, allow_inf_nan=False)


class PartialRecord(FuelBaseModel):
    """Best-effort readings produced by one source for one fetch.

    Parameters
    ----------
    source : str
        Name of the adapter that produced the readings.
    prices : dict
        ``{LocationKey: {FuelType: price}}``. Empty keys and invalid
        prices are dropped on construction, so a record never claims a
        fuel type it could not parse.
    issues : list of str
        Parse problems absorbed while building the record (skipped rows,
        unparseable fields).
    """

    source: str
    prices: dict[LocationKey, dict[FuelType, float]] = Field(default_factory=dict)
    issues: list[str] = Field(default_factory=list)

    @field_validator("prices", mode="before")
    @classmethod
    def _drop_invalid(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        cleaned: dict[str, dict[Any, float]] = {}
        for location, readings in value.items():
            if not location or not isinstance(readings, dict):
                continue
            valid = {fuel: float(price) for fuel, price in readings.items() if is_valid_price(price)}
            if valid:
                cleaned[location] = valid
        return cleaned

    @property
    def is_empty(self) -> bool:
        return not self.prices

    def readings(self) -> list[tuple[LocationKey, FuelReading]]:
        """Flatten the record into ``(location, reading)`` pairs."""
        return [
            (location, FuelReading(fuel_type=fuel_type, price=price))
            for location, by_fuel in self.prices.items()
            for fuel_type, price in by_fuel.items()
        ]
