"""Data models for fuel prices, snapshots and endpoint payloads."""

from pyfuelprices.models._base import FuelBaseModel
from pyfuelprices.models.prices import FuelReading, FuelType, LocationKey, PartialRecord, is_valid_price
from pyfuelprices.models.responses import HealthStatus, LocationPriceResponse, PricesResponse, RefreshSummary
from pyfuelprices.models.snapshot import MergedFuelPrice, MergedRecord, Snapshot, SourceStatus

__all__ = [
    "FuelBaseModel",
    "FuelReading",
    "FuelType",
    "HealthStatus",
    "LocationKey",
    "LocationPriceResponse",
    "MergedFuelPrice",
    "MergedRecord",
    "PartialRecord",
    "PricesResponse",
    "RefreshSummary",
    "Snapshot",
    "SourceStatus",
    "is_valid_price",
]
