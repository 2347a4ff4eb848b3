"""Response payloads served by the HTTP endpoints."""

from __future__ import annotations

from pydantic import Field

from pyfuelprices.models._base import FuelBaseModel
from pyfuelprices.models.snapshot import SourceStatus


class PricesResponse(FuelBaseModel):
    """``/api/prices`` without a location filter.

    Empty-but-valid (``{}``, ``null``, ``[]``) when no snapshot exists.
    """

    prices: dict[str, dict[str, float]] = Field(default_factory=dict)
    last_update: str | None = None
    sources: list[SourceStatus] = Field(default_factory=list)


class LocationPriceResponse(FuelBaseModel):
    """``/api/prices?city=...``; ``price`` is ``None`` for unknown locations."""

    location: str
    price: dict[str, float] | None = None
    last_update: str | None = None
    sources: list[SourceStatus] = Field(default_factory=list)


class RefreshSummary(FuelBaseModel):
    ok: bool = True
    cities: int
    sources: list[SourceStatus] = Field(default_factory=list)
    last_update: str


class HealthStatus(FuelBaseModel):
    ok: bool = True
    has_kv_env: bool
    kv_reachable: bool
    has_data: bool
    last_update: str | None = None
    refresh_in_progress: bool = False
