"""Merged records and the cached snapshot."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field, ValidationError, computed_field, field_validator

from pyfuelprices.models._base import FuelBaseModel
from pyfuelprices.models.prices import FuelType, LocationKey
from pyfuelprices.state.policy import MergeMode


class MergedFuelPrice(FuelBaseModel):
    """Reconciled price for one (location, fuel type) pair.

    ``readings`` holds the per-source price that went into the merge, so
    consumers can filter by source without a second fetch.
    """

    price: float
    average: float | None = None
    readings: dict[str, float] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def sources(self) -> list[str]:
        return sorted(self.readings)


#: ``{LocationKey: {FuelType: MergedFuelPrice}}``
MergedRecord = dict[LocationKey, dict[FuelType, MergedFuelPrice]]


class SourceStatus(FuelBaseModel):
    """Outcome of one source during a refresh."""

    name: str
    succeeded: bool
    locations: int = 0
    error: str | None = None


class Snapshot(FuelBaseModel):
    """The complete cached state served to readers."""

    records: MergedRecord = Field(default_factory=dict)
    generated_at: datetime
    sources: list[SourceStatus] = Field(default_factory=list)
    mode: MergeMode = MergeMode.MIN

    @field_validator("generated_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def last_update(self) -> str:
        """ISO-8601 timestamp of generation."""
        return self.generated_at.isoformat()

    @property
    def location_count(self) -> int:
        return len(self.records)

    def price_table(self, source: str | None = None) -> dict[LocationKey, dict[str, float]]:
        """Flatten records to ``{location: {fuel: price}}``.

        With *source*, only values reported by that source are kept and
        locations it did not report are omitted.
        """
        table: dict[LocationKey, dict[str, float]] = {}
        for location, by_fuel in self.records.items():
            row: dict[str, float] = {}
            for fuel_type, merged in by_fuel.items():
                if source is None:
                    row[fuel_type.value] = merged.price
                elif source in merged.readings:
                    row[fuel_type.value] = merged.readings[source]
            if row:
                table[location] = row
        return table

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, text: str | bytes | None) -> Snapshot | None:
        """Deserialize a stored snapshot; any failure means "no snapshot"."""
        if not text:
            return None
        try:
            return cls.model_validate_json(text)
        except ValidationError:
            return None
