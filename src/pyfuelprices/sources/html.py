"""Bulk adapter for brand price pages published as HTML tables.

Extraction is driven by a declarative :class:`BrandPageLayout`, so markup
drift on a brand site means editing a layout, not code. The parser is a
pure function and is tested against captured pages.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping

from bs4 import BeautifulSoup, Tag

from pyfuelprices._transport import Transport
from pyfuelprices.ingestion.normalize import (
    SeparatorConvention,
    normalize_district_key,
    normalize_location_key,
    parse_price,
)
from pyfuelprices.models.prices import FuelType, PartialRecord
from pyfuelprices.sources.base import ALL, AdapterKind

_logger = logging.getLogger(__name__)

_PLACEHOLDERS = frozenset({"", "-", "--", "—", "n/a", "yok"})


@dataclasses.dataclass(frozen=True)
class BrandPageLayout:
    """Where the prices live on a brand page.

    Parameters
    ----------
    name : str
        Source name reported in snapshots.
    url : str
        Page listing every location.
    row_selector : str
        CSS selector matching one element per location row.
    location_column : int
        Cell index holding the location name.
    fuel_columns : mapping or None
        ``{FuelType: cell index}``. When ``None`` the columns are derived
        from the header cells via :meth:`FuelType.from_label`.
    convention : SeparatorConvention
        Decimal separator used by the page.
    district_keys : bool
        Use :func:`normalize_district_key` so ``"İstanbul (Avrupa)"`` and
        ``"İstanbul (Anadolu)"`` stay separate locations.
    """

    name: str
    url: str
    row_selector: str = "table tr"
    location_column: int = 0
    fuel_columns: Mapping[FuelType, int] | None = None
    convention: SeparatorConvention = SeparatorConvention.DECIMAL_COMMA
    district_keys: bool = False


def _cells(row: Tag) -> list[str]:
    return [cell.get_text(" ", strip=True) for cell in row.find_all(["td", "th"])]


def _is_header(row: Tag) -> bool:
    return row.find("th") is not None and row.find("td") is None


def _columns_from_header(rows: list[Tag]) -> dict[FuelType, int]:
    for row in rows:
        if not _is_header(row):
            continue
        columns: dict[FuelType, int] = {}
        for index, label in enumerate(_cells(row)):
            fuel_type = FuelType.from_label(label)
            if fuel_type is not None and fuel_type not in columns:
                columns[fuel_type] = index
        if columns:
            return columns
    return {}


def parse_brand_page(html: str, layout: BrandPageLayout) -> PartialRecord:
    """Extract every location row of a brand page.

    A malformed row (too few cells, unusable location, unparseable price)
    is skipped and noted in ``issues``; it never fails the whole page.
    Several rows for the same location keep the lowest price per fuel.
    """
    soup = BeautifulSoup(html, "html.parser")
    rows = soup.select(layout.row_selector)
    columns = dict(layout.fuel_columns) if layout.fuel_columns is not None else _columns_from_header(rows)
    if not columns:
        return PartialRecord(source=layout.name, issues=["no fuel columns found"])

    to_key = normalize_district_key if layout.district_keys else normalize_location_key
    prices: dict[str, dict[FuelType, float]] = {}
    issues: list[str] = []

    for index, row in enumerate(rows):
        if _is_header(row):
            continue
        cells = _cells(row)
        if len(cells) <= layout.location_column:
            issues.append(f"row {index}: missing location cell")
            continue
        key = to_key(cells[layout.location_column])
        if not key:
            issues.append(f"row {index}: unusable location {cells[layout.location_column]!r}")
            continue

        row_prices: dict[FuelType, float] = {}
        for fuel_type, column in columns.items():
            if column >= len(cells):
                issues.append(f"row {index} ({key}): missing {fuel_type} cell")
                continue
            text = cells[column]
            price = parse_price(text, layout.convention)
            if price is None:
                if text.strip().lower() not in _PLACEHOLDERS:
                    issues.append(f"row {index} ({key}): unparseable {fuel_type} {text!r}")
                continue
            row_prices[fuel_type] = price

        existing = prices.setdefault(key, {})
        for fuel_type, price in row_prices.items():
            current = existing.get(fuel_type)
            existing[fuel_type] = price if current is None else min(current, price)

    return PartialRecord(source=layout.name, prices=prices, issues=issues)


class BrandPageAdapter:
    """Bulk adapter: one GET returns every location the brand lists."""

    kind = AdapterKind.BULK

    def __init__(self, transport: Transport, layout: BrandPageLayout) -> None:
        self._transport = transport
        self.layout = layout

    @property
    def name(self) -> str:
        return self.layout.name

    async def fetch(self, target: str = ALL) -> PartialRecord:
        html = await self._transport.get_text(self.layout.url)
        record = parse_brand_page(html, self.layout)
        if record.issues:
            _logger.debug("%s: %d rows skipped", self.name, len(record.issues))
        if target == ALL:
            return record
        to_key = normalize_district_key if self.layout.district_keys else normalize_location_key
        key = to_key(target)
        return PartialRecord(
            source=record.source,
            prices={k: v for k, v in record.prices.items() if k == key},
            issues=record.issues,
        )
