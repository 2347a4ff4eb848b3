"""Bundled brand page layouts.

URLs and selectors follow the public price pages as last captured; they
drift with site redesigns and are meant to be edited here.
"""

from __future__ import annotations

from collections.abc import Iterable

from pyfuelprices._transport import Transport
from pyfuelprices.exceptions import FuelConfigError
from pyfuelprices.ingestion.normalize import SeparatorConvention
from pyfuelprices.models.prices import FuelType
from pyfuelprices.sources.html import BrandPageAdapter, BrandPageLayout

BRAND_LAYOUTS: dict[str, BrandPageLayout] = {
    "opet": BrandPageLayout(
        name="opet",
        url="https://www.opet.com.tr/akaryakit-fiyatlari",
        row_selector="table tr",
    ),
    "petrol_ofisi": BrandPageLayout(
        name="petrol_ofisi",
        url="https://www.petrolofisi.com.tr/akaryakit-fiyatlari",
        row_selector="table.table-prices tr",
    ),
    "shell": BrandPageLayout(
        name="shell",
        url="https://www.shell.com.tr/suruculer/shell-yakitlari/akaryakit-pompa-satis-fiyatlari.html",
        row_selector="table tbody tr",
        fuel_columns={FuelType.GASOLINE: 1, FuelType.DIESEL: 2, FuelType.LPG: 4},
        convention=SeparatorConvention.DECIMAL_COMMA,
    ),
}


def build_brand_adapters(transport: Transport, names: Iterable[str]) -> list[BrandPageAdapter]:
    """Instantiate adapters for the named layouts, in the given order."""
    adapters: list[BrandPageAdapter] = []
    for name in names:
        layout = BRAND_LAYOUTS.get(name.strip().lower())
        if layout is None:
            raise FuelConfigError(f"Unknown brand {name!r}; expected one of {sorted(BRAND_LAYOUTS)}")
        adapters.append(BrandPageAdapter(transport, layout))
    return adapters
