"""Source adapters.

One adapter per upstream. Every adapter turns raw upstream spellings into
location keys and raw price text into floats, and returns a
:class:`~pyfuelprices.models.PartialRecord`. Adapters never share state.
"""

from pyfuelprices.sources.base import ALL, AdapterKind, SourceAdapter
from pyfuelprices.sources.brands import BRAND_LAYOUTS, build_brand_adapters
from pyfuelprices.sources.collectapi import CollectApiAdapter
from pyfuelprices.sources.gas_price_api import GasPriceApiAdapter
from pyfuelprices.sources.html import BrandPageAdapter, BrandPageLayout, parse_brand_page

__all__ = [
    "ALL",
    "AdapterKind",
    "BRAND_LAYOUTS",
    "BrandPageAdapter",
    "BrandPageLayout",
    "CollectApiAdapter",
    "GasPriceApiAdapter",
    "SourceAdapter",
    "build_brand_adapters",
    "parse_brand_page",
]
