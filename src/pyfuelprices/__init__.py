"""pyfuelprices - Async multi-source fuel price aggregation and caching."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfuelprices")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfuelprices.client import FuelPriceClient
from pyfuelprices.config import FuelConfig
from pyfuelprices.exceptions import (
    FuelCacheTransportError,
    FuelConfigError,
    FuelDeadlineExceededError,
    FuelError,
    FuelFetchError,
    FuelParseError,
    FuelPermanentFetchError,
    FuelRefreshError,
    FuelSnapshotWriteError,
    FuelTransientFetchError,
)
from pyfuelprices.fetch import FetchExecutor, FetchOutcome, RetryPolicy
from pyfuelprices.ingestion.normalize import (
    SeparatorConvention,
    normalize_district_key,
    normalize_location_key,
    parse_price,
)
from pyfuelprices.models import (
    FuelReading,
    FuelType,
    HealthStatus,
    LocationPriceResponse,
    MergedFuelPrice,
    PartialRecord,
    PricesResponse,
    RefreshSummary,
    Snapshot,
    SourceStatus,
)
from pyfuelprices.state.merge import merge
from pyfuelprices.state.policy import MergeMode

__all__ = [
    "__version__",
    "FetchExecutor",
    "FetchOutcome",
    "FuelCacheTransportError",
    "FuelConfig",
    "FuelConfigError",
    "FuelDeadlineExceededError",
    "FuelError",
    "FuelFetchError",
    "FuelParseError",
    "FuelPermanentFetchError",
    "FuelPriceClient",
    "FuelReading",
    "FuelRefreshError",
    "FuelSnapshotWriteError",
    "FuelTransientFetchError",
    "FuelType",
    "HealthStatus",
    "LocationPriceResponse",
    "MergeMode",
    "MergedFuelPrice",
    "PartialRecord",
    "PricesResponse",
    "RefreshSummary",
    "RetryPolicy",
    "SeparatorConvention",
    "Snapshot",
    "SourceStatus",
    "merge",
    "normalize_district_key",
    "normalize_location_key",
    "parse_price",
]
