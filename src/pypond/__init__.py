"""pypond - Async read-through client for pond sensor telemetry."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pypond")
except PackageNotFoundError:
    __version__ = "0+local"
from pypond._cache import TelemetryCache
from pypond._transport import Fetcher, FetchResult, HttpFetcher
from pypond.client import PondClient
from pypond.config import PondConfig
from pypond.exceptions import (
    PondConfigError,
    PondDecodeError,
    PondError,
    PondFetchError,
    PondTimeoutError,
    PondTransportError,
    UnknownMetricError,
)
from pypond.models import (
    NO_DATA,
    CacheStatus,
    Metric,
    MetricReading,
    MetricSpec,
    MetricValue,
    NoDataAvailable,
    RawPayload,
    ReadingSource,
)

__all__ = [
    "__version__",
    "CacheStatus",
    "FetchResult",
    "Fetcher",
    "HttpFetcher",
    "Metric",
    "MetricReading",
    "MetricSpec",
    "MetricValue",
    "NO_DATA",
    "NoDataAvailable",
    "PondClient",
    "PondConfig",
    "PondConfigError",
    "PondDecodeError",
    "PondError",
    "PondFetchError",
    "PondTimeoutError",
    "PondTransportError",
    "RawPayload",
    "ReadingSource",
    "TelemetryCache",
    "UnknownMetricError",
]
