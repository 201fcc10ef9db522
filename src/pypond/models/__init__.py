"""Data models for pond sensor telemetry."""

from pypond.models.metrics import (
    NO_DATA,
    Metric,
    MetricSpec,
    MetricValue,
    NoDataAvailable,
    build_metric_specs,
)
from pypond.models.payload import PAYLOAD_FIELDS, RawPayload
from pypond.models.reading import CacheStatus, MetricReading, ReadingSource

__all__ = [
    "CacheStatus",
    "Metric",
    "MetricReading",
    "MetricSpec",
    "MetricValue",
    "NO_DATA",
    "NoDataAvailable",
    "PAYLOAD_FIELDS",
    "RawPayload",
    "ReadingSource",
    "build_metric_specs",
]
