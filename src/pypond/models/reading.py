"""Read results and cache status snapshots."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from pypond.models.metrics import NO_DATA, Metric, MetricValue


class ReadingSource(StrEnum):
    """Where a served value came from."""

    FRESH = "fresh"
    STALE = "stale"
    LAST_KNOWN = "last_known"
    FALLBACK = "fallback"
    NO_DATA = "no_data"


class MetricReading(BaseModel):
    """A resolved metric read.

    Parameters
    ----------
    metric : Metric
        The metric that was requested.
    value : float or None
        Served value, ``None`` only when ``source`` is ``no_data``.
    source : ReadingSource
        Provenance of ``value``.
    error : str or None
        Message of the fetch error recorded for the cycle that served
        this read, if that fetch failed.
    payload_age : float or None
        Seconds since the payload used was fetched, ``None`` without one.
    """

    model_config = ConfigDict(frozen=True)

    metric: Metric
    value: float | None
    source: ReadingSource
    error: str | None = None
    payload_age: float | None = None

    @property
    def metric_value(self) -> MetricValue:
        """``value`` with the ``NO_DATA`` sentinel in place of ``None``."""
        if self.value is None:
            return NO_DATA
        return self.value


class CacheStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_payload: bool
    refresh_in_flight: bool
    pending_waiters: int
    fetch_count: int
    failure_count: int
    last_error: str | None = None
    last_success_age: float | None = None
