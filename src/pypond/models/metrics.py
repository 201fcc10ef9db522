"""Metric catalogue and per-metric transforms.

The five metrics form a closed set.  Each :class:`MetricSpec` carries the
payload field it reads, a pure transform, and the fallback used when no
value can be derived, so the cache itself never branches on metric kind.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import TYPE_CHECKING

from pypond._constants import WATER_LEVEL_MAX, WATER_LEVEL_MIN
from pypond.exceptions import UnknownMetricError
from pypond.ingestion.normalize import clamp
from pypond.models.payload import RawPayload

if TYPE_CHECKING:
    from pypond.config import PondConfig


class Metric(StrEnum):
    AIR_TEMPERATURE = "airTemperature"
    AIR_HUMIDITY = "airHumidity"
    SOIL_HUMIDITY = "soilHumidity"
    WATER_LEVEL = "waterLevel"
    WATER_TEMPERATURE = "waterTemperature"

    @classmethod
    def parse(cls, value: Metric | str) -> Metric:
        """Resolve a metric from a member or its string value.

        Raises :class:`UnknownMetricError` for anything else.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownMetricError(value) from None


class NoDataAvailable(enum.Enum):
    """Sentinel type for "nothing has ever been fetched and no fallback exists"."""

    NO_DATA = "no_data"

    def __repr__(self) -> str:
        return "NO_DATA"


NO_DATA = NoDataAvailable.NO_DATA

MetricValue = float | NoDataAvailable


def passthrough(value: float) -> float:
    return value


def subtract_offset(value: float, *, offset: float) -> float:
    """Temperature correction: ``value - offset``."""
    return value - offset


def distance_to_level(value: float, *, reference: float) -> float:
    """Water level from an ultrasound distance, clamped to 0-100."""
    return clamp(reference - value, WATER_LEVEL_MIN, WATER_LEVEL_MAX)


@dataclass(frozen=True, slots=True)
class MetricSpec:
    """Static description of one exposed metric."""

    metric: Metric
    source_field: str
    transform: Callable[[float], float]
    stale_fallback: float | None = None
    keep_last_known: bool = False
    unit: str = ""

    def derive(self, payload: RawPayload) -> float | None:
        """Apply the transform to *payload*; ``None`` when the field is missing."""
        raw_value = payload.get(self.source_field)
        if raw_value is None or not math.isfinite(raw_value):
            return None
        value = self.transform(raw_value)
        if not math.isfinite(value):
            return None
        return value


def build_metric_specs(config: PondConfig) -> Mapping[Metric, MetricSpec]:
    """Build the metric catalogue for *config*."""
    fallbacks = config.fallbacks
    keep = config.keep_last_known

    def _spec(metric: Metric, field: str, transform: Callable[[float], float], unit: str) -> MetricSpec:
        return MetricSpec(
            metric=metric,
            source_field=field,
            transform=transform,
            stale_fallback=fallbacks.get(metric),
            keep_last_known=keep,
            unit=unit,
        )

    return {
        Metric.AIR_TEMPERATURE: _spec(
            Metric.AIR_TEMPERATURE,
            "airtemperature",
            partial(subtract_offset, offset=config.correction_offset),
            "°C",
        ),
        Metric.AIR_HUMIDITY: _spec(Metric.AIR_HUMIDITY, "airhumidity", passthrough, "%"),
        Metric.SOIL_HUMIDITY: _spec(Metric.SOIL_HUMIDITY, "soilhumidity", passthrough, "%"),
        Metric.WATER_LEVEL: _spec(
            Metric.WATER_LEVEL,
            "waterlevel",
            partial(distance_to_level, reference=config.reference_distance),
            "%",
        ),
        Metric.WATER_TEMPERATURE: _spec(Metric.WATER_TEMPERATURE, "watertemperature", passthrough, "°C"),
    }
