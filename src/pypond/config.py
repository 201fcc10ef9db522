"""Client configuration for pypond."""

from __future__ import annotations

import dataclasses
import math
import os
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from yarl import URL

from pypond._constants import DEFAULT_NAME, DEFAULT_TIMEOUT, DEFAULT_URL
from pypond.exceptions import PondConfigError
from pypond.models.metrics import Metric


_TRUE_WORDS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "n", "off"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_WORDS:
        return True
    if normalized in _FALSE_WORDS:
        return False
    return default


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_WORDS:
        return True
    if normalized in _FALSE_WORDS:
        return False
    raise PondConfigError(f"Expected a boolean, got {value!r}")


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        raise PondConfigError(f"{key} must be a number, got {raw!r}") from None


def normalize_source_url(value: str) -> str:
    """Return *value* as an absolute http(s) URL string.

    Host-only values such as ``"localhost"`` or ``"192.168.1.7"`` get an
    ``http://`` scheme.  Anything that still lacks a host, or uses another
    scheme, raises :class:`PondConfigError`.
    """
    if not isinstance(value, str) or not value.strip():
        raise PondConfigError("source_url must be a non-empty string")
    text = value.strip()
    if "://" not in text:
        text = f"http://{text}"
    if not any(sep in text.split("://", 1)[1] for sep in "/?#"):
        text = f"{text}/"
    try:
        url = URL(text)
    except (TypeError, ValueError) as exc:
        raise PondConfigError(f"Invalid source_url {value!r}: {exc}") from exc
    if url.scheme not in {"http", "https"}:
        raise PondConfigError(f"source_url must use http or https, got {url.scheme!r}")
    if not url.host:
        raise PondConfigError(f"source_url has no host: {value!r}")
    return str(url)


@dataclasses.dataclass(frozen=True)
class PondConfig:
    """Client configuration.

    Parameters
    ----------
    source_url : str
        Address of the pond sensor endpoint.  A bare host is accepted and
        gets an ``http://`` scheme.
    correction_offset : float
        Subtracted from the raw air temperature.
    reference_distance : float
        Ultrasound distance from the sensor to the pond bottom.  Water
        level is ``reference_distance - waterlevel``, clamped to 0-100.
    timeout : float
        Hard limit in seconds for one fetch.
    fallbacks : Mapping[Metric, float]
        Static per-metric values served when nothing can be derived.
        Metrics without an entry resolve to ``NO_DATA`` instead.
    keep_last_known : bool
        When a successful payload lacks a field, serve the value that
        metric last derived before falling back.
    name : str
        Display name of the accessory, used in log messages.
    """

    source_url: str = DEFAULT_URL
    correction_offset: float = 0.0
    reference_distance: float = 0.0
    timeout: float = DEFAULT_TIMEOUT
    fallbacks: Mapping[Metric, float] = dataclasses.field(default_factory=dict)
    keep_last_known: bool = False
    name: str = DEFAULT_NAME

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_url", normalize_source_url(self.source_url))

        for field_name in ("correction_offset", "reference_distance", "timeout"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise PondConfigError(f"{field_name} must be a finite number, got {value!r}")
            object.__setattr__(self, field_name, float(value))
        if self.timeout <= 0:
            raise PondConfigError(f"timeout must be positive, got {self.timeout}")

        fallbacks: dict[Metric, float] = {}
        for key, value in dict(self.fallbacks).items():
            metric = Metric.parse(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise PondConfigError(f"fallback for {metric} must be a finite number, got {value!r}")
            fallbacks[metric] = float(value)
        object.__setattr__(self, "fallbacks", MappingProxyType(fallbacks))

        if not isinstance(self.keep_last_known, bool):
            raise PondConfigError(f"keep_last_known must be a bool, got {self.keep_last_known!r}")

    def replace(self, **changes: Any) -> PondConfig:
        """Return a validated copy with *changes* applied."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, **overrides: Any) -> PondConfig:
        """Create configuration from environment variables.

        Reads ``POND_URL``, ``POND_CORRECTION_OFFSET``,
        ``POND_REFERENCE_DISTANCE`` (or ``POND_ULTRASOUND_DISTANCE``),
        ``POND_TIMEOUT``, ``POND_KEEP_LAST_KNOWN``, ``POND_NAME`` and one
        ``POND_FALLBACK_<METRIC>`` per metric (e.g.
        ``POND_FALLBACK_SOILHUMIDITY``).  Explicit keyword arguments
        override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("POND_URL")
        if url is not None:
            config_kwargs["source_url"] = url
        name = env.get("POND_NAME")
        if name is not None:
            config_kwargs["name"] = name

        offset = _env_float(env, "POND_CORRECTION_OFFSET")
        if offset is not None:
            config_kwargs["correction_offset"] = offset

        distance = _env_float(env, "POND_REFERENCE_DISTANCE")
        if distance is None:
            distance = _env_float(env, "POND_ULTRASOUND_DISTANCE")
        if distance is not None:
            config_kwargs["reference_distance"] = distance

        timeout = _env_float(env, "POND_TIMEOUT")
        if timeout is not None:
            config_kwargs["timeout"] = timeout

        if "keep_last_known" not in overrides:
            config_kwargs["keep_last_known"] = _env_bool(env.get("POND_KEEP_LAST_KNOWN"), False)

        fallbacks: dict[Metric, float] = {}
        for metric in Metric:
            value = _env_float(env, f"POND_FALLBACK_{metric.value.upper()}")
            if value is not None:
                fallbacks[metric] = value
        if fallbacks:
            config_kwargs["fallbacks"] = fallbacks

        config_kwargs.update(overrides)
        return cls(**config_kwargs)

    @classmethod
    def from_accessory_config(cls, accessory: Mapping[str, Any]) -> PondConfig:
        """Create configuration from a bridge accessory config block.

        Recognized keys: ``name``, ``url``, ``ultrasound_distance``,
        ``temperature_correction``, ``timeout``, ``fallbacks`` and
        ``keep_last_known``.  Unknown keys (``accessory``, ``platform``...)
        are ignored.
        """
        config_kwargs: dict[str, Any] = {}
        key_map = {
            "name": "name",
            "url": "source_url",
            "ultrasound_distance": "reference_distance",
            "temperature_correction": "correction_offset",
            "timeout": "timeout",
            "fallbacks": "fallbacks",
            "keep_last_known": "keep_last_known",
        }
        for key, field_name in key_map.items():
            value = accessory.get(key)
            if value is None or value == "":
                continue
            if field_name == "keep_last_known" and isinstance(value, str):
                value = _parse_bool(value)
            config_kwargs[field_name] = value
        return cls(**config_kwargs)
