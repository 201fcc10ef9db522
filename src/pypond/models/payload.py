"""Raw sensor payload model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pypond.ingestion.normalize import safe_float

#: Field names the sensor endpoint reports, in the order it sends them.
PAYLOAD_FIELDS: tuple[str, ...] = (
    "airtemperature",
    "airhumidity",
    "soilhumidity",
    "waterlevel",
    "watertemperature",
)


class RawPayload(BaseModel):
    """Decoded, untransformed field set from one successful fetch.

    Every numeric field is ``None`` when the value is absent or cannot be
    parsed as a finite number.  The original body is kept in ``raw``.

    Parameters
    ----------
    airtemperature : float or None
        Air temperature in °C.
    airhumidity : float or None
        Relative air humidity in %.
    soilhumidity : float or None
        Soil humidity in %.
    waterlevel : float or None
        Distance from the ultrasound sensor to the water surface.
    watertemperature : float or None
        Water temperature in °C.
    raw : dict
        Decoded response body as received.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )

    airtemperature: float | None = None
    airhumidity: float | None = None
    soilhumidity: float | None = None
    waterlevel: float | None = None
    watertemperature: float | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged["raw"] = values  # a "raw" key sent by the sensor is data, not our stash
        return merged

    @field_validator(*PAYLOAD_FIELDS, mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @classmethod
    def from_api(cls, body: dict[str, Any]) -> RawPayload:
        """Build a payload from a decoded JSON object."""
        return cls.model_validate(body)

    def get(self, field_name: str) -> float | None:
        """Return the value of *field_name*, or ``None`` when missing."""
        if field_name not in PAYLOAD_FIELDS:
            raise KeyError(field_name)
        value: float | None = getattr(self, field_name)
        return value

    @property
    def missing_fields(self) -> tuple[str, ...]:
        return tuple(name for name in PAYLOAD_FIELDS if getattr(self, name) is None)
