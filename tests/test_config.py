from __future__ import annotations

import pytest

from pypond.config import PondConfig
from pypond.exceptions import PondConfigError, UnknownMetricError
from pypond.models.metrics import Metric


def test_bare_host_gets_http_scheme() -> None:
    assert PondConfig(source_url="192.168.1.7").source_url == "http://192.168.1.7/"
    assert PondConfig(source_url="localhost").source_url == "http://localhost/"


def test_defaults() -> None:
    config = PondConfig()

    assert config.source_url == "http://localhost/"
    assert config.correction_offset == 0.0
    assert config.reference_distance == 0.0
    assert config.timeout == 10.0
    assert dict(config.fallbacks) == {}


@pytest.mark.parametrize("url", ["", "   ", "ftp://pond.local/", "http://"])
def test_invalid_source_url_rejected(url: str) -> None:
    with pytest.raises(PondConfigError):
        PondConfig(source_url=url)


@pytest.mark.parametrize("timeout", [0, -1, float("nan")])
def test_invalid_timeout_rejected(timeout: float) -> None:
    with pytest.raises(PondConfigError):
        PondConfig(timeout=timeout)


def test_unknown_fallback_metric_rejected() -> None:
    with pytest.raises(UnknownMetricError):
        PondConfig(fallbacks={"phLevel": 7})


def test_fallback_keys_normalized_to_metrics() -> None:
    config = PondConfig(fallbacks={"soilHumidity": 20})

    assert config.fallbacks == {Metric.SOIL_HUMIDITY: 20.0}
    with pytest.raises(TypeError):
        config.fallbacks[Metric.AIR_HUMIDITY] = 1.0  # type: ignore[index]


def test_replace_validates() -> None:
    config = PondConfig(source_url="pond.local")

    assert config.replace(timeout=3).timeout == 3.0
    with pytest.raises(PondConfigError):
        config.replace(timeout=0)


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POND_URL", "192.168.1.7")
    monkeypatch.setenv("POND_CORRECTION_OFFSET", "1.5")
    monkeypatch.setenv("POND_ULTRASOUND_DISTANCE", "120")
    monkeypatch.setenv("POND_TIMEOUT", "4")
    monkeypatch.setenv("POND_KEEP_LAST_KNOWN", "yes")
    monkeypatch.setenv("POND_FALLBACK_SOILHUMIDITY", "25")

    config = PondConfig.from_env(name="Garden pond")

    assert config.source_url == "http://192.168.1.7/"
    assert config.correction_offset == 1.5
    assert config.reference_distance == 120.0
    assert config.timeout == 4.0
    assert config.keep_last_known is True
    assert config.fallbacks == {Metric.SOIL_HUMIDITY: 25.0}
    assert config.name == "Garden pond"


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POND_TIMEOUT", "soon")

    with pytest.raises(PondConfigError):
        PondConfig.from_env()


def test_from_accessory_config() -> None:
    config = PondConfig.from_accessory_config(
        {
            "accessory": "Pondsensors",
            "name": "Pond",
            "url": "http://192.168.1.7/",
            "ultrasound_distance": 110,
        }
    )

    assert config.name == "Pond"
    assert config.source_url == "http://192.168.1.7/"
    assert config.reference_distance == 110.0
    assert config.correction_offset == 0.0


@pytest.mark.parametrize(("raw", "expected"), [("false", False), ("off", False), ("true", True), (True, True)])
def test_accessory_keep_last_known_parsed_as_bool(raw: object, expected: bool) -> None:
    config = PondConfig.from_accessory_config({"keep_last_known": raw})

    assert config.keep_last_known is expected


def test_accessory_keep_last_known_rejects_unknown_word() -> None:
    with pytest.raises(PondConfigError):
        PondConfig.from_accessory_config({"keep_last_known": "maybe"})


def test_keep_last_known_must_be_bool() -> None:
    with pytest.raises(PondConfigError):
        PondConfig(keep_last_known="false")  # type: ignore[arg-type]
