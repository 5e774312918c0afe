from __future__ import annotations

import dataclasses

import pytest

from portalgw.config import GatewayConfig, split_list
from portalgw.exceptions import ConfigError

_ENV_KEYS = (
    "PORTALGW_HOME",
    "PORTALGW_SOURCES",
    "PORTALGW_DEVICES",
    "PORTALGW_LOG_LEVEL",
    "PORTALGW_AUDIO_DIR",
    "PORTALGW_AUTO_DISCOVER",
    "PORTALGW_POLL_INTERVAL",
    "PORTALGW_BAUDRATE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_split_list() -> None:
    assert split_list(" http://a , ,http://b ") == ("http://a", "http://b")
    assert split_list(None) == ()


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTALGW_HOME", "Alpha")
    monkeypatch.setenv("PORTALGW_SOURCES", "http://10.0.0.5,http://10.0.0.6")
    monkeypatch.setenv("PORTALGW_DEVICES", "/dev/ttyUSB0")
    monkeypatch.setenv("PORTALGW_AUTO_DISCOVER", "off")
    monkeypatch.setenv("PORTALGW_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("PORTALGW_BAUDRATE", "9600")

    config = GatewayConfig.from_env().validate()

    assert config.home == "Alpha"
    assert config.sources == ("http://10.0.0.5", "http://10.0.0.6")
    assert config.devices == ("/dev/ttyUSB0",)
    assert config.auto_discover is False
    assert config.poll_interval == 0.5
    assert config.baudrate == 9600


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTALGW_HOME", "Alpha")
    monkeypatch.setenv("PORTALGW_POLL_INTERVAL", "0.5")

    config = GatewayConfig.from_env(home="Beta", sources="http://a, http://b", poll_interval=3.0)

    assert config.home == "Beta"
    assert config.sources == ("http://a", "http://b")
    assert config.poll_interval == 3.0


def test_bad_number_in_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTALGW_POLL_INTERVAL", "soon")

    with pytest.raises(ConfigError, match="PORTALGW_POLL_INTERVAL"):
        GatewayConfig.from_env()


def test_sources_required() -> None:
    with pytest.raises(ConfigError, match="status sources"):
        GatewayConfig().validate()


@pytest.mark.parametrize("url", ["serial:///dev/ttyUSB0", "ftp://host/status", "10.0.0.5"])
def test_unsupported_source_scheme(url: str) -> None:
    with pytest.raises(ConfigError, match="Unknown scheme"):
        GatewayConfig(sources=(url,)).validate()


def test_bad_log_level() -> None:
    with pytest.raises(ConfigError, match="log level"):
        GatewayConfig(sources=("http://a",), log_level="chatty").validate()


def test_intervals_must_be_positive() -> None:
    with pytest.raises(ConfigError, match="refresh_interval"):
        GatewayConfig(sources=("http://a",), refresh_interval=0).validate()


def test_empty_home_rejected() -> None:
    with pytest.raises(ConfigError):
        GatewayConfig(home="  ", sources=("http://a",)).validate()


def test_config_is_frozen() -> None:
    config = GatewayConfig(sources=("http://a",))
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.home = "Beta"  # type: ignore[misc]
