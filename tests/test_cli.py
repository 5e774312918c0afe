from __future__ import annotations

import pytest

from portalgw import cli
from portalgw.config import GatewayConfig
from portalgw.exceptions import GatewayError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("PORTALGW_SOURCES", "PORTALGW_DEVICES", "PORTALGW_HOME", "PORTALGW_AUTO_DISCOVER"):
        monkeypatch.delenv(key, raising=False)


def test_legacy_flag_names() -> None:
    args = cli.build_parser().parse_args(
        ["--tecthulhus", "http://10.0.0.5,http://10.0.0.6", "--arduinos", "/dev/ttyUSB0", "--no-discover"]
    )

    config = cli.config_from_args(args)

    assert config.sources == ("http://10.0.0.5", "http://10.0.0.6")
    assert config.devices == ("/dev/ttyUSB0",)
    assert config.auto_discover is False


def test_defaults_come_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTALGW_SOURCES", "http://10.0.0.5")
    monkeypatch.setenv("PORTALGW_HOME", "Alpha")

    config = cli.config_from_args(cli.build_parser().parse_args(["--loglevel", "debug"]))

    assert config.home == "Alpha"
    assert config.log_level == "debug"
    assert config.auto_discover is True


def test_main_rejects_missing_sources() -> None:
    assert cli.main([]) == 1


def test_main_rejects_unknown_scheme() -> None:
    assert cli.main(["--sources", "serial:///dev/ttyUSB0"]) == 1


def test_main_serves_valid_config(monkeypatch: pytest.MonkeyPatch) -> None:
    served: list[GatewayConfig] = []

    async def fake_serve(config: GatewayConfig) -> None:
        served.append(config)

    monkeypatch.setattr(cli, "_serve", fake_serve)

    assert cli.main(["--sources", "http://10.0.0.5", "--home", "Beta"]) == 0
    assert [config.home for config in served] == ["Beta"]


def test_main_reports_gateway_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing_serve(config: GatewayConfig) -> None:
        raise GatewayError("task 'poll http://10.0.0.5' failed")

    monkeypatch.setattr(cli, "_serve", failing_serve)

    assert cli.main(["--sources", "http://10.0.0.5"]) == 1
