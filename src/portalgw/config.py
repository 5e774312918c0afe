"""Gateway configuration for portalgw."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import urlsplit

from portalgw._constants import (
    BAUDRATE,
    DEFAULT_AUDIO_DIR,
    DEFAULT_HOME,
    HANDSHAKE_TIMEOUT_S,
    HOTPLUG_INTERVAL_S,
    LOG_LEVELS,
    POLL_INTERVAL_S,
    REFRESH_INTERVAL_S,
    SEND_TIMEOUT_S,
    SETTLE_DELAY_S,
    SUPPORTED_SOURCE_SCHEMES,
)
from portalgw.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def split_list(value: str | None) -> tuple[str, ...]:
    """Split a comma separated option into its non-empty, stripped items."""
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclasses.dataclass(frozen=True)
class GatewayConfig:
    """Gateway configuration.

    Parameters
    ----------
    home : str
        Name of the portal whose state drives the attached controllers.
    sources : tuple[str, ...]
        Status feed URLs (concentrator or tecthulhu module).
    devices : tuple[str, ...]
        Serial device paths that are always supervised, regardless of
        automatic discovery.
    log_level : str
        One of trace, debug, info, warning, error, fatal.
    audio_dir : str
        Directory holding the ``<cue>.ogg`` sound files.
    auto_discover : bool
        Enumerate serial ports to find controllers.
    poll_interval : float
        Seconds between status fetches per source.
    hotplug_interval : float
        Seconds between device discovery scans.
    refresh_interval : float
        Seconds without news after which the home state is re-sent.
    settle_delay : float
        Seconds to wait after opening a port before the handshake.
    handshake_timeout : float
        Seconds allowed for the controller to answer the probe.
    send_timeout : float
        Seconds allowed for a single frame write.
    baudrate : int
        Serial line speed.
    """

    home: str = DEFAULT_HOME
    sources: tuple[str, ...] = ()
    devices: tuple[str, ...] = ()
    log_level: str = "warning"
    audio_dir: str = DEFAULT_AUDIO_DIR
    auto_discover: bool = True
    poll_interval: float = POLL_INTERVAL_S
    hotplug_interval: float = HOTPLUG_INTERVAL_S
    refresh_interval: float = REFRESH_INTERVAL_S
    settle_delay: float = SETTLE_DELAY_S
    handshake_timeout: float = HANDSHAKE_TIMEOUT_S
    send_timeout: float = SEND_TIMEOUT_S
    baudrate: int = BAUDRATE

    def validate(self) -> GatewayConfig:
        """Check the configuration, raising :class:`ConfigError` on problems.

        Returns ``self`` so calls can be chained after construction.
        """
        if not self.home.strip():
            raise ConfigError("home portal name must be non-empty")
        if not self.sources:
            raise ConfigError("No tecthulhu or concentrator status sources were specified")
        for url in self.sources:
            scheme = urlsplit(url).scheme.lower()
            if scheme not in SUPPORTED_SOURCE_SCHEMES:
                raise ConfigError(f"Unknown scheme '{scheme}' for status source {url}")
        if self.log_level.strip().lower() not in LOG_LEVELS:
            raise ConfigError(f"unrecognized log level '{self.log_level}'")
        for name in ("poll_interval", "hotplug_interval", "refresh_interval", "handshake_timeout", "send_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        if self.settle_delay < 0:
            raise ConfigError("settle_delay must not be negative")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> GatewayConfig:
        """Create configuration from ``PORTALGW_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "PORTALGW_HOME": "home",
            "PORTALGW_LOG_LEVEL": "log_level",
            "PORTALGW_AUDIO_DIR": "audio_dir",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_LIST_MAP = {
            "PORTALGW_SOURCES": "sources",
            "PORTALGW_DEVICES": "devices",
        }
        for env_key, field_name in _ENV_LIST_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = split_list(val)

        _ENV_FLOAT_MAP = {
            "PORTALGW_POLL_INTERVAL": "poll_interval",
            "PORTALGW_HOTPLUG_INTERVAL": "hotplug_interval",
            "PORTALGW_REFRESH_INTERVAL": "refresh_interval",
            "PORTALGW_SETTLE_DELAY": "settle_delay",
            "PORTALGW_HANDSHAKE_TIMEOUT": "handshake_timeout",
            "PORTALGW_SEND_TIMEOUT": "send_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise ConfigError(f"{env_key} must be a number, got {val!r}") from exc

        baud_env = env.get("PORTALGW_BAUDRATE")
        if baud_env is not None and "baudrate" not in overrides:
            try:
                config_kwargs["baudrate"] = int(baud_env)
            except ValueError as exc:
                raise ConfigError(f"PORTALGW_BAUDRATE must be an integer, got {baud_env!r}") from exc

        if "auto_discover" not in overrides:
            config_kwargs["auto_discover"] = _env_bool(env.get("PORTALGW_AUTO_DISCOVER"), True)

        # Lists may be handed over as comma separated strings (CLI flags).
        for field_name in ("sources", "devices"):
            value = overrides.get(field_name)
            if isinstance(value, str):
                overrides[field_name] = split_list(value)
            elif isinstance(value, list):
                overrides[field_name] = tuple(value)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
