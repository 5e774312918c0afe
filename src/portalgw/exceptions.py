"""Custom exception hierarchy for portalgw."""

from __future__ import annotations


class GatewayError(Exception):
    """Base exception for all portalgw errors."""


class ConfigError(GatewayError):
    """Invalid or missing configuration."""


class StatusSourceError(GatewayError):
    """Portal status could not be fetched or parsed (network, non-200, bad JSON)."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class DiscoveryError(GatewayError):
    """Serial device enumeration failed."""


class DeviceError(GatewayError):
    """Failure talking to an attached serial controller."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class HandshakeError(DeviceError):
    """Device did not answer the probe with a usable role line."""


class DeviceWriteError(DeviceError):
    """A command frame could not be written to the device."""
