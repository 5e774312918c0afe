"""Serial controller discovery.

Controllers are Arduino boards or boards behind a USB UART bridge. Ports
are recognised either by the USB metadata pyserial exposes or by the
device path naming conventions of Linux and macOS.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from serial.tools import list_ports
from serial.tools.list_ports_common import ListPortInfo

from portalgw.exceptions import DiscoveryError

_logger = logging.getLogger(__name__)

_USB_UART_PREFIXES: tuple[str, ...] = (
    "/dev/ttyUSB",
    "/dev/ttyACM",
    "/dev/tty.usbserial",
    "/dev/cu.usbserial",
    "/dev/tty.usbmodem",
    "/dev/cu.usbmodem",
)


@dataclass(frozen=True, slots=True)
class DeviceCandidate:
    """A serial port that may host a controller."""

    path: str
    serial_number: str = ""
    description: str = ""


def is_controller_port(port: ListPortInfo) -> bool:
    """Heuristic: Arduino metadata, or a USB UART device path."""
    text = " ".join(
        str(value)
        for value in (port.description, port.manufacturer, port.product, port.serial_number, port.hwid)
        if value
    ).casefold()
    if "arduino" in text:
        return True
    return (port.device or "").startswith(_USB_UART_PREFIXES)


def discover_devices() -> list[DeviceCandidate]:
    """Enumerate serial ports that look like controllers.

    Raises
    ------
    DiscoveryError
        When the host's serial ports cannot be enumerated.
    """
    try:
        ports = list_ports.comports()
    except Exception as exc:
        raise DiscoveryError(f"serial port enumeration failed: {exc}") from exc

    candidates: list[DeviceCandidate] = []
    for port in ports:
        if not port.device or not is_controller_port(port):
            continue
        candidate = DeviceCandidate(
            path=port.device,
            serial_number=port.serial_number or "",
            description=port.description or "",
        )
        _logger.debug("found controller candidate %s serial # '%s'", candidate.path, candidate.serial_number)
        candidates.append(candidate)
    return candidates
