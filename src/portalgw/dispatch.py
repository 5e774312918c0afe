"""Fan command frames out to every controller of a portal."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from portalgw.devices.handle import DeviceRecord, SendResult
from portalgw.devices.registry import DeviceRegistry
from portalgw.exceptions import DeviceWriteError

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DispatchReport:
    """Per-cycle record of which controllers received the frame."""

    location: str
    frame: bytes
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class CommandDispatcher:
    """Send a frame to all controllers registered for a portal.

    A controller whose send fails is evicted from the registry (closing
    its connection) and stays offline until the hotplug supervisor finds
    it again. Sends run concurrently and one failure never affects the
    other controllers of the cycle.
    """

    def __init__(self, registry: DeviceRegistry) -> None:
        self._registry = registry

    async def _send(self, record: DeviceRecord, frame: bytes) -> SendResult:
        try:
            return await record.send(frame)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            return SendResult(record.path, DeviceWriteError(f"send to {record.path} failed: {exc!r}", path=record.path))

    async def dispatch(self, location: str, frame: bytes) -> DispatchReport:
        devices = self._registry.snapshot(location)
        report = DispatchReport(location=location, frame=frame)
        _logger.debug("sending data to %d devices", len(devices))
        if not devices:
            return report

        results = await asyncio.gather(*(self._send(record, frame) for record in devices))
        for record, result in zip(devices, results, strict=True):
            if result.ok:
                report.sent.append(record.path)
                continue
            _logger.warning(
                "%r -> device %s role '%s' got an error %s, taking device offline",
                frame,
                record.path,
                record.role,
                result.error,
            )
            await self._registry.remove(location, record.path, expected=record)
            report.failed.append(record.path)

        _logger.info("%r -> %s", frame, report.sent)
        return report
