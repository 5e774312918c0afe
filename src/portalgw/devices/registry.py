"""Registry of attached controllers, keyed by portal and device path."""

from __future__ import annotations

import logging
import threading

from portalgw.devices.handle import DeviceRecord

_logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Concurrency-safe ``(location, path) -> DeviceRecord`` mapping.

    The registry exclusively owns the connections of the records it holds.
    Critical sections only copy or swap dictionary entries; connections
    are closed after the lock is released.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._devices: dict[str, dict[str, DeviceRecord]] = {}

    def snapshot(self, location: str) -> list[DeviceRecord]:
        """Copy of the records registered for *location*."""
        with self._lock:
            return list(self._devices.get(location, {}).values())

    def paths(self, location: str) -> set[str]:
        with self._lock:
            return set(self._devices.get(location, {}))

    def locations(self) -> list[str]:
        with self._lock:
            return [location for location, devices in self._devices.items() if devices]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(devices) for devices in self._devices.values())

    async def register_if_absent(self, record: DeviceRecord) -> bool:
        """Insert *record* unless its path is already registered for its location.

        The losing record of a race is closed and ``False`` returned.
        """
        with self._lock:
            devices = self._devices.setdefault(record.location, {})
            inserted = record.path not in devices
            if inserted:
                devices[record.path] = record

        if not inserted:
            await self._close(record)
        return inserted

    async def remove(
        self,
        location: str,
        path: str,
        *,
        expected: DeviceRecord | None = None,
    ) -> DeviceRecord | None:
        """Remove and close a record; a no-op when nothing is registered.

        With *expected*, the record is only removed while it is still the
        one registered for *path*.
        """
        with self._lock:
            devices = self._devices.get(location, {})
            record = devices.get(path)
            if record is None or (expected is not None and record is not expected):
                return None
            del devices[path]

        await self._close(record)
        return record

    async def close_all(self) -> list[DeviceRecord]:
        """Remove and close every record, returning what was removed."""
        with self._lock:
            records = [record for devices in self._devices.values() for record in devices.values()]
            self._devices.clear()

        for record in records:
            await self._close(record)
        return records

    @staticmethod
    async def _close(record: DeviceRecord) -> None:
        try:
            await record.close()
        except Exception:
            _logger.debug("closing %s for portal '%s' failed", record.path, record.location, exc_info=True)
