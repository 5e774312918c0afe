"""Hotplug supervisor.

Periodically looks for controllers attached to the host, handshakes with
the ones that are not yet running and registers them for the home portal.
Controllers that vanish from the enumerated ports are evicted.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Iterable

from portalgw._constants import HOTPLUG_INTERVAL_S
from portalgw._queues import wait_or_stop
from portalgw.devices.discovery import DeviceCandidate, discover_devices
from portalgw.devices.handle import DeviceRecord, open_device
from portalgw.devices.registry import DeviceRegistry
from portalgw.exceptions import DiscoveryError, HandshakeError

_logger = logging.getLogger(__name__)

Opener = Callable[[str, str], Awaitable[DeviceRecord]]
Discover = Callable[[], list[DeviceCandidate]]


def make_opener(
    *,
    baudrate: int,
    settle_delay: float,
    handshake_timeout: float,
    send_timeout: float,
) -> Opener:
    """Bind serial settings to :func:`open_device`."""
    return functools.partial(
        open_device,
        baudrate=baudrate,
        settle_delay=settle_delay,
        handshake_timeout=handshake_timeout,
        send_timeout=send_timeout,
    )


class HotplugSupervisor:
    """Keep the registry in step with the controllers attached to the host.

    Parameters
    ----------
    home : str
        Portal the controllers are registered under.
    registry : DeviceRegistry
        Registry receiving classified controllers.
    opener : callable
        ``opener(path, location)`` opens and classifies a controller,
        raising :class:`HandshakeError` on failure.
    discover : callable
        Blocking port enumeration, run in the default executor.
    fixed_devices : iterable of str
        Paths that are always candidates, even without discovery.
    auto_discover : bool
        Whether to enumerate ports at all.
    interval : float
        Seconds between scans.
    """

    def __init__(
        self,
        home: str,
        registry: DeviceRegistry,
        *,
        opener: Opener,
        discover: Discover = discover_devices,
        fixed_devices: Iterable[str] = (),
        auto_discover: bool = True,
        interval: float = HOTPLUG_INTERVAL_S,
    ) -> None:
        self._home = home
        self._registry = registry
        self._opener = opener
        self._discover = discover
        self._fixed = tuple(fixed_devices)
        self._auto_discover = auto_discover
        self._interval = interval

    @property
    def auto_discover(self) -> bool:
        return self._auto_discover

    async def _candidates(self) -> tuple[set[str], bool]:
        """Candidate paths, and whether the enumeration is authoritative."""
        paths = set(self._fixed)
        if not self._auto_discover:
            return paths, False

        loop = asyncio.get_running_loop()
        try:
            found = await loop.run_in_executor(None, self._discover)
        except DiscoveryError as exc:
            _logger.error("automatic controller discovery disabled: %s", exc)
            self._auto_discover = False
            return paths, False

        if not found and not self._fixed:
            _logger.debug("no controllers found, still looking")
        paths.update(candidate.path for candidate in found)
        return paths, True

    async def _attach(self, path: str) -> DeviceRecord | None:
        try:
            record = await self._opener(path, self._home)
        except HandshakeError as exc:
            _logger.warning("controller at %s could not be started: %s", path, exc)
            return None

        if not await self._registry.register_if_absent(record):
            _logger.debug("controller at %s was registered concurrently, closed duplicate", path)
            return None
        _logger.info("controller at %s has the role of '%s'", record.path, record.role)
        return record

    async def scan_once(self) -> list[DeviceRecord]:
        """Run one discovery cycle and return the newly registered controllers."""
        candidates, authoritative = await self._candidates()
        running = self._registry.paths(self._home)

        if authoritative:
            for path in sorted(running - candidates):
                _logger.warning("controller at %s disappeared, taking it offline", path)
                await self._registry.remove(self._home, path)

        pending = sorted(candidates - running)
        if not pending:
            return []

        results = await asyncio.gather(*(self._attach(path) for path in pending), return_exceptions=True)
        attached: list[DeviceRecord] = []
        for path, result in zip(pending, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                _logger.error("starting controller at %s failed", path, exc_info=result)
                continue
            if result is not None:
                attached.append(result)
        return attached

    async def run(self, stop: asyncio.Event) -> None:
        """Scan every ``interval`` seconds until *stop* is set.

        A scan still in progress when *stop* is set is cancelled; controllers
        being opened at that moment are closed again.
        """
        while not stop.is_set():
            scan = asyncio.ensure_future(self.scan_once())
            stopper = asyncio.ensure_future(stop.wait())
            try:
                await asyncio.wait({scan, stopper}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                stopper.cancel()
                if not scan.done():
                    scan.cancel()
                    await asyncio.gather(scan, return_exceptions=True)
            if scan.cancelled():
                _logger.debug("controller scan interrupted by shutdown")
                break
            scan.result()
            if await wait_or_stop(stop, self._interval):
                break
