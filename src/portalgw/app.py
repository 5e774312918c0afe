"""Gateway application: wires the pollers, hotplug, gateway and audio tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from portalgw._constants import AUDIO_QUEUE_SIZE, ERROR_QUEUE_SIZE, STATUS_QUEUE_SIZE
from portalgw._queues import get_or_stop
from portalgw.audio import AudioPlayer, CueSink
from portalgw.config import GatewayConfig
from portalgw.devices.discovery import discover_devices
from portalgw.devices.hotplug import Discover, HotplugSupervisor, Opener, make_opener
from portalgw.devices.registry import DeviceRegistry
from portalgw.dispatch import CommandDispatcher
from portalgw.exceptions import GatewayError
from portalgw.gateway import GatewayLoop
from portalgw.ingestion.status import StatusSource
from portalgw.models.portal import LocationState
from portalgw.state.diff import StatusDiffEngine
from portalgw.state.store import LocationStore

_logger = logging.getLogger(__name__)

#: Seconds granted to tasks to notice the shutdown signal before they are cancelled.
SHUTDOWN_GRACE_S = 10.0


class GatewayApp:
    """The running gateway.

    Usage::

        async with GatewayApp(config) as app:
            await app.run(stop_event)
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        http_session: aiohttp.ClientSession | None = None,
        opener: Opener | None = None,
        discover: Discover = discover_devices,
        audio_sink: CueSink | None = None,
    ) -> None:
        self.config = config.validate()
        self._external_session = http_session is not None
        self._http_session = http_session

        self.store = LocationStore()
        self.registry = DeviceRegistry()
        self.engine = StatusDiffEngine(config.home, self.store)
        self.dispatcher = CommandDispatcher(self.registry)

        self.statuses: asyncio.Queue[LocationState] = asyncio.Queue(maxsize=STATUS_QUEUE_SIZE)
        self.ambient: asyncio.Queue[str] = asyncio.Queue(maxsize=AUDIO_QUEUE_SIZE)
        self.effects: asyncio.Queue[tuple[str, ...]] = asyncio.Queue(maxsize=AUDIO_QUEUE_SIZE)
        self.errors: asyncio.Queue[Exception] = asyncio.Queue(maxsize=ERROR_QUEUE_SIZE)

        self.gateway = GatewayLoop(
            self.engine,
            self.dispatcher,
            ambient=self.ambient,
            effects=self.effects,
            errors=self.errors,
            refresh_interval=config.refresh_interval,
        )
        self.hotplug = HotplugSupervisor(
            config.home,
            self.registry,
            opener=opener
            or make_opener(
                baudrate=config.baudrate,
                settle_delay=config.settle_delay,
                handshake_timeout=config.handshake_timeout,
                send_timeout=config.send_timeout,
            ),
            discover=discover,
            fixed_devices=config.devices,
            auto_discover=config.auto_discover,
            interval=config.hotplug_interval,
        )
        self.audio = AudioPlayer(config.audio_dir, audio_sink)
        self.sources: list[StatusSource] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GatewayApp:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self.sources = [StatusSource(url, self._http_session) for url in self.config.sources]
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close_devices()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self.sources = []

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    async def close_devices(self) -> None:
        for record in await self.registry.close_all():
            _logger.warning(
                "closing portal %s attached to device %s acting as a %s",
                record.location,
                record.path,
                record.role,
            )

    async def _drain_errors(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            error = await get_or_stop(self.errors, stop)
            if error is not None:
                _logger.warning("%s", error)

    async def run(self, stop: asyncio.Event) -> None:
        """Run every task until *stop* is set, then shut down in order.

        Raises
        ------
        GatewayError
            After the shutdown, when it was caused by a failing task.
        """
        if not self.sources:
            raise GatewayError("GatewayApp.run() must be called inside 'async with GatewayApp(...)'")

        tasks: list[asyncio.Task[None]] = [
            asyncio.create_task(self._drain_errors(stop), name="errors"),
            asyncio.create_task(self.audio.run(self.ambient, self.effects, stop), name="audio"),
            asyncio.create_task(self.hotplug.run(stop), name="hotplug"),
            asyncio.create_task(self.gateway.run(self.statuses, stop), name="gateway"),
        ]
        for source in self.sources:
            tasks.append(
                asyncio.create_task(
                    source.run(self.statuses, self.errors, stop, self.config.poll_interval),
                    name=f"poll {source.url}",
                )
            )

        stopper = asyncio.ensure_future(stop.wait())
        done, _ = await asyncio.wait({stopper, *tasks}, return_when=asyncio.FIRST_COMPLETED)
        failure: tuple[str, BaseException] | None = None
        for task in done:
            if task is stopper or task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                _logger.error("task '%s' failed, shutting down", task.get_name(), exc_info=error)
                failure = failure or (task.get_name(), error)
        stop.set()
        stopper.cancel()

        _, pending = await asyncio.wait(tasks, timeout=SHUTDOWN_GRACE_S)
        for task in pending:
            _logger.warning("task '%s' did not stop in time, cancelling", task.get_name())
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        await self.close_devices()
        if failure is not None:
            name, error = failure
            raise GatewayError(f"task '{name}' failed: {error!r}") from error
