"""Gateway loop.

Bridges portal status updates to the controllers of the home portal and to
the audio player. It is the single consumer of the status queue, so the
updates of each portal are processed in arrival order.
"""

from __future__ import annotations

import asyncio
import logging

from portalgw._constants import AUDIO_PUT_TIMEOUT_S, REFRESH_INTERVAL_S
from portalgw._queues import get_or_stop, put_with_timeout, report_error
from portalgw.dispatch import CommandDispatcher, DispatchReport
from portalgw.models.portal import LocationState
from portalgw.state.diff import StatusDiffEngine
from portalgw.state.events import Transition

_logger = logging.getLogger(__name__)


class GatewayLoop:
    """Apply status updates: diff, dispatch frames, emit audio cues.

    When no frame has gone to the home controllers for ``refresh_interval``
    seconds the last known home state is re-sent as a steady-state frame,
    however busy the other portals are, so controllers attached in the
    meantime pick it up.
    """

    def __init__(
        self,
        engine: StatusDiffEngine,
        dispatcher: CommandDispatcher,
        *,
        ambient: asyncio.Queue[str],
        effects: asyncio.Queue[tuple[str, ...]],
        errors: asyncio.Queue[Exception],
        refresh_interval: float = REFRESH_INTERVAL_S,
        audio_timeout: float = AUDIO_PUT_TIMEOUT_S,
    ) -> None:
        self._engine = engine
        self._dispatcher = dispatcher
        self._ambient = ambient
        self._effects = effects
        self._errors = errors
        self._refresh_interval = refresh_interval
        self._audio_timeout = audio_timeout
        self._audio_tasks: set[asyncio.Task[None]] = set()
        # Loop time of the last frame sent to the home controllers.
        self._last_home_frame = 0.0

    @property
    def home(self) -> str:
        return self._engine.home

    async def _deliver(self, queue: asyncio.Queue, cue: object, kind: str) -> None:
        if not await put_with_timeout(queue, cue, self._audio_timeout):
            _logger.warning("audio %s %s dropped, player is busy", kind, cue)

    def _emit_audio(self, transition: Transition) -> None:
        # Audio delivery must never hold up the controllers.
        pending = []
        if transition.ambient_cue is not None:
            pending.append(self._deliver(self._ambient, transition.ambient_cue, "ambient"))
        if transition.effects:
            pending.append(self._deliver(self._effects, transition.effects, "effects"))
        for coro in pending:
            task = asyncio.create_task(coro)
            self._audio_tasks.add(task)
            task.add_done_callback(self._audio_tasks.discard)

    async def handle(self, state: LocationState) -> DispatchReport | None:
        """Process one status update; returns the dispatch report for the home portal."""
        transition = self._engine.observe(state)
        if transition.location != self.home:
            _logger.debug("portal '%s' recorded, home portal is '%s'", transition.location, self.home)
            return None

        self._emit_audio(transition)
        if transition.frame is None:
            return None
        self._last_home_frame = asyncio.get_running_loop().time()
        return await self._dispatcher.dispatch(self.home, transition.frame)

    async def refresh(self) -> DispatchReport | None:
        """Re-send the last known home state, if any."""
        self._last_home_frame = asyncio.get_running_loop().time()
        frame = self._engine.encode_steady()
        if frame is None:
            _logger.debug("no data for home portal '%s' yet", self.home)
            return None
        return await self._dispatcher.dispatch(self.home, frame)

    async def drain_audio(self) -> None:
        """Wait for in-flight audio deliveries."""
        if self._audio_tasks:
            await asyncio.gather(*self._audio_tasks, return_exceptions=True)

    async def run(self, statuses: asyncio.Queue[LocationState], stop: asyncio.Event) -> None:
        """Consume *statuses* until *stop* is set."""
        loop = asyncio.get_running_loop()
        self._last_home_frame = loop.time()
        try:
            while not stop.is_set():
                wait = max(0.0, self._last_home_frame + self._refresh_interval - loop.time())
                state = await get_or_stop(statuses, stop, timeout=wait)
                if stop.is_set():
                    break
                try:
                    if state is not None:
                        await self.handle(state)
                    # Updates of other portals must not hold back the home refresh.
                    if loop.time() - self._last_home_frame >= self._refresh_interval:
                        await self.refresh()
                except Exception as exc:
                    _logger.debug("gateway cycle failed", exc_info=True)
                    await report_error(self._errors, exc)
        finally:
            for task in list(self._audio_tasks):
                task.cancel()
