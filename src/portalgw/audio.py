"""Audio cue consumer.

Audio has two channels: an ambient loop that keeps playing until a new
ambient cue replaces it, and one-shot sound effects. Cues arrive by name
and are resolved to ``<audio_dir>/<cue>.ogg``; decoding and output are
left to whatever player is attached through :class:`CueSink`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from portalgw._queues import get_or_stop

_logger = logging.getLogger(__name__)

AUDIO_SUFFIX = ".ogg"


class CueSink(Protocol):
    """Output side of the audio player."""

    def loop(self, path: Path) -> None: ...

    def play(self, path: Path) -> None: ...


class LoggingSink:
    """Sink that only reports what would be played."""

    def loop(self, path: Path) -> None:
        _logger.debug("playing %s on loop", path)

    def play(self, path: Path) -> None:
        _logger.debug("playing %s", path)


class AudioPlayer:
    """Consume ambient and effect cues from the gateway."""

    def __init__(self, audio_dir: str | Path, sink: CueSink | None = None) -> None:
        self._audio_dir = Path(audio_dir)
        self._sink: CueSink = sink or LoggingSink()
        self.current_ambient: str | None = None
        self.played: list[str] = []

    def available_cues(self) -> list[str]:
        """Cue names with a matching sound file in the audio directory."""
        if not self._audio_dir.is_dir():
            return []
        return sorted(path.stem for path in self._audio_dir.rglob(f"*{AUDIO_SUFFIX}"))

    def resolve(self, cue: str) -> Path:
        path = self._audio_dir / f"{cue}{AUDIO_SUFFIX}"
        if not path.is_file():
            _logger.warning("audio file for cue '%s' not found at %s", cue, path)
        return path

    def set_ambient(self, cue: str) -> None:
        if cue == self.current_ambient:
            return
        self.current_ambient = cue
        self._sink.loop(self.resolve(cue))

    def play_effects(self, cues: Sequence[str]) -> None:
        for cue in cues:
            self.played.append(cue)
            self._sink.play(self.resolve(cue))

    async def run(
        self,
        ambient: asyncio.Queue[str],
        effects: asyncio.Queue[tuple[str, ...]],
        stop: asyncio.Event,
    ) -> None:
        """Play cues as they arrive until *stop* is set."""
        cues = self.available_cues()
        if cues:
            _logger.debug("audio cues available in %s: %s", self._audio_dir, ", ".join(cues))
        else:
            _logger.warning("no %s audio files found in %s", AUDIO_SUFFIX, self._audio_dir)

        ambient_get = asyncio.ensure_future(get_or_stop(ambient, stop))
        effects_get = asyncio.ensure_future(get_or_stop(effects, stop))
        try:
            while not stop.is_set():
                done, _ = await asyncio.wait({ambient_get, effects_get}, return_when=asyncio.FIRST_COMPLETED)
                if ambient_get in done:
                    cue = ambient_get.result()
                    if cue is not None:
                        self.set_ambient(cue)
                    ambient_get = asyncio.ensure_future(get_or_stop(ambient, stop))
                if effects_get in done:
                    batch = effects_get.result()
                    if batch is not None:
                        self.play_effects(batch)
                    effects_get = asyncio.ensure_future(get_or_stop(effects, stop))
        finally:
            for task in (ambient_get, effects_get):
                task.cancel()
