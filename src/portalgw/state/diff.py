"""Status diff engine.

Compares each newly observed portal state with the last known state of
the same portal and derives the audio cues and controller frame for the
cycle.
"""

from __future__ import annotations

import logging

from portalgw.encoding import build_frame
from portalgw.models.portal import Faction, LocationState
from portalgw.state.events import CueKind, Transition, cue_name
from portalgw.state.store import LocationStore

_logger = logging.getLogger(__name__)


def _cue(faction: Faction, kind: CueKind, location: str) -> str | None:
    name = cue_name(faction, kind)
    if name is None:
        _logger.warning("unknown faction '%s' at portal '%s', no %s cue", faction, location, kind)
    return name


class StatusDiffEngine:
    """Derive transitions from consecutive observations.

    Parameters
    ----------
    home : str
        Portal whose observations produce a command frame.
    store : LocationStore
        Last-known state per portal. Every observation replaces the
        stored state, whether or not it is the home portal.
    """

    def __init__(self, home: str, store: LocationStore) -> None:
        self._home = home
        self._store = store

    @property
    def home(self) -> str:
        return self._home

    @property
    def store(self) -> LocationStore:
        return self._store

    def observe(self, state: LocationState) -> Transition:
        """Record *state* and return what changed since the last observation."""
        previous = self._store.swap(state)

        # The first sighting seeds history: no capture/loss, but the
        # ambient loop must be started.
        first_observation = previous is None
        prior_faction = state.faction if previous is None else previous.faction
        faction_changed = prior_faction != state.faction

        effects: list[str] = []
        if faction_changed:
            for faction, kind in ((prior_faction, CueKind.LOSS), (state.faction, CueKind.CAPTURE)):
                name = _cue(faction, kind, state.name)
                if name is not None:
                    effects.append(name)

        ambient: str | None = None
        if faction_changed or first_observation:
            ambient = _cue(state.faction, CueKind.AMBIENT, state.name)

        frame: bytes | None = None
        if state.name == self._home:
            frame = build_frame(state, faction_changed=faction_changed)

        if faction_changed:
            _logger.info("portal '%s' changed hands %s -> %s", state.name, prior_faction, state.faction)

        return Transition(
            location=state.name,
            faction=state.faction,
            previous_faction=prior_faction,
            faction_changed=faction_changed,
            first_observation=first_observation,
            ambient_cue=ambient,
            effects=tuple(effects),
            frame=frame,
        )

    def encode_steady(self, name: str | None = None) -> bytes | None:
        """Re-encode the last known state of *name* (default: home) as a steady-state frame."""
        state = self._store.get(name or self._home)
        if state is None:
            return None
        return build_frame(state, faction_changed=False)
