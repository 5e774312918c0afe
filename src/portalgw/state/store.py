"""Last-known portal state store.

The store is owned by the gateway and handed to the diff engine; there is
no process wide state. Access is serialised by a lock whose critical
sections only read or swap dictionary entries.
"""

from __future__ import annotations

import threading

from portalgw.models.portal import LocationState


class LocationStore:
    """Holds exactly one last-known :class:`LocationState` per location."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, LocationState] = {}

    def get(self, name: str) -> LocationState | None:
        with self._lock:
            return self._states.get(name)

    def swap(self, state: LocationState) -> LocationState | None:
        """Store *state* as last known and return the state it replaced."""
        with self._lock:
            previous = self._states.get(state.name)
            self._states[state.name] = state
            return previous

    def names(self) -> list[str]:
        with self._lock:
            return list(self._states)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
