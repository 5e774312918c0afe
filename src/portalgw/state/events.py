"""Transition descriptors and audio cue naming.

The diff engine turns every observed :class:`LocationState` into a
:class:`Transition`. Only the gateway consumes transitions; they carry
everything needed to drive the controllers and the audio player.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from portalgw.models.portal import Faction


class CueKind(StrEnum):
    AMBIENT = "ambient"
    CAPTURE = "capture"
    LOSS = "loss"


FACTION_CUE_TOKENS: dict[Faction, str] = {
    Faction.NEUTRAL: "n",
    Faction.ENLIGHTENED: "e",
    Faction.RESISTANCE: "r",
}


def cue_name(faction: Faction, kind: CueKind) -> str | None:
    """Return the cue for *faction*, e.g. ``"e-capture"``; ``None`` if unmapped."""
    token = FACTION_CUE_TOKENS.get(faction)
    if token is None:
        return None
    return f"{token}-{kind}"


class Transition(BaseModel):
    """What changed for a location in one observation cycle."""

    model_config = ConfigDict(frozen=True)

    location: str
    faction: Faction
    previous_faction: Faction
    faction_changed: bool = False
    first_observation: bool = False
    ambient_cue: str | None = None
    effects: tuple[str, ...] = Field(default=(), description="One-shot cues, in play order")
    frame: bytes | None = Field(default=None, description="Command frame; only built for the home location")
