"""Portal (location) status models.

Two feed formats are accepted:

* the concentrator feed, wrapped in ``externalApiPortal`` with a
  capitalised ``Title`` and mods given as objects, and
* the tecthulhu module feed, wrapped in ``status`` with mods given as
  short strings such as ``"HS-VR"``.

Both are parsed into the same immutable :class:`LocationState`.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from portalgw.ingestion.normalize import safe_float, safe_int, safe_str, split_mod_code
from portalgw.models._base import GwBaseModel, GwEnum

# Envelope keys wrapping the portal object, in lookup order.
_ENVELOPE_KEYS: tuple[str, ...] = ("externalApiPortal", "status")

MAX_RESONATORS = 8
MAX_MODS = 4


class Faction(GwEnum):
    """Controlling faction of a portal."""

    UNKNOWN = "Unknown"
    NEUTRAL = "Neutral"
    ENLIGHTENED = "Enlightened"
    RESISTANCE = "Resistance"


class ResonatorState(GwBaseModel):
    """A single resonator deployed on a portal.

    Parameters
    ----------
    position : str
        Compass point (``N``, ``NE``, ... ``NW``), upper-cased.
    level : int
        Resonator level, 0-8.
    health : float
        Remaining health in percent.
    owner : str or None
        Agent that deployed the resonator.
    """

    position: str = ""
    level: int = 0
    health: float = 0.0
    owner: str | None = None

    @field_validator("position", mode="before")
    @classmethod
    def _normalize_position(cls, value: Any) -> str:
        return (safe_str(value) or "").upper()

    @field_validator("level", mode="before")
    @classmethod
    def _coerce_level(cls, value: Any) -> int:
        return safe_int(value) or 0

    @field_validator("health", mode="before")
    @classmethod
    def _coerce_health(cls, value: Any) -> float:
        return safe_float(value) or 0.0


class ModSlot(GwBaseModel):
    """A mod installed in one of the four portal slots."""

    slot: int = 0
    type: str = ""
    rarity: str = ""
    owner: str | None = None

    @field_validator("slot", mode="before")
    @classmethod
    def _coerce_slot(cls, value: Any) -> int:
        return safe_int(value) or 0

    @field_validator("type", "rarity", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return safe_str(value) or ""


def _normalize_mods(value: Any) -> list[Any]:
    """Give every mod an explicit slot, expanding tecthulhu short strings."""
    if not isinstance(value, list):
        return []
    mods: list[Any] = []
    for index, item in enumerate(value):
        if isinstance(item, str):
            mod_type, rarity = split_mod_code(item)
            if mod_type:
                mods.append({"slot": index, "type": mod_type, "rarity": rarity})
            continue
        if isinstance(item, dict):
            entry = dict(item)
            if safe_int(entry.get("slot")) is None:
                entry["slot"] = index
            mods.append(entry)
    return mods


class LocationState(GwBaseModel):
    """Snapshot of a portal as reported by a status feed.

    The portal title is the identity of a location; ``name`` and
    ``faction`` are provided as short aliases for the feed field names.
    """

    title: str = Field(validation_alias=AliasChoices("title", "Title", "name"))
    controlling_faction: Faction = Faction.UNKNOWN
    health: float = 0.0
    level: float = 0.0
    owner: str | None = None
    description: str | None = None
    resonators: tuple[ResonatorState, ...] = ()
    mods: tuple[ModSlot, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _unwrap_envelope(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        for key in _ENVELOPE_KEYS:
            inner = values.get(key)
            if isinstance(inner, dict):
                unwrapped = dict(inner)
                unwrapped.setdefault("raw", values.get("raw", values))
                return unwrapped
        return values

    @field_validator("owner", "description", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: Any) -> str:
        text = safe_str(value)
        if text is None:
            raise ValueError("portal title must be non-empty")
        return text

    @field_validator("controlling_faction", mode="before")
    @classmethod
    def _coerce_faction(cls, value: Any) -> Faction:
        return Faction.parse(value)  # type: ignore[return-value]

    @field_validator("health", "level", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float:
        return safe_float(value) or 0.0

    @field_validator("resonators", mode="before")
    @classmethod
    def _limit_resonators(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[:MAX_RESONATORS]
        return value

    @field_validator("mods", mode="before")
    @classmethod
    def _expand_mods(cls, value: Any) -> list[Any]:
        return _normalize_mods(value)[:MAX_MODS]

    @property
    def name(self) -> str:
        """Identity of the location (the portal title)."""
        return self.title

    @property
    def faction(self) -> Faction:
        return self.controlling_faction
