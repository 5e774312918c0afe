"""Controller command frame encoding.

A frame is a single fixed-width ASCII line the controllers parse by
position::

    byte  0      faction (n/e/r, upper-cased on the cycle it changed)
    bytes 1-8    resonator level digit per slot, '0' when empty
    byte  9      overall portal health (percent character)
    bytes 10-17  resonator health per slot (percent character)
    bytes 18-21  mod code per slot, ' ' when empty or unmapped
    byte  22     newline

The faction byte is omitted when the faction is not recognised, which
shifts the remaining fields left by one.
"""

from __future__ import annotations

import logging

from portalgw.ingestion.normalize import mod_key
from portalgw.models.portal import Faction, LocationState

_logger = logging.getLogger(__name__)

#: Compass point to frame slot, counter-clockwise starting at East.
RESONATOR_SLOTS: dict[str, int] = {
    "E": 0,
    "NE": 1,
    "N": 2,
    "NW": 3,
    "W": 4,
    "SW": 5,
    "S": 6,
    "SE": 7,
}

FACTION_CODES: dict[Faction, str] = {
    Faction.NEUTRAL: "n",
    Faction.ENLIGHTENED: "e",
    Faction.RESISTANCE: "r",
}

MOD_CODES: dict[str, bytes] = {
    "FA": b"0",
    "HS-C": b"1",
    "HS-R": b"2",
    "HS-VR": b"3",
    "LA-R": b"4",
    "LA-VR": b"5",
    "SBUL": b"6",
    "MH-C": b"7",
    "MH-R": b"8",
    "MH-VR": b"9",
    "PS-C": b"A",
    "PS-R": b"B",
    "PS-VR": b"C",
    "AXA": b"D",
    "T": b"E",
}

_SLOTS = 8
_MOD_SLOTS = 4


def encode_percent(value: float) -> bytes:
    """Compress a 0-100 percentage into one printable character.

    ``0`` maps to a space; anything else to ``' ' + value // 2``.
    Values are truncated to an integer and clamped to 0..100.
    """
    percent = max(0, min(100, int(value)))
    if percent == 0:
        return b" "
    return bytes([ord(" ") + percent // 2])


def encode_level(level: int) -> bytes:
    """First decimal digit of a resonator level."""
    return str(abs(int(level))).encode("ascii")[:1]


def encode_faction(faction: Faction, *, changed: bool) -> bytes:
    code = FACTION_CODES.get(faction)
    if code is None:
        return b""
    return (code.upper() if changed else code).encode("ascii")


def encode_mod(mod_type: str, rarity: str) -> bytes:
    """Mod code for a slot; a space for types the controllers do not know."""
    key = mod_key(mod_type, rarity)
    code = MOD_CODES.get(key)
    if code is None:
        # Bare types such as "FA" may still arrive with a rarity.
        code = MOD_CODES.get(mod_key(mod_type, ""))
    return code if code is not None else b" "


def build_frame(state: LocationState, *, faction_changed: bool) -> bytes:
    """Encode *state* into a controller command frame."""
    frame = bytearray()

    faction = encode_faction(state.faction, changed=faction_changed)
    if not faction:
        _logger.debug("unknown faction for portal '%s', frame sent without faction byte", state.name)
    frame += faction

    levels = bytearray(b"0" * _SLOTS)
    health = bytearray(b" " * _SLOTS)
    for resonator in state.resonators:
        slot = RESONATOR_SLOTS.get(resonator.position)
        if slot is None:
            _logger.debug("resonator at unknown position '%s' skipped", resonator.position)
            continue
        levels[slot : slot + 1] = encode_level(resonator.level)
        health[slot : slot + 1] = encode_percent(resonator.health)

    frame += levels
    frame += encode_percent(state.health)
    frame += health

    mods = bytearray(b" " * _MOD_SLOTS)
    for mod in state.mods:
        if not 0 <= mod.slot < _MOD_SLOTS:
            continue
        mods[mod.slot : mod.slot + 1] = encode_mod(mod.type, mod.rarity)
    frame += mods

    frame += b"\n"
    return bytes(frame)
