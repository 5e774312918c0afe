"""Normalization helpers.

Parsing helpers for loosely typed status feed values.
"""

from __future__ import annotations

import math
from typing import Any

# Long mod names used by the concentrator feed, mapped to the short
# codes the tecthulhu module (and the controllers) use.
_MOD_TYPE_ABBREVIATIONS: dict[str, str] = {
    "FORCE AMPLIFIER": "FA",
    "HEAT SINK": "HS",
    "LINK AMPLIFIER": "LA",
    "SOFTBANK ULTRALINK": "SBUL",
    "ULTRA LINK": "SBUL",
    "MULTI-HACK": "MH",
    "MULTIHACK": "MH",
    "PORTAL SHIELD": "PS",
    "AXA SHIELD": "AXA",
    "TURRET": "T",
}

_RARITY_ABBREVIATIONS: dict[str, str] = {
    "COMMON": "C",
    "RARE": "R",
    "VERY RARE": "VR",
    "VERY_RARE": "VR",
}


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def abbreviate_mod_type(value: str) -> str:
    """Return the short code for a mod type (``"Heat Sink"`` -> ``"HS"``)."""
    text = value.strip().upper()
    return _MOD_TYPE_ABBREVIATIONS.get(text, text)


def abbreviate_rarity(value: str) -> str:
    """Return the short code for a rarity (``"Very Rare"`` -> ``"VR"``)."""
    text = value.strip().upper()
    return _RARITY_ABBREVIATIONS.get(text, text)


def split_mod_code(code: str) -> tuple[str, str]:
    """Split a tecthulhu mod string such as ``"HS-VR"`` into type and rarity.

    Codes without a rarity suffix (``"FA"``, ``"AXA"``) return an empty rarity.
    """
    mod_type, _, rarity = code.strip().partition("-")
    return mod_type.strip(), rarity.strip()


def mod_key(mod_type: str, rarity: str) -> str:
    """Build the ``TYPE-RARITY`` lookup key used by the frame mod table."""
    short_type = abbreviate_mod_type(mod_type)
    short_rarity = abbreviate_rarity(rarity) if rarity else ""
    if not short_rarity:
        return short_type
    return f"{short_type}-{short_rarity}"
