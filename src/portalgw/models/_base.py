"""Base model and enum for portal status payloads.

Every status model inherits from :class:`GwBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase feed keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that strips placeholder
  values (``""``, ``"--"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.

Enumerations inherit from :class:`GwEnum` which adds an ``UNKNOWN``
member and a ``_missing_`` hook that matches case-insensitively and
returns ``UNKNOWN`` for anything without a mapped member.
"""

from __future__ import annotations

import enum
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Placeholder strings the feeds use for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan"})


class GwEnum(enum.StrEnum):
    """Base for string enumerations read from status feeds.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> GwEnum:
        if isinstance(value, str):
            folded = value.strip().casefold()
            for member in cls:
                if member.value.casefold() == folded:
                    return member
        # noinspection PyUnresolvedReferences
        unknown: GwEnum = cls.UNKNOWN  # type: ignore[attr-defined]
        return unknown

    @classmethod
    def parse(cls, value: Any) -> GwEnum:
        """Coerce *value* into a member, never raising."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls._missing_(None)
        return cls(str(value))


class GwBaseModel(BaseModel):
    """Base for status feed models.

    Handles:
    * camelCase → snake_case via ``alias_generator=to_camel``
    * placeholder values (``""``, ``"--"``, NaN) → dropped so
      the field default is used instead
    * Stashes the original feed dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original feed dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_feed_values(cls, values: Any) -> Any:
        """Strip placeholder values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned = GwBaseModel._clean_dict(original)
        # Only auto-stash raw when not explicitly provided (i.e. model_validate
        # from a feed dict).
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
