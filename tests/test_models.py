"""Tests for status feed parsing with GwBaseModel + GwEnum."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from portalgw.models.device import DeviceRole, classify_role
from portalgw.models.portal import Faction, LocationState

CONCENTRATOR_PAYLOAD = {
    "externalApiPortal": {
        "Title": "Camp Navarro",
        "description": "",
        "coverImageUrl": "https://example.invalid/cover.jpg",
        "owner": "agent1",
        "level": 7.0,
        "health": 80.5,
        "controllingFaction": "Enlightened",
        "mods": [
            {"owner": "agent1", "slot": 1.0, "type": "Heat Sink", "rarity": "Rare"},
        ],
        "resonators": [
            {"position": "n", "level": 6.0, "health": 90.0, "owner": "agent1"},
            {"position": "SW", "level": 8.0, "health": 45.5, "owner": "agent2"},
        ],
    }
}


class TestFaction:
    def test_unknown_value_falls_back(self) -> None:
        assert Faction("Machina") == Faction.UNKNOWN

    def test_case_insensitive(self) -> None:
        assert Faction("enlightened") == Faction.ENLIGHTENED

    def test_parse_none(self) -> None:
        assert Faction.parse(None) == Faction.UNKNOWN


class TestLocationState:
    def test_concentrator_feed(self) -> None:
        state = LocationState.model_validate(CONCENTRATOR_PAYLOAD)

        assert state.name == "Camp Navarro"
        assert state.faction == Faction.ENLIGHTENED
        assert state.health == 80.5
        assert state.level == 7.0
        assert state.description is None
        assert [r.position for r in state.resonators] == ["N", "SW"]
        assert state.resonators[0].level == 6
        assert state.mods[0].slot == 1
        assert state.mods[0].type == "Heat Sink"
        assert state.raw == CONCENTRATOR_PAYLOAD

    def test_tecthulhu_feed(self) -> None:
        state = LocationState.model_validate(
            {
                "status": {
                    "title": "Beta",
                    "owner": "agent3",
                    "level": 5,
                    "health": 60,
                    "controllingFaction": "Resistance",
                    "mods": ["HS-C", "", "AXA"],
                    "resonators": [{"position": "E", "level": 4, "health": 100}],
                }
            }
        )

        assert state.name == "Beta"
        assert state.faction == Faction.RESISTANCE
        assert [(m.slot, m.type, m.rarity) for m in state.mods] == [(0, "HS", "C"), (2, "AXA", "")]

    def test_unwrapped_object(self) -> None:
        state = LocationState.model_validate({"title": "Gamma", "controllingFaction": "Neutral"})
        assert state.faction == Faction.NEUTRAL
        assert state.resonators == ()

    def test_unknown_faction_does_not_fail(self) -> None:
        state = LocationState.model_validate({"title": "Gamma", "controllingFaction": "__ADA__"})
        assert state.faction == Faction.UNKNOWN

    def test_placeholders_use_defaults(self) -> None:
        state = LocationState.model_validate({"title": "Gamma", "health": "--", "level": ""})
        assert state.health == 0.0
        assert state.level == 0.0
        assert state.faction == Faction.UNKNOWN

    def test_missing_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LocationState.model_validate({"status": {"controllingFaction": "Neutral"}})

    def test_resonators_capped_at_eight(self) -> None:
        resonators = [{"position": "N", "level": 1, "health": 10}] * 10
        state = LocationState.model_validate({"title": "Gamma", "resonators": resonators})
        assert len(state.resonators) == 8

    def test_frozen(self) -> None:
        state = LocationState.model_validate({"title": "Gamma"})
        with pytest.raises(ValidationError):
            state.title = "Delta"  # type: ignore[misc]


class TestDeviceRole:
    @pytest.mark.parametrize(
        ("reply", "role"),
        [
            ("core", DeviceRole.CORE),
            (" CORE \r", DeviceRole.CORE),
            ("resonators", DeviceRole.RESONATOR_CLUSTER),
            ("resonator-cluster", DeviceRole.RESONATOR_CLUSTER),
            ("blinkenlights", DeviceRole.UNKNOWN),
        ],
    )
    def test_classify(self, reply: str, role: DeviceRole) -> None:
        assert classify_role(reply) == role
