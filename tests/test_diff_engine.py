from __future__ import annotations

from typing import Any

from portalgw.encoding import RESONATOR_SLOTS
from portalgw.models.portal import Faction, LocationState
from portalgw.state.diff import StatusDiffEngine
from portalgw.state.store import LocationStore

HOME = "Alpha"


def _state(title: str = HOME, faction: str = "Enlightened", **extra: Any) -> LocationState:
    return LocationState.model_validate({"title": title, "controllingFaction": faction, **extra})


def _engine() -> StatusDiffEngine:
    return StatusDiffEngine(HOME, LocationStore())


def test_first_observation_seeds_history_and_forces_ambient() -> None:
    engine = _engine()

    transition = engine.observe(_state())

    assert transition.first_observation is True
    assert transition.faction_changed is False
    assert transition.effects == ()
    assert transition.ambient_cue == "e-ambient"


def test_faction_change_emits_loss_then_capture() -> None:
    engine = _engine()
    engine.observe(_state(faction="Enlightened"))

    transition = engine.observe(_state(faction="Resistance"))

    assert transition.faction_changed is True
    assert transition.previous_faction == Faction.ENLIGHTENED
    assert transition.faction == Faction.RESISTANCE
    assert transition.effects == ("e-loss", "r-capture")
    assert transition.ambient_cue == "r-ambient"
    assert transition.frame is not None
    assert transition.frame[0:1] == b"R"


def test_steady_state_has_no_cues() -> None:
    engine = _engine()
    engine.observe(_state())

    transition = engine.observe(_state(health=50))

    assert transition.faction_changed is False
    assert transition.ambient_cue is None
    assert transition.effects == ()
    assert transition.frame is not None
    assert transition.frame[0:1] == b"e"


def test_neutralised_portal() -> None:
    engine = _engine()
    engine.observe(_state(faction="Resistance"))

    transition = engine.observe(_state(faction="Neutral"))

    assert transition.effects == ("r-loss", "n-capture")
    assert transition.ambient_cue == "n-ambient"


def test_non_home_location_has_no_frame_but_is_tracked() -> None:
    engine = _engine()

    first = engine.observe(_state("Beta", "Neutral"))
    second = engine.observe(_state("Beta", "Resistance"))

    assert first.frame is None
    assert second.frame is None
    assert second.faction_changed is True
    assert engine.store.get("Beta").faction == Faction.RESISTANCE  # type: ignore[union-attr]


def test_first_observation_per_location() -> None:
    engine = _engine()
    engine.observe(_state("Beta", "Neutral"))

    transition = engine.observe(_state(HOME, "Resistance"))

    assert transition.first_observation is True
    assert transition.faction_changed is False


def test_unknown_faction_is_not_fatal(caplog) -> None:
    engine = _engine()
    engine.observe(_state(faction="Enlightened"))

    transition = engine.observe(_state(faction="Machina"))

    assert transition.faction_changed is True
    assert transition.effects == ("e-loss",)
    assert transition.ambient_cue is None
    assert transition.frame is not None
    assert len(transition.frame) == 22
    assert "unknown faction" in caplog.text


def test_stored_state_is_latest_after_every_update() -> None:
    engine = _engine()
    for health in (10, 20, 30):
        state = _state(health=health)
        engine.observe(state)
        assert engine.store.get(HOME) is state


def test_end_to_end_scenario() -> None:
    engine = _engine()
    north = 1 + RESONATOR_SLOTS["N"]

    first = engine.observe(
        _state(
            faction="Enlightened",
            health=80,
            resonators=[{"position": "N", "level": 6, "health": 90}],
        )
    )

    assert first.effects == ()
    assert first.ambient_cue == "e-ambient"
    assert first.frame is not None
    assert first.frame[0:1] == b"e"
    assert first.frame[north : north + 1] == b"6"
    assert first.frame[1:9].count(b"0") == 7
    assert first.frame[9] == ord(" ") + 40

    second = engine.observe(_state(faction="Resistance", health=80))

    assert second.faction_changed is True
    assert second.effects == ("e-loss", "r-capture")
    assert second.ambient_cue == "r-ambient"
    assert second.frame is not None
    assert second.frame[0:1] == b"R"


def test_encode_steady_uses_last_home_state() -> None:
    engine = _engine()
    assert engine.encode_steady() is None

    engine.observe(_state(faction="Enlightened"))
    engine.observe(_state(faction="Resistance"))

    frame = engine.encode_steady()
    assert frame is not None
    assert frame[0:1] == b"r"
