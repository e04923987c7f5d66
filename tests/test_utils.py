"""Tests for progression parsing and JSON export helpers."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lick_generator import generate_lick  # noqa: E402
from lick_generator.utils import (  # noqa: E402
    default_metadata,
    lick_to_state,
    parse_progression,
    progression_to_dicts,
)


def test_parse_progression_bars():
    """Bars are separated by ``|`` and last four beats each."""
    spans = parse_progression("Dm7 | G7 | Cmaj7")
    assert [(s.bar, s.start_beat, s.duration_beats, s.symbol) for s in spans] == [
        (0, 0.0, 4.0, "Dm7"),
        (1, 4.0, 4.0, "G7"),
        (2, 8.0, 4.0, "Cmaj7"),
    ]


def test_parse_progression_shared_bar():
    """Chords sharing a bar split its beats evenly."""
    spans = parse_progression("Dm7 G7 | Cmaj7")
    assert [(s.start_beat, s.duration_beats) for s in spans] == [(0.0, 2.0), (2.0, 2.0), (4.0, 4.0)]


def test_parse_progression_normalises_input():
    """Commas, unicode accidentals and blank bars are tolerated."""
    spans = parse_progression("B♭maj7, E♭7 || A♭m7")
    assert [s.symbol for s in spans] == ["Bbmaj7", "Eb7", "Abm7"]
    assert [s.bar for s in spans] == [0, 1, 2]


def test_parse_progression_empty():
    """An empty progression raises ``ValueError``."""
    with pytest.raises(ValueError):
        parse_progression(" | ")


def test_lick_to_state_document():
    """The JSON state holds progression, lick and metadata with camelCase keys."""
    progression = parse_progression("Dm7 | G7")
    lick = generate_lick(progression, seed=1)
    state = json.loads(lick_to_state(progression, lick, {"tempo": 96}))
    assert set(state) == {"progression", "lick", "metadata"}
    assert state["progression"] == progression_to_dicts(progression)
    assert state["metadata"]["tempo"] == 96
    assert state["metadata"]["ppq"] == default_metadata()["ppq"]
    first = state["lick"][0]
    assert {"startBeat", "durationBeats", "midi", "isRest", "harmonicFunction", "ruleId"} <= set(first)
    assert first["harmonicFunction"] == "chord-tone"


def test_default_metadata_is_fresh():
    """Callers get an independent copy each time."""
    meta = default_metadata()
    meta["tempo"] = 1
    assert default_metadata()["tempo"] == 120
