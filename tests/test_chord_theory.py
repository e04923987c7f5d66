"""Unit tests for chord symbol parsing and chord-tone tables.

Chord symbols come straight from user input so parsing must never raise.
These tests pin the priority order of the quality patterns, where a less
specific pattern would otherwise shadow an altered chord.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lick_generator.chord_theory import (  # noqa: E402
    DEFAULT_CHORD_TONES,
    UNKNOWN_DEGREE,
    Quality,
    chord_degree,
    chord_pitch_classes,
    parse_quality,
    parse_root,
)


@pytest.mark.parametrize(
    "symbol, expected",
    [
        ("C", 0),
        ("F#m7", 6),
        ("Bbmaj7", 10),
        ("ebm7", 3),
        ("  G7", 7),
        ("Cb7", 11),
        ("B#dim7", 0),
    ],
)
def test_parse_root(symbol, expected):
    """Roots with accidentals and lower case letters resolve to pitch classes."""
    assert parse_root(symbol) == expected


def test_parse_root_fallback():
    """Symbols without a note letter fall back to C instead of raising."""
    assert parse_root("xyz") == 0
    assert parse_root("") == 0


@pytest.mark.parametrize(
    "symbol, expected",
    [
        ("Cmaj7", Quality.MAJ7),
        ("CΔ", Quality.MAJ7),
        ("CM7", Quality.MAJ7),
        ("C", Quality.MAJ7),
        ("Dm7", Quality.MIN7),
        ("D-7", Quality.MIN7),
        ("Dm", Quality.MIN7),
        ("Bm7b5", Quality.HALF_DIM7),
        ("Bø", Quality.HALF_DIM7),
        ("Cdim7", Quality.DIM7),
        ("Co7", Quality.DIM7),
        ("CmMaj7", Quality.MIN_MAJ7),
        ("Am7b6", Quality.MIN7_FLAT6),
        ("Fmaj7#11", Quality.MAJ7_SHARP11),
        ("Ebmaj7#5", Quality.MAJ7_SHARP5),
        ("G7alt", Quality.DOM7_ALT),
        ("G7#9b13", Quality.DOM7_SHARP9_FLAT13),
        ("G7#11", Quality.DOM7_SHARP11),
        ("G7b13", Quality.DOM7_FLAT13),
        ("G7#5", Quality.DOM7_SHARP5),
        ("G+7", Quality.DOM7_SHARP5),
        ("G7sus4b9", Quality.DOM7_SUS4_FLAT9),
        ("G7b9", Quality.DOM7_FLAT9),
        ("G7#9", Quality.DOM7_SHARP9),
        ("G7", Quality.DOM7),
        ("Bb7", Quality.DOM7),
        ("Esus4b9", Quality.SUS4_FLAT9),
    ],
)
def test_parse_quality(symbol, expected):
    """Each spelling maps to the most specific matching quality."""
    assert parse_quality(symbol) is expected


def test_unknown_quality_defaults_to_maj7():
    """Unrecognised suffixes degrade to maj7 without raising."""
    assert parse_quality("Cwhatever") is Quality.MAJ7


def test_chord_pitch_classes_table():
    """Qualities map to their interval sets."""
    assert chord_pitch_classes(Quality.MAJ7) == (0, 4, 7, 11)
    assert chord_pitch_classes(Quality.DOM7) == (0, 4, 7, 10)
    assert chord_pitch_classes(Quality.MIN7) == (0, 3, 7, 10)
    assert chord_pitch_classes(Quality.HALF_DIM7) == (0, 3, 6, 10)
    assert chord_pitch_classes(Quality.DIM7) == (0, 3, 6, 9)
    assert chord_pitch_classes(Quality.MAJ7_SHARP5) == (0, 4, 8, 11)


def test_chord_pitch_classes_unknown_string():
    """Unknown quality names fall back to the major seventh set."""
    assert chord_pitch_classes("not-a-quality") == DEFAULT_CHORD_TONES
    assert chord_pitch_classes("m7") == (0, 3, 7, 10)


def test_chord_degree_labels():
    """Degree labels follow the interval above the root."""
    assert chord_degree(60, 0) == "1"
    assert chord_degree(64, 0) == "3"
    assert chord_degree(63, 0) == "b3"
    assert chord_degree(70, 0) == "b7"
    assert chord_degree(71, 0) == "7"
    assert chord_degree(65, 2) == "b3"


def test_diminished_seventh_spelling():
    """Nine semitones above the root reads as bb7 on diminished chords only."""
    assert chord_degree(69, 0, Quality.DIM7) == "bb7"
    assert chord_degree(69, 0) == "13"


def test_minor_second_has_no_degree():
    """Intervals outside the table yield the unknown marker."""
    assert chord_degree(61, 0) == UNKNOWN_DEGREE


def test_every_chord_tone_has_a_degree():
    """All chord tones of all qualities carry a real degree label."""
    for quality in Quality:
        for interval in chord_pitch_classes(quality):
            assert chord_degree(60 + interval, 0, quality) != UNKNOWN_DEGREE


def test_quality_coerce():
    """String values become enum members; unknown names become maj7."""
    assert Quality.coerce("7alt") is Quality.DOM7_ALT
    assert Quality.coerce(Quality.MIN7) is Quality.MIN7
    assert Quality.coerce("bogus") is Quality.MAJ7
