"""Chord symbol parsing and chord-tone lookup tables.

Modification summary
--------------------
* ``parse_quality`` checks ``7sus4`` before the generic ``7...b9`` pattern so
  ``G7sus4b9`` is no longer reported as a plain ``7b9`` chord.
* Minor patterns match a lowercase ``m`` only so ``CM7`` stays a major
  seventh chord instead of being mistaken for ``Cm7``.
* Degree labels now cover the ``#5`` of augmented chords and spell the
  diminished seventh as ``bb7``.

Chord symbols typed by musicians are loose: ``Dm7``, ``D-7``, ``Dmin7`` and
``D−7`` all mean the same chord.  This module reduces any such symbol to a
root pitch class and one of a closed set of :class:`Quality` tags.  Parsing
never raises; unknown spellings degrade to the closest sensible default so a
typo produces a plausible lick instead of an error.

Example
-------
>>> parse_root("Bb7alt"), parse_quality("Bb7alt")
(10, <Quality.DOM7_ALT: '7alt'>)
>>> chord_pitch_classes(Quality.MIN7)
(0, 3, 7, 10)
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Optional, Pattern, Tuple

from . import NOTE_TO_SEMITONE

__all__ = [
    "Quality",
    "parse_root",
    "parse_quality",
    "chord_pitch_classes",
    "chord_degree",
    "DEGREE_NAMES",
    "UNKNOWN_DEGREE",
]


class Quality(str, Enum):
    """Closed set of chord qualities understood by the generator."""

    MAJ7 = "maj7"
    MAJ7_SHARP11 = "maj7#11"
    MAJ7_SHARP5 = "maj7#5"
    DOM7 = "7"
    DOM7_SHARP11 = "7#11"
    DOM7_FLAT13 = "7b13"
    DOM7_SHARP5 = "7#5"
    DOM7_FLAT9 = "7b9"
    DOM7_SHARP9 = "7#9"
    DOM7_SHARP9_FLAT13 = "7#9b13"
    DOM7_ALT = "7alt"
    DOM7_SUS4_FLAT9 = "7sus4b9"
    MIN7 = "m7"
    MIN7_FLAT6 = "m7b6"
    MIN_MAJ7 = "mMaj7"
    HALF_DIM7 = "m7b5"
    DIM7 = "dim7"
    SUS4_FLAT9 = "sus4b9"

    @classmethod
    def coerce(cls, value: "Quality | str") -> "Quality":
        """Return ``value`` as a :class:`Quality`, defaulting to ``maj7``."""

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            logging.debug("Unknown chord quality %r; using maj7", value)
            return cls.MAJ7


_ROOT_RE = re.compile(r"^([A-Ga-g])([b#]?)")

# Ordered from most to least specific. Minor forms are tested before major,
# major before dominant and dominant before bare sus chords; within a group
# the altered spellings precede the plain one.
_QUALITY_PATTERNS: List[Tuple[Pattern[str], Quality]] = [
    (re.compile(r"m7b5|ø", re.IGNORECASE), Quality.HALF_DIM7),
    (re.compile(r"dim|o7|°", re.IGNORECASE), Quality.DIM7),
    (re.compile(r"mMaj7|m\(maj7\)|mM7|m\(M7\)", re.IGNORECASE), Quality.MIN_MAJ7),
    (re.compile(r"(m7|-7|−7).*b6"), Quality.MIN7_FLAT6),
    (re.compile(r"m7|min7|mi7|-7|−7"), Quality.MIN7),
    (re.compile(r"(maj7|Maj7|Δ|M7).*#11"), Quality.MAJ7_SHARP11),
    (re.compile(r"(maj7|Maj7|Δ|M7).*#5"), Quality.MAJ7_SHARP5),
    (re.compile(r"maj7|Maj7|MAJ7|ma7|Δ|M7"), Quality.MAJ7),
    (re.compile(r"7.*alt", re.IGNORECASE), Quality.DOM7_ALT),
    (re.compile(r"7.*#9.*b13"), Quality.DOM7_SHARP9_FLAT13),
    (re.compile(r"7.*#11"), Quality.DOM7_SHARP11),
    (re.compile(r"7.*b13"), Quality.DOM7_FLAT13),
    (re.compile(r"7.*#5|7.*\+|^\+7"), Quality.DOM7_SHARP5),
    (re.compile(r"7sus4?.*b9"), Quality.DOM7_SUS4_FLAT9),
    (re.compile(r"7.*b9"), Quality.DOM7_FLAT9),
    (re.compile(r"7.*#9"), Quality.DOM7_SHARP9),
    (re.compile(r"7"), Quality.DOM7),
    (re.compile(r"sus4?.*b9"), Quality.SUS4_FLAT9),
    (re.compile(r"^(m|min|mi|-|−)$"), Quality.MIN7),
]

_DOMINANT_TONES = (0, 4, 7, 10)

# Interval content of each quality relative to the root.
_CHORD_TONES: Dict[Quality, Tuple[int, ...]] = {
    Quality.MAJ7: (0, 4, 7, 11),
    Quality.MAJ7_SHARP11: (0, 4, 7, 11),
    Quality.MAJ7_SHARP5: (0, 4, 8, 11),
    Quality.DOM7: _DOMINANT_TONES,
    Quality.DOM7_SHARP11: _DOMINANT_TONES,
    Quality.DOM7_FLAT13: _DOMINANT_TONES,
    Quality.DOM7_SHARP5: (0, 4, 8, 10),
    Quality.DOM7_FLAT9: _DOMINANT_TONES,
    Quality.DOM7_SHARP9: _DOMINANT_TONES,
    Quality.DOM7_SHARP9_FLAT13: _DOMINANT_TONES,
    Quality.DOM7_ALT: _DOMINANT_TONES,
    Quality.DOM7_SUS4_FLAT9: _DOMINANT_TONES,
    Quality.MIN7: (0, 3, 7, 10),
    Quality.MIN7_FLAT6: (0, 3, 7, 10),
    Quality.MIN_MAJ7: (0, 3, 7, 11),
    Quality.HALF_DIM7: (0, 3, 6, 10),
    Quality.DIM7: (0, 3, 6, 9),
    Quality.SUS4_FLAT9: (0, 5, 7, 10),
}

DEFAULT_CHORD_TONES = (0, 4, 7, 11)

# Interval -> degree label. Intervals outside the table produce
# ``UNKNOWN_DEGREE`` which callers treat as an internal inconsistency.
DEGREE_NAMES: Dict[int, str] = {
    0: "1",
    2: "9",
    3: "b3",
    4: "3",
    5: "11",
    6: "b5",
    7: "5",
    8: "#5",
    9: "13",
    10: "b7",
    11: "7",
}

# Spellings that depend on the chord rather than the bare interval.
_DEGREE_OVERRIDES: Dict[Tuple[Quality, int], str] = {
    (Quality.DIM7, 9): "bb7",
}

UNKNOWN_DEGREE = "?"


def parse_root(symbol: str) -> int:
    """Return the pitch class (0-11) of the root of ``symbol``.

    Leading whitespace is ignored and the letter may be lower case. Symbols
    without a recognisable root fall back to ``0`` (C).
    """

    match = _ROOT_RE.match(symbol.strip())
    if not match:
        logging.debug("Unparseable chord root in %r; defaulting to C", symbol)
        return 0
    letter, accidental = match.groups()
    return NOTE_TO_SEMITONE[letter.upper() + accidental]


@lru_cache(maxsize=None)
def parse_quality(symbol: str) -> Quality:
    """Classify the part of ``symbol`` following the root into a :class:`Quality`.

    Patterns are checked in a fixed priority order so altered spellings win
    over their plain forms. Anything unrecognised (including a bare triad
    such as ``C``) is treated as ``maj7``.
    """

    rest = _ROOT_RE.sub("", symbol.strip(), count=1)
    for pattern, quality in _QUALITY_PATTERNS:
        if pattern.search(rest):
            return quality
    if rest:
        logging.debug("Unrecognised chord quality in %r; defaulting to maj7", symbol)
    return Quality.MAJ7


def chord_pitch_classes(quality: Quality | str) -> Tuple[int, ...]:
    """Return the chord-tone intervals of ``quality`` relative to its root."""

    if not isinstance(quality, Quality):
        try:
            quality = Quality(quality)
        except ValueError:
            return DEFAULT_CHORD_TONES
    return _CHORD_TONES.get(quality, DEFAULT_CHORD_TONES)


def chord_degree(midi: int, root_pc: int, quality: Optional[Quality] = None) -> str:
    """Return the degree label of ``midi`` above ``root_pc``.

    ``quality`` only refines the spelling (``bb7`` on diminished chords).
    Intervals missing from :data:`DEGREE_NAMES` yield :data:`UNKNOWN_DEGREE`.
    """

    rel = (midi % 12 - root_pc) % 12
    if quality is not None and (quality, rel) in _DEGREE_OVERRIDES:
        return _DEGREE_OVERRIDES[(quality, rel)]
    return DEGREE_NAMES.get(rel, UNKNOWN_DEGREE)
