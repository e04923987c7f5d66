"""Jazz scale tables and chord/scale selection strategies.

This module exposes a small :class:`ScaleLibrary` class holding three tables:

``intervals``
    Scale name -> semitone offsets above the root.

``families``
    Tonal families (major, dominant, minor, diminished) -> member scales.

``chord_scales``
    Chord quality -> ordered list of eligible scales. The first entry is the
    conventional choice and is returned by the ``default`` strategy.

Selection is random for most strategies so every call takes an explicit
``random.Random`` instance.  ``select_scale`` simply proxies to a
module-level ``ScaleLibrary`` instance for convenience, mirroring how the
rhythm helpers expose their default generator.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .chord_theory import Quality

__all__ = [
    "ScaleName",
    "ScaleFamily",
    "ScaleStrategy",
    "ScaleLibrary",
    "SCALE_INTERVALS",
    "SCALE_FAMILIES",
    "CHORD_SCALE_MAP",
    "DEFAULT_LIBRARY",
    "chord_family",
    "select_scale",
    "scale_pitch_classes",
    "scale_display_name",
]


class ScaleName(str, Enum):
    IONIAN = "ionian"
    LYDIAN = "lydian"
    LYDIAN_AUGMENTED = "lydian-augmented"
    MIXOLYDIAN = "mixolydian"
    LYDIAN_DOMINANT = "lydian-dominant"
    ALTERED = "altered"
    MIXOLYDIAN_FLAT6 = "mixolydian-b6"
    WHOLE_TONE = "whole-tone"
    PHRYGIAN_DOMINANT = "phrygian-dominant"
    HALF_WHOLE_DIMINISHED = "half-whole-diminished"
    DORIAN = "dorian"
    AEOLIAN = "aeolian"
    PHRYGIAN = "phrygian"
    MELODIC_MINOR = "melodic-minor"
    HARMONIC_MINOR = "harmonic-minor"
    DORIAN_FLAT2 = "dorian-b2"
    LOCRIAN = "locrian"
    LOCRIAN_NATURAL2 = "locrian-natural-2"
    WHOLE_HALF_DIMINISHED = "whole-half-diminished"

    @classmethod
    def coerce(cls, value: "ScaleName | str") -> "ScaleName":
        """Return ``value`` as a :class:`ScaleName`, defaulting to ionian."""

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            logging.debug("Unknown scale %r; using ionian", value)
            return cls.IONIAN


class ScaleFamily(str, Enum):
    MAJOR = "major"
    DOMINANT = "dominant"
    MINOR = "minor"
    DIMINISHED = "diminished"


class ScaleStrategy(str, Enum):
    """How :meth:`ScaleLibrary.select` picks among eligible scales."""

    DEFAULT = "default"
    VARIED = "varied"
    EXOTIC = "exotic"
    PER_FAMILY_VARIED = "per-family-varied"


S = ScaleName
Q = Quality

SCALE_INTERVALS: Dict[ScaleName, Tuple[int, ...]] = {
    # Major family
    S.IONIAN: (0, 2, 4, 5, 7, 9, 11),
    S.LYDIAN: (0, 2, 4, 6, 7, 9, 11),
    S.LYDIAN_AUGMENTED: (0, 2, 4, 6, 8, 9, 11),
    # Dominant family
    S.MIXOLYDIAN: (0, 2, 4, 5, 7, 9, 10),
    S.LYDIAN_DOMINANT: (0, 2, 4, 6, 7, 9, 10),
    S.ALTERED: (0, 1, 3, 4, 6, 8, 10),
    S.MIXOLYDIAN_FLAT6: (0, 2, 4, 5, 7, 8, 10),
    S.WHOLE_TONE: (0, 2, 4, 6, 8, 10),
    S.PHRYGIAN_DOMINANT: (0, 1, 4, 5, 7, 8, 10),
    S.HALF_WHOLE_DIMINISHED: (0, 1, 3, 4, 6, 7, 9, 10),
    # Minor family
    S.DORIAN: (0, 2, 3, 5, 7, 9, 10),
    S.AEOLIAN: (0, 2, 3, 5, 7, 8, 10),
    S.PHRYGIAN: (0, 1, 3, 5, 7, 8, 10),
    S.MELODIC_MINOR: (0, 2, 3, 5, 7, 9, 11),
    S.HARMONIC_MINOR: (0, 2, 3, 5, 7, 8, 11),
    S.DORIAN_FLAT2: (0, 1, 3, 5, 7, 9, 10),
    # Diminished family
    S.LOCRIAN: (0, 1, 3, 5, 6, 8, 10),
    S.LOCRIAN_NATURAL2: (0, 2, 3, 5, 6, 8, 10),
    S.WHOLE_HALF_DIMINISHED: (0, 2, 3, 5, 6, 8, 9, 11),
}

SCALE_FAMILIES: Dict[ScaleFamily, Tuple[ScaleName, ...]] = {
    ScaleFamily.MAJOR: (S.IONIAN, S.LYDIAN),
    ScaleFamily.DOMINANT: (
        S.MIXOLYDIAN,
        S.LYDIAN_DOMINANT,
        S.ALTERED,
        S.MIXOLYDIAN_FLAT6,
        S.WHOLE_TONE,
        S.PHRYGIAN_DOMINANT,
        S.HALF_WHOLE_DIMINISHED,
    ),
    ScaleFamily.MINOR: (
        S.DORIAN,
        S.AEOLIAN,
        S.PHRYGIAN,
        S.MELODIC_MINOR,
        S.HARMONIC_MINOR,
    ),
    ScaleFamily.DIMINISHED: (S.LOCRIAN, S.LOCRIAN_NATURAL2, S.WHOLE_HALF_DIMINISHED),
}

CHORD_SCALE_MAP: Dict[Quality, Tuple[ScaleName, ...]] = {
    Q.MAJ7: (S.IONIAN, S.LYDIAN),
    Q.MAJ7_SHARP11: (S.LYDIAN,),
    Q.MAJ7_SHARP5: (S.LYDIAN_AUGMENTED,),
    Q.DOM7: (S.MIXOLYDIAN,),
    Q.DOM7_SHARP11: (S.LYDIAN_DOMINANT,),
    Q.DOM7_FLAT13: (S.MIXOLYDIAN_FLAT6,),
    Q.DOM7_SHARP5: (S.WHOLE_TONE,),
    Q.DOM7_FLAT9: (S.PHRYGIAN_DOMINANT, S.HALF_WHOLE_DIMINISHED),
    Q.DOM7_SHARP9: (S.HALF_WHOLE_DIMINISHED,),
    Q.DOM7_SHARP9_FLAT13: (S.ALTERED,),
    Q.DOM7_ALT: (S.ALTERED,),
    Q.DOM7_SUS4_FLAT9: (S.DORIAN_FLAT2,),
    Q.MIN7: (S.DORIAN, S.AEOLIAN, S.PHRYGIAN),
    Q.MIN_MAJ7: (S.MELODIC_MINOR,),
    Q.MIN7_FLAT6: (S.AEOLIAN,),
    Q.HALF_DIM7: (S.LOCRIAN, S.LOCRIAN_NATURAL2),
    Q.DIM7: (S.WHOLE_HALF_DIMINISHED,),
    Q.SUS4_FLAT9: (S.PHRYGIAN,),
}

_QUALITY_FAMILY: Dict[Quality, ScaleFamily] = {
    Q.MAJ7: ScaleFamily.MAJOR,
    Q.MAJ7_SHARP11: ScaleFamily.MAJOR,
    Q.MAJ7_SHARP5: ScaleFamily.MAJOR,
    Q.DOM7: ScaleFamily.DOMINANT,
    Q.DOM7_SHARP11: ScaleFamily.DOMINANT,
    Q.DOM7_FLAT13: ScaleFamily.DOMINANT,
    Q.DOM7_SHARP5: ScaleFamily.DOMINANT,
    Q.DOM7_FLAT9: ScaleFamily.DOMINANT,
    Q.DOM7_SHARP9: ScaleFamily.DOMINANT,
    Q.DOM7_SHARP9_FLAT13: ScaleFamily.DOMINANT,
    Q.DOM7_ALT: ScaleFamily.DOMINANT,
    Q.DOM7_SUS4_FLAT9: ScaleFamily.DOMINANT,
    Q.MIN7: ScaleFamily.MINOR,
    Q.MIN_MAJ7: ScaleFamily.MINOR,
    Q.MIN7_FLAT6: ScaleFamily.MINOR,
    # Suspended b9 chords borrow the phrygian colour of the minor family.
    Q.SUS4_FLAT9: ScaleFamily.MINOR,
    Q.HALF_DIM7: ScaleFamily.DIMINISHED,
    Q.DIM7: ScaleFamily.DIMINISHED,
}

_DISPLAY_NAMES: Dict[ScaleName, str] = {
    S.IONIAN: "Ionian (Major)",
    S.AEOLIAN: "Aeolian (Natural Minor)",
    S.MIXOLYDIAN_FLAT6: "Mixolydian ♭6",
    S.DORIAN_FLAT2: "Dorian ♭2",
    S.LOCRIAN_NATURAL2: "Locrian ♮2",
}


def chord_family(quality: Quality) -> ScaleFamily:
    """Return the tonal family of ``quality`` (major when unknown)."""

    return _QUALITY_FAMILY.get(quality, ScaleFamily.MAJOR)


def scale_display_name(scale: ScaleName) -> str:
    """Return a human readable label such as ``Mixolydian ♭6``."""

    if scale in _DISPLAY_NAMES:
        return _DISPLAY_NAMES[scale]
    return scale.value.replace("-", " ").title()


class ScaleLibrary:
    """Scale lookup tables plus the selection strategies built on them."""

    def __init__(
        self,
        intervals: Optional[Mapping[ScaleName, Sequence[int]]] = None,
        families: Optional[Mapping[ScaleFamily, Sequence[ScaleName]]] = None,
        chord_scales: Optional[Mapping[Quality, Sequence[ScaleName]]] = None,
    ) -> None:
        """Create a library, defaulting to the built-in jazz tables.

        Parameters
        ----------
        intervals:
            Mapping ``scale -> semitone offsets``. ``None`` selects
            :data:`SCALE_INTERVALS`.
        families:
            Mapping ``family -> scales`` used by ``per-family-varied``.
        chord_scales:
            Mapping ``quality -> eligible scales`` with the conventional
            choice first.
        """

        self.intervals = dict(SCALE_INTERVALS if intervals is None else intervals)
        self.families = dict(SCALE_FAMILIES if families is None else families)
        self.chord_scales = dict(CHORD_SCALE_MAP if chord_scales is None else chord_scales)

    def scale_intervals(self, scale: ScaleName) -> Tuple[int, ...]:
        """Return offsets for ``scale``; unknown scales fall back to ionian."""

        if scale in self.intervals:
            return tuple(self.intervals[scale])
        logging.debug("Scale %s missing from library; using ionian", scale)
        return SCALE_INTERVALS[ScaleName.IONIAN]

    def pitch_classes(self, root_pc: int, scale: ScaleName) -> Tuple[int, ...]:
        """Return absolute pitch classes of ``scale`` built on ``root_pc``."""

        return tuple((root_pc + iv) % 12 for iv in self.scale_intervals(scale))

    def scales_for(self, quality: Quality) -> Tuple[ScaleName, ...]:
        """Return eligible scales for ``quality`` (``(ionian,)`` if unknown)."""

        scales = tuple(self.chord_scales.get(quality, ()))
        return scales or (ScaleName.IONIAN,)

    def family_of(self, scale: ScaleName) -> Optional[ScaleFamily]:
        for family, members in self.families.items():
            if scale in members:
                return family
        return None

    def select(
        self,
        quality: Quality,
        strategy: ScaleStrategy = ScaleStrategy.DEFAULT,
        rng: Optional[random.Random] = None,
    ) -> ScaleName:
        """Choose a scale for ``quality`` according to ``strategy``.

        ``default`` is deterministic and ignores ``rng``. ``varied`` draws
        from the full eligible list, ``exotic`` from its latter half and
        ``per-family-varied`` from every scale of the chord's family,
        falling back to the eligible list when that family is empty.
        """

        available = self.scales_for(quality)
        if strategy is ScaleStrategy.DEFAULT:
            return available[0]

        rng = rng or random.Random()
        if strategy is ScaleStrategy.VARIED:
            return rng.choice(available)
        if strategy is ScaleStrategy.EXOTIC:
            return rng.choice(available[len(available) // 2:])
        if strategy is ScaleStrategy.PER_FAMILY_VARIED:
            members = tuple(self.families.get(chord_family(quality), ()))
            return rng.choice(members or available)
        return available[0]


DEFAULT_LIBRARY = ScaleLibrary()


def select_scale(
    quality: Quality,
    strategy: ScaleStrategy = ScaleStrategy.DEFAULT,
    rng: Optional[random.Random] = None,
) -> ScaleName:
    """Return a scale for ``quality`` using the default library."""

    return DEFAULT_LIBRARY.select(quality, strategy, rng)


def scale_pitch_classes(root_pc: int, scale: ScaleName) -> List[int]:
    """Return the absolute pitch classes of ``scale`` rooted at ``root_pc``."""

    return list(DEFAULT_LIBRARY.pitch_classes(root_pc, scale))
