"""Harmonic function classification of generated notes.

Every note is labelled as a chord tone, a scale step or a chromatic pitch
relative to the chord and scale sounding at that moment.  The label depends
only on ``(midi % 12, root_pc, quality, scale_name)``; which device produced
the note never enters the decision.  :func:`attach_harmonic_functions` runs
once after all devices have finished so the stored labels always agree with
:func:`classify`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .chord_theory import UNKNOWN_DEGREE, Quality, chord_degree, chord_pitch_classes
from .scales import ScaleLibrary, ScaleName

if TYPE_CHECKING:
    from .model import Note

__all__ = ["HarmonicFunction", "HarmonicClassifier", "classify", "attach_harmonic_functions"]


class HarmonicFunction(str, Enum):
    CHORD_TONE = "chord-tone"
    SCALE_STEP = "scale-step"
    CHROMATIC = "chromatic"


class HarmonicClassifier:
    """Classify pitches against a chord and scale."""

    def __init__(self, library: Optional[ScaleLibrary] = None) -> None:
        self.library = library or ScaleLibrary()

    def classify(
        self, midi: int, root_pc: int, quality: Quality, scale: ScaleName
    ) -> Tuple[HarmonicFunction, Optional[str]]:
        """Return ``(function, degree)`` for ``midi``.

        ``degree`` is only provided for chord tones. A chord tone without a
        degree label indicates inconsistent tables and is logged as an error.
        """

        rel = (midi % 12 - root_pc) % 12
        if rel in chord_pitch_classes(quality):
            degree = chord_degree(midi, root_pc, quality)
            if degree == UNKNOWN_DEGREE:
                logging.error(
                    "Chord tone interval %d of %s has no degree label", rel, quality.value
                )
            return HarmonicFunction.CHORD_TONE, degree
        if midi % 12 in self.library.pitch_classes(root_pc, scale):
            return HarmonicFunction.SCALE_STEP, None
        return HarmonicFunction.CHROMATIC, None

    def attach(self, notes: Iterable["Note"]) -> None:
        """Set ``harmonic_function`` and ``degree`` on each note in place."""

        for note in notes:
            function, degree = self.classify(
                note.midi, note.root_pc, note.quality, note.scale_name
            )
            note.harmonic_function = function
            note.degree = degree


_DEFAULT_CLASSIFIER = HarmonicClassifier()


def classify(
    midi: int, root_pc: int, quality: Quality, scale: ScaleName
) -> Tuple[HarmonicFunction, Optional[str]]:
    """Classify ``midi`` using the default scale tables."""

    return _DEFAULT_CLASSIFIER.classify(midi, root_pc, quality, scale)


def attach_harmonic_functions(notes: Iterable["Note"]) -> None:
    """Label ``notes`` in place using the default classifier."""

    _DEFAULT_CLASSIFIER.attach(notes)
