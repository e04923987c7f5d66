"""Core data containers shared by the lick generation pipeline.

Three records flow through the generator:

``ChordSpan``
    One harmonic region of the input progression, e.g. ``Dm7`` lasting four
    beats starting at beat ``0``.

``Measure``
    A bar derived from the progression once per generation call. It records
    the parsed chord, the chosen scale and, after planning, the downbeat
    ``target_note``.

``Note``
    The atomic output unit. Device generators create notes and later stages
    only retime them (swing) or turn them into rests; the harmonic labels are
    never recomputed with different semantics.

A ``Lick`` is simply the ordered list of notes covering the whole
progression.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .chord_theory import Quality
from .harmonic import HarmonicFunction
from .scales import ScaleName

# Every measure is a 4/4 bar split into eight eighth-note slots.
BEATS_PER_MEASURE = 4.0
SLOTS_PER_MEASURE = 8
SLOT_BEATS = BEATS_PER_MEASURE / SLOTS_PER_MEASURE

DEFAULT_VELOCITY = 0.9


@dataclass(frozen=True)
class ChordSpan:
    """Chord symbol sounding for ``duration_beats`` from ``start_beat``."""

    bar: int
    start_beat: float
    duration_beats: float
    symbol: str

    def contains(self, beat: float) -> bool:
        """Return ``True`` when ``beat`` falls inside this span."""

        return self.start_beat <= beat < self.start_beat + self.duration_beats


@dataclass
class Note:
    """Single pitch (or rest) annotated with its harmonic role.

    ``harmonic_function`` and ``degree`` are attached by
    :func:`lick_generator.harmonic.attach_harmonic_functions` once all devices
    have run, so freshly generated notes leave them empty.
    """

    start_beat: float
    duration_beats: float
    midi: int
    chord_symbol: str
    root_pc: int
    quality: Quality
    scale_name: ScaleName
    device: str
    rule_id: str
    velocity: float = DEFAULT_VELOCITY
    is_rest: bool = False
    harmonic_function: Optional[HarmonicFunction] = None
    degree: Optional[str] = None

    @property
    def end_beat(self) -> float:
        return self.start_beat + self.duration_beats

    @property
    def note_name(self) -> str:
        """Sharp spelling with scientific octave, ``C4`` for MIDI ``60``."""

        from .note_utils import midi_to_note

        return midi_to_note(self.midi)

    def to_dict(self) -> Dict[str, Any]:
        """Return the note as a JSON friendly dictionary with camelCase keys."""

        return {
            "startBeat": self.start_beat,
            "durationBeats": self.duration_beats,
            "midi": self.midi,
            "velocity": self.velocity,
            "isRest": self.is_rest,
            "device": self.device,
            "ruleId": self.rule_id,
            "harmonicFunction": (
                self.harmonic_function.value if self.harmonic_function else None
            ),
            "degree": self.degree,
            "chordSymbol": self.chord_symbol,
            "rootPc": self.root_pc,
            "quality": self.quality.value,
            "scaleName": self.scale_name.value,
        }


@dataclass
class Measure:
    """One bar of the progression with its resolved harmony."""

    bar: int
    measure_start: float
    chord_span: ChordSpan
    root_pc: int
    quality: Quality
    scale_name: ScaleName
    duration_beats: float = BEATS_PER_MEASURE
    target_note: Optional[Note] = field(default=None, compare=False)

    @property
    def measure_end(self) -> float:
        return self.measure_start + self.duration_beats

    @property
    def midpoint(self) -> float:
        return self.measure_start + self.duration_beats / 2

    def contains(self, beat: float) -> bool:
        return self.measure_start <= beat < self.measure_end


Lick = List[Note]
