"""Dataset helpers for training sequence models on generated licks.

Modification summary
--------------------
* Feature rows are built with ``numpy`` so a whole lick becomes a single
  ``float`` matrix ready for ``pandas``/``sklearn`` style pipelines.
* Rests are excluded from every sequence; only sounding notes carry pitch
  information worth learning from.

Progression templates describe common jazz cadences relative to a tonic.
``build_progression("ii-V-I", "F")`` for example yields ``Gm7 | C7 | Fmaj7``.
The helpers below turn the generated notes into tokens, pitch-invariant
interval sequences, coarse scale-degree sequences and numeric feature rows.

Example
-------
>>> lick = generate_lick(build_progression("ii-V-I", "C"), seed=3)
>>> feature_matrix(lick).shape[1] == len(FEATURE_COLUMNS)
True
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from . import NOTE_TO_SEMITONE
from .chord_theory import Quality
from .harmonic import HarmonicFunction
from .model import BEATS_PER_MEASURE, SLOT_BEATS, ChordSpan, Note
from .scales import ScaleFamily, chord_family

__all__ = [
    "KEYS",
    "PROGRESSION_TEMPLATES",
    "FEATURE_COLUMNS",
    "DEVICE_COLUMNS",
    "build_progression",
    "tokenize_lick",
    "midi_sequence",
    "interval_sequence",
    "degree_sequence",
    "feature_matrix",
    "dataset_stats",
]

# Flat spellings read naturally in jazz charts.
KEYS = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Each template lists ``(semitones above the tonic, chord suffix)`` per bar.
PROGRESSION_TEMPLATES: Dict[str, List[Tuple[int, str]]] = {
    "ii-V-I": [(2, "m7"), (7, "7"), (0, "maj7")],
    "ii-V": [(2, "m7"), (7, "7")],
    "V-I": [(7, "7"), (0, "maj7")],
    "I-vi-ii-V": [(0, "maj7"), (9, "m7"), (2, "m7"), (7, "7")],
}

DEVICE_COLUMNS = ["arpeggio", "scale-run", "melodic-cell", "neighbor", "enclosure"]

FEATURE_COLUMNS = [
    "position",
    "beat_position",
    "is_downbeat",
    "midi",
    "duration",
    "velocity",
    "prev_interval",
    "next_interval",
    "chord_root",
    "is_major",
    "is_dominant",
    "is_minor",
    "is_diminished",
    "is_chord_tone",
    "is_scale_step",
    "is_chromatic",
] + [f"device_{name.replace('-', '_')}" for name in DEVICE_COLUMNS]

# Coarse diatonic step (1-7) for each chord degree label.
_DEGREE_STEPS = {
    "1": 1,
    "9": 2,
    "b3": 3,
    "3": 3,
    "11": 4,
    "b5": 5,
    "5": 5,
    "#5": 5,
    "13": 6,
    "bb7": 7,
    "b7": 7,
    "7": 7,
}


def build_progression(template: str, key: str) -> List[ChordSpan]:
    """Return the chord spans of ``template`` with ``key`` as the tonic.

    Raises
    ------
    ValueError
        If the template or key is unknown.
    """

    if template not in PROGRESSION_TEMPLATES:
        raise ValueError(
            f"Unknown progression template '{template}'. "
            f"Expected one of: {', '.join(PROGRESSION_TEMPLATES)}"
        )
    if key not in NOTE_TO_SEMITONE:
        raise ValueError(f"Unknown key '{key}'")
    tonic = NOTE_TO_SEMITONE[key]
    return [
        ChordSpan(
            bar=bar,
            start_beat=bar * BEATS_PER_MEASURE,
            duration_beats=BEATS_PER_MEASURE,
            symbol=KEYS[(tonic + offset) % 12] + suffix,
        )
        for bar, (offset, suffix) in enumerate(PROGRESSION_TEMPLATES[template])
    ]


def _sounding(lick: Iterable[Note]) -> List[Note]:
    return [n for n in lick if not n.is_rest]


def tokenize_lick(lick: Sequence[Note]) -> List[Dict[str, Any]]:
    """Return one token dictionary per sounding note.

    Durations are expressed in sixteenth notes and velocities on the MIDI
    ``0-127`` scale.
    """

    tokens = []
    for note in _sounding(lick):
        tokens.append(
            {
                "midi": note.midi,
                "duration": int(round(note.duration_beats * 4)),
                "velocity": int(round(note.velocity * 127)),
                "degree": note.degree or "X",
                "harmonicFunction": (
                    note.harmonic_function.value if note.harmonic_function else "unknown"
                ),
                "device": note.device or "none",
                "chordRoot": note.root_pc,
                "chordQuality": note.quality.value,
                "scale": note.scale_name.value,
            }
        )
    return tokens


def midi_sequence(lick: Sequence[Note]) -> List[int]:
    return [n.midi for n in _sounding(lick)]


def interval_sequence(lick: Sequence[Note]) -> List[int]:
    """Return semitone steps between sounding notes, starting with ``0``."""

    pitches = midi_sequence(lick)
    if not pitches:
        return []
    return [0] + np.diff(np.asarray(pitches, dtype=np.int16)).astype(int).tolist()


def degree_sequence(lick: Sequence[Note]) -> List[int]:
    """Map each sounding note to a diatonic step ``1-7`` (``0`` when unlabelled)."""

    return [_DEGREE_STEPS.get(n.degree or "", 0) for n in _sounding(lick)]


def feature_matrix(lick: Sequence[Note]) -> np.ndarray:
    """Return a ``(notes, len(FEATURE_COLUMNS))`` array describing ``lick``.

    Only sounding notes produce rows. Boolean features are encoded as
    ``0``/``1`` and intervals to the neighbouring notes are ``0`` at the
    edges of the line.
    """

    notes = _sounding(lick)
    matrix = np.zeros((len(notes), len(FEATURE_COLUMNS)), dtype=float)
    if not notes:
        return matrix

    pitches = np.array([n.midi for n in notes], dtype=float)
    steps = np.diff(pitches)
    prev_interval = np.concatenate(([0.0], steps))
    next_interval = np.concatenate((steps, [0.0]))

    for row, note in enumerate(notes):
        offset = note.start_beat % BEATS_PER_MEASURE
        family = chord_family(Quality.coerce(note.quality))
        function = note.harmonic_function
        values = [
            row,
            int(offset // SLOT_BEATS),
            offset < 1e-6,
            note.midi,
            round(note.duration_beats * 4),
            round(note.velocity * 127),
            prev_interval[row],
            next_interval[row],
            note.root_pc,
            family is ScaleFamily.MAJOR,
            family is ScaleFamily.DOMINANT,
            family is ScaleFamily.MINOR,
            family is ScaleFamily.DIMINISHED,
            function is HarmonicFunction.CHORD_TONE,
            function is HarmonicFunction.SCALE_STEP,
            function is HarmonicFunction.CHROMATIC,
        ] + [note.device == name for name in DEVICE_COLUMNS]
        matrix[row] = np.asarray(values, dtype=float)
    return matrix


def dataset_stats(samples: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Summarise a list of ``{"notes": [...], "metadata": {...}}`` samples.

    ``notes`` may hold :class:`Note` objects. The result reports pitch
    range, average pitch, interval, device, harmonic function and
    progression distributions.
    """

    pitches: List[int] = []
    intervals: Counter = Counter()
    devices: Counter = Counter()
    functions: Counter = Counter()
    progressions: Counter = Counter()

    for sample in samples:
        progressions[sample.get("metadata", {}).get("progressionType", "unknown")] += 1
        notes = _sounding(sample["notes"])
        pitches.extend(n.midi for n in notes)
        intervals.update(interval_sequence(notes)[1:])
        devices.update(n.device or "none" for n in notes)
        functions.update(
            n.harmonic_function.value if n.harmonic_function else "unknown" for n in notes
        )

    arr = np.asarray(pitches, dtype=float)
    total = len(samples)
    return {
        "totalLicks": total,
        "totalNotes": int(arr.size),
        "avgNotesPerLick": float(arr.size / total) if total else 0.0,
        "pitchRange": {
            "min": int(arr.min()) if arr.size else None,
            "max": int(arr.max()) if arr.size else None,
        },
        "avgPitch": float(arr.mean()) if arr.size else 0.0,
        "intervals": {str(k): v for k, v in sorted(intervals.items())},
        "devices": dict(devices),
        "functions": dict(functions),
        "progressions": dict(progressions),
    }
