#!/usr/bin/env python3
"""Jazz Lick Generator library.

This package generates short jazz phrases ("licks") over a chord
progression.  A typical workflow is to parse a progression such as
``"Dm7 | G7 | Cmaj7"`` with :func:`parse_progression`, call
:func:`generate_lick` with the resulting chord spans and then hand the
annotated notes to :func:`create_midi_file` or :func:`lick_to_state` for
playback or notation tools.

Underlying Algorithm
--------------------
Each bar of the progression becomes a :class:`Measure` with a parsed root,
chord quality and chosen scale.  A chord tone is planned for every downbeat
so consecutive bars connect smoothly.  The remaining eighth-note slots are
filled by *devices* (arpeggios, scale runs, melodic cells and neighbour
figures) and the last two slots of a bar may be reserved for an enclosure
that approaches the next bar's downbeat.  Every note is then classified as a
chord tone, scale step or chromatic pitch before swing and optional rests
are applied.

Algorithm Pseudocode
--------------------
The following outlines the pipeline executed by :func:`generate_lick`::

    measures = analyze_measures(progression)
    for measure in measures:
        measure.scale = select_scale(measure.quality, strategy)
    plan_targets(measures, start_pitch)
    for measure in measures:
        notes += engine.fill_measure(measure, next_measure)
    attach_harmonic_functions(notes)
    notes = apply_swing(notes, ratio)
    if insert_rests:
        notes = insert_rests(notes, measures)

Randomness is always drawn from an explicit ``random.Random`` instance so a
fixed seed reproduces the same lick.

Features include:
- Eighteen chord qualities and nineteen jazz scales grouped in four families.
- Four scale selection and six device selection strategies.
- Cross-measure chromatic enclosures and a closing cadence.
- Swing feel and measure-aware rest insertion.
- MIDI export through ``mido`` and JSON export for notation front ends.
- Parallel batch generation and numeric feature extraction for datasets.
"""

__version__ = "0.2.0"

# ---------------------------------------------------------------
# Modification Summary
# ---------------------------------------------------------------
# * Settings helpers honour ``LICK_GENERATOR_SETTINGS_FILE`` so the CLI and
#   tests can redirect persisted defaults without touching the home folder.
# * Note name tables live here so ``note_utils`` and ``chord_theory`` share a
#   single spelling policy (sharps for output, flats accepted on input).
# * Public API re-exported at package level so callers only need
#   ``import lick_generator``.
# ---------------------------------------------------------------

import json
import logging
import os
from pathlib import Path

# Location of the persistent user preferences file. ``LICK_GENERATOR_SETTINGS_FILE``
# overrides the default so tests and power users can point elsewhere.
DEFAULT_SETTINGS_FILE = Path(
    os.environ.get(
        "LICK_GENERATOR_SETTINGS_FILE",
        Path.home() / ".lick_generator_settings.json",
    )
)


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error(f"Could not load settings: {exc}")
            return {}
        if isinstance(data, dict):
            return data
        logging.error("Settings file %s does not contain a JSON object", path)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to persist preferences never blocks generation.
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as exc:
        logging.error(f"Could not save settings: {exc}")


# NOTE_TO_SEMITONE maps both sharp and flat spellings to the correct
# semitone offset within an octave so chord roots such as ``Bb`` and ``A#``
# resolve to the same pitch class.
NOTE_TO_SEMITONE = {
    "C": 0,
    "B#": 0,
    "C#": 1,
    "Db": 1,
    "D": 2,
    "D#": 3,
    "Eb": 3,
    "E": 4,
    "Fb": 4,
    "E#": 5,
    "F": 5,
    "F#": 6,
    "Gb": 6,
    "G": 7,
    "G#": 8,
    "Ab": 8,
    "A": 9,
    "A#": 10,
    "Bb": 10,
    "B": 11,
    "Cb": 11,
}

# Sharp spellings used whenever a pitch class is turned back into a name.
NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Submodules import the tables above, so they are pulled in afterwards.
from .model import ChordSpan, Lick, Measure, Note  # noqa: E402
from .chord_theory import (  # noqa: E402
    Quality,
    chord_degree,
    chord_pitch_classes,
    parse_quality,
    parse_root,
)
from .scales import (  # noqa: E402
    ScaleFamily,
    ScaleLibrary,
    ScaleName,
    ScaleStrategy,
    scale_pitch_classes,
    select_scale,
)
from .harmonic import HarmonicFunction, classify  # noqa: E402
from .options import DeviceStrategy, GenerationOptions  # noqa: E402
from .device_selector import DeviceKind, DeviceSelector  # noqa: E402
from .generator import LickGenerator, analyze_measures, generate_lick  # noqa: E402
from .postprocess import apply_swing, insert_rests  # noqa: E402
from .rhythm_exercise import (  # noqa: E402
    all_rest_patterns,
    apply_rest_pattern,
    generate_rhythm_exercise_phrase,
)
from .utils import lick_to_state, parse_progression  # noqa: E402
from .midi_io import create_midi_file  # noqa: E402
from .note_utils import midi_to_note, note_to_midi  # noqa: E402


def main() -> None:
    """Console entry point proxying to :func:`lick_generator.cli.main`."""

    from .cli import main as _cli_main

    _cli_main()


__all__ = [
    "__version__",
    "DEFAULT_SETTINGS_FILE",
    "load_settings",
    "save_settings",
    "NOTE_TO_SEMITONE",
    "NOTES",
    "ChordSpan",
    "Measure",
    "Note",
    "Lick",
    "Quality",
    "parse_root",
    "parse_quality",
    "chord_pitch_classes",
    "chord_degree",
    "ScaleName",
    "ScaleFamily",
    "ScaleStrategy",
    "ScaleLibrary",
    "select_scale",
    "scale_pitch_classes",
    "HarmonicFunction",
    "classify",
    "DeviceStrategy",
    "GenerationOptions",
    "DeviceKind",
    "DeviceSelector",
    "LickGenerator",
    "analyze_measures",
    "generate_lick",
    "apply_swing",
    "insert_rests",
    "generate_rhythm_exercise_phrase",
    "all_rest_patterns",
    "apply_rest_pattern",
    "parse_progression",
    "lick_to_state",
    "create_midi_file",
    "note_to_midi",
    "midi_to_note",
    "main",
]
