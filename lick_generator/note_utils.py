"""Pitch helpers shared by the planner and the device generators.

This module groups helpers dealing with note names and with moving around
inside the playable register.  All generated pitches are kept between
:data:`LOW_MIDI` and :data:`HIGH_MIDI` (G3 to A5) by octave transposition so
a pitch class is never swapped for another one just to fit the range.

Example
-------
>>> from lick_generator.note_utils import note_to_midi, next_scale_note
>>> note_to_midi("E4")
64
>>> next_scale_note(64, [0, 2, 4, 5, 7, 9, 11], 1)
65
"""

# Modification Summary
# ---------------------
# * ``note_to_midi`` raises a descriptive ``ValueError`` for unknown names and
#   for results outside ``0-127`` instead of clamping silently.
# * Added register helpers (``clamp_range``, ``pc_to_midi_near``,
#   ``nearest_scale_note``, ``next_scale_note`` and ``upper_neighbor``) so the
#   device generators share one definition of the playable range.

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Iterable, List, Sequence

from . import NOTE_TO_SEMITONE, NOTES

__all__ = [
    "LOW_MIDI",
    "HIGH_MIDI",
    "note_to_midi",
    "midi_to_note",
    "clamp_range",
    "pc_to_midi_near",
    "register_candidates",
    "nearest_scale_note",
    "next_scale_note",
    "upper_neighbor",
]

# Playable register for generated lines: G3 (55) to A5 (81).
LOW_MIDI = 55
HIGH_MIDI = 81


@lru_cache(maxsize=None)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` into a MIDI number.

    Parameters
    ----------
    note:
        Note name including octave. Octaves may be negative.

    Returns
    -------
    int
        MIDI note number in the range ``0-127``.

    Raises
    ------
    ValueError
        If ``note`` is not properly formatted or if the computed MIDI value
        falls outside the allowed ``0-127`` range.
    """

    match = re.fullmatch(r"([A-Ga-g][#b]?)(-?\d+)", note)
    if not match:
        logging.error("Invalid note format: %s", note)
        raise ValueError(f"Invalid note format: {note}")

    note_name, octave_str = match.groups()
    # MIDI octave numbers are offset by one relative to scientific pitch
    # notation, hence the ``+ 1``.
    octave = int(octave_str) + 1
    note_name = note_name[0].upper() + note_name[1:]
    midi_val = NOTE_TO_SEMITONE[note_name] + octave * 12

    if not 0 <= midi_val <= 127:
        logging.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {note}"
        )
    return midi_val


def midi_to_note(midi_note: int) -> str:
    """Convert a MIDI number into a note name using sharps.

    Raises
    ------
    ValueError
        If ``midi_note`` is outside the inclusive ``0-127`` range.

    Examples
    --------
    >>> midi_to_note(60)
    'C4'
    >>> midi_to_note(75)
    'D#5'
    """

    if not 0 <= midi_note <= 127:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")
    return f"{NOTES[midi_note % 12]}{midi_note // 12 - 1}"


def clamp_range(midi: int, low: int = LOW_MIDI, high: int = HIGH_MIDI) -> int:
    """Shift ``midi`` by whole octaves until it lies within ``low..high``."""

    while midi < low:
        midi += 12
    while midi > high:
        midi -= 12
    return midi


def pc_to_midi_near(pc: int, near: int) -> int:
    """Return the pitch with class ``pc`` closest to ``near``.

    Ties between the pitch above and below resolve downward.
    """

    base = near - (near % 12) + pc % 12
    candidates = (base - 12, base, base + 12)
    return min(candidates, key=lambda m: (abs(m - near), m))


def register_candidates(
    pitch_classes: Iterable[int], low: int = LOW_MIDI, high: int = HIGH_MIDI
) -> List[int]:
    """Return every pitch in ``low..high`` whose class is in ``pitch_classes``."""

    wanted = {pc % 12 for pc in pitch_classes}
    return [m for m in range(low, high + 1) if m % 12 in wanted]


def nearest_scale_note(midi: int, scale_pcs: Sequence[int]) -> int:
    """Return the in-range scale pitch nearest to ``midi`` (lower on ties)."""

    candidates = register_candidates(scale_pcs)
    if not candidates:
        return clamp_range(midi)
    return min(candidates, key=lambda m: (abs(m - midi), m))


def next_scale_note(midi: int, scale_pcs: Sequence[int], direction: int) -> int:
    """Step from ``midi`` to the adjacent scale tone in ``direction``.

    ``scale_pcs`` lists absolute pitch classes in scale order. The result
    always moves strictly up (``direction > 0``) or down. When ``midi`` is
    not a scale tone the nearest scale pitch in that direction is returned.
    The result is not clamped to the playable register.
    """

    pcs = [pc % 12 for pc in scale_pcs]
    if midi % 12 not in pcs:
        step = 1 if direction > 0 else -1
        candidate = midi + step
        while candidate % 12 not in pcs:
            candidate += step
        return candidate

    idx = pcs.index(midi % 12)
    next_pc = pcs[(idx + (1 if direction > 0 else -1)) % len(pcs)]
    candidate = midi - midi % 12 + next_pc
    if direction > 0 and candidate <= midi:
        candidate += 12
    elif direction <= 0 and candidate >= midi:
        candidate -= 12
    return candidate


def upper_neighbor(target: int, scale_pcs: Sequence[int]) -> int:
    """Return the lowest scale pitch strictly above ``target`` within an octave.

    Falls back to ``target + 1`` when the scale has no such pitch.
    """

    wanted = {pc % 12 for pc in scale_pcs}
    for candidate in range(target + 1, target + 12):
        if candidate % 12 in wanted:
            return candidate
    return target + 1
