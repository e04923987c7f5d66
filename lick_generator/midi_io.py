"""Utilities for writing generated licks to MIDI files.

Modification summary
--------------------
* ``create_midi_file`` creates the destination directory automatically so
  callers can pass a path in a new folder without preparing it.
* Imports from ``mido`` are deferred inside ``create_midi_file`` so the
  module can load even when the optional dependency is missing.
* Note timing is taken from each note's ``start_beat`` rather than from
  accumulated durations, so swung pairs and rests land exactly where the
  generator placed them.

This module contains the low-level helper used to render licks as MIDI. It is
separated from the package root so applications can use the MIDI
functionality without importing the CLI.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Sequence, Tuple

if TYPE_CHECKING:
    from mido import MidiFile

from .model import Note

__all__ = ["create_midi_file", "TICKS_PER_BEAT", "velocity_to_midi"]

TICKS_PER_BEAT = 480


def velocity_to_midi(velocity: float) -> int:
    """Scale a ``0-1`` velocity to the ``1-127`` MIDI range."""

    return max(1, min(127, int(round(velocity * 127))))


def _note_events(lick: Sequence[Note]) -> List[Tuple[int, int, str, int, int]]:
    """Return ``(tick, order, kind, pitch, velocity)`` tuples sorted by time.

    ``order`` places note-offs before note-ons at the same tick so repeated
    pitches retrigger cleanly.
    """

    events = []
    for note in lick:
        if note.is_rest:
            continue
        on = int(round(note.start_beat * TICKS_PER_BEAT))
        off = int(round(note.end_beat * TICKS_PER_BEAT))
        events.append((on, 1, "note_on", note.midi, velocity_to_midi(note.velocity)))
        events.append((off, 0, "note_off", note.midi, 0))
    events.sort(key=lambda e: (e[0], e[1]))
    return events


def create_midi_file(
    lick: Sequence[Note],
    tempo: float,
    output_file: str,
    *,
    program: int = 0,
    time_signature: Tuple[int, int] = (4, 4),
) -> "MidiFile":
    """Write ``lick`` to ``output_file`` and return the ``MidiFile``.

    Rests produce no events; the next sounding note simply starts later.
    The parent directory of ``output_file`` is created automatically.

    Raises
    ------
    ImportError
        If ``mido`` is not installed.
    ValueError
        If ``tempo`` is not positive or ``program`` is outside ``0-127``.
    """

    try:
        import mido
        from mido import Message, MetaMessage, MidiFile, MidiTrack
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to create MIDI files; install it with 'pip install mido'"
        ) from exc

    if tempo <= 0:
        raise ValueError("tempo must be a positive number")
    if not 0 <= program <= 127:
        raise ValueError("program must be between 0 and 127")

    mid = MidiFile(ticks_per_beat=TICKS_PER_BEAT)
    track = MidiTrack()
    mid.tracks.append(track)
    track.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(tempo), time=0))
    track.append(
        MetaMessage(
            "time_signature",
            numerator=time_signature[0],
            denominator=time_signature[1],
            time=0,
        )
    )
    track.append(Message("program_change", program=program, time=0))

    last_tick = 0
    for tick, _, kind, pitch, velocity in _note_events(lick):
        track.append(Message(kind, note=pitch, velocity=velocity, time=tick - last_tick))
        last_tick = tick

    Path(output_file).parent.mkdir(parents=True, exist_ok=True)
    mid.save(output_file)
    logging.info("MIDI file saved to %s", output_file)
    return mid
