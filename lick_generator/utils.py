"""Utility helpers shared by the CLI and external front ends.

This module collects lightweight functions that sit at the edge of the
library: turning progression text into :class:`ChordSpan` objects and
serialising a generated lick to the JSON document consumed by notation and
playback front ends.

Usage Example
-------------
>>> from lick_generator.utils import parse_progression
>>> [s.symbol for s in parse_progression("Dm7 G7 | Cmaj7")]
['Dm7', 'G7', 'Cmaj7']
>>> parse_progression("Dm7 G7 | Cmaj7")[1].start_beat
2.0

Revision Summary
----------------
* Unicode accidentals (``♭``/``♯``) are normalised to ``b``/``#`` so chord
  symbols copied from lead sheets parse the same as typed ones.
* Commas are accepted as bar separators for parity with the comma separated
  chord lists used by older command lines.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .model import BEATS_PER_MEASURE, ChordSpan, Note

__all__ = ["parse_progression", "progression_to_dicts", "lick_to_state", "default_metadata"]

_ACCIDENTALS = {"♭": "b", "♯": "#"}


def default_metadata() -> Dict[str, Any]:
    """Return the metadata record used when callers supply none."""

    return {"tempo": 120, "timeSig": "4/4", "key": "C", "ppq": 480}


def _normalise(text: str) -> str:
    for uni, ascii_ in _ACCIDENTALS.items():
        text = text.replace(uni, ascii_)
    return " ".join(text.replace(",", "|").split())


def parse_progression(text: str) -> List[ChordSpan]:
    """Split progression text into 4/4 :class:`ChordSpan` objects.

    ``|`` (or ``,``) separates bars and whitespace separates chords sharing a
    bar; chords within a bar divide its four beats equally. Empty bars are
    ignored.

    Raises
    ------
    ValueError
        If ``text`` contains no chord symbols.
    """

    bars = [bar.strip() for bar in _normalise(text or "").split("|") if bar.strip()]
    if not bars:
        raise ValueError("Chord progression must contain at least one chord")

    spans: List[ChordSpan] = []
    for bar_idx, bar in enumerate(bars):
        symbols = bar.split()
        per_chord = BEATS_PER_MEASURE / len(symbols)
        for i, symbol in enumerate(symbols):
            spans.append(
                ChordSpan(
                    bar=bar_idx,
                    start_beat=bar_idx * BEATS_PER_MEASURE + i * per_chord,
                    duration_beats=per_chord,
                    symbol=symbol,
                )
            )
    return spans


def progression_to_dicts(progression: Sequence[ChordSpan]) -> List[Dict[str, Any]]:
    return [
        {
            "bar": span.bar,
            "startBeat": span.start_beat,
            "durationBeats": span.duration_beats,
            "symbol": span.symbol,
        }
        for span in progression
    ]


def lick_to_state(
    progression: Sequence[ChordSpan],
    lick: Sequence[Note],
    metadata: Optional[Mapping[str, Any]] = None,
    *,
    indent: Optional[int] = 2,
) -> str:
    """Serialise ``progression`` and ``lick`` to a JSON document.

    The document has three keys, ``progression``, ``lick`` and ``metadata``,
    using the camelCase field names of :meth:`Note.to_dict`.
    """

    state = {
        "progression": progression_to_dicts(progression),
        "lick": [note.to_dict() for note in lick],
        "metadata": {**default_metadata(), **dict(metadata or {})},
    }
    return json.dumps(state, indent=indent, ensure_ascii=False)
