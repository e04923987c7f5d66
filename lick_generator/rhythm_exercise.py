"""Single-chord rhythm exercises built from an eight-note phrase.

A rhythm exercise keeps the pitches of one generated bar fixed and lets the
student practise every way of silencing some of its eighth notes.  The
downbeat (slot 0) is never offered as a rest position so each pattern still
starts on the planned chord tone.

Example
-------
>>> rng = random.Random(1)
>>> phrase = generate_rhythm_exercise_phrase("Cmaj7", rng=rng)
>>> patterns = all_rest_patterns(2)
>>> apply_rest_pattern(phrase, patterns[0])[1].is_rest
True
"""

from __future__ import annotations

import random
from dataclasses import replace
from itertools import combinations
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .generator import LickGenerator
from .model import SLOT_BEATS, SLOTS_PER_MEASURE, ChordSpan, Note
from .options import GenerationOptions
from .postprocess import REST_DEVICE

__all__ = ["generate_rhythm_exercise_phrase", "all_rest_patterns", "apply_rest_pattern"]

# Slots that may become rests; slot 0 holds the downbeat target.
REST_SLOTS = tuple(range(1, SLOTS_PER_MEASURE))
MIDPOINT_SLOT = SLOTS_PER_MEASURE // 2


def generate_rhythm_exercise_phrase(
    chord_symbol: str,
    options: Union[GenerationOptions, Mapping[str, Any], None] = None,
    rng: Optional[random.Random] = None,
) -> List[Note]:
    """Return eight eighth notes over ``chord_symbol``.

    Swing, rests, enclosures and the closing cadence are disabled so every
    slot holds exactly one half-beat note.
    """

    if not isinstance(options, GenerationOptions):
        options = GenerationOptions.from_mapping(options)
    options = replace(options, swing=0.0, insert_rests=False, final_cadence=False)
    span = ChordSpan(bar=0, start_beat=0.0, duration_beats=4.0, symbol=chord_symbol)
    return LickGenerator(options).generate([span], rng=rng or random.Random())


def all_rest_patterns(num_rests: int) -> List[Tuple[int, ...]]:
    """Return every choice of ``num_rests`` rest slots in lexicographic order."""

    if not 0 <= num_rests <= len(REST_SLOTS):
        raise ValueError(f"num_rests must be between 0 and {len(REST_SLOTS)}")
    return list(combinations(REST_SLOTS, num_rests))


def _rest(template: Note, start: float, slots: int) -> Note:
    return replace(
        template,
        start_beat=start,
        duration_beats=slots * SLOT_BEATS,
        is_rest=True,
        device=REST_DEVICE,
        rule_id=REST_DEVICE,
    )


def apply_rest_pattern(phrase: Sequence[Note], pattern: Sequence[int]) -> List[Note]:
    """Replace the slots in ``pattern`` with rests and return a new phrase.

    Consecutive rest slots merge into one rest unless the run crosses the
    middle of the bar, in which case it is split there.

    Raises
    ------
    ValueError
        If the phrase is not eight slots long or ``pattern`` names slot 0 or
        a slot outside the bar.
    """

    if len(phrase) != SLOTS_PER_MEASURE:
        raise ValueError(f"phrase must contain {SLOTS_PER_MEASURE} notes")
    rests = set(pattern)
    if not rests <= set(REST_SLOTS):
        raise ValueError(f"rest slots must be within {REST_SLOTS[0]}-{REST_SLOTS[-1]}")

    result: List[Note] = []
    slot = 0
    while slot < SLOTS_PER_MEASURE:
        if slot not in rests:
            result.append(replace(phrase[slot]))
            slot += 1
            continue
        end = slot
        while end + 1 < SLOTS_PER_MEASURE and end + 1 in rests:
            end += 1
        template = phrase[slot]
        if slot < MIDPOINT_SLOT <= end:
            result.append(_rest(template, template.start_beat, MIDPOINT_SLOT - slot))
            result.append(
                _rest(phrase[MIDPOINT_SLOT], phrase[MIDPOINT_SLOT].start_beat, end - MIDPOINT_SLOT + 1)
            )
        else:
            result.append(_rest(template, template.start_beat, end - slot + 1))
        slot = end + 1
    return result
