"""Timing transforms applied after all measures have been filled.

Two optional passes run on the finished line:

``apply_swing``
    Lengthens the first eighth of each on-beat pair and delays the second by
    the same amount, keeping the pair's total at one beat.

``insert_rests``
    Turns a few short runs of notes into rests so the line breathes.  The
    pass never touches a measure's downbeat, an enclosure or the cadence,
    inserts at most one rest region per measure and works on a copy so a
    rest-free base lick can be re-processed any number of times.

Both passes respect two measure rules enforced by :func:`split_rests_at_midpoint`
and :func:`clip_to_measures`: a rest never straddles beat three of a 4/4 bar
and nothing extends past its bar line.

Example
-------
>>> swung = apply_swing(lick, 0.5)
>>> breathing = insert_rests(swung, measures, rng=random.Random(3))
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import List, Optional, Sequence

from .model import SLOT_BEATS, Measure, Note

__all__ = [
    "REST_DEVICE",
    "INSERTED_REST_DEVICE",
    "PROTECTED_RULES",
    "apply_swing",
    "insert_rests",
    "split_rests_at_midpoint",
    "clip_to_measures",
    "measure_for_beat",
]

REST_DEVICE = "rest"
INSERTED_REST_DEVICE = "rest-inserted"

# Notes derived by these rules are structural and are never silenced.
PROTECTED_RULES = frozenset({"enclosure-upper", "enclosure-lower", "cadence"})

# Beat positions closer than this are treated as equal.
EPSILON = 1e-6


def _is_close(a: float, b: float) -> bool:
    return abs(a - b) < EPSILON


def measure_for_beat(measures: Sequence[Measure], beat: float) -> Optional[Measure]:
    """Return the measure containing ``beat`` (``None`` when outside)."""

    for measure in measures:
        if measure.measure_start - EPSILON <= beat < measure.measure_end - EPSILON:
            return measure
    return None


def apply_swing(notes: Sequence[Note], ratio: float) -> List[Note]:
    """Return a swung copy of ``notes``.

    A pair qualifies when both notes last half a beat, the first starts on a
    whole beat and the second starts exactly where the first ends. The first
    note gains ``ratio / 6`` beats and the second loses the same amount.
    ``ratio`` of ``0`` returns an unchanged copy.
    """

    if not 0.0 <= ratio <= 1.0:
        raise ValueError("swing ratio must be between 0 and 1")
    result = list(notes)
    if ratio == 0:
        return result

    offset = ratio / 6.0
    i = 0
    while i < len(result) - 1:
        first, second = result[i], result[i + 1]
        if (
            _is_close(first.duration_beats, SLOT_BEATS)
            and _is_close(second.duration_beats, SLOT_BEATS)
            and _is_close(first.start_beat, round(first.start_beat))
            and _is_close(second.start_beat, first.start_beat + SLOT_BEATS)
        ):
            result[i] = replace(first, duration_beats=SLOT_BEATS + offset)
            result[i + 1] = replace(
                second,
                start_beat=first.start_beat + SLOT_BEATS + offset,
                duration_beats=SLOT_BEATS - offset,
            )
            i += 2
        else:
            i += 1
    logging.debug("Applied swing ratio %.2f", ratio)
    return result


def split_rests_at_midpoint(notes: Sequence[Note], measures: Sequence[Measure]) -> List[Note]:
    """Split any rest crossing its measure's midpoint into two rests."""

    result: List[Note] = []
    for note in notes:
        measure = measure_for_beat(measures, note.start_beat)
        if (
            note.is_rest
            and measure is not None
            and note.start_beat < measure.midpoint - EPSILON
            and note.end_beat > measure.midpoint + EPSILON
        ):
            result.append(replace(note, duration_beats=measure.midpoint - note.start_beat))
            result.append(
                replace(
                    note,
                    start_beat=measure.midpoint,
                    duration_beats=note.end_beat - measure.midpoint,
                )
            )
        else:
            result.append(note)
    return result


def clip_to_measures(notes: Sequence[Note], measures: Sequence[Measure]) -> List[Note]:
    """Trim notes that run past their bar line and round float drift."""

    result: List[Note] = []
    for note in notes:
        start = round(note.start_beat, 6)
        duration = round(note.duration_beats, 6)
        measure = measure_for_beat(measures, start)
        if measure is not None and start + duration > measure.measure_end + EPSILON:
            logging.debug("Clipping note at beat %.3f to bar end", start)
            duration = round(measure.measure_end - start, 6)
        result.append(replace(note, start_beat=start, duration_beats=duration))
    return result


def _eligible(note: Note, measure: Measure) -> bool:
    return (
        not note.is_rest
        and not _is_close(note.start_beat, measure.measure_start)
        and note.rule_id not in PROTECTED_RULES
    )


def insert_rests(
    notes: Sequence[Note],
    measures: Sequence[Measure],
    rng: Optional[random.Random] = None,
    *,
    max_regions: int = 3,
    max_region_notes: int = 3,
) -> List[Note]:
    """Return a copy of ``notes`` with a few short runs replaced by rests.

    Up to ``max_regions`` distinct measures each receive one region of
    ``1..max_region_notes`` consecutive eligible notes, merged into a single
    rest. ``notes`` itself is never modified, and a lick that already holds
    inserted rests is returned unchanged.
    """

    if any(n.device == INSERTED_REST_DEVICE for n in notes):
        return list(notes)
    rng = rng or random.Random()
    result = [replace(n) for n in notes]
    if not measures:
        return result

    chosen = rng.sample(range(len(measures)), min(max_regions, len(measures)))
    for bar_idx in sorted(chosen, reverse=True):
        measure = measures[bar_idx]
        indices = [
            i for i, n in enumerate(result) if measure_for_beat(measures, n.start_beat) is measure
        ]
        eligible = [i for i in indices if _eligible(result[i], measure)]
        if not eligible:
            continue
        start = rng.choice(eligible)
        length = rng.randint(1, max_region_notes)
        region = [start]
        while len(region) < length and region[-1] + 1 in eligible:
            region.append(region[-1] + 1)
        first, last = result[region[0]], result[region[-1]]
        rest = replace(
            first,
            duration_beats=last.end_beat - first.start_beat,
            is_rest=True,
            device=INSERTED_REST_DEVICE,
            rule_id=REST_DEVICE,
        )
        result[region[0] : region[-1] + 1] = [rest]
        logging.debug("Inserted rest of %d note(s) in bar %d", len(region), measure.bar)

    return clip_to_measures(split_rests_at_midpoint(result, measures), measures)
