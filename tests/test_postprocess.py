"""Tests for swing, rest insertion and measure clipping."""

import random
import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lick_generator.generator import LickGenerator  # noqa: E402
from lick_generator.options import GenerationOptions  # noqa: E402
from lick_generator.postprocess import (  # noqa: E402
    INSERTED_REST_DEVICE,
    PROTECTED_RULES,
    apply_swing,
    clip_to_measures,
    insert_rests,
    measure_for_beat,
    split_rests_at_midpoint,
)
from lick_generator.utils import parse_progression  # noqa: E402


def _result(seed=0, text="Dm7 | G7 | Cmaj7 | A7", **opts):
    generator = LickGenerator(GenerationOptions(**opts))
    return generator.run(parse_progression(text), rng=random.Random(seed))


def test_swing_zero_is_identity():
    """A ratio of zero leaves timing untouched."""
    result = _result()
    swung = apply_swing(result.base_lick, 0.0)
    assert [(n.start_beat, n.duration_beats) for n in swung] == [
        (n.start_beat, n.duration_beats) for n in result.base_lick
    ]


def test_swing_lengthens_on_beats():
    """On-beat eighths grow by ratio/6 and off-beats shrink to match."""
    result = _result(text="Cmaj7", final_cadence=False)
    swung = apply_swing(result.base_lick, 0.6)
    assert swung[0].duration_beats == pytest.approx(0.6)
    assert swung[1].start_beat == pytest.approx(0.6)
    assert swung[1].duration_beats == pytest.approx(0.4)
    assert sum(n.duration_beats for n in swung) == pytest.approx(4.0)


@pytest.mark.parametrize("ratio", [0.0, 0.25, 0.5, 0.75, 1.0])
def test_swung_pairs_keep_one_beat(ratio):
    """Every swung eighth pair still spans exactly one beat."""
    for seed in range(5):
        base = _result(seed, enclosure_probability=0.6).base_lick
        swung = apply_swing(base, ratio)
        pairs = 0
        for i in range(len(base) - 1):
            first, second = base[i], base[i + 1]
            if not (
                first.duration_beats == 0.5
                and second.duration_beats == 0.5
                and first.start_beat == int(first.start_beat)
                and second.start_beat == first.start_beat + 0.5
            ):
                continue
            pairs += 1
            assert swung[i].start_beat == pytest.approx(first.start_beat)
            assert swung[i].duration_beats == pytest.approx(0.5 + ratio / 6)
            assert swung[i + 1].start_beat == pytest.approx(swung[i].end_beat)
            assert swung[i].duration_beats + swung[i + 1].duration_beats == pytest.approx(1.0)
        assert pairs > 0
        assert sum(n.duration_beats for n in swung) == pytest.approx(
            sum(n.duration_beats for n in base)
        )


def test_swing_does_not_mutate_input():
    """Swing returns new notes."""
    result = _result(text="Cmaj7")
    before = [(n.start_beat, n.duration_beats) for n in result.base_lick]
    apply_swing(result.base_lick, 1.0)
    assert [(n.start_beat, n.duration_beats) for n in result.base_lick] == before


def test_swing_out_of_range():
    """Ratios outside 0..1 raise ``ValueError``."""
    with pytest.raises(ValueError):
        apply_swing([], 1.2)


def test_swing_skips_long_notes():
    """The one-beat cadence is never paired."""
    result = _result(text="Cmaj7")
    swung = apply_swing(result.base_lick, 1.0)
    assert swung[-1].duration_beats == pytest.approx(1.0)
    assert swung[-1].start_beat == pytest.approx(3.0)


@pytest.mark.parametrize("seed", range(30))
def test_rest_invariants(seed):
    """Inserted rests keep every measure rule intact."""
    result = _result(seed, swing=0.5, insert_rests=True, enclosure_probability=0.6)
    measures, lick = result.measures, result.lick

    assert not lick[0].is_rest
    per_bar = {}
    for note in lick:
        measure = measure_for_beat(measures, note.start_beat)
        assert measure is not None
        per_bar.setdefault(measure.bar, []).append(note)
        assert note.end_beat <= measure.measure_end + 1e-6
        if note.is_rest:
            assert (
                note.end_beat <= measure.midpoint + 1e-6
                or note.start_beat >= measure.midpoint - 1e-6
            )
            assert note.start_beat != pytest.approx(measure.measure_start)
    for bar, notes in per_bar.items():
        assert sum(n.duration_beats for n in notes) == pytest.approx(4.0)
        assert not notes[0].is_rest
        regions = {n.start_beat for n in notes if n.is_rest}
        assert len(regions) <= 2


def test_protected_notes_survive():
    """Enclosures and the cadence are never silenced."""
    for seed in range(30):
        result = _result(seed, insert_rests=True, enclosure_probability=1.0)
        base_protected = [n.midi for n in result.base_lick if n.rule_id in PROTECTED_RULES]
        kept = [n.midi for n in result.lick if n.rule_id in PROTECTED_RULES and not n.is_rest]
        assert kept == base_protected


def test_insert_rests_is_idempotent_and_pure():
    """Re-running rest insertion returns the lick unchanged and never mutates input."""
    result = _result(3, insert_rests=True)
    base_before = [n.to_dict() for n in result.base_lick]
    again = insert_rests(result.lick, result.measures, random.Random(9))
    assert [n.to_dict() for n in again] == [n.to_dict() for n in result.lick]
    insert_rests(result.base_lick, result.measures, random.Random(9))
    assert [n.to_dict() for n in result.base_lick] == base_before


def test_rests_keep_harmonic_labels():
    """Rests inherit the labels of the first note they replace."""
    for seed in range(10):
        result = _result(seed, insert_rests=True)
        for note in result.lick:
            if note.device == INSERTED_REST_DEVICE:
                assert note.is_rest
                assert note.harmonic_function is not None


def test_split_rest_at_midpoint():
    """A rest spanning beat three is cut in two."""
    result = _result(text="Cmaj7")
    note = replace(result.base_lick[0], start_beat=1.0, duration_beats=2.0, is_rest=True)
    parts = split_rests_at_midpoint([note], result.measures)
    assert [(p.start_beat, p.duration_beats) for p in parts] == [(1.0, 1.0), (2.0, 1.0)]


def test_clip_to_measures():
    """Notes crossing a bar line are trimmed."""
    result = _result(text="Cmaj7")
    note = replace(result.base_lick[-1], start_beat=3.5, duration_beats=1.0)
    clipped = clip_to_measures([note], result.measures)
    assert clipped[0].duration_beats == pytest.approx(0.5)
