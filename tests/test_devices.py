"""Tests for individual melodic device generators and the registry."""

import logging
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lick_generator.chord_theory import Quality  # noqa: E402
from lick_generator.devices import (  # noqa: E402
    Capability,
    DeviceContext,
    DeviceRegistry,
    DeviceSpec,
    generate_arpeggio,
    generate_enclosure,
    generate_melodic_cell,
    generate_neighbor,
    generate_scale_run,
)
from lick_generator.generator import LickGenerator, analyze_measures  # noqa: E402
from lick_generator.melodic_cells import (  # noqa: E402
    CELL_CATEGORIES,
    CELLS,
    degree_to_midi,
    random_cell,
    resolve_cell,
)
from lick_generator.model import Note  # noqa: E402
from lick_generator.note_utils import HIGH_MIDI, LOW_MIDI  # noqa: E402
from lick_generator.options import GenerationOptions  # noqa: E402
from lick_generator.scales import ScaleName, scale_pitch_classes  # noqa: E402
from lick_generator.utils import parse_progression  # noqa: E402

G7_CHORD = (7, 11, 2, 5)
G_MIXOLYDIAN = tuple(scale_pitch_classes(7, ScaleName.MIXOLYDIAN))
C_IONIAN = tuple(scale_pitch_classes(0, ScaleName.IONIAN))


def _target(midi=76):
    return Note(
        start_beat=4.0,
        duration_beats=0.5,
        midi=midi,
        chord_symbol="Cmaj7",
        root_pc=0,
        quality=Quality.MAJ7,
        scale_name=ScaleName.IONIAN,
        device="",
        rule_id="target",
    )


def _ctx(seed=0, budget=6, current=67, start_beat=0.5, ends_measure=False, next_target=None):
    measure = analyze_measures(parse_progression("G7 | Cmaj7"))[0]
    return DeviceContext(
        measure=measure,
        chord_pcs=G7_CHORD,
        scale_pcs=G_MIXOLYDIAN,
        current_pitch=current,
        start_beat=start_beat,
        budget=budget,
        rng=random.Random(seed),
        ends_measure=ends_measure,
        next_target=next_target,
        next_scale_pcs=C_IONIAN if next_target else (),
        cells=CELLS,
    )


def test_enclosure_surrounds_next_target():
    """E5 in Cmaj7 is approached from D#5 and F5 in either order."""
    orders = set()
    for seed in range(20):
        ctx = _ctx(seed, budget=2, start_beat=3.0, ends_measure=True, next_target=_target(76))
        result = generate_enclosure(ctx)
        assert result.slots_used == 2
        pitches = {n.rule_id: n.midi for n in result.notes}
        assert pitches == {"enclosure-lower": 75, "enclosure-upper": 77}
        assert [n.start_beat for n in result.notes] == [3.0, 3.5]
        assert {n.device for n in result.notes} == {"enclosure"}
        orders.add(tuple(n.midi for n in result.notes))
    assert orders == {(75, 77), (77, 75)}


def test_enclosure_upper_uses_next_scale():
    """The upper note is a scale step of the next chord, not of the current one."""
    ctx = _ctx(budget=2, ends_measure=True, next_target=_target(76))
    ctx.next_scale_pcs = tuple(scale_pitch_classes(0, ScaleName.LYDIAN))
    result = generate_enclosure(ctx)
    assert {n.midi for n in result.notes} == {75, 78}


def test_neighbor_becomes_enclosure_at_bar_end():
    """Two free slots at the end of a bar turn a neighbour into an enclosure."""
    ctx = _ctx(budget=2, start_beat=3.0, ends_measure=True, next_target=_target(76))
    result = generate_neighbor(ctx)
    assert {n.midi for n in result.notes} == {75, 77}


def test_neighbor_returns_to_current_pitch():
    """With room to spare the neighbour resolves back to the current pitch."""
    for seed in range(10):
        ctx = _ctx(seed, budget=4, current=67)
        result = generate_neighbor(ctx)
        assert len(result.notes) == 2
        first, second = result.notes
        assert first.midi in (66, 69)
        assert first.rule_id in ("neighbor-lower", "neighbor-upper")
        assert second.midi == 67
        assert second.rule_id == "neighbor-return"


def test_neighbor_single_slot():
    """One free slot yields only the neighbour note."""
    assert len(generate_neighbor(_ctx(budget=1)).notes) == 1


def test_arpeggio_uses_chord_tones():
    """Arpeggios only play chord tones inside the register."""
    for seed in range(20):
        result = generate_arpeggio(_ctx(seed, budget=7))
        assert 3 <= len(result.notes) <= 7
        for note in result.notes:
            assert note.midi % 12 in G7_CHORD
            assert LOW_MIDI <= note.midi <= HIGH_MIDI
            assert note.device == "arpeggio"
            assert note.duration_beats == 0.5


def test_arpeggio_respects_budget():
    """A device never uses more slots than it is given."""
    for seed in range(20):
        assert len(generate_arpeggio(_ctx(seed, budget=2)).notes) <= 2


def test_scale_run_uses_scale_tones():
    """Scale runs step through the active scale."""
    for seed in range(20):
        result = generate_scale_run(_ctx(seed, budget=6))
        assert 3 <= len(result.notes) <= 6
        assert all(n.midi % 12 in G_MIXOLYDIAN for n in result.notes)
        assert {n.rule_id for n in result.notes} == {"scale-step"}


def test_melodic_cell_truncates_to_budget():
    """Cells play four notes, or fewer when the budget is short."""
    assert len(generate_melodic_cell(_ctx(budget=6)).notes) == 4
    short = generate_melodic_cell(_ctx(budget=2))
    assert len(short.notes) == 2
    assert all(n.midi % 12 in G_MIXOLYDIAN for n in short.notes)


def test_degree_to_midi_wraps_upward():
    """Degrees past the seventh land above the previous pitch."""
    assert degree_to_midi(1, C_IONIAN, 60) == 60
    assert degree_to_midi(3, C_IONIAN, 60) == 64
    assert degree_to_midi(9, C_IONIAN, 71) == 74


def test_resolve_cell_follows_degrees():
    """A 1-2-3-5 cell over C ionian from middle C plays C D E G."""
    assert resolve_cell(CELLS["ascending-1235"], C_IONIAN, 60) == [60, 62, 64, 67]


def test_registry_falls_back_to_arpeggio(caplog):
    """Devices missing a capability are replaced with arpeggios."""
    registry = DeviceRegistry(frozenset())
    with caplog.at_level(logging.DEBUG):
        result = registry.generate("scale-run", _ctx(budget=4))
    assert {n.device for n in result.notes} == {"arpeggio"}
    assert "falling back to arpeggio" in caplog.text
    assert not registry.supports("melodic-cell")
    assert registry.supports("arpeggio")


def test_registry_capability_subset():
    """Scale data alone enables scale runs but not cells."""
    registry = DeviceRegistry(frozenset({Capability.SCALE_DATA}))
    assert registry.supports("scale-run")
    assert registry.supports("neighbor")
    assert not registry.supports("melodic-cell")


def test_registry_requires_arpeggio():
    """A registry without the fallback generator is rejected."""
    with pytest.raises(ValueError):
        DeviceRegistry(specs={"neighbor": DeviceSpec("neighbor", generate_neighbor)})


def test_random_cell_category_filter():
    """A category restricts the draw to its own cells."""
    rng = random.Random(4)
    for category, names in CELL_CATEGORIES.items():
        drawn = {random_cell(rng, category).name for _ in range(30)}
        assert drawn <= set(names)
    with pytest.raises(ValueError, match="Unknown cell category"):
        random_cell(rng, "bebop")
    with pytest.raises(ValueError):
        random_cell(rng, "upper", cells={"arch-1351": CELLS["arch-1351"]})


def test_melodic_cell_uses_injected_library():
    """The cell device only draws from the cells it was given."""
    arch = CELLS["arch-1351"]
    for seed in range(5):
        ctx = _ctx(seed=seed, budget=6)
        ctx.cells = {arch.name: arch}
        result = generate_melodic_cell(ctx)
        assert [n.midi for n in result.notes] == resolve_cell(arch, G_MIXOLYDIAN, 67)


@pytest.mark.parametrize("start_pitch", [LOW_MIDI, 64, HIGH_MIDI])
def test_enclosures_stay_near_register(start_pitch):
    """Enclosure notes leave the register by at most a semitone below or a step above."""
    generator = LickGenerator(
        GenerationOptions(enclosure_probability=1.0, start_pitch=start_pitch)
    )
    found = 0
    for seed in range(100):
        result = generator.run(
            parse_progression("Dm7 | G7 | Cmaj7 | Fmaj7 | Bb7 | Ebmaj7"), rng=random.Random(seed)
        )
        for note in result.base_lick:
            if note.device == "enclosure":
                assert LOW_MIDI - 1 <= note.midi <= HIGH_MIDI + 2
                found += 1
    assert found > 0
