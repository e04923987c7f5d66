"""Tests for the dataset helpers and the dataset export script."""

import csv
import importlib.util
import json
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from lick_generator import generate_lick  # noqa: E402
from lick_generator.dataset import (  # noqa: E402
    DEVICE_COLUMNS,
    FEATURE_COLUMNS,
    build_progression,
    dataset_stats,
    degree_sequence,
    feature_matrix,
    interval_sequence,
    midi_sequence,
    tokenize_lick,
)
from lick_generator.chord_theory import Quality  # noqa: E402
from lick_generator.model import Note  # noqa: E402
from lick_generator.scales import ScaleName  # noqa: E402


def _load_script():
    spec = importlib.util.spec_from_file_location(
        "generate_dataset", ROOT / "scripts" / "generate_dataset.py"
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _lick(seed=3, **options):
    return generate_lick(build_progression("ii-V-I", "C"), options=options, seed=seed)


def test_build_progression_templates():
    """Templates are transposed to the requested tonic."""
    assert [s.symbol for s in build_progression("ii-V-I", "C")] == ["Dm7", "G7", "Cmaj7"]
    assert [s.symbol for s in build_progression("ii-V-I", "F")] == ["Gm7", "C7", "Fmaj7"]
    spans = build_progression("I-vi-ii-V", "Bb")
    assert [s.symbol for s in spans] == ["Bbmaj7", "Gm7", "Cm7", "F7"]
    assert [s.start_beat for s in spans] == [0.0, 4.0, 8.0, 12.0]


def test_build_progression_rejects_unknown_inputs():
    """Unknown templates and keys raise ``ValueError``."""
    with pytest.raises(ValueError):
        build_progression("iii-VI", "C")
    with pytest.raises(ValueError):
        build_progression("ii-V", "H")


def test_sequences_skip_rests():
    """Pitch, interval and degree sequences only cover sounding notes."""
    lick = _lick(insertRests=True)
    sounding = [n for n in lick if not n.is_rest]
    pitches = midi_sequence(lick)
    assert pitches == [n.midi for n in sounding]

    intervals = interval_sequence(lick)
    assert intervals[0] == 0
    assert intervals[1:] == [b - a for a, b in zip(pitches, pitches[1:])]

    degrees = degree_sequence(lick)
    assert len(degrees) == len(sounding)
    assert all(0 <= d <= 7 for d in degrees)


def test_empty_sequences():
    """An all-rest line yields empty sequences and an empty matrix."""
    rest = Note(0.0, 4.0, 60, "C", 0, Quality.MAJ7, ScaleName.IONIAN, "rest", "rest", is_rest=True)
    assert interval_sequence([rest]) == []
    assert feature_matrix([rest]).shape == (0, len(FEATURE_COLUMNS))


def test_tokens_describe_each_note():
    """Tokens use sixteenth note durations and MIDI velocities."""
    lick = _lick()
    tokens = tokenize_lick(lick)
    assert len(tokens) == len(lick)
    assert tokens[0]["duration"] == 2
    assert tokens[0]["velocity"] == 114
    assert tokens[0]["harmonicFunction"] == "chord-tone"
    assert tokens[-1]["duration"] == 4
    assert {t["device"] for t in tokens} <= set(DEVICE_COLUMNS)


def test_feature_matrix_columns():
    """Each row one-hot encodes the device and harmonic function."""
    lick = _lick(seed=5)
    matrix = feature_matrix(lick)
    assert matrix.shape == (len(lick), len(FEATURE_COLUMNS))
    col = {name: i for i, name in enumerate(FEATURE_COLUMNS)}

    device_cols = [col[f"device_{d.replace('-', '_')}"] for d in DEVICE_COLUMNS]
    assert np.all(matrix[:, device_cols].sum(axis=1) == 1)
    function_cols = [col["is_chord_tone"], col["is_scale_step"], col["is_chromatic"]]
    assert np.all(matrix[:, function_cols].sum(axis=1) == 1)

    assert matrix[0, col["is_downbeat"]] == 1
    assert matrix[0, col["prev_interval"]] == 0
    assert matrix[-1, col["next_interval"]] == 0
    assert list(matrix[:, col["midi"]]) == [n.midi for n in lick]
    assert matrix[0, col["is_minor"]] == 1
    assert matrix[0, col["chord_root"]] == 2


def test_dataset_stats_summary():
    """Statistics aggregate pitches, devices and progression types."""
    licks = [_lick(seed=s) for s in range(3)]
    samples = [{"notes": lick, "metadata": {"progressionType": "ii-V-I"}} for lick in licks]
    stats = dataset_stats(samples)
    total = sum(len(lick) for lick in licks)
    assert stats["totalLicks"] == 3
    assert stats["totalNotes"] == total
    assert stats["avgNotesPerLick"] == pytest.approx(total / 3)
    assert stats["progressions"] == {"ii-V-I": 3}
    assert sum(stats["devices"].values()) == total
    assert sum(stats["intervals"].values()) == total - 3
    assert 40 <= stats["pitchRange"]["min"] <= stats["pitchRange"]["max"] <= 90


def test_dataset_stats_empty():
    """No samples give zeroed statistics."""
    stats = dataset_stats([])
    assert stats["totalNotes"] == 0
    assert stats["pitchRange"] == {"min": None, "max": None}


def test_script_exports_every_file(tmp_path):
    """The dataset script writes JSON, CSV and split files."""
    script = _load_script()
    dataset = script.build_dataset(10, seed=4, workers=1)
    assert [d["id"] for d in dataset] == list(range(10))
    script.export_dataset(dataset, tmp_path, seed=4)

    for name in (
        "full_dataset.json",
        "midi_sequences.json",
        "interval_sequences.json",
        "features.csv",
        "dataset_stats.json",
        "splits.json",
    ):
        assert (tmp_path / name).exists()

    full = json.loads((tmp_path / "full_dataset.json").read_text(encoding="utf-8"))
    assert full[0]["notes"][0]["ruleId"] == "target"
    assert full[0]["metadata"]["progressionType"] in script.PROGRESSION_TEMPLATES

    splits = json.loads((tmp_path / "splits.json").read_text(encoding="utf-8"))
    assert (len(splits["train"]), len(splits["validation"]), len(splits["test"])) == (8, 1, 1)
    assert sorted(splits["train"] + splits["validation"] + splits["test"]) == list(range(10))

    with open(tmp_path / "features.csv", newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == ["id", "lick_id"] + FEATURE_COLUMNS + ["label"]
    sounding = sum(len(d["sequences"]["midi"]) for d in dataset)
    assert len(rows) - 1 == sounding


def test_script_is_reproducible():
    """The same seed builds the same dataset."""
    script = _load_script()
    first = script.build_dataset(4, seed=9)
    second = script.build_dataset(4, seed=9)
    assert [d["sequences"] for d in first] == [d["sequences"] for d in second]
    with pytest.raises(ValueError):
        script.build_dataset(0)
