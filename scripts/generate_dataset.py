"""Export a dataset of generated licks for sequence model experiments.

Each sample picks a random key, progression template, device strategy and
swing ratio, generates a lick and stores it together with derived sequences
and per-note feature rows. The following files are written to
``--output-dir``:

``full_dataset.json``
    Every sample with metadata, notes, tokens and sequences.
``midi_sequences.json`` / ``interval_sequences.json``
    Plain pitch and pitch-invariant interval sequences.
``features.csv``
    One row per sounding note using :data:`lick_generator.dataset.FEATURE_COLUMNS`
    plus the harmonic function label.
``dataset_stats.json`` / ``splits.json``
    Distribution summary and an 80/10/10 train/validation/test split.

Example
-------
::

    python scripts/generate_dataset.py --samples 500 --workers 4 \
        --output-dir ml_dataset --seed 1

Design Notes
------------
Sampling decisions are drawn from one seeded ``random.Random`` and every
lick receives its own derived seed, so the same ``--seed`` reproduces the
same dataset whether or not worker processes are used.
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, List

from lick_generator.batch_generation import generate_batch
from lick_generator.dataset import (
    FEATURE_COLUMNS,
    KEYS,
    PROGRESSION_TEMPLATES,
    build_progression,
    dataset_stats,
    degree_sequence,
    feature_matrix,
    interval_sequence,
    midi_sequence,
    tokenize_lick,
)
from lick_generator.utils import progression_to_dicts

DEVICE_STRATEGIES = ["varied", "arpeggio-focused", "neighbor-enclosure"]
SWING_RATIOS = [0.0, 0.3, 0.5, 0.7]


def build_configs(num_samples: int, rng: random.Random) -> List[Dict[str, Any]]:
    """Return ``num_samples`` batch configurations with sampling metadata."""

    configs = []
    for _ in range(num_samples):
        key = rng.choice(KEYS)
        template = rng.choice(sorted(PROGRESSION_TEMPLATES))
        configs.append(
            {
                "progression": build_progression(template, key),
                "options": {
                    "deviceStrategy": rng.choice(DEVICE_STRATEGIES),
                    "swing": rng.choice(SWING_RATIOS),
                },
                "metadata": {"key": key, "progressionType": template},
                "seed": rng.randrange(2**31),
            }
        )
    return configs


def build_dataset(num_samples: int, seed: int = 0, workers: int = 1) -> List[Dict[str, Any]]:
    """Generate ``num_samples`` licks and return the dataset records."""

    if num_samples <= 0:
        raise ValueError("num_samples must be a positive integer")
    configs = build_configs(num_samples, random.Random(seed))
    licks = generate_batch(configs, workers=workers)

    dataset = []
    for idx, (config, lick) in enumerate(zip(configs, licks)):
        last = lick[-1]
        dataset.append(
            {
                "id": idx,
                "metadata": {
                    **config["metadata"],
                    **config["options"],
                    "numNotes": len(lick),
                    "duration": last.start_beat + last.duration_beats,
                },
                "progression": progression_to_dicts(config["progression"]),
                "notes": lick,
                "tokens": tokenize_lick(lick),
                "sequences": {
                    "midi": midi_sequence(lick),
                    "intervals": interval_sequence(lick),
                    "degrees": degree_sequence(lick),
                },
            }
        )
    logging.info("Generated %d licks", len(dataset))
    return dataset


def export_dataset(dataset: List[Dict[str, Any]], output_dir: Path, seed: int = 0) -> None:
    """Write ``dataset`` to ``output_dir`` in JSON and CSV form."""

    output_dir.mkdir(parents=True, exist_ok=True)
    serialisable = [{**d, "notes": [n.to_dict() for n in d["notes"]]} for d in dataset]

    def _dump(name: str, data: Any) -> None:
        with open(output_dir / name, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        logging.info("Exported %s", name)

    _dump("full_dataset.json", serialisable)
    _dump(
        "midi_sequences.json",
        [{"id": d["id"], "metadata": d["metadata"], "sequence": d["sequences"]["midi"]} for d in dataset],
    )
    _dump(
        "interval_sequences.json",
        [{"id": d["id"], "metadata": d["metadata"], "sequence": d["sequences"]["intervals"]} for d in dataset],
    )

    rows = 0
    with open(output_dir / "features.csv", "w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(["id", "lick_id"] + FEATURE_COLUMNS + ["label"])
        for d in dataset:
            labels = [t["harmonicFunction"] for t in d["tokens"]]
            for i, row in enumerate(feature_matrix(d["notes"])):
                writer.writerow([f"{d['id']}_{i}", d["id"]] + [f"{v:g}" for v in row] + [labels[i]])
                rows += 1
    logging.info("Exported features.csv (%d rows)", rows)

    _dump("dataset_stats.json", dataset_stats(dataset))

    ids = [d["id"] for d in dataset]
    random.Random(seed).shuffle(ids)
    train = int(len(ids) * 0.8)
    val = int(len(ids) * 0.1)
    _dump(
        "splits.json",
        {"train": ids[:train], "validation": ids[train : train + val], "test": ids[train + val :]},
    )


def parse_args() -> argparse.Namespace:
    """Return parsed command line arguments."""

    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--samples", type=int, default=1000, help="Number of licks to generate")
    parser.add_argument("--output-dir", type=Path, default=Path("ml_dataset"), help="Directory receiving the exported files")
    parser.add_argument("--seed", type=int, default=0, help="Seed controlling every sampling decision")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes used for generation")
    return parser.parse_args()


def main() -> None:
    """Entry point used when executing the module as a script."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    args = parse_args()
    dataset = build_dataset(args.samples, args.seed, args.workers)
    export_dataset(dataset, args.output_dir, args.seed)


if __name__ == "__main__":  # pragma: no cover - manual execution only
    main()
