"""Command line helpers for the Lick Generator.

Modification summary
--------------------
* Persistent defaults are read from the JSON settings file and overridden by
  explicit flags, so a saved ``--swing`` or ``--device-strategy`` applies to
  later runs without retyping.
* Output files are written to freshly created directories and ``OSError``
  during export is logged before exiting with status ``1``.
* Without ``--output`` or ``--json`` the generated notes are printed as a
  table, which is handy when experimenting with strategies.

This module implements the console entry points for the project. The
``run_cli`` function parses command line arguments and performs lick
generation while :func:`main` configures logging and delegates to it.

Example
-------
Running ``python -m lick_generator --progression "Dm7 | G7 | Cmaj7" \
    --swing 0.5 --seed 4 --output out/lick.mid`` writes a swung three bar
lick to ``out/lick.mid``.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .model import Note
from .options import DeviceStrategy
from .scales import ScaleStrategy

__all__ = ["build_parser", "run_cli", "main", "format_lick_table"]

# CLI flag name -> options key understood by ``GenerationOptions.from_mapping``.
_OPTION_FLAGS = {
    "scale_strategy": "scaleStrategy",
    "device_strategy": "deviceStrategy",
    "swing": "swing",
    "insert_rests": "insertRests",
    "start_pitch": "startPitch",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lick-generator",
        description="Generate jazz licks over a chord progression.",
    )
    parser.add_argument("--progression", type=str, help='Chord progression, bars separated by "|" (e.g. "Dm7 | G7 | Cmaj7").')
    parser.add_argument("--tempo", type=float, help="Tempo in beats per minute (default: 120).")
    parser.add_argument(
        "--scale-strategy",
        choices=[s.value for s in ScaleStrategy],
        help="How scales are chosen for each chord.",
    )
    parser.add_argument(
        "--device-strategy",
        choices=[s.value for s in DeviceStrategy],
        help="Which melodic devices fill each bar.",
    )
    parser.add_argument("--swing", type=float, help="Swing ratio between 0 (straight) and 1.")
    parser.add_argument("--insert-rests", action="store_true", default=None, help="Replace a few short runs with rests.")
    parser.add_argument("--start-pitch", type=int, help="MIDI pitch the line starts near (default: 64).")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--output", type=str, help="Output MIDI file path.")
    parser.add_argument("--json", type=str, help="Write the progression and lick as JSON to this path.")
    parser.add_argument("--program", type=int, default=0, help="MIDI program number for the lick instrument")
    parser.add_argument("--settings-file", type=str, help="JSON file holding saved default options")
    parser.add_argument("--save-settings", action="store_true", help="Store the effective options as new defaults")
    parser.add_argument("--verbose", action="store_true", help="Log every generation stage")
    parser.add_argument("--list-strategies", action="store_true", help="List scale and device strategies and exit")
    return parser


def format_lick_table(lick: Sequence[Note]) -> str:
    """Return ``lick`` as a fixed width text table."""

    header = f"{'beat':>6} {'dur':>5}  {'note':<5} {'device':<13} {'function':<11} degree"
    lines = [header, "-" * len(header)]
    for note in lick:
        name = "rest" if note.is_rest else note.note_name
        function = note.harmonic_function.value if note.harmonic_function else ""
        lines.append(
            f"{note.start_beat:6.3f} {note.duration_beats:5.3f}  {name:<5} "
            f"{note.device:<13} {function:<11} {note.degree or ''}"
        )
    return "\n".join(lines)


def _list_strategies() -> None:
    print("Scale strategies:")
    for strategy in ScaleStrategy:
        print(f"  {strategy.value}")
    print("Device strategies:")
    for strategy in DeviceStrategy:
        print(f"  {strategy.value}")


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse ``argv`` (defaults to ``sys.argv``) and generate a lick."""

    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    if args.list_strategies:
        _list_strategies()
        return

    from . import (
        DEFAULT_SETTINGS_FILE,
        GenerationOptions,
        LickGenerator,
        create_midi_file,
        lick_to_state,
        load_settings,
        parse_progression,
        save_settings,
    )

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    settings: Dict[str, Any] = load_settings(settings_path)

    if not args.progression:
        logging.error("A chord progression is required (use --progression).")
        sys.exit(1)
    try:
        progression = parse_progression(args.progression)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    tempo = args.tempo if args.tempo is not None else settings.get("tempo", 120)
    try:
        tempo = float(tempo)
    except (TypeError, ValueError):
        tempo = -1.0
    if tempo <= 0:
        logging.error("Tempo must be a positive number.")
        sys.exit(1)
    if not 0 <= args.program <= 127:
        logging.error("Program must be between 0 and 127.")
        sys.exit(1)

    requested = dict(settings)
    for flag, key in _OPTION_FLAGS.items():
        value = getattr(args, flag)
        if value is not None:
            requested[key] = value
    try:
        options = GenerationOptions.from_mapping(requested)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    if args.seed is not None:
        logging.info("Using random seed %d", args.seed)
    rng = random.Random(args.seed)
    result = LickGenerator(options).run(progression, {"tempo": tempo}, rng)

    if args.save_settings:
        save_settings({**options.to_dict(), "tempo": tempo}, settings_path)

    if args.output:
        try:
            create_midi_file(result.lick, tempo, args.output, program=args.program)
        except OSError as exc:
            logging.error("Could not write MIDI file: %s", exc)
            sys.exit(1)
        except ImportError as exc:
            logging.error(str(exc))
            sys.exit(1)
    if args.json:
        try:
            path = Path(args.json)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                lick_to_state(progression, result.lick, result.metadata), encoding="utf-8"
            )
        except OSError as exc:
            logging.error("Could not write JSON file: %s", exc)
            sys.exit(1)
        logging.info("Lick state saved to %s", args.json)
    if not args.output and not args.json:
        print(format_lick_table(result.lick))
    logging.info("Lick generation complete.")


def main(argv: Optional[List[str]] = None) -> None:
    """Configure logging and run the command line interface."""

    verbose = "--verbose" in (sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    run_cli(argv)


if __name__ == "__main__":
    main()
