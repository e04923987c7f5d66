"""Downbeat planning for every measure of a lick.

Before any device runs, each measure receives a *target note*: a chord tone
placed on beat one.  Targets are chosen left to right so each one sits close
to the previous downbeat, which gives the line a connected skeleton that the
devices then decorate.

The choice is deliberately loose.  Candidates are all chord tones inside the
playable register sorted by distance from the previous target, and a
three-tier draw picks among them:

* 50%: one of the two closest candidates,
* 30%: one of the next two (only when at least four candidates exist),
* otherwise: any candidate at all.

For the first measure, distance is taken from the configured start pitch.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from .chord_theory import UNKNOWN_DEGREE, chord_degree, chord_pitch_classes
from .model import SLOT_BEATS, Measure, Note
from .note_utils import register_candidates

__all__ = ["TargetPlanner", "plan_targets"]


class TargetPlanner:
    """Choose a chord-tone downbeat for each measure."""

    def __init__(self, near_share: float = 0.5, second_share: float = 0.3) -> None:
        """Create a planner with custom tier probabilities.

        Parameters
        ----------
        near_share:
            Probability of choosing among the two closest chord tones.
        second_share:
            Probability of choosing among the third and fourth closest.
        """

        if near_share < 0 or second_share < 0 or near_share + second_share > 1:
            raise ValueError("tier shares must be non-negative and sum to at most 1")
        self.near_share = near_share
        self.second_share = second_share

    def candidates(self, measure: Measure, last_midi: int) -> List[int]:
        """Return in-range chord tones of ``measure`` ordered by distance."""

        pcs = [(measure.root_pc + iv) % 12 for iv in chord_pitch_classes(measure.quality)]
        pitches = register_candidates(pcs)
        return sorted(pitches, key=lambda m: (abs(m - last_midi), m))

    def choose(self, candidates: Sequence[int], rng: random.Random) -> int:
        """Pick one of ``candidates`` using the three-tier weighting."""

        roll = rng.random()
        if roll < self.near_share:
            return rng.choice(candidates[:2])
        if roll < self.near_share + self.second_share and len(candidates) >= 4:
            return rng.choice(candidates[2:4])
        return rng.choice(candidates)

    def plan(
        self, measures: Sequence[Measure], start_pitch: int, rng: random.Random
    ) -> List[Note]:
        """Attach a target note to every measure and return the targets.

        ``rule_id`` is ``"target"``; the ``device`` tag is filled in by the
        engine once the measure's first device is known.
        """

        targets: List[Note] = []
        last_midi = start_pitch
        for measure in measures:
            midi = self.choose(self.candidates(measure, last_midi), rng)
            degree = chord_degree(midi, measure.root_pc, measure.quality)
            if degree == UNKNOWN_DEGREE:
                logging.error(
                    "Target %d has no degree over %s", midi, measure.chord_span.symbol
                )
            note = Note(
                start_beat=measure.measure_start,
                duration_beats=SLOT_BEATS,
                midi=midi,
                chord_symbol=measure.chord_span.symbol,
                root_pc=measure.root_pc,
                quality=measure.quality,
                scale_name=measure.scale_name,
                device="",
                rule_id="target",
                degree=degree,
            )
            measure.target_note = note
            targets.append(note)
            last_midi = midi
        logging.debug("Planned targets: %s", [t.midi for t in targets])
        return targets


_DEFAULT_PLANNER = TargetPlanner()


def plan_targets(
    measures: Sequence[Measure], start_pitch: int, rng: Optional[random.Random] = None
) -> List[Note]:
    """Plan downbeats for ``measures`` with the default tier weights."""

    return _DEFAULT_PLANNER.plan(measures, start_pitch, rng or random.Random())
