"""Melodic device generators and the registry that dispatches to them.

A *device* fills a contiguous run of eighth-note slots inside one measure.
Each generator receives a :class:`DeviceContext` describing where it starts,
how many slots it may use and the pitch it continues from, and returns a
:class:`DeviceResult` holding one note per consumed slot.

Design Notes
------------
Devices declare the supporting data they need as :class:`Capability` flags.
:class:`DeviceRegistry` compares those requirements against the
capabilities it was built with and routes any device it cannot satisfy to
the arpeggio generator, which only needs chord tones.  This keeps the
fallback policy in one place instead of inside every generator.

Harmonic labels are not assigned here.  Rule identifiers such as
``neighbor-lower`` or ``enclosure-upper`` record how a pitch was derived; the
harmonic function is attached afterwards by :mod:`lick_generator.harmonic`.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .device_selector import DeviceKind
from .melodic_cells import MelodicCell, random_cell, resolve_cell
from .model import SLOT_BEATS, Measure, Note
from .note_utils import clamp_range, next_scale_note, upper_neighbor

__all__ = [
    "Capability",
    "DeviceContext",
    "DeviceResult",
    "DeviceSpec",
    "DeviceRegistry",
    "ENCLOSURE_DEVICE",
    "generate_arpeggio",
    "generate_scale_run",
    "generate_melodic_cell",
    "generate_neighbor",
    "generate_enclosure",
]

ENCLOSURE_DEVICE = "enclosure"


class Capability(str, Enum):
    SCALE_DATA = "scale-data"
    CELL_LIBRARY = "cell-library"


@dataclass
class DeviceContext:
    """Everything a device generator may consult.

    ``chord_pcs`` and ``scale_pcs`` hold absolute pitch classes; the scale is
    listed in scale order starting from the root. ``budget`` is the number of
    slots still free before the device must stop and ``ends_measure`` tells
    whether those slots run to the end of the bar.
    """

    measure: Measure
    chord_pcs: Tuple[int, ...]
    scale_pcs: Tuple[int, ...]
    current_pitch: int
    start_beat: float
    budget: int
    rng: random.Random
    ends_measure: bool = False
    next_target: Optional[Note] = None
    next_scale_pcs: Tuple[int, ...] = ()
    cells: Mapping[str, MelodicCell] = field(default_factory=dict)

    def note(self, slot: int, midi: int, device: str, rule_id: str) -> Note:
        """Create a half-beat note ``slot`` positions after ``start_beat``."""

        m = self.measure
        return Note(
            start_beat=self.start_beat + slot * SLOT_BEATS,
            duration_beats=SLOT_BEATS,
            midi=midi,
            chord_symbol=m.chord_span.symbol,
            root_pc=m.root_pc,
            quality=m.quality,
            scale_name=m.scale_name,
            device=device,
            rule_id=rule_id,
        )


@dataclass
class DeviceResult:
    notes: List[Note]
    slots_used: int


def _direction(rng: random.Random) -> int:
    return 1 if rng.random() < 0.5 else -1


def generate_arpeggio(ctx: DeviceContext) -> DeviceResult:
    """Walk the chord tones in one direction for 3-7 notes."""

    count = min(ctx.rng.randint(3, 7), ctx.budget)
    direction = _direction(ctx.rng)
    cycle = sorted(set(ctx.chord_pcs))
    notes: List[Note] = []
    pitch = ctx.current_pitch
    for i in range(count):
        pitch = clamp_range(next_scale_note(pitch, cycle, direction))
        notes.append(ctx.note(i, pitch, DeviceKind.ARPEGGIO.value, "arpeggio"))
    return DeviceResult(notes, len(notes))


def generate_scale_run(ctx: DeviceContext) -> DeviceResult:
    """Step through the active scale in one direction for 3-6 notes."""

    count = min(ctx.rng.randint(3, 6), ctx.budget)
    direction = _direction(ctx.rng)
    notes: List[Note] = []
    pitch = ctx.current_pitch
    for i in range(count):
        pitch = clamp_range(next_scale_note(pitch, ctx.scale_pcs, direction))
        notes.append(ctx.note(i, pitch, DeviceKind.SCALE_RUN.value, "scale-step"))
    return DeviceResult(notes, len(notes))


def generate_melodic_cell(ctx: DeviceContext) -> DeviceResult:
    """Play a four-note degree cell, truncated when fewer slots remain."""

    cell = random_cell(ctx.rng, cells=ctx.cells)
    pitches = resolve_cell(cell, ctx.scale_pcs, ctx.current_pitch)[: ctx.budget]
    notes = [
        ctx.note(i, midi, DeviceKind.MELODIC_CELL.value, "melodic-cell")
        for i, midi in enumerate(pitches)
    ]
    return DeviceResult(notes, len(notes))


def generate_enclosure(ctx: DeviceContext) -> DeviceResult:
    """Approach the next measure's target from a semitone below and a scale step above.

    Requires ``ctx.next_target`` and at least two free slots. The order of
    the two approach notes is chosen at random.
    """

    target = ctx.next_target.midi
    lower = (target - 1, "enclosure-lower")
    upper = (upper_neighbor(target, ctx.next_scale_pcs or ctx.scale_pcs), "enclosure-upper")
    first, second = (upper, lower) if ctx.rng.random() < 0.5 else (lower, upper)
    notes = [
        ctx.note(0, first[0], ENCLOSURE_DEVICE, first[1]),
        ctx.note(1, second[0], ENCLOSURE_DEVICE, second[1]),
    ]
    return DeviceResult(notes, 2)


def generate_neighbor(ctx: DeviceContext) -> DeviceResult:
    """Decorate the current pitch with an upper or lower neighbour.

    With exactly two slots left at the end of a bar this becomes an
    enclosure of the next target instead.
    """

    if ctx.ends_measure and ctx.budget == 2 and ctx.next_target is not None:
        return generate_enclosure(ctx)

    current = ctx.current_pitch
    if ctx.rng.random() < 0.5:
        neighbor, rule_id = clamp_range(current - 1), "neighbor-lower"
    else:
        neighbor = clamp_range(next_scale_note(current, ctx.scale_pcs, 1))
        rule_id = "neighbor-upper"
    notes = [ctx.note(0, neighbor, DeviceKind.NEIGHBOR.value, rule_id)]
    if ctx.budget >= 3:
        notes.append(ctx.note(1, current, DeviceKind.NEIGHBOR.value, "neighbor-return"))
    return DeviceResult(notes, len(notes))


@dataclass(frozen=True)
class DeviceSpec:
    name: str
    generate: Callable[[DeviceContext], DeviceResult]
    requires: FrozenSet[Capability] = frozenset()


_BUILTIN_SPECS: Dict[str, DeviceSpec] = {
    DeviceKind.ARPEGGIO.value: DeviceSpec("arpeggio", generate_arpeggio),
    DeviceKind.SCALE_RUN.value: DeviceSpec(
        "scale-run", generate_scale_run, frozenset({Capability.SCALE_DATA})
    ),
    DeviceKind.MELODIC_CELL.value: DeviceSpec(
        "melodic-cell",
        generate_melodic_cell,
        frozenset({Capability.SCALE_DATA, Capability.CELL_LIBRARY}),
    ),
    DeviceKind.NEIGHBOR.value: DeviceSpec(
        "neighbor", generate_neighbor, frozenset({Capability.SCALE_DATA})
    ),
    ENCLOSURE_DEVICE: DeviceSpec(
        ENCLOSURE_DEVICE, generate_enclosure, frozenset({Capability.SCALE_DATA})
    ),
}


class DeviceRegistry:
    """Dispatch device names to generators, honouring capabilities."""

    def __init__(
        self,
        capabilities: Optional[FrozenSet[Capability]] = None,
        specs: Optional[Mapping[str, DeviceSpec]] = None,
    ) -> None:
        self.capabilities = frozenset(Capability) if capabilities is None else frozenset(capabilities)
        self.specs: Dict[str, DeviceSpec] = dict(_BUILTIN_SPECS if specs is None else specs)
        if DeviceKind.ARPEGGIO.value not in self.specs:
            raise ValueError("device registry requires an arpeggio generator for fallback")

    def supports(self, name: str) -> bool:
        spec = self.specs.get(name)
        return spec is not None and spec.requires <= self.capabilities

    def generate(self, name: "DeviceKind | str", ctx: DeviceContext) -> DeviceResult:
        """Run the generator registered as ``name`` or fall back to arpeggio."""

        key = name.value if isinstance(name, DeviceKind) else name
        if not self.supports(key):
            logging.debug("Device %s unavailable; falling back to arpeggio", key)
            key = DeviceKind.ARPEGGIO.value
        return self.specs[key].generate(ctx)
