"""Slot-filling engine that turns planned targets into complete measures.

Every 4/4 measure is a grid of eight half-beat slots.  Slot 0 always holds
the planned target note.  The engine then walks the remaining slots as a
small state machine over ``(slot, pitch)``:

1. Optionally reserve the last two slots of a non-final measure for an
   enclosure of the next measure's target.
2. Until ``slot == fill_limit`` ask the :class:`DeviceSelector` for a device,
   run it with the remaining slot budget and advance by the slots it used.
3. Append the reserved enclosure, or in the final measure a one-beat cadence
   on the chord root.

Every device consumes at least one slot, and an explicit iteration guard
stops the loop even if a custom generator misbehaves, so the measure always
adds up to exactly four beats.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import List, Mapping, Optional, Sequence

from .chord_theory import chord_pitch_classes
from .device_selector import DeviceKind, DeviceSelector
from .devices import (
    ENCLOSURE_DEVICE,
    Capability,
    DeviceContext,
    DeviceRegistry,
    generate_arpeggio,
)
from .melodic_cells import CELLS, MelodicCell
from .model import SLOT_BEATS, SLOTS_PER_MEASURE, Measure, Note
from .note_utils import register_candidates
from .scales import DEFAULT_LIBRARY, ScaleLibrary

__all__ = ["DeviceEngine", "ENCLOSURE_SLOTS", "CADENCE_SLOTS"]

ENCLOSURE_SLOTS = 2
CADENCE_SLOTS = 2


class DeviceEngine:
    """Fill measures with device output around their planned targets."""

    def __init__(
        self,
        selector: DeviceSelector,
        *,
        library: Optional[ScaleLibrary] = DEFAULT_LIBRARY,
        cells: Optional[Mapping[str, MelodicCell]] = CELLS,
        enclosure_probability: float = 0.3,
        final_cadence: bool = True,
        registry: Optional[DeviceRegistry] = None,
    ) -> None:
        """Create an engine.

        Parameters
        ----------
        selector:
            Chooses the device for each step.
        library:
            Scale tables. ``None`` removes the scale-data capability so every
            scale based device falls back to arpeggios.
        cells:
            Melodic cell library. Empty or ``None`` disables the cell device.
        enclosure_probability:
            Chance of reserving an enclosure at the end of a non-final bar.
        final_cadence:
            Close the last bar with a one-beat root.
        registry:
            Custom device registry. By default one is built from the
            capabilities implied by ``library`` and ``cells``.
        """

        self.selector = selector
        self.library = library
        self.cells = dict(cells or {})
        self.enclosure_probability = enclosure_probability
        self.final_cadence = final_cadence
        if registry is None:
            caps = set()
            if library is not None and library.intervals:
                caps.add(Capability.SCALE_DATA)
            if self.cells:
                caps.add(Capability.CELL_LIBRARY)
            registry = DeviceRegistry(frozenset(caps))
        self.registry = registry

    def _scale_pcs(self, measure: Optional[Measure]) -> tuple:
        if measure is None or self.library is None:
            return ()
        return self.library.pitch_classes(measure.root_pc, measure.scale_name)

    def _context(
        self,
        measure: Measure,
        next_measure: Optional[Measure],
        slot: int,
        pitch: int,
        budget: int,
        rng: random.Random,
        ends_measure: bool,
    ) -> DeviceContext:
        return DeviceContext(
            measure=measure,
            chord_pcs=tuple(
                (measure.root_pc + iv) % 12 for iv in chord_pitch_classes(measure.quality)
            ),
            scale_pcs=self._scale_pcs(measure),
            current_pitch=pitch,
            start_beat=measure.measure_start + slot * SLOT_BEATS,
            budget=budget,
            rng=rng,
            ends_measure=ends_measure,
            next_target=next_measure.target_note if next_measure else None,
            next_scale_pcs=self._scale_pcs(next_measure),
            cells=self.cells,
        )

    def fill_measure(
        self,
        measure: Measure,
        next_measure: Optional[Measure],
        rng: random.Random,
        *,
        is_final: bool = False,
    ) -> List[Note]:
        """Return the notes of ``measure`` including its target.

        ``measure.target_note`` must already be planned, as must the target
        of ``next_measure`` when an enclosure is to be considered.
        """

        target = measure.target_note
        if target is None:
            raise ValueError(f"measure {measure.bar} has no planned target note")

        cadence = is_final and self.final_cadence
        natural_end = SLOTS_PER_MEASURE - CADENCE_SLOTS if cadence else SLOTS_PER_MEASURE
        reserve = (
            not is_final
            and next_measure is not None
            and next_measure.target_note is not None
            and self.selector.allows(DeviceKind.NEIGHBOR)
            and rng.random() < self.enclosure_probability
        )
        fill_limit = natural_end - ENCLOSURE_SLOTS if reserve else natural_end

        body: List[Note] = []
        first_device: Optional[str] = None
        slot, pitch = 1, target.midi
        max_steps = SLOTS_PER_MEASURE * 2
        steps = 0
        while slot < fill_limit:
            steps += 1
            budget = fill_limit - slot
            ctx = self._context(
                measure,
                next_measure,
                slot,
                pitch,
                budget,
                rng,
                ends_measure=fill_limit == SLOTS_PER_MEASURE,
            )
            if steps > max_steps:
                logging.warning(
                    "Slot guard tripped in bar %d at slot %d; padding with arpeggio",
                    measure.bar,
                    slot,
                )
                kind = DeviceKind.ARPEGGIO
                result = generate_arpeggio(ctx)
            else:
                kind = self.selector.select(rng)
                result = self.registry.generate(kind, ctx)
            notes = result.notes[:budget]
            if not notes:
                logging.warning("Device %s produced no notes; using arpeggio", kind.value)
                notes = generate_arpeggio(ctx).notes[:budget]
            first_device = first_device or notes[0].device
            body.extend(notes)
            slot += len(notes)
            pitch = notes[-1].midi

        if reserve:
            ctx = self._context(
                measure, next_measure, slot, pitch, ENCLOSURE_SLOTS, rng, ends_measure=True
            )
            enclosure = self.registry.generate(ENCLOSURE_DEVICE, ctx).notes[:ENCLOSURE_SLOTS]
            body.extend(enclosure)
            slot += len(enclosure)
            pitch = enclosure[-1].midi

        tag = first_device or DeviceKind.ARPEGGIO.value
        measure.target_note = replace(target, device=tag)
        notes = [measure.target_note] + body
        if cadence:
            notes.append(self._cadence_note(measure, slot, pitch, tag))
        logging.debug(
            "Bar %d filled with %d notes (enclosure=%s)", measure.bar, len(notes), reserve
        )
        return notes

    def _cadence_note(self, measure: Measure, slot: int, pitch: int, device: str) -> Note:
        """Sustain the chord root nearest ``pitch`` until the end of the bar."""

        roots = register_candidates([measure.root_pc])
        midi = min(roots, key=lambda m: (abs(m - pitch), m))
        return Note(
            start_beat=measure.measure_start + slot * SLOT_BEATS,
            duration_beats=measure.measure_end - (measure.measure_start + slot * SLOT_BEATS),
            midi=midi,
            chord_symbol=measure.chord_span.symbol,
            root_pc=measure.root_pc,
            quality=measure.quality,
            scale_name=measure.scale_name,
            device=device,
            rule_id="cadence",
        )

    def fill(self, measures: Sequence[Measure], rng: random.Random) -> List[Note]:
        """Fill every measure left to right and return the concatenated notes."""

        notes: List[Note] = []
        for idx, measure in enumerate(measures):
            next_measure = measures[idx + 1] if idx + 1 < len(measures) else None
            notes.extend(
                self.fill_measure(
                    measure, next_measure, rng, is_final=next_measure is None
                )
            )
        return notes
