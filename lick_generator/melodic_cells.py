"""Four-note melodic cells expressed as scale degrees.

Cells are short, idiomatic shapes such as ``1-2-3-5`` that players drill
through every scale.  Degrees are 1-based and may exceed the scale length:
degree ``9`` of a seven-note scale is the second degree one octave up.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .note_utils import clamp_range, pc_to_midi_near

__all__ = ["MelodicCell", "CELLS", "CELL_CATEGORIES", "random_cell", "degree_to_midi", "resolve_cell"]


@dataclass(frozen=True)
class MelodicCell:
    name: str
    degrees: Tuple[int, ...]
    label: str


CELLS: Dict[str, MelodicCell] = {
    cell.name: cell
    for cell in (
        MelodicCell("ascending-1235", (1, 2, 3, 5), "1-2-3-5 Ascending"),
        MelodicCell("ascending-1345", (1, 3, 4, 5), "1-3-4-5 Ascending"),
        MelodicCell("upper-5679", (5, 6, 7, 9), "5-6-7-9 Upper"),
        MelodicCell("upper-5789", (5, 7, 8, 9), "5-7-8-9 Upper"),
        MelodicCell("descending-5321", (5, 3, 2, 1), "5-3-2-1 Descending"),
        MelodicCell("descending-5431", (5, 4, 3, 1), "5-4-3-1 Descending"),
        MelodicCell("arch-1351", (1, 3, 5, 1), "1-3-5-1 Arch"),
        MelodicCell("valley-5135", (5, 1, 3, 5), "5-1-3-5 Valley"),
    )
}

CELL_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "ascending": ("ascending-1235", "ascending-1345"),
    "descending": ("descending-5321", "descending-5431"),
    "upper": ("upper-5679", "upper-5789"),
    "mixed": ("arch-1351", "valley-5135"),
}


def random_cell(
    rng: random.Random,
    category: Optional[str] = None,
    cells: Mapping[str, MelodicCell] = CELLS,
) -> MelodicCell:
    """Return a random cell from ``cells``, optionally restricted to one category.

    Names are drawn in sorted order so the choice depends only on ``rng``.
    ``ValueError`` is raised for an unknown category or when no cell in
    ``cells`` qualifies.
    """

    if category is None:
        names = sorted(cells)
    elif category in CELL_CATEGORIES:
        names = [name for name in CELL_CATEGORIES[category] if name in cells]
    else:
        raise ValueError(
            f"Unknown cell category '{category}'. Expected one of: {', '.join(CELL_CATEGORIES)}"
        )
    if not names:
        raise ValueError("no melodic cells available")
    return cells[rng.choice(names)]


def degree_to_midi(degree: int, scale_pcs: Sequence[int], near: int) -> int:
    """Resolve a 1-based scale ``degree`` to a pitch close to ``near``.

    ``scale_pcs`` lists absolute pitch classes in scale order. Degrees past
    the end of the scale wrap around and are placed at or above ``near``.
    """

    index = (degree - 1) % len(scale_pcs)
    octave_offset = (degree - 1) // len(scale_pcs)
    midi = pc_to_midi_near(scale_pcs[index], near)
    if octave_offset > 0 and midi < near:
        midi += 12
    return clamp_range(midi)


def resolve_cell(cell: MelodicCell, scale_pcs: Sequence[int], start: int) -> List[int]:
    """Return the pitches of ``cell``, each placed near the previous one."""

    pitches: List[int] = []
    current = start
    for degree in cell.degrees:
        current = degree_to_midi(degree, scale_pcs, current)
        pitches.append(current)
    return pitches
