"""Choose which melodic device fills the next stretch of a measure.

The engine asks the selector for a new device every time the previous one
has finished, so a single measure may combine an arpeggio with a scale run
or a melodic cell.  Strategies:

``arpeggio-focused`` / ``scale-focused`` / ``cell-focused`` / ``neighbor-enclosure``
    Always return the same device kind.
``varied``
    Weighted draw over all four kinds (25% each unless overridden).
``arpeggio-scale-mix``
    Draw between arpeggio and scale-run only, balanced by ``mix_weights``.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional, Sequence, Tuple

from .options import DEFAULT_DEVICE_WEIGHTS, DEFAULT_MIX_WEIGHTS, DeviceStrategy

__all__ = ["DeviceKind", "DeviceSelector"]


class DeviceKind(str, Enum):
    ARPEGGIO = "arpeggio"
    SCALE_RUN = "scale-run"
    MELODIC_CELL = "melodic-cell"
    NEIGHBOR = "neighbor"


_FIXED: Dict[DeviceStrategy, DeviceKind] = {
    DeviceStrategy.ARPEGGIO_FOCUSED: DeviceKind.ARPEGGIO,
    DeviceStrategy.SCALE_FOCUSED: DeviceKind.SCALE_RUN,
    DeviceStrategy.CELL_FOCUSED: DeviceKind.MELODIC_CELL,
    DeviceStrategy.NEIGHBOR_ENCLOSURE: DeviceKind.NEIGHBOR,
}

_MIX_KINDS = (DeviceKind.ARPEGGIO, DeviceKind.SCALE_RUN)


class DeviceSelector:
    """Pick device kinds according to a :class:`DeviceStrategy`."""

    def __init__(
        self,
        strategy: DeviceStrategy = DeviceStrategy.VARIED,
        *,
        weights: Optional[Mapping[str, float]] = None,
        mix_weights: Sequence[float] = DEFAULT_MIX_WEIGHTS,
    ) -> None:
        self.strategy = DeviceStrategy(strategy)
        raw = dict(DEFAULT_DEVICE_WEIGHTS if weights is None else weights)
        self.weights: Dict[DeviceKind, float] = {
            DeviceKind(kind): float(w) for kind, w in raw.items()
        }
        self.mix_weights: Tuple[float, float] = (float(mix_weights[0]), float(mix_weights[1]))

    def kinds(self) -> FrozenSet[DeviceKind]:
        """Return every kind this selector can produce."""

        if self.strategy in _FIXED:
            return frozenset({_FIXED[self.strategy]})
        if self.strategy is DeviceStrategy.ARPEGGIO_SCALE_MIX:
            return frozenset(k for k, w in zip(_MIX_KINDS, self.mix_weights) if w > 0)
        return frozenset(k for k, w in self.weights.items() if w > 0)

    def allows(self, kind: DeviceKind) -> bool:
        return kind in self.kinds()

    def select(self, rng: random.Random) -> DeviceKind:
        """Return the next device kind to use."""

        if self.strategy in _FIXED:
            return _FIXED[self.strategy]
        if self.strategy is DeviceStrategy.ARPEGGIO_SCALE_MIX:
            return rng.choices(_MIX_KINDS, weights=self.mix_weights, k=1)[0]
        kinds = list(self.weights)
        return rng.choices(kinds, weights=[self.weights[k] for k in kinds], k=1)[0]
