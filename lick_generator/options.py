"""Generation options validated once at the library boundary.

Callers may describe a request either with the camelCase keys used by the
JSON front ends (``scaleStrategy``, ``deviceStrategy``, ``insertRests``,
``startPitch``) or with Python style snake_case names.  Strings are turned
into enums here so the rest of the pipeline never handles raw names.
Invalid values raise ``ValueError`` immediately rather than degrading deep
inside generation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .scales import ScaleStrategy

__all__ = ["DeviceStrategy", "GenerationOptions", "DEFAULT_DEVICE_WEIGHTS"]


class DeviceStrategy(str, Enum):
    ARPEGGIO_FOCUSED = "arpeggio-focused"
    SCALE_FOCUSED = "scale-focused"
    CELL_FOCUSED = "cell-focused"
    NEIGHBOR_ENCLOSURE = "neighbor-enclosure"
    ARPEGGIO_SCALE_MIX = "arpeggio-scale-mix"
    VARIED = "varied"


# Probability partition for the ``varied`` strategy, keyed by device kind
# value. Weights need not sum to one.
DEFAULT_DEVICE_WEIGHTS: Dict[str, float] = {
    "arpeggio": 0.25,
    "scale-run": 0.25,
    "melodic-cell": 0.25,
    "neighbor": 0.25,
}

# Arpeggio vs scale-run balance for ``arpeggio-scale-mix``.
DEFAULT_MIX_WEIGHTS: Tuple[float, float] = (0.5, 0.5)


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _coerce_enum(enum_cls, value: Any, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Unknown {label} '{value}'. Expected one of: {valid}") from None


_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def _coerce_bool(value: Any, label: str) -> bool:
    # Settings files and form posts may carry "true"/"false" strings.
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"{label} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class GenerationOptions:
    """Immutable options record consumed by :class:`LickGenerator`.

    Attributes
    ----------
    scale_strategy:
        How a scale is chosen for each chord.
    device_strategy:
        How devices are chosen while filling a measure.
    swing:
        Swing ratio between ``0`` (straight) and ``1`` (hard triplet swing).
    insert_rests:
        Enable the rest insertion pass.
    start_pitch:
        MIDI pitch seeding the downbeat planner for the first measure.
    enclosure_probability:
        Chance of reserving the end of a non-final measure for an enclosure.
    device_weights:
        Probability partition used by the ``varied`` device strategy.
    mix_weights:
        ``(arpeggio, scale-run)`` balance for ``arpeggio-scale-mix``.
    final_cadence:
        Close the last measure with a sustained root.
    """

    scale_strategy: ScaleStrategy = ScaleStrategy.DEFAULT
    device_strategy: DeviceStrategy = DeviceStrategy.VARIED
    swing: float = 0.0
    insert_rests: bool = False
    start_pitch: int = 64
    enclosure_probability: float = 0.3
    device_weights: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_DEVICE_WEIGHTS)
    )
    mix_weights: Tuple[float, float] = DEFAULT_MIX_WEIGHTS
    final_cadence: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "scale_strategy", _coerce_enum(ScaleStrategy, self.scale_strategy, "scale strategy")
        )
        object.__setattr__(
            self,
            "device_strategy",
            _coerce_enum(DeviceStrategy, self.device_strategy, "device strategy"),
        )
        if not 0.0 <= float(self.swing) <= 1.0:
            raise ValueError("swing must be between 0 and 1")
        if not 0 <= int(self.start_pitch) <= 127:
            raise ValueError("start_pitch must be a MIDI number between 0 and 127")
        if not 0.0 <= float(self.enclosure_probability) <= 1.0:
            raise ValueError("enclosure_probability must be between 0 and 1")
        weights = dict(self.device_weights)
        unknown = set(weights) - set(DEFAULT_DEVICE_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown device kinds in device_weights: {sorted(unknown)}")
        if any(w < 0 for w in weights.values()) or sum(weights.values()) <= 0:
            raise ValueError("device_weights must be non-negative with a positive total")
        mix = tuple(float(w) for w in self.mix_weights)
        if len(mix) != 2 or any(w < 0 for w in mix) or sum(mix) <= 0:
            raise ValueError("mix_weights must be two non-negative numbers with a positive total")
        object.__setattr__(self, "insert_rests", _coerce_bool(self.insert_rests, "insert_rests"))
        object.__setattr__(self, "final_cadence", _coerce_bool(self.final_cadence, "final_cadence"))
        object.__setattr__(self, "swing", float(self.swing))
        object.__setattr__(self, "start_pitch", int(self.start_pitch))
        object.__setattr__(self, "device_weights", weights)
        object.__setattr__(self, "mix_weights", mix)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None) -> "GenerationOptions":
        """Build options from a dictionary with camelCase or snake_case keys.

        Keys that are not option names are ignored so a whole settings file
        can be passed straight through.
        """

        known = set(cls.__dataclass_fields__)
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _snake(key).replace("-", "_")
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Return the options with camelCase keys for JSON export."""

        return {
            "scaleStrategy": self.scale_strategy.value,
            "deviceStrategy": self.device_strategy.value,
            "swing": self.swing,
            "insertRests": self.insert_rests,
            "startPitch": self.start_pitch,
            "enclosureProbability": self.enclosure_probability,
            "finalCadence": self.final_cadence,
        }
