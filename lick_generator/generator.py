"""End-to-end lick generation pipeline.

Modification summary
--------------------
* Randomness is injected through an explicit ``random.Random`` so a seed
  reproduces the same lick and concurrent calls never share state.
* Harmonic labels are attached in a single pass after every device has run,
  making :func:`lick_generator.harmonic.classify` the only source of truth.
* The rest-free lick is kept on :class:`LickResult` so rest insertion can be
  re-run without regenerating pitches.

Pipeline
--------
``analyze_measures`` turns chord spans into bars with a parsed root, quality
and scale.  :class:`~lick_generator.target_planner.TargetPlanner` then fixes a
chord tone on each downbeat, :class:`~lick_generator.engine.DeviceEngine`
fills the remaining slots measure by measure, the harmonic classifier labels
every note and finally swing and rests are applied.

Example
-------
>>> from lick_generator import parse_progression, generate_lick
>>> lick = generate_lick(parse_progression("Dm7 | G7 | Cmaj7"), seed=7)
>>> lick[0].harmonic_function.value
'chord-tone'
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .chord_theory import parse_quality, parse_root
from .device_selector import DeviceSelector
from .engine import DeviceEngine
from .harmonic import HarmonicClassifier
from .melodic_cells import CELLS, MelodicCell
from .model import BEATS_PER_MEASURE, ChordSpan, Measure, Note
from .options import GenerationOptions
from .postprocess import apply_swing, clip_to_measures, insert_rests
from .scales import DEFAULT_LIBRARY, ScaleLibrary, ScaleStrategy
from .target_planner import TargetPlanner
from .utils import default_metadata

__all__ = [
    "LickResult",
    "LickGenerator",
    "analyze_measures",
    "generate_lick",
    "coerce_progression",
]


SpanLike = Union[ChordSpan, Mapping[str, Any]]


def _span_from_mapping(data: Mapping[str, Any]) -> ChordSpan:
    def pick(*keys: str) -> Any:
        for key in keys:
            if key in data:
                return data[key]
        raise ValueError(f"chord span is missing '{keys[0]}': {dict(data)}")

    return ChordSpan(
        bar=int(pick("bar")),
        start_beat=float(pick("startBeat", "start_beat")),
        duration_beats=float(pick("durationBeats", "duration_beats")),
        symbol=str(pick("symbol")),
    )


def coerce_progression(progression: Iterable[SpanLike]) -> List[ChordSpan]:
    """Return ``progression`` as a list of :class:`ChordSpan` objects.

    Dictionaries may use the camelCase keys produced by JSON front ends.

    Raises
    ------
    ValueError
        If the progression is empty or a span is malformed.
    """

    spans = [s if isinstance(s, ChordSpan) else _span_from_mapping(s) for s in progression]
    if not spans:
        raise ValueError("progression must contain at least one chord")
    for span in spans:
        if span.bar < 0 or span.duration_beats <= 0:
            raise ValueError(f"invalid chord span: {span}")
    return spans


def analyze_measures(
    progression: Sequence[ChordSpan],
    strategy: ScaleStrategy = ScaleStrategy.DEFAULT,
    rng: Optional[random.Random] = None,
    library: ScaleLibrary = DEFAULT_LIBRARY,
) -> List[Measure]:
    """Build one :class:`Measure` per bar of ``progression``.

    The chord sounding at each bar's downbeat defines the measure. Bars the
    progression does not cover reuse the previous chord.
    """

    rng = rng or random.Random()
    bar_count = max(span.bar for span in progression) + 1
    measures: List[Measure] = []
    previous = progression[0]
    for bar in range(bar_count):
        start = bar * BEATS_PER_MEASURE
        span = next((s for s in progression if s.contains(start)), None)
        if span is None:
            span = next((s for s in progression if s.bar == bar), previous)
        previous = span
        quality = parse_quality(span.symbol)
        measures.append(
            Measure(
                bar=bar,
                measure_start=start,
                chord_span=span,
                root_pc=parse_root(span.symbol),
                quality=quality,
                scale_name=library.select(quality, strategy, rng),
            )
        )
    logging.debug("Analyzed %d measures", len(measures))
    return measures


@dataclass
class LickResult:
    """Everything produced by one generation call.

    ``base_lick`` is the swung but rest-free line; ``lick`` is the final
    output with rests applied when requested.
    """

    measures: List[Measure]
    base_lick: List[Note]
    lick: List[Note]
    options: GenerationOptions
    metadata: Dict[str, Any] = field(default_factory=dict)


class LickGenerator:
    """Compose the planner, engine and post-processing passes."""

    def __init__(
        self,
        options: Optional[GenerationOptions] = None,
        *,
        library: Optional[ScaleLibrary] = DEFAULT_LIBRARY,
        cells: Optional[Mapping[str, MelodicCell]] = CELLS,
        planner: Optional[TargetPlanner] = None,
    ) -> None:
        """Create a generator.

        ``library`` set to ``None`` disables every scale based device, which
        then falls back to arpeggios; scale names are still chosen from the
        default tables so notes remain fully annotated.
        """

        self.options = options or GenerationOptions()
        self.library = library
        self.planner = planner or TargetPlanner()
        self.classifier = HarmonicClassifier(library or DEFAULT_LIBRARY)
        selector = DeviceSelector(
            self.options.device_strategy,
            weights=self.options.device_weights,
            mix_weights=self.options.mix_weights,
        )
        self.engine = DeviceEngine(
            selector,
            library=library,
            cells=cells,
            enclosure_probability=self.options.enclosure_probability,
            final_cadence=self.options.final_cadence,
        )

    def run(
        self,
        progression: Iterable[SpanLike],
        metadata: Optional[Mapping[str, Any]] = None,
        rng: Optional[random.Random] = None,
    ) -> LickResult:
        """Generate a lick and return it together with its measures."""

        spans = coerce_progression(progression)
        meta = {**default_metadata(), **dict(metadata or {})}
        if float(meta["tempo"]) <= 0:
            raise ValueError("tempo must be positive")
        rng = rng or random.Random()
        opts = self.options

        measures = analyze_measures(
            spans, opts.scale_strategy, rng, self.library or DEFAULT_LIBRARY
        )
        self.planner.plan(measures, opts.start_pitch, rng)
        notes = self.engine.fill(measures, rng)
        self.classifier.attach(notes)
        logging.debug("Generated %d notes", len(notes))

        base = clip_to_measures(apply_swing(notes, opts.swing), measures)
        lick = insert_rests(base, measures, rng) if opts.insert_rests else list(base)
        logging.info(
            "Generated lick: %d bars, %d notes (%s / %s)",
            len(measures),
            len(lick),
            opts.scale_strategy.value,
            opts.device_strategy.value,
        )
        return LickResult(measures, base, lick, opts, meta)

    def generate(
        self,
        progression: Iterable[SpanLike],
        metadata: Optional[Mapping[str, Any]] = None,
        rng: Optional[random.Random] = None,
    ) -> List[Note]:
        """Return only the final lick for ``progression``."""

        return self.run(progression, metadata, rng).lick


def generate_lick(
    progression: Iterable[SpanLike],
    metadata: Optional[Mapping[str, Any]] = None,
    options: Union[GenerationOptions, Mapping[str, Any], None] = None,
    rng: Optional[random.Random] = None,
    *,
    seed: Optional[int] = None,
) -> List[Note]:
    """Generate a lick over ``progression``.

    Parameters
    ----------
    progression:
        Chord spans (objects or camelCase dictionaries) covering the tune.
    metadata:
        Optional ``{"tempo": ...}`` record; defaults are filled in.
    options:
        :class:`GenerationOptions` or a mapping accepted by
        :meth:`GenerationOptions.from_mapping`.
    rng:
        Random source. When omitted one is created from ``seed``.
    seed:
        Seed for a fresh ``random.Random`` when ``rng`` is not supplied.

    Returns
    -------
    List[Note]
        Annotated notes ordered by start beat.

    Raises
    ------
    ValueError
        If the progression or options are invalid.
    """

    if not isinstance(options, GenerationOptions):
        options = GenerationOptions.from_mapping(options)
    if rng is None:
        rng = random.Random(seed)
    return LickGenerator(options).generate(progression, metadata, rng)
