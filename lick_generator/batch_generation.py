"""Parallel lick generation helpers.

Modification summary
--------------------
* Configurations accept progression text as well as span lists so dataset
  scripts can describe jobs with plain strings.
* Every job carries its own seed; worker processes never share a random
  source, so a batch is reproducible regardless of scheduling order.

This module provides a small convenience function for producing many licks
concurrently. It offloads each generation call to a worker process via
:class:`concurrent.futures.ProcessPoolExecutor` so CPU bound work scales with
the number of available cores.

Example
-------
>>> configs = [
...     {"progression": "Dm7 | G7 | Cmaj7", "seed": 1},
...     {"progression": "Fm7 | Bb7 | Ebmaj7", "options": {"swing": 0.5}, "seed": 2},
... ]
>>> licks = generate_batch(configs, workers=2)
>>> len(licks)
2

Design Notes
------------
``generate_batch`` avoids custom process management and simply proxies
arguments to :func:`generate_lick` in worker processes. Configuration errors
surface as ``ValueError`` from the worker when its result is collected.
"""

from __future__ import annotations

import os
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from .generator import generate_lick
from .model import Note
from .utils import parse_progression

__all__ = ["generate_batch"]

_CONFIG_KEYS = {"progression", "options", "metadata", "seed"}


def _generate_single(config: Dict[str, Any]) -> List[Note]:
    """Wrapper used by worker processes to generate one lick."""

    unknown = set(config) - _CONFIG_KEYS
    if unknown:
        raise ValueError(f"Unknown batch config keys: {', '.join(sorted(unknown))}")
    if "progression" not in config:
        raise ValueError("batch config requires a 'progression'")
    progression = config["progression"]
    if isinstance(progression, str):
        progression = parse_progression(progression)
    return generate_lick(
        progression,
        config.get("metadata"),
        config.get("options"),
        seed=config.get("seed"),
    )


def generate_batch(
    configs: Iterable[Dict[str, Any]], *, workers: Optional[int] = None
) -> List[List[Note]]:
    """Generate multiple licks in parallel.

    Parameters
    ----------
    configs:
        Iterable of dictionaries with a ``progression`` (text or chord spans)
        and optional ``options``, ``metadata`` and ``seed`` entries.
    workers:
        Optional number of worker processes. When ``None`` the CPU count is
        used. ``1`` disables multiprocessing and runs serially. ``ValueError``
        is raised when ``workers`` is ``0`` or negative.

    Returns
    -------
    List[List[Note]]
        One lick per configuration, in input order.
    """

    cfg_list = list(configs)
    if workers is not None and workers <= 0:
        raise ValueError("workers must be positive")
    if workers is None:
        workers = os.cpu_count() or 1
    if workers <= 1 or len(cfg_list) <= 1:
        # Serial path keeps unit tests free of subprocesses.
        return [_generate_single(cfg) for cfg in cfg_list]

    with ProcessPoolExecutor(max_workers=workers) as pool:
        futs = [pool.submit(_generate_single, cfg) for cfg in cfg_list]
        return [f.result() for f in futs]
