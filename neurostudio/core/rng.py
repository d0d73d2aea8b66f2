"""Random sources used by the dataset generators and weight initialisation.

Two sources coexist on purpose:

* :class:`SeededUniform` is a Park-Miller minimal standard generator. Given
  the same seed it yields the same sequence on every platform.
* :func:`gaussian_sample` draws from the process-wide NumPy generator and is
  therefore only reproducible after :func:`seed_global`.
"""

from __future__ import annotations

import math
import random
from typing import Callable, Sequence

import numpy as np

from .types import Array

MODULUS = 2147483647
MULTIPLIER = 16807

UniformSource = Callable[[], float]


class SeededUniform:
    """Deterministic uniform generator over the open interval ``(0, 1)``."""

    def __init__(self, seed: int) -> None:
        seed = int(seed)
        # Remainder keeps the sign of the seed (truncated division).
        state = abs(seed) % MODULUS
        if seed < 0:
            state = -state
        if state <= 0:
            state += MODULUS - 1
        self._state = state

    @property
    def state(self) -> int:
        return self._state

    def __call__(self) -> float:
        self._state = (self._state * MULTIPLIER) % MODULUS
        return self._state / MODULUS


def seeded_uniform(seed: int) -> SeededUniform:
    """Return a fresh :class:`SeededUniform` for ``seed``."""

    return SeededUniform(seed)


def _global_uniform() -> float:
    return float(np.random.random())


def gaussian_sample(uniform: UniformSource | None = None) -> float:
    """Draw one standard normal variate with the Box-Muller transform."""

    draw = uniform or _global_uniform
    u = 0.0
    while u == 0.0:
        u = draw()
    v = 0.0
    while v == 0.0:
        v = draw()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def gaussian_samples(shape: int | Sequence[int], uniform: UniformSource | None = None) -> Array:
    """Return an array of independent :func:`gaussian_sample` draws."""

    shape = (shape,) if isinstance(shape, int) else tuple(shape)
    count = int(np.prod(shape)) if shape else 1
    values = np.fromiter(
        (gaussian_sample(uniform) for _ in range(count)), dtype=np.float64, count=count
    )
    return values.reshape(shape)


def seed_global(seed: int) -> None:
    """Seed the process-wide sources behind :func:`gaussian_sample`."""

    random.seed(seed)
    np.random.seed(seed)


__all__ = [
    "MODULUS",
    "MULTIPLIER",
    "SeededUniform",
    "UniformSource",
    "gaussian_sample",
    "gaussian_samples",
    "seed_global",
    "seeded_uniform",
]
