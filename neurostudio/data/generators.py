"""Synthetic 2D datasets for classification and regression.

Classification generators emit ``count`` points per class (``2 * count`` in
total); regression generators emit ``count`` points.

Positional and target noise comes from :func:`gaussian_sample`, which uses
the process-wide generator. ``circles`` and ``spirals`` draw *all* of their
randomness from it and ignore ``seed``; call
:func:`neurostudio.core.rng.seed_global` first when those must be
reproducible.
"""

from __future__ import annotations

import math
from typing import List

from ..core.rng import gaussian_sample, seeded_uniform
from ..core.types import DataPoint, Dataset, TaskKind
from .registry import register_dataset

SINC_EPS = 1e-6


def _check(count: int, noise: float) -> None:
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if noise < 0:
        raise ValueError(f"noise must be non-negative, got {noise}")


def _dataset(
    name: str,
    title: str,
    task: TaskKind,
    points: List[DataPoint],
    count: int,
    noise: float,
    seed: int | None,
) -> Dataset:
    return Dataset(
        name=name,
        title=title,
        task=task,
        points=tuple(points),
        count=int(count),
        noise=float(noise),
        seed=seed,
    )


@register_dataset("moons", task="classification", count=200, noise=0.15, seed=7)
def moons(count: int = 200, noise: float = 0.15, seed: int = 7) -> Dataset:
    """Two interleaved half rings."""

    _check(count, noise)
    rng = seeded_uniform(seed)
    jitter = noise * 0.15
    points: List[DataPoint] = []
    for i in range(count):
        theta = i / count * math.pi
        r = 1.0 + (rng() - 0.5) * noise * 2.0
        points.append(
            DataPoint(
                r * math.cos(theta) - 0.2 + gaussian_sample() * jitter,
                r * math.sin(theta) + 0.1 + gaussian_sample() * jitter,
                0.0,
            )
        )
    for i in range(count):
        theta = i / count * math.pi
        r = 1.0 + (rng() - 0.5) * noise * 2.0
        points.append(
            DataPoint(
                1.0 + r * math.cos(theta) + 0.2 + gaussian_sample() * jitter,
                -r * math.sin(theta) - 0.1 + gaussian_sample() * jitter,
                1.0,
            )
        )
    return _dataset("moons", "Moons (classification)", TaskKind.CLASSIFICATION, points, count, noise, seed)


@register_dataset("circles", task="classification", seeded=False, count=200, noise=0.1)
def circles(count: int = 200, noise: float = 0.1, seed: int | None = None) -> Dataset:
    """Inner ring (label 0, radius 0.6) inside an outer ring (label 1, radius 1.3)."""

    _check(count, noise)
    points: List[DataPoint] = []
    for label, radius in ((0.0, 0.6), (1.0, 1.3)):
        for i in range(count):
            theta = 2.0 * math.pi * i / count
            r = radius + gaussian_sample() * noise
            points.append(DataPoint(r * math.cos(theta), r * math.sin(theta), label))
    return _dataset(
        "circles", "Concentric circles (classification)", TaskKind.CLASSIFICATION, points, count, noise, seed
    )


@register_dataset("xor", task="classification", count=200, noise=0.15, seed=7)
def xor(count: int = 200, noise: float = 0.15, seed: int = 7) -> Dataset:
    """Uniform points in ``[-2, 2]^2`` labelled by the XOR of coordinate signs."""

    _check(count, noise)
    rng = seeded_uniform(seed)
    points: List[DataPoint] = []
    for _ in range(2 * count):
        x = (rng() * 2.0 - 1.0) * 2.0
        y = (rng() * 2.0 - 1.0) * 2.0
        label = 1.0 if (x > 0) != (y > 0) else 0.0
        points.append(DataPoint(x + gaussian_sample() * noise, y + gaussian_sample() * noise, label))
    return _dataset("xor", "XOR checkerboard (classification)", TaskKind.CLASSIFICATION, points, count, noise, seed)


@register_dataset("spirals", task="classification", seeded=False, count=200, noise=0.1)
def spirals(count: int = 200, noise: float = 0.1, seed: int | None = None) -> Dataset:
    """Two spirals offset by pi."""

    _check(count, noise)
    points: List[DataPoint] = []
    for label, offset in ((0.0, 0.0), (1.0, math.pi)):
        for i in range(count):
            t = i / count * 4.0 * math.pi
            r = 0.1 + t * 0.08
            angle = t + offset
            points.append(
                DataPoint(
                    r * math.cos(angle) + gaussian_sample() * noise,
                    r * math.sin(angle) + gaussian_sample() * noise,
                    label,
                )
            )
    return _dataset("spirals", "Two spirals (classification)", TaskKind.CLASSIFICATION, points, count, noise, seed)


@register_dataset("sinc", task="regression", count=600, noise=0.05, seed=7)
def sinc(count: int = 600, noise: float = 0.05, seed: int = 7) -> Dataset:
    """Radial ``sin(r) / r`` ripple over ``[-3, 3]^2``."""

    _check(count, noise)
    rng = seeded_uniform(seed)
    points: List[DataPoint] = []
    for _ in range(count):
        x = (rng() * 2.0 - 1.0) * 3.0
        y = (rng() * 2.0 - 1.0) * 3.0
        r = math.hypot(x, y) + SINC_EPS
        points.append(DataPoint(x, y, math.sin(r) / r + gaussian_sample() * noise))
    return _dataset("sinc", "Sinc ripple (regression)", TaskKind.REGRESSION, points, count, noise, seed)


@register_dataset("plane", task="regression", count=600, noise=0.05, seed=7)
def plane(count: int = 600, noise: float = 0.05, seed: int = 7) -> Dataset:
    """Noisy plane ``0.6x - 0.3y + 0.2`` over ``[-2, 2]^2``."""

    _check(count, noise)
    rng = seeded_uniform(seed)
    points: List[DataPoint] = []
    for _ in range(count):
        x = (rng() * 2.0 - 1.0) * 2.0
        y = (rng() * 2.0 - 1.0) * 2.0
        points.append(DataPoint(x, y, 0.6 * x - 0.3 * y + 0.2 + gaussian_sample() * noise))
    return _dataset("plane", "Noisy plane (regression)", TaskKind.REGRESSION, points, count, noise, seed)


__all__ = ["circles", "moons", "plane", "sinc", "spirals", "xor"]
