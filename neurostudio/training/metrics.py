"""Metric helpers for the training loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

import numpy as np

from ..core.errors import EmptyBatch
from ..core.types import Array, TaskKind


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def default_metric(task: TaskKind | str) -> str:
    """Return the headline metric shown for ``task``."""

    task = TaskKind.parse(task)
    return "accuracy" if task is TaskKind.CLASSIFICATION else "rmse"


def compute_metric(name: str, predictions: Array, targets: Array) -> MetricResult:
    """Evaluate ``name`` on network outputs.

    ``predictions`` are the squashed outputs, i.e. probabilities for
    classification and raw values for regression.
    """

    key = name.lower()
    preds = np.asarray(predictions, dtype=np.float64).reshape(-1)
    targs = np.asarray(targets, dtype=np.float64).reshape(-1)
    if preds.shape != targs.shape:
        raise ValueError(f"Got {preds.shape[0]} predictions but {targs.shape[0]} targets")
    if preds.size == 0:
        raise EmptyBatch(f"Cannot compute {name} on an empty batch")
    if key == "accuracy":
        value = float(np.mean((preds >= 0.5) == (targs == 1.0)))
    elif key == "mse":
        value = float(np.mean((preds - targs) ** 2))
    elif key == "rmse":
        value = float(np.sqrt(np.mean((preds - targs) ** 2)))
    elif key == "mae":
        value = float(np.mean(np.abs(preds - targs)))
    elif key == "r2":
        ss_res = float(np.sum((targs - preds) ** 2))
        ss_tot = float(np.sum((targs - np.mean(targs)) ** 2))
        value = 1.0 if ss_tot == 0 else float(1 - ss_res / (ss_tot + 1e-9))
    else:
        raise KeyError(f"Unknown metric: {name}")
    return MetricResult(name=key, value=value)


def headline_metric(task: TaskKind | str, predictions: Array, targets: Array) -> MetricResult:
    return compute_metric(default_metric(task), predictions, targets)


def compute_metrics(names: Iterable[str], predictions: Array, targets: Array) -> Mapping[str, float]:
    results: Dict[str, float] = {}
    for name in names:
        metric = compute_metric(name, predictions, targets)
        results[metric.name] = metric.value
    return results


__all__ = ["MetricResult", "compute_metric", "compute_metrics", "default_metric", "headline_metric"]
