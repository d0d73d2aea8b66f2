"""Core typing contracts for NeuroStudio."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

Array = np.ndarray


class TaskKind(str, enum.Enum):
    """The two supported learning problems."""

    CLASSIFICATION = "classification"
    REGRESSION = "regression"

    @classmethod
    def parse(cls, value: "TaskKind | str") -> "TaskKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown task kind {value!r}. Expected one of: {choices}") from exc


@dataclass(frozen=True)
class DataPoint:
    """A single labelled 2D sample."""

    x: float
    y: float
    target: float


@dataclass(frozen=True)
class Dataset:
    """An immutable labelled point set produced by a generator.

    Attributes
    ----------
    name:
        Registry identifier of the generator, e.g. ``"moons"``.
    title:
        Human readable label shown next to plots.
    task:
        Whether ``target`` holds class labels or continuous values.
    points:
        The generated samples in generation order.
    count, noise, seed:
        Generation parameters, kept so the dataset can be regenerated.
    """

    name: str
    title: str
    task: TaskKind
    points: Tuple[DataPoint, ...]
    count: int = 0
    noise: float = 0.0
    seed: int | None = None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def inputs(self) -> Array:
        """Return the ``(n, 2)`` coordinate matrix."""

        if not self.points:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array([(p.x, p.y) for p in self.points], dtype=np.float64)

    @property
    def targets(self) -> Array:
        return np.array([p.target for p in self.points], dtype=np.float64)

    def provenance(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "task": self.task.value,
            "count": self.count,
            "noise": self.noise,
            "seed": self.seed,
            "points": len(self.points),
        }


@dataclass(frozen=True)
class ForwardTrace:
    """Intermediate values captured during one forward pass.

    ``activations[0]`` is the input pair and ``activations[-1]`` the output
    vector; ``pre_activations[l]`` feeds ``activations[l + 1]``.
    """

    activations: Tuple[Array, ...]
    pre_activations: Tuple[Array, ...]
    yhat: float


@dataclass(frozen=True)
class GradientSet:
    """Batch-averaged gradients and loss for every parameter."""

    weights: Tuple[Array, ...]
    biases: Tuple[Array, ...]
    loss: float


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_sizes: Tuple[int, ...]
    activation: str
    task: TaskKind
    parameter_count: int = 0


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`neurostudio.training.pipelines.run_pipeline`."""

    steps: int
    final_loss: float | None
    metric_name: str
    metric_value: float | None
    metrics_path: str
    manifest_path: str
    cancelled: bool = False
