"""Engine-side helpers feeding the decision field and network diagram."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..core.errors import EmptyBatch
from ..core.network import Network
from ..core.types import Array, Dataset, GradientSet


@dataclass(frozen=True)
class FieldSample:
    """Predictions on a regular grid of cell centres.

    ``values[j, i]`` is the prediction at ``(xs[i], ys[j])``.
    """

    xs: Array
    ys: Array
    values: Array

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        dx = (self.xs[1] - self.xs[0]) / 2 if self.xs.size > 1 else 0.5
        dy = (self.ys[1] - self.ys[0]) / 2 if self.ys.size > 1 else 0.5
        return (
            float(self.xs[0] - dx),
            float(self.xs[-1] + dx),
            float(self.ys[0] - dy),
            float(self.ys[-1] + dy),
        )


@dataclass(frozen=True)
class EdgeOverlay:
    """Gradient sign and per-layer normalised magnitude for one layer."""

    sign: Array
    magnitude: Array


def sample_field(
    network: Network,
    dataset: Dataset,
    *,
    nx: int = 90,
    ny: int = 60,
    margin: float = 0.5,
) -> FieldSample:
    """Evaluate ``network`` over the padded bounding box of ``dataset``."""

    if len(dataset) == 0:
        raise EmptyBatch("Cannot size a decision field from an empty dataset")
    inputs = dataset.inputs
    xmin, ymin = inputs.min(axis=0) - margin
    xmax, ymax = inputs.max(axis=0) + margin
    xs = xmin + (np.arange(nx) + 0.5) * (xmax - xmin) / nx
    ys = ymin + (np.arange(ny) + 0.5) * (ymax - ymin) / ny
    gx, gy = np.meshgrid(xs, ys)
    grid = np.column_stack([gx.ravel(), gy.ravel()])
    values = network.predict_batch(grid).reshape(ny, nx)
    return FieldSample(xs=xs, ys=ys, values=values)


def gradient_overlay(gradients: GradientSet) -> Tuple[EdgeOverlay, ...]:
    """Normalise ``|dL/dW|`` by its per-layer maximum."""

    overlays = []
    for grad in gradients.weights:
        peak = float(np.max(np.abs(grad))) if grad.size else 0.0
        scale = peak or 1.0
        overlays.append(
            EdgeOverlay(
                sign=np.where(grad >= 0, 1.0, -1.0),
                magnitude=np.minimum(1.0, np.abs(grad) / scale),
            )
        )
    return tuple(overlays)


def normalise_for_colour(values: Array, lo: float, hi: float) -> Array:
    """Map regression outputs into ``[0, 1]`` using the target range."""

    return (np.asarray(values) - lo) / (hi - lo + 1e-9)


__all__ = ["EdgeOverlay", "FieldSample", "gradient_overlay", "normalise_for_colour", "sample_field"]
