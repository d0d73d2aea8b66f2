"""Feed-forward network engine: parameters, forward pass and backprop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Sequence, Tuple

import numpy as np
import structlog

from .activations import Activation, get_activation
from .errors import EmptyBatch, InvalidArchitecture
from .rng import UniformSource, gaussian_samples
from .types import Array, DataPoint, ForwardTrace, GradientSet, ModelDescription, TaskKind

logger = structlog.get_logger(__name__)

INPUT_DIM = 2
OUTPUT_DIM = 1
BIAS_SCALE = 0.05
LOG_EPS = 1e-8


def sigmoid(z: Array) -> Array:
    """Logistic function that never evaluates ``exp`` of a large positive."""

    z = np.asarray(z, dtype=np.float64)
    out = np.empty_like(z)
    pos = z >= 0
    out[pos] = 1.0 / (1.0 + np.exp(-z[pos]))
    ez = np.exp(z[~pos])
    out[~pos] = ez / (1.0 + ez)
    return out


def _identity(z: Array) -> Array:
    return np.asarray(z, dtype=np.float64)


def _bce(yhat: Array, target: Array) -> Array:
    return -(target * np.log(yhat + LOG_EPS) + (1.0 - target) * np.log(1.0 - yhat + LOG_EPS))


def _half_squared_error(yhat: Array, target: Array) -> Array:
    diff = yhat - target
    return 0.5 * diff * diff


@dataclass(frozen=True)
class OutputHead:
    """Output squashing and per-sample loss for one task kind.

    Both heads share ``dL/dz_out = yhat - target``.
    """

    name: str
    squash: Callable[[Array], Array]
    loss: Callable[[Array, Array], Array]


OUTPUT_HEADS: Mapping[TaskKind, OutputHead] = {
    TaskKind.CLASSIFICATION: OutputHead("sigmoid/bce", sigmoid, _bce),
    TaskKind.REGRESSION: OutputHead("identity/mse", _identity, _half_squared_error),
}


def layer_sizes(hidden: Iterable[int]) -> Tuple[int, ...]:
    """Return ``(2, *hidden, 1)``."""

    return (INPUT_DIM, *(int(h) for h in hidden), OUTPUT_DIM)


def validate_sizes(sizes: Sequence[int]) -> Tuple[int, ...]:
    sizes = list(sizes)
    if len(sizes) < 2:
        raise InvalidArchitecture(
            f"Need at least an input and an output layer, got {sizes}",
            context={"sizes": sizes},
        )
    checked: list[int] = []
    for size in sizes:
        if isinstance(size, bool) or int(size) != size or size < 1:
            raise InvalidArchitecture(
                f"Layer sizes must be positive integers, got {sizes}",
                context={"sizes": sizes},
            )
        checked.append(int(size))
    if checked[0] != INPUT_DIM or checked[-1] != OUTPUT_DIM:
        raise InvalidArchitecture(
            f"Layer sizes must start with {INPUT_DIM} and end with {OUTPUT_DIM}, got {checked}",
            context={"sizes": checked},
        )
    return tuple(checked)


def _frozen(array: Array) -> Array:
    array = np.array(array, dtype=np.float64)
    array.setflags(write=False)
    return array


def as_inputs(points: object) -> Array:
    """Coerce points (array-like or ``DataPoint`` sequence) to ``(n, 2)``."""

    if isinstance(points, np.ndarray):
        arr = points.astype(np.float64, copy=False)
    else:
        rows = [(p.x, p.y) if isinstance(p, DataPoint) else tuple(p)[:2] for p in points]  # type: ignore[attr-defined]
        arr = np.array(rows, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, INPUT_DIM), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != INPUT_DIM:
        raise ValueError(f"Expected points with shape (n, {INPUT_DIM}), got {arr.shape}")
    return arr


class Network:
    """Fully connected ``2 -> hidden... -> 1`` network trained by batch GD.

    Parameters are held as one weight matrix of shape ``(sizes[l], sizes[l+1])``
    and one bias vector per layer. Stored arrays are read-only and every
    update replaces the whole parameter list, so snapshots handed to
    renderers stay valid after later steps.
    """

    def __init__(
        self,
        sizes: Sequence[int] = (2, 6, 1),
        activation: str | Activation = "tanh",
        task: TaskKind | str = TaskKind.CLASSIFICATION,
        *,
        uniform: UniformSource | None = None,
    ) -> None:
        self._uniform = uniform
        self._sizes: Tuple[int, ...] = ()
        self._weights: List[Array] = []
        self._biases: List[Array] = []
        self.initialize(sizes, activation, task)

    # ------------------------------------------------------------------
    # Parameter lifecycle

    def initialize(
        self,
        sizes: Sequence[int] | None = None,
        activation: str | Activation | None = None,
        task: TaskKind | str | None = None,
    ) -> None:
        """Draw a fresh parameter set, optionally for a new architecture."""

        new_sizes = validate_sizes(self._sizes if sizes is None else sizes)
        new_activation = get_activation(activation) if activation is not None else self._activation
        new_task = TaskKind.parse(task) if task is not None else self._task

        weights: list[Array] = []
        biases: list[Array] = []
        for fan_in, fan_out in zip(new_sizes[:-1], new_sizes[1:]):
            W = gaussian_samples((fan_in, fan_out), self._uniform) / np.sqrt(fan_in)
            weights.append(_frozen(W))
            biases.append(_frozen(gaussian_samples(fan_out, self._uniform) * BIAS_SCALE))

        self._sizes = new_sizes
        self._activation = new_activation
        self._task = new_task
        self._head = OUTPUT_HEADS[new_task]
        self._weights = weights
        self._biases = biases
        logger.debug(
            "network_initialized",
            sizes=list(new_sizes),
            activation=new_activation.name,
            task=new_task.value,
        )

    def load_parameters(self, weights: Sequence[object], biases: Sequence[object]) -> None:
        """Replace every parameter with caller supplied values."""

        if len(weights) != len(self._sizes) - 1 or len(biases) != len(self._sizes) - 1:
            raise InvalidArchitecture(
                f"Expected {len(self._sizes) - 1} weight and bias entries",
                context={"sizes": list(self._sizes)},
            )
        new_weights: list[Array] = []
        new_biases: list[Array] = []
        for idx, (W, b) in enumerate(zip(weights, biases)):
            W = np.asarray(W, dtype=np.float64)
            b = np.asarray(b, dtype=np.float64)
            expected = (self._sizes[idx], self._sizes[idx + 1])
            if W.shape != expected or b.shape != (expected[1],):
                raise InvalidArchitecture(
                    f"Layer {idx} expects W{expected} and b({expected[1]},), "
                    f"got W{W.shape} and b{b.shape}",
                    context={"layer": idx},
                )
            new_weights.append(_frozen(W))
            new_biases.append(_frozen(b))
        self._weights = new_weights
        self._biases = new_biases

    # ------------------------------------------------------------------
    # Read access

    @property
    def layer_sizes(self) -> Tuple[int, ...]:
        return self._sizes

    @property
    def weights(self) -> Tuple[Array, ...]:
        return tuple(self._weights)

    @property
    def biases(self) -> Tuple[Array, ...]:
        return tuple(self._biases)

    @property
    def activation(self) -> Activation:
        return self._activation

    @property
    def task(self) -> TaskKind:
        return self._task

    def parameter_count(self) -> int:
        return int(sum(W.size + b.size for W, b in zip(self._weights, self._biases)))

    def describe(self) -> ModelDescription:
        return ModelDescription(
            layer_sizes=self._sizes,
            activation=self._activation.name,
            task=self._task,
            parameter_count=self.parameter_count(),
        )

    # ------------------------------------------------------------------
    # Forward

    def forward(self, x: float, y: float) -> ForwardTrace:
        activations: list[Array] = [np.array([x, y], dtype=np.float64)]
        pre_activations: list[Array] = []
        last = len(self._weights) - 1
        for idx, (W, b) in enumerate(zip(self._weights, self._biases)):
            z = b + activations[-1] @ W
            pre_activations.append(z)
            if idx < last:
                activations.append(self._activation.fn(z))
            else:
                activations.append(self._head.squash(z))
        return ForwardTrace(
            activations=tuple(activations),
            pre_activations=tuple(pre_activations),
            yhat=float(activations[-1][0]),
        )

    def _forward_batch(self, inputs: Array) -> tuple[list[Array], list[Array]]:
        activations = [inputs]
        pre_activations: list[Array] = []
        last = len(self._weights) - 1
        for idx, (W, b) in enumerate(zip(self._weights, self._biases)):
            z = activations[-1] @ W + b
            pre_activations.append(z)
            activations.append(self._activation.fn(z) if idx < last else self._head.squash(z))
        return activations, pre_activations

    def predict_batch(self, points: object) -> Array:
        inputs = as_inputs(points)
        if inputs.shape[0] == 0:
            return np.zeros(0, dtype=np.float64)
        activations, _ = self._forward_batch(inputs)
        return activations[-1][:, 0].copy()

    # ------------------------------------------------------------------
    # Backward

    def _coerce_batch(self, points: object, targets: object) -> tuple[Array, Array]:
        inputs = as_inputs(points)
        n = inputs.shape[0]
        if n == 0:
            raise EmptyBatch("Cannot compute gradients for an empty batch")
        target_arr = np.asarray(targets, dtype=np.float64).reshape(-1)
        if target_arr.shape[0] != n:
            raise ValueError(f"Got {n} points but {target_arr.shape[0]} targets")
        return inputs, target_arr

    def compute_batch_gradients(self, points: object, targets: object) -> GradientSet:
        """Return loss and parameter gradients averaged over the batch."""

        inputs, target_arr = self._coerce_batch(points, targets)
        n = inputs.shape[0]
        activations, pre_activations = self._forward_batch(inputs)
        yhat = activations[-1][:, 0]
        loss = float(np.sum(self._head.loss(yhat, target_arr)) / n)

        delta = (yhat - target_arr).reshape(n, OUTPUT_DIM)
        layers = len(self._weights)
        grad_w: list[Array] = [np.empty(0)] * layers
        grad_b: list[Array] = [np.empty(0)] * layers
        for idx in reversed(range(layers)):
            grad_w[idx] = activations[idx].T @ delta / n
            grad_b[idx] = delta.sum(axis=0) / n
            if idx > 0:
                delta = (delta @ self._weights[idx].T) * self._activation.deriv(
                    pre_activations[idx - 1]
                )
        return GradientSet(weights=tuple(grad_w), biases=tuple(grad_b), loss=loss)

    def step(self, points: object, targets: object, lr: float) -> float:
        """Apply one full-batch gradient descent update and return the loss."""

        if not lr > 0:
            raise ValueError(f"Learning rate must be positive, got {lr}")
        grads = self.compute_batch_gradients(points, targets)
        new_weights = [_frozen(W - lr * g) for W, g in zip(self._weights, grads.weights)]
        new_biases = [_frozen(b - lr * g) for b, g in zip(self._biases, grads.biases)]
        self._weights = new_weights
        self._biases = new_biases
        return grads.loss


__all__ = [
    "Network",
    "OUTPUT_HEADS",
    "OutputHead",
    "as_inputs",
    "layer_sizes",
    "sigmoid",
    "validate_sizes",
]
