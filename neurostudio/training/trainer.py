"""Cooperative full-batch training loop for NeuroStudio."""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from typing import List, Mapping, Sequence

import structlog

from ..core.network import Network, layer_sizes
from ..core.types import Array, Dataset, ForwardTrace, GradientSet
from ..data.registry import regenerate
from .metrics import MetricResult, headline_metric

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LossRecord:
    step: int
    loss: float


@dataclass(frozen=True)
class TrainingResult:
    """Summary returned by :meth:`Trainer.run`."""

    steps: int
    iteration: int
    final_loss: float | None
    metric: MetricResult | None
    cancelled: bool


@dataclass(frozen=True)
class Snapshot:
    """Consistent view of the parameters for renderers."""

    layer_sizes: tuple[int, ...]
    weights: tuple[Array, ...]
    biases: tuple[Array, ...]


class Trainer:
    """Repeatedly apply whole :meth:`Network.step` calls until told to stop.

    The cancellation flag is only checked between steps, so a step that has
    started always finishes, parameter replacement included. Every call into
    the network goes through one lock, which lets a display thread call
    :meth:`predict` or :meth:`snapshot` while :meth:`run` is active.
    """

    def __init__(
        self,
        network: Network,
        dataset: Dataset,
        lr: float = 0.2,
        *,
        callbacks: Sequence[object] | None = None,
        probe_gradients: bool = False,
        seed: int | None = None,
    ) -> None:
        if dataset.task is not network.task:
            raise ValueError(
                f"Dataset task {dataset.task.value!r} does not match network task {network.task.value!r}"
            )
        self.network = network
        self.dataset = dataset
        self.lr = lr
        self.callbacks = list(callbacks or [])
        self.probe_gradients = probe_gradients
        self.history: List[LossRecord] = []
        self.iteration = 0
        self.last_trace: ForwardTrace | None = None
        self.last_gradients: GradientSet | None = None
        self.last_result: TrainingResult | None = None
        self._picker = random.Random(seed)
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None
        self._inputs = dataset.inputs
        self._targets = dataset.targets

    @property
    def lr(self) -> float:
        return self._lr

    @lr.setter
    def lr(self, value: float) -> None:
        if not value > 0:
            raise ValueError(f"Learning rate must be positive, got {value}")
        self._lr = float(value)

    # ------------------------------------------------------------------
    # Stepping

    def step_once(self) -> float:
        """Run one training step and notify callbacks."""

        return self._step(check_cancel=False)  # type: ignore[return-value]

    def _step(self, *, check_cancel: bool) -> float | None:
        with self._lock:
            # reset() sets the flag before it takes the lock.
            if check_cancel and self._cancel.is_set():
                return None
            loss = self.network.step(self._inputs, self._targets, self._lr)
            self.iteration += 1
            step = self.iteration
            self.history.append(LossRecord(step, loss))
            idx = self._picker.randrange(len(self._inputs))
            self.last_trace = self.network.forward(*self._inputs[idx])
            if self.probe_gradients:
                self.last_gradients = self.network.compute_batch_gradients(self._inputs, self._targets)
            predictions = self.network.predict_batch(self._inputs)
        metric = headline_metric(self.dataset.task, predictions, self._targets)
        self._emit(step, {"loss": loss, metric.name: metric.value})
        return loss

    def run(self, max_steps: int | None = None) -> TrainingResult:
        """Step until ``max_steps`` steps have run or :meth:`stop` is called.

        With ``max_steps=None`` the loop only ends through :meth:`stop`.
        """

        self._cancel.clear()
        return self._run(max_steps)

    def _run(self, max_steps: int | None) -> TrainingResult:
        completed = 0
        cancelled = False
        logger.info("training_started", max_steps=max_steps, lr=self._lr, iteration=self.iteration)
        while max_steps is None or completed < max_steps:
            if self._step(check_cancel=True) is None:
                cancelled = True
                break
            completed += 1
        result = TrainingResult(
            steps=completed,
            iteration=self.iteration,
            final_loss=self.history[-1].loss if self.history else None,
            metric=self.evaluate() if completed else None,
            cancelled=cancelled,
        )
        self.last_result = result
        if cancelled:
            logger.info("training_cancelled", steps=completed, iteration=self.iteration)
        else:
            logger.info("training_finished", steps=completed, final_loss=result.final_loss)
        return result

    def start(self, max_steps: int | None = None) -> threading.Thread:
        """Run :meth:`run` on a daemon thread and return the thread.

        The flag is cleared before the thread launches, so a :meth:`stop`
        issued as soon as this returns is never lost.
        """

        self._cancel.clear()
        thread = threading.Thread(target=self._run, args=(max_steps,), daemon=True)
        self._thread = thread
        thread.start()
        return thread

    def stop(self) -> None:
        self._cancel.set()

    @property
    def stopping(self) -> bool:
        return self._cancel.is_set()

    # ------------------------------------------------------------------
    # Read access for renderers

    def predict(self, points: object) -> Array:
        with self._lock:
            return self.network.predict_batch(points)

    def probe(self) -> GradientSet:
        """Return the current full-batch gradients without updating."""

        with self._lock:
            self.last_gradients = self.network.compute_batch_gradients(self._inputs, self._targets)
            return self.last_gradients

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(self.network.layer_sizes, self.network.weights, self.network.biases)

    def evaluate(self) -> MetricResult:
        with self._lock:
            predictions = self.network.predict_batch(self._inputs)
        return headline_metric(self.dataset.task, predictions, self._targets)

    def recent_history(self, limit: int = 200) -> List[LossRecord]:
        return self.history[-limit:] if limit > 0 else []

    # ------------------------------------------------------------------
    # Reconfiguration

    def set_dataset(self, dataset: Dataset) -> None:
        """Swap in a new dataset, reinitialising on a task change."""

        with self._lock:
            if dataset.task is not self.network.task:
                self.network.initialize(task=dataset.task)
                logger.info("task_changed", task=dataset.task.value, dataset=dataset.name)
            self.dataset = dataset
            self._inputs = dataset.inputs
            self._targets = dataset.targets
            self.last_gradients = None

    def set_architecture(self, hidden: Sequence[int], activation: str | None = None) -> None:
        with self._lock:
            self.network.initialize(layer_sizes(hidden), activation)
            self.last_gradients = None
            self.last_trace = None

    def reset(self, *, reseed: bool = False) -> None:
        """Clear history and draw new parameters.

        With ``reseed`` the dataset is regenerated with ``seed + 1``.
        """

        self.stop()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        if reseed:
            self.set_dataset(regenerate(self.dataset, seed=(self.dataset.seed or 0) + 1))
        with self._lock:
            self.network.initialize()
            self.history = []
            self.iteration = 0
            self.last_trace = None
            self.last_gradients = None
            self.last_result = None
        logger.info("trainer_reset", dataset=self.dataset.name, seed=self.dataset.seed)

    # ------------------------------------------------------------------
    # Internal helpers

    def _emit(self, step: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_step"):
                callback.on_step(step, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(step, metrics)


__all__ = ["LossRecord", "Snapshot", "Trainer", "TrainingResult"]
