"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import numpy as np

from ..core.network import Network
from ..core.types import Dataset, GradientSet, TaskKind
from .field import gradient_overlay, normalise_for_colour, sample_field


def _pyplot():
    import matplotlib

    matplotlib.use("Agg", force=True)
    import matplotlib.pyplot as plt  # imported lazily for headless safety

    return plt


class PlotAdapter:
    """Collect the loss per step and optionally emit a loss curve."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False, max_points: int = 200):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.max_points = max_points
        self._history: List[Tuple[int, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_step(self, step: int, metrics):
        if not self.enable_plots:
            return
        loss = float(metrics.get("loss", 0.0))
        self._history.append((step, loss))

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        plt = _pyplot()
        # Only the tail is drawn, as in the live chart.
        steps, losses = zip(*self._history[-self.max_points :])
        fig, ax = plt.subplots()
        ax.plot(steps, losses, color="#10b981")
        ax.set_xlabel("Step")
        ax.set_ylabel("Loss")
        ax.set_title("Training Curve")
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_step


def render_decision_field(network: Network, dataset: Dataset, path: str | Path) -> Path:
    """Paint predictions over the data range with the points on top."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    field = sample_field(network, dataset)
    inputs = dataset.inputs
    targets = dataset.targets
    if network.task is TaskKind.CLASSIFICATION:
        shade = field.values
        colours = np.where(targets == 1.0, "#1f77b4", "#d62728")
    else:
        shade = normalise_for_colour(field.values, float(targets.min()), float(targets.max()))
        colours = np.full(len(targets), "#111827")

    plt = _pyplot()
    fig, ax = plt.subplots(figsize=(6.5, 4.75))
    ax.imshow(
        np.clip(shade, 0.0, 1.0),
        origin="lower",
        extent=field.extent,
        cmap="coolwarm_r",
        vmin=0.0,
        vmax=1.0,
        alpha=0.35,
        aspect="auto",
    )
    ax.scatter(inputs[:, 0], inputs[:, 1], c=list(colours), s=12, alpha=0.95)
    ax.set_title(dataset.title)
    fig.savefig(path)
    plt.close(fig)
    return path


def render_network(
    network: Network,
    path: str | Path,
    gradients: GradientSet | None = None,
) -> Path:
    """Draw the layer diagram; edge colour is weight sign, width is ``|w|``.

    When ``gradients`` is given, an overlay shows ``dL/dW`` per edge
    (green positive, red negative) scaled by the per-layer maximum.
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    sizes = network.layer_sizes
    xs = [50 + 120 * idx for idx in range(len(sizes))]
    ys = [[30 + (i + 1) * 180 / (n + 1) for i in range(n)] for n in sizes]
    overlays = gradient_overlay(gradients) if gradients is not None else None

    plt = _pyplot()
    fig, ax = plt.subplots(figsize=(max(3.0, 1.2 * len(sizes)), 2.4))
    for l, W in enumerate(network.weights):
        for i in range(W.shape[0]):
            for j in range(W.shape[1]):
                w = float(W[i, j])
                ax.plot(
                    [xs[l], xs[l + 1]],
                    [ys[l][i], ys[l + 1][j]],
                    color="#2563eb" if w >= 0 else "#dc2626",
                    alpha=0.7,
                    linewidth=min(6.0, max(1.0, abs(w) * 1.5)),
                    zorder=1,
                )
                if overlays is not None:
                    overlay = overlays[l]
                    ax.plot(
                        [xs[l], xs[l + 1]],
                        [ys[l][i], ys[l + 1][j]],
                        color="#22c55e" if overlay.sign[i, j] > 0 else "#ef4444",
                        alpha=0.9,
                        linewidth=1 + 6 * float(overlay.magnitude[i, j]),
                        solid_capstyle="round",
                        zorder=2,
                    )
    for l, column in enumerate(ys):
        ax.scatter([xs[l]] * len(column), column, s=120, color="#111827", zorder=3)
    ax.set_title(f"{' → '.join(str(s) for s in sizes)} [{network.activation.label}]")
    ax.invert_yaxis()
    ax.axis("off")
    fig.savefig(path)
    plt.close(fig)
    return path


__all__ = ["PlotAdapter", "render_decision_field", "render_network"]
