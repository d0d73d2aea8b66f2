"""Training loop, metrics and pipelines."""

from .metrics import MetricResult, compute_metric, compute_metrics, default_metric, headline_metric
from .trainer import LossRecord, Snapshot, Trainer, TrainingResult

__all__ = [
    "LossRecord",
    "MetricResult",
    "Snapshot",
    "Trainer",
    "TrainingResult",
    "compute_metric",
    "compute_metrics",
    "default_metric",
    "headline_metric",
]
