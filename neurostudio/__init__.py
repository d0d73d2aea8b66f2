"""NeuroStudio public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.errors import EmptyBatch, InvalidArchitecture, NeuroStudioError, UnknownActivation
from .core.network import Network, layer_sizes
from .core.rng import gaussian_sample, seed_global, seeded_uniform
from .core.types import DataPoint, Dataset, ForwardTrace, GradientSet, TaskKind
from .data import available_datasets, dataset_for_ui, get_dataset
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "DataPoint",
    "Dataset",
    "EmptyBatch",
    "ForwardTrace",
    "GradientSet",
    "InvalidArchitecture",
    "Network",
    "NeuroStudioError",
    "TaskKind",
    "Trainer",
    "UnknownActivation",
    "activations",
    "available_datasets",
    "dataset_for_ui",
    "gaussian_sample",
    "get_dataset",
    "layer_sizes",
    "load_preset",
    "presets",
    "run_pipeline",
    "seed_global",
    "seeded_uniform",
    "types",
]
