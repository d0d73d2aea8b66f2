"""Dataset registry and synthetic generators."""

# Ensure built-in generators register themselves when the package is imported.
from . import generators as _generators  # noqa: F401
from .registry import (
    DatasetSpec,
    available_datasets,
    dataset_for_ui,
    get_dataset,
    get_spec,
    regenerate,
    register_dataset,
)

__all__ = [
    "DatasetSpec",
    "available_datasets",
    "dataset_for_ui",
    "get_dataset",
    "get_spec",
    "regenerate",
    "register_dataset",
]
