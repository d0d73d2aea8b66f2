"""Reporting utilities for NeuroStudio."""

from .artifacts import write_manifest
from .field import gradient_overlay, sample_field
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter, render_decision_field, render_network

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "gradient_overlay",
    "render_decision_field",
    "render_network",
    "sample_field",
    "write_manifest",
]
