"""Core numerical primitives for NeuroStudio."""

from . import activations, errors, network, rng, types

__all__ = ["activations", "errors", "network", "rng", "types"]
