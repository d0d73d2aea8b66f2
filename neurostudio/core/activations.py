"""Hidden-layer activation registry.

Derivatives are evaluated at the pre-activation ``z``, never at ``f(z)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import UnknownActivation
from .types import Array

ActivationFn = Callable[[Array], Array]


def tanh(z: Array) -> Array:
    return np.tanh(z)


def tanh_deriv(z: Array) -> Array:
    return 1.0 - np.tanh(z) ** 2


def relu(z: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(z, 0.0)


def relu_deriv(z: Array) -> Array:
    # Subgradient at zero is fixed to 0.
    return (np.asarray(z) > 0).astype(np.float64)


@dataclass(frozen=True)
class Activation:
    """A named activation together with its derivative."""

    name: str
    fn: ActivationFn
    deriv: ActivationFn
    label: str = ""

    def __call__(self, z: Array) -> Array:
        return self.fn(z)


class ActivationRegistry:
    """Central registry for hidden-layer activations."""

    def __init__(self) -> None:
        self._registry: Dict[str, Activation] = {}

    def register(self, name: str, fn: ActivationFn, deriv: ActivationFn, *, label: str = "") -> None:
        self._registry[name] = Activation(name, fn, deriv, label or name)

    def get(self, name: str) -> Activation:
        key = str(name).lower()
        if key not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise UnknownActivation(
                f"Unknown activation {name!r}. Available activations: {available}",
                context={"name": name},
            )
        return self._registry[key]

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def __contains__(self, name: object) -> bool:
        return str(name).lower() in self._registry


REGISTRY = ActivationRegistry()
REGISTRY.register("tanh", tanh, tanh_deriv, label="tanh")
REGISTRY.register("relu", relu, relu_deriv, label="ReLU")


def get_activation(name: str | Activation) -> Activation:
    if isinstance(name, Activation):
        return name
    return REGISTRY.get(name)


__all__ = [
    "Activation",
    "ActivationRegistry",
    "REGISTRY",
    "get_activation",
    "relu",
    "relu_deriv",
    "tanh",
    "tanh_deriv",
]
