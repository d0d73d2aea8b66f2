"""Error kinds raised by the NeuroStudio engine."""

from __future__ import annotations

from typing import Any, Dict, Optional


class NeuroStudioError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class InvalidArchitecture(NeuroStudioError, ValueError):
    """Raised when a layer size sequence cannot describe a network."""


class EmptyBatch(NeuroStudioError, ValueError):
    """Raised when a gradient or update is requested for zero points."""


class UnknownActivation(NeuroStudioError, KeyError):
    """Raised when an activation name is not in the registry."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0]) if self.args else ""


__all__ = ["NeuroStudioError", "InvalidArchitecture", "EmptyBatch", "UnknownActivation"]
