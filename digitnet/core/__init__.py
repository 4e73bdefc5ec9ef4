"""Core numerical primitives for digitnet."""

from . import activations, errors, network, snapshot, types

__all__ = ["activations", "errors", "network", "snapshot", "types"]
