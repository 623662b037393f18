"""Core numerical primitives for NNet."""

from . import activations, layers, linalg, network, types

__all__ = ["activations", "layers", "linalg", "network", "types"]
