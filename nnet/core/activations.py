"""Activation and cost utilities for NNet."""

from __future__ import annotations

from typing import Union

import numpy as np

from ..errors import DimensionError
from .types import DTYPE, Array

Scalar = Union[float, Array]


def sigmoid(z: Scalar) -> Scalar:
    """Return the logistic sigmoid of ``z``.

    Evaluated as ``exp(-|z|)`` on both branches so large magnitudes saturate
    to 0 or 1 without overflow.
    """

    arr = np.asarray(z, dtype=DTYPE)
    e = np.exp(-np.abs(arr))
    out = np.where(arr >= 0, 1.0 / (1.0 + e), e / (1.0 + e))
    if out.ndim == 0:
        return float(out)
    return out


def sigmoid_prime(z: Scalar) -> Scalar:
    """Derivative of :func:`sigmoid`."""

    s = sigmoid(z)
    return s * (1.0 - s)


def cost_derivative(output_activations: Array, y: int, out: Array | None = None) -> Array:
    """Quadratic-cost gradient with respect to the output activations.

    Equals ``output_activations`` with 1 subtracted at index ``y``.
    """

    if out is None:
        out = np.array(output_activations, dtype=DTYPE)
    else:
        if out.shape != output_activations.shape:
            raise DimensionError(
                f"cost_derivative: shape mismatch {out.shape} vs {output_activations.shape}"
            )
        out[...] = output_activations
    if not 0 <= y < out.shape[0]:
        raise IndexError(f"label {y} outside output range [0, {out.shape[0]})")
    out[y] -= 1.0
    return out


__all__ = ["sigmoid", "sigmoid_prime", "cost_derivative"]
