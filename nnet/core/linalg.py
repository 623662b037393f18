"""Checked dense linear-algebra primitives.

Every operation works in place on float64 numpy arrays and refuses operands
whose shapes disagree instead of broadcasting them.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from ..errors import AllocationError, DimensionError
from .types import DTYPE, Array

ElementwiseFn = Callable[[Array], Array]


def _check_same(name: str, a: Array, b: Array) -> None:
    if a.shape != b.shape:
        raise DimensionError(f"{name}: shape mismatch {a.shape} vs {b.shape}")


def _check_ndim(name: str, a: Array, ndim: int) -> None:
    if a.ndim != ndim:
        raise DimensionError(f"{name}: expected a {ndim}-d operand, got shape {a.shape}")


def vector_alloc(size: int) -> Array:
    """Return a zeroed vector of ``size`` entries."""

    if size <= 0:
        raise ValueError(f"vector size must be positive, got {size}")
    try:
        return np.zeros(size, dtype=DTYPE)
    except MemoryError as exc:
        raise AllocationError(f"cannot allocate vector of size {size}") from exc


def matrix_alloc(rows: int, cols: int) -> Array:
    """Return a zeroed ``rows x cols`` matrix."""

    if rows <= 0 or cols <= 0:
        raise ValueError(f"matrix shape must be positive, got ({rows}, {cols})")
    try:
        return np.zeros((rows, cols), dtype=DTYPE)
    except MemoryError as exc:
        raise AllocationError(f"cannot allocate {rows}x{cols} matrix") from exc


def set_rand(target: Array, rng: np.random.Generator, variance: float) -> None:
    """Fill ``target`` with independent N(0, variance) draws."""

    if variance < 0:
        raise ValueError(f"variance must be non-negative, got {variance}")
    target[...] = rng.normal(0.0, np.sqrt(variance), size=target.shape)


def vectorise(vec: Array, func: ElementwiseFn) -> None:
    """Apply ``func`` to every entry of ``vec`` in place."""

    vec[...] = func(vec)


def axpy(alpha: float, x: Array, y: Array) -> None:
    """y <- alpha * x + y"""

    _check_same("axpy", x, y)
    y += alpha * x


def scale(alpha: float, y: Array) -> None:
    """y <- alpha * y"""

    y *= alpha


def sub(y: Array, x: Array) -> None:
    """y <- y - x"""

    _check_same("sub", y, x)
    y -= x


def mul(y: Array, x: Array) -> None:
    """Elementwise y <- y * x"""

    _check_same("mul", y, x)
    y *= x


def ger(alpha: float, u: Array, v: Array, A: Array) -> None:
    """Rank-1 update A <- A + alpha * u v^T."""

    _check_ndim("ger", u, 1)
    _check_ndim("ger", v, 1)
    _check_ndim("ger", A, 2)
    if A.shape != (u.shape[0], v.shape[0]):
        raise DimensionError(
            f"ger: matrix {A.shape} incompatible with outer product "
            f"({u.shape[0]}, {v.shape[0]})"
        )
    A += alpha * np.outer(u, v)


def gemv(
    alpha: float,
    A: Array,
    x: Array,
    beta: float,
    y: Array,
    *,
    trans: bool = False,
) -> None:
    """y <- alpha * op(A) x + beta * y, where op(A) is A or A^T."""

    _check_ndim("gemv", A, 2)
    _check_ndim("gemv", x, 1)
    _check_ndim("gemv", y, 1)
    op = A.T if trans else A
    if op.shape != (y.shape[0], x.shape[0]):
        raise DimensionError(
            f"gemv: op(A) {op.shape} incompatible with x {x.shape} and y {y.shape}"
        )
    product = op @ x
    if beta == 0.0:
        y[...] = alpha * product
    else:
        y[...] = alpha * product + beta * y


def max_index(vec: Array) -> int:
    """Index of the largest entry; ties resolve to the lowest index."""

    _check_ndim("max_index", vec, 1)
    if vec.shape[0] == 0:
        raise ValueError("max_index of an empty vector")
    return int(np.argmax(vec))


__all__ = [
    "ElementwiseFn",
    "vector_alloc",
    "matrix_alloc",
    "set_rand",
    "vectorise",
    "axpy",
    "scale",
    "sub",
    "mul",
    "ger",
    "gemv",
    "max_index",
]
