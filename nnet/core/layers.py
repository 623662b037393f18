"""Per-layer vector and matrix containers.

A :class:`VectorArray` owns one vector per non-input layer.  It can reserve
``offset`` extra slots addressed by negative layer indices; those slots hold
borrowed, read-only views of external data (the current input sample) and
are never owned by the array.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

import numpy as np

from ..errors import DimensionError
from . import linalg
from .types import DTYPE, Array


class VectorArray:
    """Ordered collection of owned layer vectors with optional borrowed slots."""

    def __init__(self, dimensions: Sequence[int], offset: int = 0) -> None:
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        self.offset = offset
        self._vectors: List[Array] = [linalg.vector_alloc(int(d)) for d in dimensions]
        self._borrowed: List[Optional[Array]] = [None] * offset

    def __len__(self) -> int:
        return len(self._vectors)

    def __iter__(self) -> Iterator[Array]:
        return iter(self._vectors)

    def __getitem__(self, index: int) -> Array:
        if index < 0:
            slot = self._slot(index)
            borrowed = self._borrowed[slot]
            if borrowed is None:
                raise LookupError(f"no data bound at layer index {index}")
            return borrowed
        return self._vectors[index]

    def _slot(self, index: int) -> int:
        if -index > self.offset:
            raise IndexError(
                f"layer index {index} outside reserved range [-{self.offset}, -1]"
            )
        return self.offset + index

    @property
    def last_index(self) -> int:
        return len(self._vectors) - 1

    def bind(self, index: int, data: Array) -> None:
        """Alias ``data`` at the negative ``index`` without taking ownership."""

        if index >= 0:
            raise IndexError("only reserved negative slots can be bound")
        slot = self._slot(index)
        view = np.asarray(data, dtype=DTYPE).view()
        view.flags.writeable = False
        self._borrowed[slot] = view

    def unbind(self) -> None:
        self._borrowed = [None] * self.offset

    def zero(self) -> None:
        for vec in self._vectors:
            vec.fill(0.0)

    def set_rand(self, rng: np.random.Generator, variance: float) -> None:
        for vec in self._vectors:
            linalg.set_rand(vec, rng, variance)

    def free(self) -> None:
        """Release owned vectors; borrowed slots are only dropped."""

        self._vectors = []
        self.unbind()

    def shapes(self) -> List[int]:
        return [int(v.shape[0]) for v in self._vectors]


class MatrixArray:
    """One matrix per pair of adjacent layers.

    Matrix ``i`` has shape ``(sizes[i + 1], sizes[i])``.
    """

    def __init__(self, sizes: Sequence[int]) -> None:
        if len(sizes) < 2:
            raise ValueError("a matrix array needs at least two layer sizes")
        self._matrices: List[Array] = [
            linalg.matrix_alloc(int(rows), int(cols))
            for cols, rows in zip(sizes[:-1], sizes[1:])
        ]

    def __len__(self) -> int:
        return len(self._matrices)

    def __iter__(self) -> Iterator[Array]:
        return iter(self._matrices)

    def __getitem__(self, index: int) -> Array:
        if index < 0:
            raise IndexError(f"matrix arrays have no layer {index}")
        return self._matrices[index]

    def zero(self) -> None:
        for mat in self._matrices:
            mat.fill(0.0)

    def set_rand(self, rng: np.random.Generator, variance: float) -> None:
        for mat in self._matrices:
            linalg.set_rand(mat, rng, variance)

    def free(self) -> None:
        self._matrices = []

    def shapes(self) -> List[tuple]:
        return [tuple(m.shape) for m in self._matrices]


def check_compatible(vectors: VectorArray, matrices: MatrixArray) -> None:
    """Raise unless ``matrices[i]`` produces ``vectors[i]``."""

    if len(vectors) != len(matrices):
        raise DimensionError(
            f"{len(vectors)} layer vectors vs {len(matrices)} layer matrices"
        )
    for idx, (vec, mat) in enumerate(zip(vectors, matrices)):
        if mat.shape[0] != vec.shape[0]:
            raise DimensionError(
                f"layer {idx}: matrix rows {mat.shape[0]} vs vector size {vec.shape[0]}"
            )


__all__ = ["VectorArray", "MatrixArray", "check_compatible"]
