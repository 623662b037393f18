"""Core typing contracts for NNet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

Array = np.ndarray

DTYPE = np.float64

# Layer index of the input sample within the activation array.
INPUT_INDEX = -1


@dataclass(frozen=True)
class BatchSlice:
    """A window of a shuffled index permutation forming one mini-batch.

    ``indices`` is a view into the permutation, never a copy.
    """

    indices: Array
    offset: int

    @property
    def size(self) -> int:
        return int(self.indices.shape[0])

    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(int(i) for i in self.indices)


@dataclass(frozen=True)
class EpochResult:
    """Held-out accuracy after one epoch of training."""

    epoch: int
    correct: int
    total: int

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    def as_metrics(self) -> dict:
        return {
            "correct": float(self.correct),
            "total": float(self.total),
            "accuracy": float(self.accuracy),
        }


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`nnet.training.pipelines.run_pipeline`."""

    epochs: int
    history: Tuple[EpochResult, ...] = ()
    metrics_path: str = ""
    manifest_path: str = ""
    plot_path: str = ""

    @property
    def final_correct(self) -> int:
        return self.history[-1].correct if self.history else 0
