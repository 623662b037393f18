"""Training loops and pipelines."""

from .trainer import (
    BatchProcessor,
    GradientDescentUpdate,
    Trainer,
    evaluate,
    process_mini_batches,
    sgd,
)

__all__ = [
    "BatchProcessor",
    "GradientDescentUpdate",
    "Trainer",
    "evaluate",
    "process_mini_batches",
    "sgd",
]
