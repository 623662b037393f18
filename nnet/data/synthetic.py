"""Deterministic synthetic image-like dataset for offline runs."""

from __future__ import annotations

import numpy as np

from ..core.types import DTYPE
from .dataset import Dataset


def make_blobs(
    n_samples: int = 600,
    n_features: int = 16,
    n_classes: int = 4,
    *,
    noise: float = 0.1,
    seed: int = 0,
) -> Dataset:
    """Return ``n_samples`` noisy copies of per-class prototypes in ``[0, 1]``.

    Labels cycle through the classes so any trailing partition contains
    every class.
    """

    if n_samples <= 0 or n_features <= 0 or n_classes <= 0:
        raise ValueError("n_samples, n_features and n_classes must be positive")
    rng = np.random.default_rng(seed)
    prototypes = rng.uniform(0.0, 1.0, size=(n_classes, n_features))
    labels = np.arange(n_samples, dtype=np.int64) % n_classes
    images = prototypes[labels] + noise * rng.standard_normal((n_samples, n_features))
    images = np.clip(images, 0.0, 1.0).astype(DTYPE)
    return Dataset(
        images,
        labels,
        provenance={
            "source": "synthetic",
            "n_samples": n_samples,
            "n_features": n_features,
            "n_classes": n_classes,
            "noise": noise,
            "seed": seed,
        },
    )


__all__ = ["make_blobs"]
