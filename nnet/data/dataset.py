"""In-memory labelled image dataset and its held-out partition."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

import numpy as np

from ..core.types import DTYPE, Array
from ..errors import DataFormatError


@dataclass(frozen=True, eq=False)
class Dataset:
    """Flattened samples in ``[0, 1]`` and their integer class labels.

    ``images`` has shape ``(items, features)``; ``labels`` has shape
    ``(items,)``.  Partitions share storage with the dataset they came from.
    """

    images: Array
    labels: Array
    provenance: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        images = np.asarray(self.images, dtype=DTYPE)
        labels = np.asarray(self.labels)
        if images.ndim != 2:
            raise DataFormatError(f"images must be 2-d (items, features), got {images.shape}")
        if labels.ndim != 1:
            raise DataFormatError(f"labels must be 1-d, got {labels.shape}")
        if images.shape[0] != labels.shape[0]:
            raise DataFormatError(
                f"image count {images.shape[0]} does not match label count {labels.shape[0]}"
            )
        if labels.size and not np.issubdtype(labels.dtype, np.integer):
            raise DataFormatError(f"labels must be integers, got dtype {labels.dtype}")
        object.__setattr__(self, "images", images)
        object.__setattr__(self, "labels", labels)

    @property
    def items(self) -> int:
        return int(self.labels.shape[0])

    @property
    def features(self) -> int:
        return int(self.images.shape[1])

    def __len__(self) -> int:
        return self.items

    def sample(self, index: int) -> Tuple[Array, int]:
        return self.images[index], int(self.labels[index])

    def check_labels(self, num_classes: int) -> None:
        """Raise :class:`DataFormatError` if any label is outside ``[0, num_classes)``."""

        if self.items == 0:
            return
        low, high = int(self.labels.min()), int(self.labels.max())
        if low < 0 or high >= num_classes:
            raise DataFormatError(
                f"labels span [{low}, {high}] but the network has {num_classes} outputs"
            )

    def partition(self, held_out: int) -> Tuple["Dataset", "Dataset"]:
        """Split off the trailing ``held_out`` samples for evaluation."""

        if held_out < 0:
            raise ValueError(f"held_out must be non-negative, got {held_out}")
        if held_out >= self.items:
            raise ValueError(
                f"held_out size {held_out} must be smaller than the {self.items} samples"
            )
        cut = self.items - held_out
        train = Dataset(self.images[:cut], self.labels[:cut], dict(self.provenance))
        test = Dataset(self.images[cut:], self.labels[cut:], dict(self.provenance))
        return train, test


__all__ = ["Dataset"]
