"""Dataset containers, IDX loading and the dataset registry."""

from .dataset import Dataset
from .idx import read_all_data
from .registry import available_datasets, get_dataset, register_dataset
from .synthetic import make_blobs

__all__ = [
    "Dataset",
    "available_datasets",
    "get_dataset",
    "make_blobs",
    "read_all_data",
    "register_dataset",
]
