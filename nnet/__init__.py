"""NNet public API."""

from .config import TrainingConfig, load_config, load_preset
from .core import activations, linalg, types  # noqa: F401
from .core.network import Network, backpropagate, feed_forward
from .data import Dataset, get_dataset, read_all_data
from .errors import AllocationError, DataFormatError, DimensionError, NNetError
from .training.pipelines import run_pipeline
from .training.trainer import Trainer, evaluate, sgd

__all__ = [
    "AllocationError",
    "DataFormatError",
    "Dataset",
    "DimensionError",
    "NNetError",
    "Network",
    "Trainer",
    "TrainingConfig",
    "activations",
    "backpropagate",
    "evaluate",
    "feed_forward",
    "get_dataset",
    "linalg",
    "load_config",
    "load_preset",
    "read_all_data",
    "run_pipeline",
    "sgd",
    "types",
]
