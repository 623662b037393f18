"""Dataset registry."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, MutableMapping

from .dataset import Dataset
from .idx import read_all_data
from .synthetic import make_blobs

DatasetFactory = Callable[..., Dataset]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("mnist")
        def build_mnist(**options):
            ...

    or directly::

        register_dataset("mnist", build_mnist)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(name: str, /, **options: Any) -> Dataset:
    """Build the dataset registered under ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}")
    return _REGISTRY[name](**options)


def available_datasets() -> Iterable[str]:
    return sorted(_REGISTRY)


@register_dataset("mnist")
def build_mnist(
    images_path: str | Path = "./dat/train-images-idx3-ubyte",
    labels_path: str | Path = "./dat/train-labels-idx1-ubyte",
    *,
    verbose: bool = False,
    **_: object,
) -> Dataset:
    return read_all_data(images_path, labels_path, verbose=verbose)


@register_dataset("synthetic")
def build_synthetic(
    n_samples: int = 600,
    n_features: int = 16,
    n_classes: int = 4,
    noise: float = 0.1,
    seed: int = 0,
    **_: object,
) -> Dataset:
    return make_blobs(n_samples, n_features, n_classes, noise=noise, seed=seed)


__all__ = ["available_datasets", "get_dataset", "register_dataset"]
