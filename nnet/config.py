"""Run configuration, presets and config-file loading."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist": {
        "layer_sizes": [784, 30, 10],
        "eta": 3.0,
        "epochs": 10,
        "mini_batch_size": 10,
        "init_variance": 1.0,
        "held_out": 10000,
        "seed": 0,
        "dataset": "mnist",
        "dataset_options": {
            "images_path": "./dat/train-images-idx3-ubyte",
            "labels_path": "./dat/train-labels-idx1-ubyte",
        },
    },
    "synthetic": {
        "layer_sizes": [16, 12, 4],
        "eta": 3.0,
        "epochs": 5,
        "mini_batch_size": 10,
        "init_variance": 1.0,
        "held_out": 100,
        "seed": 0,
        "dataset": "synthetic",
        "dataset_options": {"n_samples": 600, "n_features": 16, "n_classes": 4, "seed": 0},
    },
}


@dataclass(frozen=True)
class TrainingConfig:
    """Hyperparameters, layer structure and data source for one run."""

    layer_sizes: Tuple[int, ...] = (784, 30, 10)
    eta: float = 3.0
    epochs: int = 10
    mini_batch_size: int = 10
    init_variance: float = 1.0
    held_out: int = 10000
    seed: int = 0
    dataset: str = "mnist"
    dataset_options: Mapping[str, Any] = field(default_factory=dict)
    run_dir: str | None = None
    enable_plots: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "layer_sizes", tuple(int(s) for s in self.layer_sizes))
        object.__setattr__(self, "dataset_options", dict(self.dataset_options))
        if len(self.layer_sizes) < 2:
            raise ValueError("layer_sizes needs at least an input and an output layer")
        if any(s <= 0 for s in self.layer_sizes):
            raise ValueError(f"layer sizes must be positive, got {list(self.layer_sizes)}")
        if self.eta <= 0:
            raise ValueError(f"eta must be positive, got {self.eta}")
        if self.epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {self.epochs}")
        if self.mini_batch_size <= 0:
            raise ValueError(f"mini_batch_size must be positive, got {self.mini_batch_size}")
        if self.init_variance < 0:
            raise ValueError(f"init_variance must be non-negative, got {self.init_variance}")
        if self.held_out < 0:
            raise ValueError(f"held_out must be non-negative, got {self.held_out}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TrainingConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise KeyError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["layer_sizes"] = list(self.layer_sizes)
        payload["dataset_options"] = json.loads(json.dumps(dict(self.dataset_options), default=str))
        return payload

    def replace(self, **changes: Any) -> "TrainingConfig":
        return TrainingConfig.from_mapping(merge(self.to_dict(), changes))


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> TrainingConfig:
    try:
        return TrainingConfig.from_mapping(deepcopy(_PRESETS[name]))
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""

    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def read_config_file(path: str | Path) -> Dict[str, Any]:
    """Parse a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        data = yaml.safe_load(text)
    elif path.suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return dict(data)


def load_config(path: str | Path, base: TrainingConfig | None = None) -> TrainingConfig:
    """Load ``path`` on top of ``base`` (defaults when omitted)."""

    base = base or TrainingConfig()
    return TrainingConfig.from_mapping(merge(base.to_dict(), read_config_file(path)))


__all__ = [
    "TrainingConfig",
    "load_config",
    "load_preset",
    "merge",
    "presets",
    "read_config_file",
]
