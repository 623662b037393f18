import json

import pytest

from nnet.config import (
    TrainingConfig,
    load_config,
    load_preset,
    merge,
    presets,
    read_config_file,
)


def test_defaults_match_mnist_preset():
    default = TrainingConfig()
    preset = load_preset("mnist")
    assert preset.layer_sizes == default.layer_sizes == (784, 30, 10)
    assert preset.eta == 3.0
    assert preset.mini_batch_size == 10
    assert preset.epochs == 10
    assert preset.held_out == 10000
    assert set(presets()) == {"mnist", "synthetic"}


@pytest.mark.parametrize(
    "changes",
    [
        {"layer_sizes": [10]},
        {"layer_sizes": [10, 0]},
        {"eta": 0.0},
        {"epochs": -1},
        {"mini_batch_size": 0},
        {"init_variance": -1.0},
        {"held_out": -5},
    ],
)
def test_invalid_values_rejected(changes):
    with pytest.raises(ValueError):
        TrainingConfig().replace(**changes)


def test_unknown_keys_rejected():
    with pytest.raises(KeyError):
        TrainingConfig.from_mapping({"learning_rate": 0.1})


def test_merge_is_recursive():
    base = {"dataset_options": {"a": 1, "b": 2}, "eta": 1.0}
    merged = merge(base, {"dataset_options": {"b": 3}, "epochs": 2})
    assert merged == {"dataset_options": {"a": 1, "b": 3}, "eta": 1.0, "epochs": 2}
    assert base["dataset_options"]["b"] == 2


def test_load_json_config(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(json.dumps({"layer_sizes": [16, 8, 4], "eta": 0.5, "dataset": "synthetic"}))
    config = load_config(path, base=load_preset("synthetic"))
    assert config.layer_sizes == (16, 8, 4)
    assert config.eta == 0.5
    assert config.dataset_options["n_features"] == 16
    assert TrainingConfig.from_mapping(config.to_dict()) == config


def test_load_yaml_config(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "run.yaml"
    path.write_text("epochs: 3\nmini_batch_size: 5\n")
    config = load_config(path)
    assert config.epochs == 3
    assert config.mini_batch_size == 5


def test_unsupported_config_file(tmp_path):
    path = tmp_path / "run.toml"
    path.write_text("epochs = 3")
    with pytest.raises(ValueError):
        read_config_file(path)

    path = tmp_path / "list.json"
    path.write_text("[1, 2]")
    with pytest.raises(TypeError):
        read_config_file(path)
