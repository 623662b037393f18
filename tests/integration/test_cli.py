import json
from pathlib import Path

import numpy as np
import pytest

from cli.main import main
from nnet.data.idx import write_idx


def _last_json_line(text: str) -> dict:
    lines = [line for line in text.splitlines() if line.startswith("{")]
    return json.loads(lines[-1])


def test_cli_synthetic_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "synthetic", "--epochs", "2", "--run-dir", "runs/synth"])

    out = capsys.readouterr().out
    assert "Stochastic gradient descent..." in out
    assert "Epoch 1 complete," in out
    payload = _last_json_line(out)
    assert payload["epochs"] == 2
    assert payload["total"] == 100
    assert len(payload["correct"]) == 2

    run_dir = Path("runs/synth")
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "metrics.csv").exists()
    manifest = json.loads((run_dir / "manifest.json").read_text())
    assert manifest["layer_sizes"] == [16, 12, 4]


def test_cli_trains_on_idx_files(tmp_path, capsys):
    rng = np.random.default_rng(0)
    images = rng.integers(0, 256, size=(30, 3, 3), dtype=np.uint8)
    labels = np.arange(30, dtype=np.uint8) % 3
    images_path = tmp_path / "train-images-idx3-ubyte"
    labels_path = tmp_path / "train-labels-idx1-ubyte"
    write_idx(images, labels, images_path, labels_path)

    main(
        [
            "--images",
            str(images_path),
            "--labels",
            str(labels_path),
            "--layers",
            "9,5,3",
            "--held-out",
            "10",
            "--epochs",
            "1",
            "--batch-size",
            "4",
            "--run-dir",
            str(tmp_path / "run"),
            "--dump-config",
            str(tmp_path / "config.json"),
        ]
    )

    out = capsys.readouterr().out
    assert "*** Images: ***" in out
    assert "Node structure: 9 x 5 x 3." in out
    assert _last_json_line(out)["total"] == 10
    dumped = json.loads((tmp_path / "config.json").read_text())
    assert dumped["layer_sizes"] == [9, 5, 3]
    assert dumped["mini_batch_size"] == 4


def test_cli_reports_missing_files(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "--images",
                str(tmp_path / "missing-images"),
                "--labels",
                str(tmp_path / "missing-labels"),
                "--run-dir",
                str(tmp_path / "run"),
                "--quiet",
            ]
        )
    assert "check file paths" in str(excinfo.value.code)


def test_cli_lists_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.split() == ["mnist", "synthetic"]


def test_cli_aborts_when_network_cannot_be_allocated(tmp_path, monkeypatch):
    from nnet.core import linalg
    from nnet.errors import AllocationError

    def _fail(size):
        raise AllocationError(f"cannot allocate vector of size {size}")

    monkeypatch.setattr(linalg, "vector_alloc", _fail)
    with pytest.raises(SystemExit) as excinfo:
        main(["--preset", "synthetic", "--quiet", "--run-dir", str(tmp_path / "run")])
    assert excinfo.value.code == "Exiting: Malloc failed."


def test_cli_dataset_override_drops_preset_loader_options(tmp_path, capsys):
    main(
        [
            "--dataset",
            "synthetic",
            "--layers",
            "16,12,4",
            "--held-out",
            "100",
            "--epochs",
            "1",
            "--quiet",
            "--run-dir",
            str(tmp_path / "run"),
            "--dump-config",
            str(tmp_path / "config.json"),
        ]
    )

    assert _last_json_line(capsys.readouterr().out)["total"] == 100
    dumped = json.loads((tmp_path / "config.json").read_text())
    assert dumped["dataset"] == "synthetic"
    assert dumped["dataset_options"] == {}


def test_cli_reports_layer_mismatch_without_traceback(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--dataset", "synthetic", "--epochs", "1", "--quiet", "--run-dir", str(tmp_path / "run")])
    message = str(excinfo.value.code)
    assert message.startswith("Exiting: ")
    assert "784" in message
