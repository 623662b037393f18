import csv
import json

import pytest

from nnet.reporting import CsvSink, JsonlSink, PlotAdapter, write_manifest


def test_jsonl_and_csv_sinks(tmp_path):
    jsonl = JsonlSink(tmp_path / "metrics.jsonl", seed=3)
    csv_sink = CsvSink(tmp_path / "metrics.csv")
    for epoch, correct in enumerate([40, 45]):
        metrics = {"correct": correct, "total": 50, "accuracy": correct / 50}
        jsonl.on_epoch(epoch, metrics)
        csv_sink(epoch, metrics)

    records = [json.loads(line) for line in (tmp_path / "metrics.jsonl").read_text().splitlines()]
    assert [r["epoch"] for r in records] == [0, 1]
    assert records[1]["accuracy"] == pytest.approx(0.9)
    assert records[0]["seed"] == 3

    with (tmp_path / "metrics.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [float(r["correct"]) for r in rows] == [40.0, 45.0]


def test_manifest_records_layers(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"eta": 3.0},
        dataset_provenance={"source": "synthetic"},
        layer_sizes=[4, 3, 2],
    )
    manifest = json.loads((tmp_path / "manifest.json").read_text())
    assert path.endswith("manifest.json")
    assert manifest["layer_sizes"] == [4, 3, 2]
    assert manifest["dataset"]["source"] == "synthetic"


def test_plot_adapter_headless(tmp_path):
    pytest.importorskip("matplotlib")
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(0, {"accuracy": 0.5})
    adapter.on_epoch(1, {"accuracy": 0.8})
    assert adapter.close() == str(tmp_path / "accuracy.png")
    assert (tmp_path / "accuracy.png").exists()


def test_plot_adapter_disabled_is_inert(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=False)
    adapter.on_epoch(0, {"accuracy": 0.5})
    assert adapter.close() == ""
    assert not (tmp_path / "plots").exists()
