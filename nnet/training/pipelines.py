"""End-to-end training pipeline: data, network, SGD and run artifacts."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Mapping, Sequence

from ..config import TrainingConfig
from ..core.network import Network
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .trainer import Trainer


def run_pipeline(
    config: TrainingConfig | Mapping[str, object], *, verbose: bool = True
) -> RunResult:
    if not isinstance(config, TrainingConfig):
        config = TrainingConfig.from_mapping(config)

    if verbose:
        print("Loading images and labels...")
    options = dict(config.dataset_options)
    if config.dataset == "mnist":
        options.setdefault("verbose", verbose)
    dataset = registry.get_dataset(config.dataset, **options)

    input_size, output_size = config.layer_sizes[0], config.layer_sizes[-1]
    if dataset.features != input_size:
        raise ValueError(
            f"Configured input layer has {input_size} nodes but samples have {dataset.features}"
        )
    dataset.check_labels(output_size)

    if verbose:
        print("Setting up network...")
        print("Node structure: " + " x ".join(str(s) for s in config.layer_sizes) + ".")

    run_dir = _resolve_run_dir(config)
    run_dir.mkdir(parents=True, exist_ok=True)

    with Network(
        config.layer_sizes,
        eta=config.eta,
        mini_batch_size=config.mini_batch_size,
        epochs=config.epochs,
    ) as network:
        if verbose:
            print("Initialising network...")
        network.random_init(config.init_variance, seed=config.seed)

        # Split off a chunk of data for testing.
        train_data, test_data = dataset.partition(config.held_out)

        if verbose:
            _print_startup_summary(config, network.parameter_count(), train_data.items)
            print("Stochastic gradient descent...")

        jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=config.seed)
        csv_sink = CsvSink(run_dir / "metrics.csv")
        plots = PlotAdapter(run_dir, enable_plots=config.enable_plots)
        trainer = Trainer(
            network,
            callbacks=[jsonl, csv_sink, plots],
            seed=config.seed,
            verbose=verbose,
        )
        history = trainer.run(train_data, test_data)
        plot_path = plots.close()

        manifest = write_manifest(
            run_dir / "manifest.json",
            config=config.to_dict(),
            dataset_provenance=dataset.provenance,
            layer_sizes=list(network.layer_sizes),
        )

    return RunResult(
        epochs=len(history),
        history=tuple(history),
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        plot_path=plot_path,
    )


def _resolve_run_dir(config: TrainingConfig) -> Path:
    if config.run_dir:
        return Path(config.run_dir)
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / config.dataset


def _print_startup_summary(
    config: TrainingConfig, param_count: int, train_items: int
) -> None:
    sizes: Sequence[int] = config.layer_sizes
    print("=== NNet run ===")
    print(f"Dataset       : {config.dataset}")
    print(f"Layer sizes   : {list(sizes)}")
    print(f"Eta           : {config.eta}")
    print(f"Batch size    : {config.mini_batch_size}")
    print(f"Epochs        : {config.epochs}")
    print(f"Train/held-out: {train_items}/{config.held_out}")
    print(f"Parameters    : {param_count}")
    print("================")


__all__ = ["run_pipeline"]
