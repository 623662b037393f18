"""Command line entry point for training NNet classifiers."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Iterable

from nnet import config as nnet_config
from nnet.data import registry
from nnet.errors import AllocationError, DataFormatError
from nnet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "epochs": result.epochs,
        "correct": [item.correct for item in result.history],
        "total": result.history[-1].total if result.history else 0,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if result.plot_path:
        payload["plot"] = result.plot_path
    return json.dumps(payload, sort_keys=True)


def _layer_sizes(text: str) -> list[int]:
    try:
        sizes = [int(part) for part in text.replace("x", ",").split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid layer sizes: {text!r}") from exc
    if len(sizes) < 2:
        raise argparse.ArgumentTypeError("need at least an input and an output layer")
    return sizes


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(nnet_config.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="mnist",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--dataset",
        choices=sorted(registry.available_datasets()),
        help="Override the dataset used by the run",
    )
    parser.add_argument("--images", help="Path to an IDX images file (mnist dataset)")
    parser.add_argument("--labels", help="Path to an IDX labels file (mnist dataset)")
    parser.add_argument(
        "--layers",
        type=_layer_sizes,
        help="Layer sizes, e.g. 784,30,10 (input first, output classes last)",
    )
    parser.add_argument("--eta", type=float, help="Learning rate")
    parser.add_argument("--epochs", type=int, help="Number of training epochs")
    parser.add_argument("--batch-size", type=int, help="Mini-batch size")
    parser.add_argument("--held-out", type=int, help="Samples held out for evaluation")
    parser.add_argument("--seed", type=int, help="Seed for initialisation and shuffling")
    parser.add_argument("--variance", type=float, help="Variance of the random initialisation")
    parser.add_argument("--run-dir", help="Directory receiving metrics and the manifest")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write an accuracy curve plot"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Suppress progress output"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    override: Dict[str, Any] = {}
    mapping = {
        "layers": "layer_sizes",
        "eta": "eta",
        "epochs": "epochs",
        "batch_size": "mini_batch_size",
        "held_out": "held_out",
        "seed": "seed",
        "variance": "init_variance",
        "dataset": "dataset",
        "run_dir": "run_dir",
    }
    for arg_name, key in mapping.items():
        value = getattr(args, arg_name)
        if value is not None:
            override[key] = value
    if args.enable_plots:
        override["enable_plots"] = True
    options: Dict[str, Any] = {}
    if args.images:
        options["images_path"] = args.images
    if args.labels:
        options["labels_path"] = args.labels
    if options:
        override["dataset_options"] = options
    return override


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(nnet_config.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = nnet_config.load_preset(args.preset)
    if args.config:
        config = nnet_config.load_config(args.config, base=config)
    overrides = _overrides(args)
    resolved = nnet_config.merge(config.to_dict(), overrides)
    if args.dataset:
        # A new dataset does not inherit the preset's loader options.
        resolved["dataset_options"] = overrides.get("dataset_options", {})
    config = nnet_config.TrainingConfig.from_mapping(resolved)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config.to_dict(), indent=2))

    try:
        result = pipelines.run_pipeline(config, verbose=not args.quiet)
    except AllocationError as exc:
        raise SystemExit("Exiting: Malloc failed.") from exc
    except FileNotFoundError as exc:
        raise SystemExit(f"Exiting: Generic failure, check file paths. ({exc})") from exc
    except (DataFormatError, ValueError) as exc:
        raise SystemExit(f"Exiting: {exc}") from exc

    print(_format_result(result))


if __name__ == "__main__":
    main()
