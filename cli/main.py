"""Train a sigmoid network to classify handwritten digits."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List

from digitnet.core.errors import DigitNetError
from digitnet.data import available_datasets
from digitnet.training import pipelines

logger = logging.getLogger("digitnet.cli")


def _int_list(text: str) -> List[int]:
    try:
        return [int(part) for part in text.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected comma separated integers, got {text!r}") from exc


def _format_result(result: pipelines.PipelineResult) -> str:
    payload = {
        "epochs": result.training.epochs_completed,
        "cancelled": result.training.cancelled,
        "train_error": result.final_train_error,
        "test_error": result.final_test_error,
        "layer_sizes": result.config.layer_sizes,
    }
    if result.snapshot_path:
        payload["snapshot"] = result.snapshot_path
    if result.plot_path:
        payload["plot"] = result.plot_path
    if result.run_dir:
        payload["run_dir"] = result.run_dir
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="mnist-default",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dataset",
        choices=sorted(available_datasets()),
        help="Override the dataset used by the run",
    )
    parser.add_argument("--csv-train", help="Training CSV for the mnist_csv dataset")
    parser.add_argument("--csv-test", help="Test CSV for the mnist_csv dataset")
    parser.add_argument(
        "--max-items", type=int, help="Only read the first N rows of each CSV file"
    )
    parser.add_argument(
        "-H",
        "--hiddenlayers",
        type=_int_list,
        metavar="N1,N2,...",
        help="Neurons per hidden layer, e.g. '30,20' for two hidden layers",
    )
    parser.add_argument(
        "-e", "--epochs", type=int, help="The number of epochs for stochastic gradient descent"
    )
    parser.add_argument(
        "-l", "--learningrate", type=float, help="The learning rate for gradient descent"
    )
    parser.add_argument(
        "-b", "--batchsize", type=int, help="The batch size for stochastic gradient descent"
    )
    parser.add_argument("--seed", type=int, help="Seed for initialisation and shuffling")
    parser.add_argument(
        "-s",
        "--storesnapshot",
        metavar="FILE",
        help="Store a JSON snapshot of the trained network at FILE",
    )
    parser.add_argument(
        "-c",
        "--configfromsnapshot",
        metavar="FILE",
        help="Load the initial weights and biases from a JSON snapshot",
    )
    parser.add_argument(
        "-p",
        "--ploterrors",
        metavar="FILE",
        help="Plot training and test errors per epoch to FILE (png)",
    )
    parser.add_argument("--run-dir", help="Directory for metrics and manifest artifacts")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict:
    """Resolve preset, override file and command line flags into one config."""

    config = pipelines.load_preset(args.preset)
    if args.config:
        override = pipelines.read_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    data_cfg = config.setdefault("data", {})
    if args.dataset and args.dataset != data_cfg.get("name"):
        data_cfg["name"] = args.dataset
        data_cfg["options"] = {}
    opts = data_cfg.setdefault("options", {})
    if args.csv_train:
        opts["train_path"] = args.csv_train
    if args.csv_test:
        opts["test_path"] = args.csv_test
    if args.max_items is not None:
        opts["max_items"] = args.max_items

    model_cfg = config.setdefault("model", {})
    if args.hiddenlayers is not None:
        model_cfg["hidden"] = args.hiddenlayers
    if args.configfromsnapshot:
        model_cfg["snapshot"] = args.configfromsnapshot

    train_cfg = config.setdefault("train", {})
    if args.epochs is not None:
        train_cfg["epochs"] = args.epochs
    if args.learningrate is not None:
        train_cfg["lr"] = args.learningrate
    if args.batchsize is not None:
        train_cfg["batch_size"] = args.batchsize
    if args.seed is not None:
        train_cfg["seed"] = args.seed
    if args.storesnapshot:
        train_cfg["store_snapshot"] = args.storesnapshot
    if args.ploterrors:
        train_cfg["plot_errors"] = args.ploterrors
    if args.run_dir:
        train_cfg["run_dir"] = args.run_dir
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
        if args.dump_config:
            args.dump_config.parent.mkdir(parents=True, exist_ok=True)
            args.dump_config.write_text(json.dumps(config, indent=2))
        result = pipelines.run_pipeline(config)
    except (DigitNetError, OSError, ValueError) as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    print("Final training error:")
    print(result.final_train_error)
    if result.final_test_error is not None:
        print("Final test error:")
        print(result.final_test_error)
    print(_format_result(result))


if __name__ == "__main__":
    main()
