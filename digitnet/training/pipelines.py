"""Pipeline assembly: dataset, network, training loop and artifacts."""

from __future__ import annotations

import json
import logging
import threading
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core import snapshot
from ..core.errors import DataIOError, InvalidConfiguration
from ..core.network import generate_random
from ..core.types import NetworkConfig
from ..data import get_dataset
from ..data.registry import DatasetSpec
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import ErrorPlot
from .metrics import classification_error
from .trainer import SGDTrainer, TrainingResult

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist-default": {
        "data": {
            "name": "mnist_csv",
            "options": {
                "train_path": "data/mnist_train.csv",
                "test_path": "data/mnist_test.csv",
            },
        },
        "model": {"hidden": [30]},
        "train": {
            "epochs": 50,
            "batch_size": 10,
            "lr": 0.3,
            "seed": None,
        },
    },
    "synthetic-smoke": {
        "data": {
            "name": "synthetic",
            "options": {"n_features": 16, "num_classes": 4, "n_train": 120, "n_test": 40, "seed": 0},
        },
        "model": {"hidden": [8]},
        "train": {
            "epochs": 5,
            "batch_size": 10,
            "lr": 3.0,
            "seed": 7,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parent / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def read_config_file(path: Path) -> Mapping[str, object]:
    """Read a JSON or YAML config mapping from ``path``."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        presets: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = {"data", "model", "train"} - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                presets[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = presets
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Dict[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return dict(file_overrides[name])
    try:
        return deepcopy(dict(_PRESETS[name]))
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    """Recursively merge ``override`` into a copy of ``base``."""

    merged = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


@dataclass(frozen=True)
class PipelineResult:
    """What a pipeline run produced."""

    config: NetworkConfig
    training: TrainingResult
    final_train_error: float
    final_test_error: float | None
    snapshot_path: str | None = None
    plot_path: str | None = None
    run_dir: str | None = None
    artifacts: Dict[str, str] = field(default_factory=dict)


def _layer_sizes(dataset: DatasetSpec, hidden: Sequence[object]) -> List[int]:
    try:
        hidden_dims = [int(h) for h in hidden]
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"Hidden layer sizes must be integers, got {hidden!r}") from exc
    return [dataset.d_in, *hidden_dims, dataset.num_classes]


def initial_network(
    layer_sizes: Sequence[int],
    snapshot_path: str | Path | None = None,
    *,
    seed: int | None = None,
) -> NetworkConfig:
    """Return a network read from ``snapshot_path`` or a random one.

    An unreadable snapshot file falls back to random initialisation; a
    snapshot whose input or output width disagrees with ``layer_sizes`` is
    rejected.
    """

    if snapshot_path is None:
        return generate_random(layer_sizes, seed)
    try:
        config = snapshot.load(snapshot_path)
    except DataIOError as exc:
        logger.warning("Error loading snapshot (%s). Using random config.", exc)
        return generate_random(layer_sizes, seed)
    sizes = config.layer_sizes
    if sizes[0] != layer_sizes[0] or sizes[-1] != layer_sizes[-1]:
        raise InvalidConfiguration(
            f"Snapshot {snapshot_path} has layer sizes {sizes}, which do not fit a dataset "
            f"with {layer_sizes[0]} inputs and {layer_sizes[-1]} classes"
        )
    logger.info("Loaded network with layer sizes %s from %s", sizes, snapshot_path)
    return config


def run_pipeline(
    config: Mapping[str, object],
    *,
    stop_event: threading.Event | None = None,
) -> PipelineResult:
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config.get("model", {}))  # type: ignore[arg-type]
    train_cfg = dict(config.get("train", {}))  # type: ignore[arg-type]

    dataset = get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    seed = train_cfg.get("seed")
    seed = int(seed) if seed is not None else None
    epochs = int(train_cfg.get("epochs", 1))
    batch_size = int(train_cfg.get("batch_size", 10))
    learning_rate = float(train_cfg.get("lr", 0.3))
    hidden = list(model_cfg.get("hidden", []))

    trainer = SGDTrainer(
        batch_size=batch_size,
        epochs=epochs,
        learning_rate=learning_rate,
        seed=seed,
    )
    layer_sizes = _layer_sizes(dataset, hidden)
    network = initial_network(layer_sizes, model_cfg.get("snapshot"), seed=seed)

    _log_startup_summary(
        dataset=dataset,
        dims=network.layer_sizes,
        epochs=epochs,
        batch_size=batch_size,
        learning_rate=learning_rate,
        param_count=network.parameter_count(),
    )

    artifacts: Dict[str, str] = {}
    run_dir = Path(train_cfg["run_dir"]) if train_cfg.get("run_dir") else None
    if run_dir is not None:
        run_dir.mkdir(parents=True, exist_ok=True)
        jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
        csv_sink = CsvSink(run_dir / "metrics.csv")
        trainer.callbacks.extend([jsonl, csv_sink])
        artifacts["metrics"] = str(jsonl.path)
        artifacts["metrics_csv"] = str(csv_sink.path)

    plot = None
    if train_cfg.get("plot_errors"):
        plot = ErrorPlot(
            train_cfg["plot_errors"],  # type: ignore[arg-type]
            epochs=epochs,
            learning_rate=learning_rate,
            batch_size=batch_size,
            hidden_layers=network.layer_sizes[1:-1],
        )
        trainer.callbacks.append(plot)

    test = dataset.test
    training = trainer.run(
        network,
        dataset.train.inputs,
        dataset.train.targets,
        test.inputs if test is not None else None,
        test.targets if test is not None else None,
        stop_event=stop_event,
    )
    trained = training.config

    final_train = classification_error(trained, dataset.train.inputs, dataset.train.targets)
    final_test = (
        classification_error(trained, test.inputs, test.targets)
        if test is not None and len(test)
        else None
    )
    logger.info("Final training error: %s", final_train)
    if final_test is not None:
        logger.info("Final test error: %s", final_test)

    snapshot_path = None
    if train_cfg.get("store_snapshot"):
        try:
            snapshot_path = str(snapshot.save(trained, train_cfg["store_snapshot"]))  # type: ignore[arg-type]
        except DataIOError as exc:
            logger.error("Error writing snapshot: %s", exc)
        else:
            logger.info("Stored snapshot at %s", snapshot_path)

    plot_path = None
    if plot is not None:
        written = plot.close()
        plot_path = str(written) if written is not None else None

    if run_dir is not None:
        artifacts["manifest"] = write_manifest(
            run_dir / "manifest.json",
            config=json.loads(json.dumps(config, default=str)),
            dataset_provenance=dataset.provenance,
            network=trained,
            outputs={"snapshot": snapshot_path, "plot": plot_path},
            results={
                "epochs_completed": training.epochs_completed,
                "cancelled": training.cancelled,
                "final_train_error": final_train,
                "final_test_error": final_test,
            },
        )

    return PipelineResult(
        config=trained,
        training=training,
        final_train_error=final_train,
        final_test_error=final_test,
        snapshot_path=snapshot_path,
        plot_path=plot_path,
        run_dir=str(run_dir) if run_dir is not None else None,
        artifacts=artifacts,
    )


def _log_startup_summary(
    *,
    dataset: DatasetSpec,
    dims: Sequence[int],
    epochs: int,
    batch_size: int,
    learning_rate: float,
    param_count: int,
) -> None:
    logger.info("=== digitnet run ===")
    logger.info("Dataset       : %s (%d train samples)", dataset.name, len(dataset.train))
    logger.info("Dimensions    : %s", list(dims))
    logger.info("Epochs        : %d", epochs)
    logger.info("Batch size    : %d", batch_size)
    logger.info("Learning rate : %s", learning_rate)
    logger.info("Parameters    : %d", param_count)


__all__ = [
    "PipelineResult",
    "initial_network",
    "load_preset",
    "merge_config",
    "presets",
    "read_config_file",
    "run_pipeline",
]
