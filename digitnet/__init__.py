"""digitnet public API."""

from .core import activations, snapshot, types  # noqa: F401
from .core.errors import (
    DataIOError,
    DigitNetError,
    DimensionMismatch,
    EmptyDataset,
    InvalidBatch,
    InvalidConfiguration,
    InvalidHyperparameters,
    MalformedSnapshot,
)
from .core.network import backprop, compute_deltas, generate_random, predict
from .core.types import NetworkConfig
from .data import available_datasets, get_dataset, one_hot
from .training.metrics import classification_error
from .training.trainer import SGDTrainer, TrainingResult, sgd, train_on_batch

__version__ = "0.1.0"

__all__ = [
    "DataIOError",
    "DigitNetError",
    "DimensionMismatch",
    "EmptyDataset",
    "InvalidBatch",
    "InvalidConfiguration",
    "InvalidHyperparameters",
    "MalformedSnapshot",
    "NetworkConfig",
    "SGDTrainer",
    "TrainingResult",
    "activations",
    "backprop",
    "classification_error",
    "available_datasets",
    "compute_deltas",
    "generate_random",
    "get_dataset",
    "one_hot",
    "predict",
    "sgd",
    "snapshot",
    "train_on_batch",
    "types",
]
