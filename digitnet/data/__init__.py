"""Dataset registry and loader helpers."""

# Ensure built-in datasets register themselves when the package is imported.
from . import mnist_csv as _mnist_csv  # noqa: F401
from . import synthetic as _synthetic  # noqa: F401
from .registry import (
    DatasetSpec,
    available_datasets,
    get_dataset,
    one_hot,
    register_dataset,
)

__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "one_hot",
    "register_dataset",
]
