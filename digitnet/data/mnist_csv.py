"""MNIST digits stored as ``label,pixel0,...,pixel783`` CSV rows.

This is the format distributed at https://pjreddie.com/projects/mnist-in-csv/:
no header, one sample per line, the digit label first.

Pixels are divided by 255 unless ``normalize=False``. Networks trained on
the raw 0..255 values need a much smaller learning rate for the same
behaviour; pass ``normalize=False`` to reproduce runs that used raw pixels.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from ..core.errors import DataIOError
from ..core.types import Split
from .registry import DatasetSpec, one_hot, register_dataset


def read_csv_split(
    path: str | Path,
    *,
    num_classes: int = 10,
    max_items: int | None = None,
    normalize: bool = True,
) -> Split:
    """Parse one CSV file into inputs and one-hot targets."""

    path = Path(path).expanduser()
    try:
        frame = pd.read_csv(path, header=None, nrows=max_items)
    except pd.errors.EmptyDataError as exc:
        raise ValueError(f"Dataset file {path} is empty") from exc
    except OSError as exc:
        raise DataIOError(f"Could not read dataset file {path}: {exc}") from exc

    if frame.shape[1] < 2:
        raise ValueError(f"Dataset file {path} needs a label column and at least one feature")
    raw_labels = frame.iloc[:, 0].to_numpy(dtype=np.float64)
    if not np.all(np.isfinite(raw_labels)) or np.any(raw_labels != np.round(raw_labels)):
        raise ValueError(f"Dataset file {path} contains non-integer labels")
    inputs = frame.iloc[:, 1:].to_numpy(dtype=np.float64)
    if normalize:
        inputs = inputs / 255.0
    targets = one_hot(raw_labels.astype(np.int64), num_classes)
    return Split(inputs=inputs, targets=targets)


@register_dataset("mnist_csv")
def load_mnist_csv(
    *,
    train_path: str | Path = "data/mnist_train.csv",
    test_path: str | Path | None = "data/mnist_test.csv",
    num_classes: int = 10,
    max_items: int | None = None,
    normalize: bool = True,
) -> DatasetSpec:
    """Load the MNIST training and (optional) test CSV files."""

    train = read_csv_split(
        train_path, num_classes=num_classes, max_items=max_items, normalize=normalize
    )
    test = None
    if test_path is not None:
        test = read_csv_split(
            test_path, num_classes=num_classes, max_items=max_items, normalize=normalize
        )

    provenance = {
        "type": "mnist_csv",
        "train_path": str(train_path),
        "test_path": str(test_path) if test_path is not None else None,
        "max_items": max_items,
        "normalize": normalize,
        "sizes": {"train": len(train), "test": len(test) if test is not None else 0},
    }
    return DatasetSpec(
        name="mnist_csv",
        train=train,
        test=test,
        num_classes=num_classes,
        provenance=provenance,
    )


__all__ = ["load_mnist_csv", "read_csv_split"]
