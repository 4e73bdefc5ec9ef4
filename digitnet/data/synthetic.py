"""Deterministic in-memory digit-like dataset for offline runs."""

from __future__ import annotations

import numpy as np

from ..core.types import Split
from .registry import DatasetSpec, one_hot, register_dataset


def _make_split(
    centers: np.ndarray, n: int, noise: float, rng: np.random.Generator
) -> Split:
    num_classes = centers.shape[0]
    labels = np.arange(n) % num_classes
    inputs = centers[labels] + noise * rng.standard_normal((n, centers.shape[1]))
    return Split(inputs=np.clip(inputs, 0.0, 1.0), targets=one_hot(labels, num_classes))


@register_dataset("synthetic")
def make_synthetic(
    *,
    n_features: int = 16,
    num_classes: int = 4,
    n_train: int = 200,
    n_test: int = 40,
    noise: float = 0.1,
    seed: int = 0,
) -> DatasetSpec:
    """Gaussian clusters in ``[0, 1]^n_features``, one per class.

    Each class centre switches on a random half of the features, mimicking the
    sparse bright-pixel structure of scanned digits.
    """

    if n_features <= 0 or num_classes <= 0 or n_train <= 0 or n_test < 0:
        raise ValueError("Synthetic dataset sizes must be positive")
    rng = np.random.default_rng(seed)
    centers = (rng.random((num_classes, n_features)) < 0.5).astype(np.float64)
    train = _make_split(centers, n_train, noise, rng)
    test = _make_split(centers, n_test, noise, rng) if n_test else None

    provenance = {
        "type": "synthetic",
        "n_features": n_features,
        "num_classes": num_classes,
        "n_train": n_train,
        "n_test": n_test,
        "noise": noise,
        "seed": seed,
    }
    return DatasetSpec(
        name="synthetic",
        train=train,
        test=test,
        num_classes=num_classes,
        provenance=provenance,
    )


__all__ = ["make_synthetic"]
