"""Classification metrics for trained networks."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..core.errors import DimensionMismatch, EmptyDataset
from ..core.network import feedforward
from ..core.types import NetworkConfig


def classification_error(
    config: NetworkConfig,
    inputs: Sequence[object],
    targets: Sequence[object],
) -> float:
    """Return the fraction of samples whose predicted class is wrong.

    The predicted class is the index of the largest output activation and the
    true class the index of the largest target entry; ties resolve to the
    lowest index.
    """

    n = len(inputs)
    if n == 0:
        raise EmptyDataset("Cannot compute a classification error over zero samples")
    if len(targets) != n:
        raise DimensionMismatch(f"Got {n} inputs but {len(targets)} targets")

    mistakes = 0
    for x, y in zip(inputs, targets):
        detected = int(np.argmax(feedforward(config, x)))
        expected = int(np.argmax(np.asarray(y)))
        if detected != expected:
            mistakes += 1
    return mistakes / float(n)


def classification_accuracy(
    config: NetworkConfig,
    inputs: Sequence[object],
    targets: Sequence[object],
) -> float:
    return 1.0 - classification_error(config, inputs, targets)


__all__ = ["classification_accuracy", "classification_error"]
