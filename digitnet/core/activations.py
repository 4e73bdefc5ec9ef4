"""Activation utilities for digitnet."""

from __future__ import annotations

import numpy as np

from .types import Array


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid ``1 / (1 + exp(-x))`` element-wise."""

    x = np.asarray(x, dtype=np.float64)
    # exp is only ever taken of a non-positive value so it cannot overflow.
    e = np.exp(-np.abs(x))
    return np.where(x >= 0, 1.0 / (1.0 + e), e / (1.0 + e))


def sigmoid_prime(x: Array) -> Array:
    """Return the derivative of :func:`sigmoid` evaluated at ``x``."""

    s = sigmoid(x)
    return s * (1.0 - s)
