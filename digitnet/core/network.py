"""Forward inference and backpropagation for sigmoid networks.

The maths follows the quadratic-cost formulation: a layer computes
``z = W @ a_prev + b`` and ``a = sigmoid(z)``; the output error signal is
``(a_L - y) * sigmoid'(z_L)`` and hidden error signals are pulled back through
the transposed weights of the next layer.
"""

from __future__ import annotations

import numbers
from typing import List, Sequence, Tuple

import numpy as np

from .activations import sigmoid, sigmoid_prime
from .errors import DimensionMismatch, InvalidConfiguration
from .types import Array, ForwardTrace, NetworkConfig


def validate_layer_sizes(layer_sizes: Sequence[int]) -> List[int]:
    """Return ``layer_sizes`` as a list of ints or raise ``InvalidConfiguration``."""

    sizes = list(layer_sizes)
    if len(sizes) < 2:
        raise InvalidConfiguration(
            f"A network needs an input and an output layer, got layer sizes {sizes}"
        )
    for size in sizes:
        if isinstance(size, bool) or not isinstance(size, numbers.Integral):
            raise InvalidConfiguration(f"Layer sizes must be integers, got {size!r}")
        if size <= 0:
            raise InvalidConfiguration(f"Layer sizes must be positive, got {sizes}")
    return [int(size) for size in sizes]


def generate_random(
    layer_sizes: Sequence[int],
    rng: np.random.Generator | int | None = None,
) -> NetworkConfig:
    """Return a config whose weights and biases are drawn from N(0, 1).

    ``rng`` may be a generator or a seed; ``None`` draws fresh OS entropy.
    """

    sizes = validate_layer_sizes(layer_sizes)
    rng = np.random.default_rng(rng)
    weights: list[Array] = []
    biases: list[Array] = []
    for in_dim, out_dim in zip(sizes[:-1], sizes[1:]):
        weights.append(rng.standard_normal((out_dim, in_dim)))
        biases.append(rng.standard_normal(out_dim))
    return NetworkConfig(weights=tuple(weights), biases=tuple(biases))


def _as_vector(x: object, expected: int, what: str) -> Array:
    vector = np.asarray(x, dtype=np.float64)
    if vector.ndim == 2 and 1 in vector.shape:
        # column or row vectors are accepted as-is
        vector = vector.reshape(-1)
    if vector.ndim != 1 or vector.shape[0] != expected:
        raise DimensionMismatch(
            f"{what} has shape {np.shape(x)} but the network expects {expected} values"
        )
    return vector


def predict(config: NetworkConfig, x: object) -> ForwardTrace:
    """Run ``x`` through ``config`` and keep every intermediate vector."""

    activation = _as_vector(x, config.layer_sizes[0], "Input")
    zs: list[Array] = []
    activations: list[Array] = [activation]
    for W, b in zip(config.weights, config.biases):
        z = W @ activation + b
        activation = sigmoid(z)
        zs.append(z)
        activations.append(activation)
    return ForwardTrace(output=activation, zs=zs, activations=activations)


def feedforward(config: NetworkConfig, x: object) -> Array:
    """Return only the network output for ``x``."""

    return predict(config, x).output


def cost_derivative(output: Array, target: Array) -> Array:
    """Derivative of the quadratic cost with respect to the output activations."""

    return output - target


def quadratic_cost(output: Array, target: object) -> float:
    target = _as_vector(target, output.shape[0], "Target")
    return float(0.5 * np.sum((output - target) ** 2))


def compute_deltas(
    config: NetworkConfig,
    output: Array,
    target: object,
    zs: Sequence[Array],
) -> List[Array]:
    """Return the error signal of every non-input layer, in forward order."""

    n_layers = len(config.weights)
    if len(zs) != n_layers:
        raise DimensionMismatch(
            f"Expected {n_layers} pre-activation vectors, got {len(zs)}"
        )
    target = _as_vector(target, config.layer_sizes[-1], "Target")

    deltas: list[Array] = [np.empty(0)] * n_layers
    deltas[-1] = cost_derivative(output, target) * sigmoid_prime(zs[-1])
    for idx in reversed(range(n_layers - 1)):
        deltas[idx] = (config.weights[idx + 1].T @ deltas[idx + 1]) * sigmoid_prime(zs[idx])
    return deltas


def backprop(
    config: NetworkConfig, x: object, y: object
) -> Tuple[List[Array], List[Array]]:
    """Return the cost gradient for one sample as ``(weight_grads, bias_grads)``."""

    trace = predict(config, x)
    deltas = compute_deltas(config, trace.output, y, trace.zs)
    weight_grads = [
        np.outer(delta, activation) for delta, activation in zip(deltas, trace.activations)
    ]
    return weight_grads, deltas


__all__ = [
    "backprop",
    "compute_deltas",
    "cost_derivative",
    "feedforward",
    "generate_random",
    "predict",
    "quadratic_cost",
    "validate_layer_sizes",
]
