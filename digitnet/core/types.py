"""Core typing contracts for digitnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .errors import InvalidConfiguration

Array = np.ndarray


def _frozen(array: object, ndim: int, what: str) -> Array:
    try:
        value = np.array(array, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"{what} is not numeric: {exc}") from exc
    if value.ndim != ndim:
        raise InvalidConfiguration(f"{what} must be {ndim}-dimensional, got shape {value.shape}")
    if not np.all(np.isfinite(value)):
        raise InvalidConfiguration(f"{what} contains non-finite values")
    value.setflags(write=False)
    return value


@dataclass(frozen=True)
class NetworkConfig:
    """Weights and biases of a fully-connected sigmoid network.

    ``weights[i]`` has shape ``(layer_sizes[i + 1], layer_sizes[i])`` and
    ``biases[i]`` has length ``layer_sizes[i + 1]``.  Both sequences hold one
    entry per non-input layer.  The arrays are private read-only copies, so a
    config can be shared between readers while training produces new ones.
    """

    weights: Tuple[Array, ...]
    biases: Tuple[Array, ...]

    def __post_init__(self) -> None:
        weights = tuple(
            _frozen(w, 2, f"weights[{idx}]") for idx, w in enumerate(self.weights)
        )
        biases = tuple(
            _frozen(b, 1, f"biases[{idx}]") for idx, b in enumerate(self.biases)
        )
        if not weights:
            raise InvalidConfiguration("A network needs at least one weight matrix")
        if len(weights) != len(biases):
            raise InvalidConfiguration(
                f"Got {len(weights)} weight matrices but {len(biases)} bias vectors"
            )
        for idx, (W, b) in enumerate(zip(weights, biases)):
            if W.shape[0] == 0 or W.shape[1] == 0:
                raise InvalidConfiguration(f"weights[{idx}] has an empty dimension {W.shape}")
            if W.shape[0] != b.shape[0]:
                raise InvalidConfiguration(
                    f"weights[{idx}] has {W.shape[0]} rows but biases[{idx}] has {b.shape[0]} entries"
                )
            if idx > 0 and W.shape[1] != weights[idx - 1].shape[0]:
                raise InvalidConfiguration(
                    f"weights[{idx}] expects {W.shape[1]} inputs but layer {idx} "
                    f"has {weights[idx - 1].shape[0]} neurons"
                )
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "biases", biases)

    @property
    def layer_sizes(self) -> List[int]:
        return [int(self.weights[0].shape[1])] + [int(W.shape[0]) for W in self.weights]

    @property
    def num_layers(self) -> int:
        return len(self.weights) + 1

    def copy(self) -> "NetworkConfig":
        return NetworkConfig(
            weights=tuple(W.copy() for W in self.weights),
            biases=tuple(b.copy() for b in self.biases),
        )

    def allclose(self, other: "NetworkConfig", *, rtol: float = 1e-12, atol: float = 0.0) -> bool:
        """Return ``True`` when ``other`` has the same shapes and values."""

        if self.layer_sizes != other.layer_sizes:
            return False
        pairs = zip(self.weights + self.biases, other.weights + other.biases)
        return all(np.allclose(a, b, rtol=rtol, atol=atol) for a, b in pairs)

    def parameter_count(self) -> int:
        return int(sum(W.size + b.size for W, b in zip(self.weights, self.biases)))


@dataclass(frozen=True)
class ForwardTrace:
    """Intermediate values of one forward pass.

    ``zs`` holds one pre-activation vector per non-input layer and
    ``activations`` one output vector per layer, starting with the input.
    """

    output: Array
    zs: List[Array]
    activations: List[Array]


@dataclass(frozen=True)
class Split:
    """Inputs and one-hot targets of one dataset partition."""

    inputs: Array
    targets: Array

    def __len__(self) -> int:
        return int(self.inputs.shape[0])


LayerSizes = Sequence[int]
