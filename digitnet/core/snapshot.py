"""JSON snapshots of trained networks.

A snapshot mirrors the network layer by layer.  The first layer is virtual:
its nodes only declare the input width and carry ``null`` weights and bias.
Every following layer lists one node per neuron with that neuron's weight row
(ordered like the previous layer's nodes) and its scalar bias::

    {"layers": [
        {"nodes": [{"weights": null, "bias": null}, ...]},
        {"nodes": [{"weights": [w0, w1, ...], "bias": b}, ...]},
        ...
    ]}

Floats are written with Python's shortest round-trip representation, so
``loads(dumps(config))`` reproduces every float64 exactly.
"""

from __future__ import annotations

import json
import math
import numbers
from pathlib import Path
from typing import Any, List, Mapping, Sequence

import numpy as np

from .errors import DataIOError, InvalidConfiguration, MalformedSnapshot
from .types import Array, NetworkConfig


def encode(config: NetworkConfig) -> dict:
    """Return the JSON-compatible snapshot tree of ``config``."""

    n_inputs = config.layer_sizes[0]
    layers: list[dict] = [
        {"nodes": [{"weights": None, "bias": None} for _ in range(n_inputs)]}
    ]
    for W, b in zip(config.weights, config.biases):
        nodes = [
            {"weights": [float(w) for w in row], "bias": float(bias)}
            for row, bias in zip(W, b)
        ]
        layers.append({"nodes": nodes})
    return {"layers": layers}


def _nodes(layer: object, idx: int) -> Sequence[Any]:
    if not isinstance(layer, Mapping) or "nodes" not in layer:
        raise MalformedSnapshot(f"Layer {idx} has no 'nodes' entry")
    nodes = layer["nodes"]
    if not isinstance(nodes, list):
        raise MalformedSnapshot(f"Layer {idx} 'nodes' must be a list")
    if not nodes:
        raise MalformedSnapshot(f"Layer {idx} has no nodes")
    return nodes


def _number(value: object, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedSnapshot(f"{where} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise MalformedSnapshot(f"{where} must be finite, got {value!r}")
    return number


def decode(tree: Mapping[str, Any]) -> NetworkConfig:
    """Rebuild a :class:`NetworkConfig` from a snapshot tree."""

    if not isinstance(tree, Mapping) or "layers" not in tree:
        raise MalformedSnapshot("Snapshot has no 'layers' entry")
    layers = tree["layers"]
    if not isinstance(layers, list):
        raise MalformedSnapshot("Snapshot 'layers' must be a list")
    if len(layers) < 2:
        raise MalformedSnapshot(
            f"Snapshot needs an input layer and at least one real layer, got {len(layers)}"
        )

    prev_width = len(_nodes(layers[0], 0))
    weights: List[Array] = []
    biases: List[Array] = []
    for layer_idx in range(1, len(layers)):
        nodes = _nodes(layers[layer_idx], layer_idx)
        rows: list[list[float]] = []
        bias: list[float] = []
        for node_idx, node in enumerate(nodes):
            where = f"layers[{layer_idx}].nodes[{node_idx}]"
            if not isinstance(node, Mapping):
                raise MalformedSnapshot(f"{where} must be an object")
            if node.get("weights") is None or node.get("bias") is None:
                raise MalformedSnapshot(f"{where} is missing 'weights' or 'bias'")
            row = node["weights"]
            if not isinstance(row, list):
                raise MalformedSnapshot(f"{where}.weights must be a list")
            if len(row) != prev_width:
                raise MalformedSnapshot(
                    f"{where} has {len(row)} weights but the previous layer has "
                    f"{prev_width} nodes"
                )
            rows.append([_number(w, f"{where}.weights") for w in row])
            bias.append(_number(node["bias"], f"{where}.bias"))
        weights.append(np.array(rows, dtype=np.float64).reshape(len(nodes), prev_width))
        biases.append(np.array(bias, dtype=np.float64))
        prev_width = len(nodes)

    try:
        return NetworkConfig(weights=tuple(weights), biases=tuple(biases))
    except InvalidConfiguration as exc:  # pragma: no cover - shapes checked above
        raise MalformedSnapshot(str(exc)) from exc


from_snapshot = decode


def dumps(config: NetworkConfig) -> str:
    """Return the snapshot of ``config`` as JSON text."""

    return json.dumps(encode(config), allow_nan=False)


def loads(text: str | bytes) -> NetworkConfig:
    """Parse JSON snapshot text into a :class:`NetworkConfig`."""

    try:
        tree = json.loads(text)
    except ValueError as exc:
        raise MalformedSnapshot(f"Snapshot is not valid JSON: {exc}") from exc
    return decode(tree)


def save(config: NetworkConfig, path: str | Path) -> Path:
    """Write the snapshot of ``config`` to ``path``."""

    path = Path(path).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(dumps(config))
    except OSError as exc:
        raise DataIOError(f"Could not write snapshot to {path}: {exc}") from exc
    return path


def load(path: str | Path) -> NetworkConfig:
    """Read a snapshot file written by :func:`save`."""

    path = Path(path).expanduser()
    try:
        with path.open("r", encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise DataIOError(f"Could not read snapshot from {path}: {exc}") from exc
    return loads(text)


__all__ = ["decode", "dumps", "encode", "from_snapshot", "load", "loads", "save"]
