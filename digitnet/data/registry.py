"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

import numpy as np

from ..core.types import Split


@dataclass(frozen=True)
class DatasetSpec:
    """A loaded classification dataset.

    Attributes
    ----------
    name:
        Registry identifier of the dataset.
    train, test:
        Inputs (``n x d_in``) and one-hot targets (``n x num_classes``).
        ``test`` may be ``None`` when the dataset ships no held-out split.
    num_classes:
        Width of the one-hot targets.
    provenance:
        Free-form metadata describing where the samples came from, recorded in
        run manifests.
    """

    name: str
    train: Split
    test: Split | None
    num_classes: int
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def d_in(self) -> int:
        return int(self.train.inputs.shape[1])


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None, factory: DatasetFactory | None = None
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register ``factory`` under ``name``.

    Usable as a decorator::

        @register_dataset("mnist_csv")
        def load_mnist_csv(**kwargs):
            ...

    or directly::

        register_dataset("mnist_csv", load_mnist_csv)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build the :class:`DatasetSpec` registered as ``dataset``."""

    if dataset not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {dataset}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def one_hot(labels: np.ndarray, num_classes: int) -> np.ndarray:
    """Return ``labels`` as rows of a ``num_classes`` identity matrix."""

    labels = np.asarray(labels, dtype=np.int64)
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(f"Labels must lie in [0, {num_classes}), got {labels.min()}..{labels.max()}")
    return np.eye(num_classes, dtype=np.float64)[labels]


def _validate_spec(spec: DatasetSpec) -> None:
    splits = {"train": spec.train}
    if spec.test is not None:
        splits["test"] = spec.test
    for split_name, split in splits.items():
        if split.inputs.ndim != 2 or split.targets.ndim != 2:
            raise ValueError(f"Split {split_name!r} must hold 2-D inputs and targets")
        if split.inputs.shape[0] != split.targets.shape[0]:
            raise ValueError(
                f"Split {split_name!r} has {split.inputs.shape[0]} inputs but "
                f"{split.targets.shape[0]} targets"
            )
        if split.targets.shape[1] != spec.num_classes:
            raise ValueError(
                f"Split {split_name!r} targets have width {split.targets.shape[1]}, "
                f"expected {spec.num_classes}"
            )
    if spec.test is not None and spec.test.inputs.shape[1] != spec.d_in:
        raise ValueError("Train and test inputs must have the same width")


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "one_hot",
    "register_dataset",
]
