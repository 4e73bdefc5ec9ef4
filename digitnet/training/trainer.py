"""Mini-batch stochastic gradient descent for digitnet networks."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Sequence

import numpy as np

from ..core.errors import DimensionMismatch, EmptyDataset, InvalidBatch, InvalidHyperparameters
from ..core.network import backprop
from ..core.types import NetworkConfig
from .metrics import classification_error

logger = logging.getLogger(__name__)

ShuffleFn = Callable[[List[int]], Sequence[int]]


def train_on_batch(
    config: NetworkConfig,
    batch_inputs: Sequence[object],
    batch_targets: Sequence[object],
    learning_rate: float,
) -> NetworkConfig:
    """Return ``config`` after one gradient step on the given batch.

    Per-sample gradients are summed, averaged over the batch and scaled by
    ``learning_rate``.  ``config`` itself is left untouched.
    """

    batch_size = len(batch_inputs)
    if batch_size == 0:
        raise InvalidBatch("Cannot train on an empty batch")
    if len(batch_targets) != batch_size:
        raise InvalidBatch(
            f"Batch has {batch_size} inputs but {len(batch_targets)} targets"
        )

    weight_sums = [np.zeros_like(W) for W in config.weights]
    bias_sums = [np.zeros_like(b) for b in config.biases]
    for x, y in zip(batch_inputs, batch_targets):
        weight_grads, bias_grads = backprop(config, x, y)
        for idx in range(len(weight_sums)):
            weight_sums[idx] += weight_grads[idx]
            bias_sums[idx] += bias_grads[idx]

    scale = learning_rate / batch_size
    return NetworkConfig(
        weights=tuple(W - scale * dW for W, dW in zip(config.weights, weight_sums)),
        biases=tuple(b - scale * db for b, db in zip(config.biases, bias_sums)),
    )


@dataclass(frozen=True)
class TrainingResult:
    """Outcome of :meth:`SGDTrainer.run`."""

    config: NetworkConfig
    train_errors: List[float]
    test_errors: List[float]
    epochs_completed: int
    cancelled: bool = False


def _take(items: Sequence[object], indices: Sequence[int]) -> Sequence[object]:
    if isinstance(items, np.ndarray):
        return items[np.asarray(indices, dtype=np.intp)]
    return [items[i] for i in indices]


@dataclass
class SGDTrainer:
    """Run epochs of shuffled, batched gradient descent.

    Every epoch shuffles the training indices, cuts them into
    ``len(train) // batch_size`` consecutive batches (a trailing partial batch
    is dropped) and applies :func:`train_on_batch` to each batch in order.
    After each epoch the training error and, when a test set is given, the
    test error are recorded and reported to the callbacks.
    """

    batch_size: int
    epochs: int
    learning_rate: float
    shuffle: ShuffleFn | None = None
    seed: int | None = None
    callbacks: Sequence[object] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.batch_size, bool) or int(self.batch_size) != self.batch_size:
            raise InvalidHyperparameters(f"batch_size must be an integer, got {self.batch_size!r}")
        if self.batch_size <= 0:
            raise InvalidHyperparameters(f"batch_size must be positive, got {self.batch_size}")
        if isinstance(self.epochs, bool) or int(self.epochs) != self.epochs:
            raise InvalidHyperparameters(f"epochs must be an integer, got {self.epochs!r}")
        if self.epochs < 0:
            raise InvalidHyperparameters(f"epochs must be non-negative, got {self.epochs}")
        if not math.isfinite(self.learning_rate) or self.learning_rate < 0:
            raise InvalidHyperparameters(
                f"learning_rate must be finite and non-negative, got {self.learning_rate}"
            )
        self.batch_size = int(self.batch_size)
        self.epochs = int(self.epochs)
        self.callbacks = list(self.callbacks)
        if self.shuffle is None:
            rng = np.random.default_rng(self.seed)
            self.shuffle = lambda indices: rng.permutation(indices).tolist()

    def run(
        self,
        config: NetworkConfig,
        train_inputs: Sequence[object],
        train_targets: Sequence[object],
        test_inputs: Sequence[object] | None = None,
        test_targets: Sequence[object] | None = None,
        *,
        stop_event: threading.Event | None = None,
    ) -> TrainingResult:
        n = len(train_inputs)
        if len(train_targets) != n:
            raise DimensionMismatch(f"Got {n} training inputs but {len(train_targets)} targets")
        has_test = test_inputs is not None
        if has_test and (test_targets is None or len(test_targets) != len(test_inputs)):
            raise DimensionMismatch("Test inputs and test targets must have the same length")
        if self.epochs > 0 and n == 0:
            raise EmptyDataset("Cannot train on an empty training set")
        if self.epochs > 0 and has_test and len(test_inputs) == 0:
            raise EmptyDataset("Cannot evaluate on an empty test set")

        n_batches = n // self.batch_size
        if n_batches == 0 and self.epochs > 0:
            logger.warning(
                "Training set of %d samples is smaller than batch size %d; "
                "no updates will be applied",
                n,
                self.batch_size,
            )

        train_errors: list[float] = []
        test_errors: list[float] = []
        current = config
        for epoch in range(1, self.epochs + 1):
            if stop_event is not None and stop_event.is_set():
                logger.info("Training cancelled before epoch %d/%d", epoch, self.epochs)
                return TrainingResult(current, train_errors, test_errors, epoch - 1, True)

            order = self._permutation(n)
            for batch_nr in range(n_batches):
                batch_idx = order[batch_nr * self.batch_size : (batch_nr + 1) * self.batch_size]
                current = train_on_batch(
                    current,
                    _take(train_inputs, batch_idx),
                    _take(train_targets, batch_idx),
                    self.learning_rate,
                )

            metrics = {"train_error": classification_error(current, train_inputs, train_targets)}
            train_errors.append(metrics["train_error"])
            if has_test:
                metrics["test_error"] = classification_error(current, test_inputs, test_targets)
                test_errors.append(metrics["test_error"])
            logger.info(
                "Epoch %d/%d. Training error = %s Test error = %s",
                epoch,
                self.epochs,
                metrics["train_error"],
                metrics.get("test_error", "n/a"),
            )
            self._emit_epoch(epoch, metrics)

        return TrainingResult(current, train_errors, test_errors, self.epochs, False)

    # ------------------------------------------------------------------
    # Internal helpers

    def _permutation(self, n: int) -> List[int]:
        order = [int(i) for i in self.shuffle(list(range(n)))]
        if len(order) != n or sorted(order) != list(range(n)):
            raise InvalidHyperparameters("shuffle must return a permutation of the sample indices")
        return order

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


def sgd(
    config: NetworkConfig,
    batch_size: int,
    epochs: int,
    learning_rate: float,
    train_inputs: Sequence[object],
    train_targets: Sequence[object],
    test_inputs: Sequence[object] | None = None,
    test_targets: Sequence[object] | None = None,
    *,
    shuffle: ShuffleFn | None = None,
    seed: int | None = None,
    callbacks: Sequence[object] = (),
    stop_event: threading.Event | None = None,
) -> TrainingResult:
    """Functional wrapper around :class:`SGDTrainer`."""

    trainer = SGDTrainer(
        batch_size=batch_size,
        epochs=epochs,
        learning_rate=learning_rate,
        shuffle=shuffle,
        seed=seed,
        callbacks=list(callbacks),
    )
    return trainer.run(
        config,
        train_inputs,
        train_targets,
        test_inputs,
        test_targets,
        stop_event=stop_event,
    )


__all__ = ["SGDTrainer", "TrainingResult", "sgd", "train_on_batch"]
