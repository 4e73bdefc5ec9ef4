from __future__ import annotations

import logging
from typing import Mapping

import numpy as np

from digitnet.core import snapshot
from digitnet.core.network import generate_random
from digitnet.data import get_dataset
from digitnet.training.metrics import classification_error
from digitnet.training.trainer import SGDTrainer


class _Capture:
    def __init__(self) -> None:
        self.history: list[tuple[int, Mapping[str, float]]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((epoch, {k: float(v) for k, v in metrics.items()}))


def test_sgd_learns_synthetic_digits() -> None:
    dataset = get_dataset("synthetic", n_features=16, num_classes=4, n_train=200, n_test=40, seed=1)
    config = generate_random([16, 12, 4], np.random.default_rng(1))
    initial_error = classification_error(config, dataset.train.inputs, dataset.train.targets)

    capture = _Capture()
    trainer = SGDTrainer(batch_size=10, epochs=20, learning_rate=3.0, seed=1, callbacks=[capture])
    result = trainer.run(
        config,
        dataset.train.inputs,
        dataset.train.targets,
        dataset.test.inputs,
        dataset.test.targets,
    )

    assert len(capture.history) == 20
    assert result.train_errors[-1] < 0.5
    assert result.train_errors[-1] <= initial_error
    assert result.test_errors[-1] < 0.5
    assert np.all(np.isfinite(np.concatenate([w.ravel() for w in result.config.weights])))


def test_training_survives_a_snapshot_round_trip() -> None:
    dataset = get_dataset("synthetic", n_features=8, num_classes=3, n_train=60, n_test=0, seed=2)
    config = generate_random([8, 5, 3], 2)
    trainer = SGDTrainer(batch_size=6, epochs=3, learning_rate=2.0, seed=2)
    trained = trainer.run(config, dataset.train.inputs, dataset.train.targets).config

    restored = snapshot.loads(snapshot.dumps(trained))
    assert classification_error(
        restored, dataset.train.inputs, dataset.train.targets
    ) == classification_error(trained, dataset.train.inputs, dataset.train.targets)

    resumed = SGDTrainer(batch_size=6, epochs=1, learning_rate=2.0, seed=5)
    fresh = SGDTrainer(batch_size=6, epochs=1, learning_rate=2.0, seed=5)
    from_restored = resumed.run(restored, dataset.train.inputs, dataset.train.targets)
    from_trained = fresh.run(trained, dataset.train.inputs, dataset.train.targets)
    assert from_restored.config.allclose(from_trained.config, rtol=0.0)


def test_epoch_progress_is_logged(caplog) -> None:
    dataset = get_dataset("synthetic", n_features=4, num_classes=2, n_train=20, n_test=4, seed=0)
    trainer = SGDTrainer(batch_size=5, epochs=2, learning_rate=1.0, seed=0)
    with caplog.at_level(logging.INFO, logger="digitnet.training.trainer"):
        trainer.run(
            generate_random([4, 2], 0),
            dataset.train.inputs,
            dataset.train.targets,
            dataset.test.inputs,
            dataset.test.targets,
        )
    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Epoch 1/2. Training error = ") for message in messages)
    assert any(message.startswith("Epoch 2/2. Training error = ") for message in messages)


def test_batch_larger_than_training_set_warns(caplog) -> None:
    dataset = get_dataset("synthetic", n_features=4, num_classes=2, n_train=3, n_test=0, seed=0)
    config = generate_random([4, 2], 0)
    trainer = SGDTrainer(batch_size=10, epochs=1, learning_rate=1.0, seed=0)
    with caplog.at_level(logging.WARNING, logger="digitnet.training.trainer"):
        result = trainer.run(config, dataset.train.inputs, dataset.train.targets)
    assert result.config.allclose(config, rtol=0.0)
    assert any("smaller than batch size" in r.getMessage() for r in caplog.records)
