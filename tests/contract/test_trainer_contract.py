import numpy as np
import pytest

from digitnet.core.errors import (
    DimensionMismatch,
    EmptyDataset,
    InvalidBatch,
    InvalidHyperparameters,
)
from digitnet.core.network import generate_random
from digitnet.core.types import NetworkConfig
from digitnet.training import trainer as trainer_module
from digitnet.training.metrics import classification_error
from digitnet.training.trainer import SGDTrainer, sgd, train_on_batch


def _identity(indices):
    return list(indices)


def _refuse(indices):  # pragma: no cover - must never be reached
    raise AssertionError("shuffle called")


@pytest.fixture
def samples():
    rng = np.random.default_rng(4)
    inputs = rng.random((6, 3))
    labels = np.array([0, 1, 0, 1, 1, 0])
    targets = np.eye(2)[labels]
    return inputs, targets


@pytest.fixture
def config():
    return generate_random([3, 4, 2], np.random.default_rng(9))


def test_zero_learning_rate_is_a_no_op(config, samples):
    inputs, targets = samples
    updated = train_on_batch(config, inputs, targets, 0.0)
    assert updated is not config
    for a, b in zip(updated.weights + updated.biases, config.weights + config.biases):
        assert np.array_equal(a, b)


def test_train_on_batch_leaves_input_config_untouched(config, samples):
    inputs, targets = samples
    before = config.copy()
    updated = train_on_batch(config, inputs, targets, 0.5)
    assert config.allclose(before, rtol=0.0)
    assert not updated.allclose(config)


def test_train_on_batch_is_mean_of_per_sample_gradients(config, samples):
    inputs, targets = samples
    lr = 0.7
    steps = [train_on_batch(config, [x], [y], lr) for x, y in zip(inputs, targets)]
    batched = train_on_batch(config, inputs, targets, lr)
    for layer in range(len(config.weights)):
        mean_step = np.mean([s.weights[layer] - config.weights[layer] for s in steps], axis=0)
        assert np.allclose(batched.weights[layer] - config.weights[layer], mean_step)


def test_sample_order_does_not_matter(config, samples):
    inputs, targets = samples
    forward = train_on_batch(config, inputs, targets, 0.5)
    backward = train_on_batch(config, inputs[::-1], targets[::-1], 0.5)
    assert forward.allclose(backward, rtol=1e-12, atol=1e-15)


def test_empty_batch_is_rejected(config):
    with pytest.raises(InvalidBatch):
        train_on_batch(config, [], [], 0.1)
    with pytest.raises(InvalidBatch):
        train_on_batch(config, [np.zeros(3)], [], 0.1)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"batch_size": 0, "epochs": 1},
        {"batch_size": -3, "epochs": 1},
        {"batch_size": 2, "epochs": -1},
        {"batch_size": 2, "epochs": 1, "learning_rate": float("nan")},
        {"batch_size": 2, "epochs": 1, "learning_rate": -0.1},
    ],
)
def test_invalid_hyperparameters_fail_before_any_work(config, samples, kwargs):
    inputs, targets = samples
    params = {"learning_rate": 0.1, **kwargs}
    with pytest.raises(InvalidHyperparameters):
        sgd(config, train_inputs=inputs, train_targets=targets, shuffle=_refuse, **params)


def test_zero_epochs_returns_initial_config(config, samples):
    inputs, targets = samples
    result = sgd(config, 2, 0, 0.5, inputs, targets, inputs, targets, shuffle=_refuse)
    assert result.config is config
    assert result.train_errors == []
    assert result.test_errors == []
    assert result.epochs_completed == 0


def test_single_full_batch_epoch_equals_direct_call(config, samples):
    inputs, targets = samples
    result = sgd(config, len(inputs), 1, 0.5, inputs, targets, shuffle=_identity)
    direct = train_on_batch(config, inputs, targets, 0.5)
    assert result.config.allclose(direct, rtol=0.0)
    assert result.train_errors == [classification_error(direct, inputs, targets)]
    assert result.test_errors == []


def test_trailing_partial_batch_is_dropped(config, samples, monkeypatch):
    inputs, targets = samples
    seen = []
    real = trainer_module.train_on_batch

    def _recording(cfg, batch_inputs, batch_targets, lr):
        seen.append([tuple(x) for x in batch_inputs])
        return real(cfg, batch_inputs, batch_targets, lr)

    monkeypatch.setattr(trainer_module, "train_on_batch", _recording)
    sgd(config, 4, 2, 0.5, inputs[:5], targets[:5], shuffle=_identity)
    assert len(seen) == 2
    assert all(len(batch) == 4 for batch in seen)
    assert seen[0] == [tuple(x) for x in inputs[:4]]


def test_batches_follow_the_shuffled_order(config, samples, monkeypatch):
    inputs, targets = samples
    seen = []
    real = trainer_module.train_on_batch

    def _recording(cfg, batch_inputs, batch_targets, lr):
        seen.append(np.asarray(batch_inputs).copy())
        return real(cfg, batch_inputs, batch_targets, lr)

    monkeypatch.setattr(trainer_module, "train_on_batch", _recording)
    sgd(config, 3, 1, 0.5, inputs, targets, shuffle=lambda idx: list(reversed(idx)))
    assert np.array_equal(seen[0], inputs[[5, 4, 3]])
    assert np.array_equal(seen[1], inputs[[2, 1, 0]])


def test_shuffle_must_return_a_permutation(config, samples):
    inputs, targets = samples
    with pytest.raises(InvalidHyperparameters):
        sgd(config, 2, 1, 0.5, inputs, targets, shuffle=lambda idx: idx[:-1])


def test_records_errors_and_notifies_callbacks(config, samples):
    inputs, targets = samples
    history = []

    class _Capture:
        def on_epoch(self, epoch, metrics):
            history.append((epoch, dict(metrics)))

    plain = []
    result = sgd(
        config,
        2,
        3,
        0.5,
        inputs,
        targets,
        inputs[:2],
        targets[:2],
        seed=1,
        callbacks=[_Capture(), lambda epoch, metrics: plain.append(epoch)],
    )
    assert [epoch for epoch, _ in history] == [1, 2, 3]
    assert plain == [1, 2, 3]
    assert [m["train_error"] for _, m in history] == result.train_errors
    assert [m["test_error"] for _, m in history] == result.test_errors
    assert all(0.0 <= e <= 1.0 for e in result.train_errors + result.test_errors)
    assert not result.config.allclose(config)


def test_seeded_training_is_deterministic(config, samples):
    inputs, targets = samples
    first = sgd(config, 2, 3, 0.5, inputs, targets, seed=123)
    second = sgd(config, 2, 3, 0.5, inputs, targets, seed=123)
    assert first.config.allclose(second.config, rtol=0.0)
    assert first.train_errors == second.train_errors


def test_stop_event_cancels_at_epoch_boundary(config, samples):
    import threading

    inputs, targets = samples
    stop = threading.Event()
    trainer = SGDTrainer(
        batch_size=2,
        epochs=5,
        learning_rate=0.5,
        seed=0,
        callbacks=[lambda epoch, metrics: stop.set() if epoch == 2 else None],
    )
    result = trainer.run(config, inputs, targets, stop_event=stop)
    assert result.cancelled is True
    assert result.epochs_completed == 2
    assert len(result.train_errors) == 2


def test_mismatched_or_empty_training_sets(config, samples):
    inputs, targets = samples
    with pytest.raises(DimensionMismatch):
        sgd(config, 2, 1, 0.5, inputs, targets[:-1])
    with pytest.raises(DimensionMismatch):
        sgd(config, 2, 1, 0.5, inputs, targets, inputs, None)
    with pytest.raises(EmptyDataset):
        sgd(config, 2, 1, 0.5, inputs[:0], targets[:0])


def test_list_inputs_are_accepted(config, samples):
    inputs, targets = samples
    as_arrays = sgd(config, 3, 1, 0.5, inputs, targets, shuffle=_identity)
    as_lists = sgd(config, 3, 1, 0.5, list(inputs), list(targets), shuffle=_identity)
    assert as_arrays.config.allclose(as_lists.config, rtol=0.0)


def test_training_result_config_is_a_network_config(config, samples):
    inputs, targets = samples
    result = sgd(config, 3, 1, 0.5, inputs, targets, seed=0)
    assert isinstance(result.config, NetworkConfig)
    assert result.config.layer_sizes == [3, 4, 2]


def test_empty_test_set_fails_before_training(config, samples):
    inputs, targets = samples
    with pytest.raises(EmptyDataset):
        sgd(config, 2, 3, 0.5, inputs, targets, inputs[:0], targets[:0], shuffle=_refuse)
