import numpy as np
import pytest

from digitnet.core.errors import DimensionMismatch, EmptyDataset
from digitnet.core.types import NetworkConfig
from digitnet.training.metrics import classification_accuracy, classification_error


@pytest.fixture
def identity_net():
    # class i wins whenever input feature i is on
    return NetworkConfig(weights=(10.0 * np.eye(2),), biases=(np.array([0.0, 0.0]),))


def test_error_is_zero_when_every_sample_is_right(identity_net):
    inputs = [np.array([1.0, 0.0]), np.array([0.0, 1.0])]
    targets = [np.array([1.0, 0.0]), np.array([0.0, 1.0])]
    assert classification_error(identity_net, inputs, targets) == 0.0
    assert classification_accuracy(identity_net, inputs, targets) == 1.0


def test_error_is_one_when_every_sample_is_wrong(identity_net):
    inputs = np.array([[1.0, 0.0], [0.0, 1.0]])
    targets = np.array([[0.0, 1.0], [1.0, 0.0]])
    assert classification_error(identity_net, inputs, targets) == 1.0


def test_error_is_the_fraction_of_mistakes(identity_net):
    inputs = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 0.0]])
    targets = np.array([[1.0, 0.0], [1.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    assert classification_error(identity_net, inputs, targets) == pytest.approx(0.5)


def test_ties_resolve_to_the_lowest_index(identity_net):
    # equal outputs predict class 0, a target tie means class 0 as well
    inputs = np.array([[0.0, 0.0], [0.0, 0.0]])
    targets = np.array([[1.0, 0.0], [0.5, 0.5]])
    assert classification_error(identity_net, inputs, targets) == 0.0


def test_empty_and_mismatched_sets(identity_net):
    with pytest.raises(EmptyDataset):
        classification_error(identity_net, [], [])
    with pytest.raises(DimensionMismatch):
        classification_error(identity_net, np.zeros((2, 2)), np.zeros((1, 2)))
