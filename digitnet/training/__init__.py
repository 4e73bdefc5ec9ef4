"""Training loops and metrics for digitnet."""

from .metrics import classification_accuracy, classification_error
from .trainer import SGDTrainer, TrainingResult, sgd, train_on_batch

__all__ = [
    "SGDTrainer",
    "TrainingResult",
    "classification_accuracy",
    "classification_error",
    "sgd",
    "train_on_batch",
]
