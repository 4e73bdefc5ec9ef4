"""Exception taxonomy for digitnet."""

from __future__ import annotations


class DigitNetError(Exception):
    """Base class for every error raised by digitnet."""


class InvalidConfiguration(DigitNetError, ValueError):
    """Layer sizes or parameter shapes do not describe a valid network."""


class InvalidHyperparameters(DigitNetError, ValueError):
    """Training hyperparameters rejected before any work begins."""


class InvalidBatch(DigitNetError, ValueError):
    """A training batch that cannot produce a meaningful update."""


class EmptyDataset(DigitNetError, ValueError):
    """Evaluation requested over zero samples."""


class MalformedSnapshot(DigitNetError, ValueError):
    """A snapshot tree or text that violates the snapshot schema."""


class DimensionMismatch(DigitNetError, ValueError):
    """A vector whose length disagrees with the configured layer width."""


class DataIOError(DigitNetError, OSError):
    """Reading or writing a dataset or snapshot file failed."""


__all__ = [
    "DataIOError",
    "DigitNetError",
    "DimensionMismatch",
    "EmptyDataset",
    "InvalidBatch",
    "InvalidConfiguration",
    "InvalidHyperparameters",
    "MalformedSnapshot",
]
