"""Convenience exports for the regularized SVD package."""

from .dataset import Rating, RatingDataset
from .errors import (
    RegularizedSVDError,
    InvalidArgumentError,
    IndexOutOfRangeError,
    MissingDataError,
    EmptyDatasetWarning,
)
from .function import RegularizedSVDFunction, SparseGradient
from .optimizer import (
    OptimizerState,
    StochasticStep,
    SGD,
    ExponentialDecaySGD,
    StochasticOptimizer,
)
from .factorizer import Hyperparameters, RegularizedSVD, predict

__all__ = [
    "Rating",
    "RatingDataset",
    "RegularizedSVDError",
    "InvalidArgumentError",
    "IndexOutOfRangeError",
    "MissingDataError",
    "EmptyDatasetWarning",
    "RegularizedSVDFunction",
    "SparseGradient",
    "OptimizerState",
    "StochasticStep",
    "SGD",
    "ExponentialDecaySGD",
    "StochasticOptimizer",
    "Hyperparameters",
    "RegularizedSVD",
    "predict",
]
