"""
errors.py
Exception types raised by the regularized SVD factorizer.
"""


class RegularizedSVDError(RuntimeError):
    """Base class for every error raised by this package."""
    pass


class InvalidArgumentError(RegularizedSVDError, ValueError):
    """Raised when a rank, hyperparameter or coordinate list is malformed."""
    pass


class IndexOutOfRangeError(RegularizedSVDError, IndexError):
    """Raised when a rating references a user/item outside the factor matrices."""
    pass


class MissingDataError(RegularizedSVDError):
    """Raised when a ratings file is missing or holds no rows."""
    pass


class EmptyDatasetWarning(UserWarning):
    """Emitted when training is asked to run on zero observations."""
    pass
