"""
factorizer.py
Regularized SVD facade.

Regularized SVD factorizes a sparse rating matrix into a user factor matrix
U (rank × num_users) and an item factor matrix V (rank × num_items) so that
U[:, u] . V[:, i] approximates the rating user u gave item i. Both matrices
are learned with stochastic gradient descent over the observed ratings,
with an L2 penalty that discourages large factor values. See

    http://sifter.org/~simon/journal/20061211.html
    http://www.cs.uic.edu/~liub/KDD-cup-2007/proceedings/Regular-Paterek.pdf

Example:

    svd = RegularizedSVD(iterations=10, alpha=0.01, lambda_=0.1, seed=42)
    users, items = svd.apply(ratings, rank=20)
"""

from __future__ import annotations

import logging
import warnings
from typing import Callable, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, NonNegativeFloat, PositiveFloat, PositiveInt, ValidationError

from .dataset import RatingDataset
from .errors import EmptyDatasetWarning, IndexOutOfRangeError, InvalidArgumentError
from .function import RegularizedSVDFunction
from .optimizer import SGD, EpochCallback, StochasticOptimizer, StochasticStep

LOGGER = logging.getLogger(__name__)


class Hyperparameters(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    iterations: PositiveInt = 10
    alpha: PositiveFloat = 0.01
    lambda_: NonNegativeFloat = 0.02


class RegularizedSVD:
    # Ratings may be passed as a raw (user, item, rating) coordinate list;
    # no dense, cleaned rating matrix is needed.
    uses_coordinate_list = True

    def __init__(
        self,
        iterations: int = 10,
        alpha: float = 0.01,
        lambda_: float = 0.02,
        seed: Optional[int] = None,
        step_cls: Callable[..., StochasticStep] = SGD,
    ):
        try:
            self.params = Hyperparameters(iterations=iterations, alpha=alpha, lambda_=lambda_)
        except ValidationError as exc:
            raise InvalidArgumentError(str(exc)) from exc

        self.seed = seed
        self.step_cls = step_cls

    @property
    def iterations(self) -> int:
        return self.params.iterations

    @property
    def alpha(self) -> float:
        return self.params.alpha

    @property
    def lambda_(self) -> float:
        return self.params.lambda_

    def _streams(self):
        """Independent (initialization, shuffling) generators for one run."""
        init_seq, shuffle_seq = np.random.SeedSequence(self.seed).spawn(2)
        return np.random.default_rng(init_seq), np.random.default_rng(shuffle_seq)

    @staticmethod
    def _check_rank(rank) -> int:
        if isinstance(rank, bool) or not isinstance(rank, (int, np.integer)) or rank <= 0:
            raise InvalidArgumentError(f"rank must be a positive integer, got {rank!r}")
        return int(rank)

    def initial_factors(self, rank: int, num_users: int, num_items: int):
        """The random (users, items) matrices `apply` starts from."""
        rank = self._check_rank(rank)
        init_rng, _ = self._streams()
        parameters = init_rng.random((rank, num_users + num_items))
        return parameters[:, :num_users].copy(), parameters[:, num_users:].copy()

    def apply(
        self,
        data,
        rank: int,
        num_users: Optional[int] = None,
        num_items: Optional[int] = None,
        callback: Optional[EpochCallback] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Factorize `data` and return (user_matrix, item_matrix).

        data: RatingDataset, (n, 3) array-like of [user, item, rating] rows,
              pandas DataFrame with user/item/rating columns, or a scipy
              sparse users × items matrix.
        rank: number of latent factors.
        num_users, num_items: pin the matrix dimensions; by default they are
              the largest observed index + 1.
        callback: called as callback(epoch, parameters) after every epoch.

        An empty dataset is not an error: a warning is emitted and the random
        initialization is returned unchanged.
        """
        rank = self._check_rank(rank)
        dataset = RatingDataset.coerce(data)

        function = RegularizedSVDFunction(
            dataset, rank, self.lambda_, num_users=num_users, num_items=num_items
        )

        init_rng, shuffle_rng = self._streams()
        parameters = function.initial_point(init_rng)

        if function.num_functions() == 0:
            LOGGER.warning(
                "No ratings to train on; returning random %d x (%d + %d) factors",
                rank, function.num_users, function.num_items,
            )
            warnings.warn(
                "empty rating dataset; factors are untrained", EmptyDatasetWarning, stacklevel=2
            )
            return function.split(parameters)

        LOGGER.info(
            "Regularized SVD: rank=%d users=%d items=%d ratings=%d %s",
            rank, function.num_users, function.num_items, len(dataset), self.params,
        )

        optimizer = StochasticOptimizer(
            self.step_cls(iterations=self.iterations, alpha=self.alpha),
            rng=shuffle_rng,
        )
        optimizer.optimize(function, parameters, callback=callback)

        return function.split(parameters)


def predict(user_matrix: np.ndarray, item_matrix: np.ndarray, user: int, item: int) -> float:
    """Predicted rating of `item` by `user`."""
    if not 0 <= user < user_matrix.shape[1]:
        raise IndexOutOfRangeError(f"user {user} out of range for {user_matrix.shape[1]} users")
    if not 0 <= item < item_matrix.shape[1]:
        raise IndexOutOfRangeError(f"item {item} out of range for {item_matrix.shape[1]} items")
    return float(user_matrix[:, user] @ item_matrix[:, item])
