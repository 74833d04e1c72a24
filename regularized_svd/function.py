"""
function.py
Objective function of regularized SVD over a single parameter matrix.

The parameter matrix has shape (rank, num_users + num_items). Columns
[0, num_users) are user factors, the remaining columns are item factors.
For every observation (u, i, r) the objective charges

    (r - U[:, u] . V[:, i])^2 + lambda * (|U[:, u]|^2 + |V[:, i]|^2)

so regularization is paid once per observation on the two columns it
touches. evaluate() is the sum of these terms and gradient() differentiates
exactly one of them, which keeps the two consistent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .dataset import RatingDataset
from .errors import IndexOutOfRangeError, InvalidArgumentError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SparseGradient:
    """Gradient of one observation: non-zero only in `columns`."""
    columns: np.ndarray
    values: np.ndarray


class RegularizedSVDFunction:
    def __init__(
        self,
        dataset: RatingDataset,
        rank: int,
        lambda_: float,
        num_users: int | None = None,
        num_items: int | None = None,
    ):
        if rank <= 0:
            raise InvalidArgumentError(f"rank must be positive, got {rank}")
        if lambda_ < 0:
            raise InvalidArgumentError(f"lambda must be non-negative, got {lambda_}")

        self.dataset = dataset
        self.rank = int(rank)
        self.lambda_ = float(lambda_)
        self.num_users, self.num_items = dataset.shape(num_users, num_items)
        if self.num_users < 0 or self.num_items < 0:
            raise InvalidArgumentError("num_users and num_items must be non-negative")

        self._check_indices()

        # Item columns live after the user block.
        self._item_columns = dataset.items + self.num_users

    def _check_indices(self):
        if len(self.dataset) == 0:
            return

        max_user = int(self.dataset.users.max())
        max_item = int(self.dataset.items.max())

        if max_user >= self.num_users:
            raise IndexOutOfRangeError(
                f"user index {max_user} out of range for {self.num_users} users"
            )
        if max_item >= self.num_items:
            raise IndexOutOfRangeError(
                f"item index {max_item} out of range for {self.num_items} items"
            )

    @property
    def shape(self):
        return (self.rank, self.num_users + self.num_items)

    def num_functions(self) -> int:
        return len(self.dataset)

    def initial_point(self, rng: np.random.Generator) -> np.ndarray:
        """Uniform [0, 1) starting parameters."""
        return rng.random(self.shape)

    def _check_parameters(self, parameters: np.ndarray):
        if parameters.shape != self.shape:
            raise IndexOutOfRangeError(
                f"parameter matrix has shape {parameters.shape}, expected {self.shape}"
            )

    # ─────────────────────────────────────────────
    # Objective
    # ─────────────────────────────────────────────

    def _errors(self, parameters: np.ndarray):
        user_factors = parameters[:, self.dataset.users]
        item_factors = parameters[:, self._item_columns]
        predicted = np.einsum("ij,ij->j", user_factors, item_factors)
        return self.dataset.ratings - predicted, user_factors, item_factors

    def evaluate(self, parameters: np.ndarray) -> float:
        """Squared error plus per-observation L2 penalty, summed over all ratings."""
        self._check_parameters(parameters)
        if self.num_functions() == 0:
            return 0.0

        errors, user_factors, item_factors = self._errors(parameters)
        penalty = (user_factors ** 2).sum() + (item_factors ** 2).sum()
        return float(errors @ errors + self.lambda_ * penalty)

    def evaluate_one(self, parameters: np.ndarray, index: int) -> float:
        self._check_parameters(parameters)
        user, item = self._columns(index)
        u = parameters[:, user]
        v = parameters[:, item]
        error = self.dataset.ratings[index] - u @ v
        return float(error * error + self.lambda_ * (u @ u + v @ v))

    def squared_error(self, parameters: np.ndarray) -> float:
        self._check_parameters(parameters)
        if self.num_functions() == 0:
            return 0.0
        errors, _, _ = self._errors(parameters)
        return float(errors @ errors)

    # ─────────────────────────────────────────────
    # Gradient
    # ─────────────────────────────────────────────

    def _columns(self, index: int):
        if not 0 <= index < self.num_functions():
            raise IndexOutOfRangeError(
                f"observation {index} out of range for {self.num_functions()} ratings"
            )
        return int(self.dataset.users[index]), int(self._item_columns[index])

    def gradient(self, parameters: np.ndarray, index: int) -> SparseGradient:
        """
        Gradient of observation `index` w.r.t. its user and item columns.

        Both blocks are computed from the current (pre-update) parameters.
        """
        self._check_parameters(parameters)

        user, item = self._columns(index)
        u = parameters[:, user]
        v = parameters[:, item]

        error = u @ v - self.dataset.ratings[index]

        values = np.empty((self.rank, 2))
        values[:, 0] = 2.0 * (error * v + self.lambda_ * u)
        values[:, 1] = 2.0 * (error * u + self.lambda_ * v)

        return SparseGradient(columns=np.array([user, item]), values=values)

    # ─────────────────────────────────────────────
    # Splitting
    # ─────────────────────────────────────────────

    def split(self, parameters: np.ndarray):
        """Copy the parameters out as (user_matrix, item_matrix)."""
        self._check_parameters(parameters)
        users = parameters[:, : self.num_users].copy()
        items = parameters[:, self.num_users :].copy()
        return users, items
