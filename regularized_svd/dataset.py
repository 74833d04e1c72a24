"""
dataset.py
Read-only coordinate-list view over observed (user, item, rating) triples.

The view stores three parallel NumPy arrays. Nothing in the training loop
copies or mutates them; the optimizer only ever indexes into them.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd
import scipy.sparse as sp

from .errors import InvalidArgumentError


class Rating(NamedTuple):
    user: int
    item: int
    rating: float


def _as_index_array(values, name: str) -> np.ndarray:
    arr = np.asarray(values)
    if arr.size == 0:
        return np.zeros(0, dtype=np.int64)

    if arr.dtype.kind in "iu":
        idx = arr.astype(np.int64)
    elif arr.dtype.kind == "f":
        if not np.all(np.isfinite(arr)) or not np.all(arr == np.floor(arr)):
            raise InvalidArgumentError(f"{name} indices must be whole numbers")
        idx = arr.astype(np.int64)
    else:
        raise InvalidArgumentError(f"{name} indices must be numeric, got dtype {arr.dtype}")

    if (idx < 0).any():
        raise InvalidArgumentError(f"{name} indices must be non-negative")
    return idx


class RatingDataset:
    """
    Coordinate list of observed ratings.

    users[k], items[k], ratings[k] describe observation k. The arrays are
    flagged read-only after construction.
    """

    def __init__(self, users, items, ratings):
        users = _as_index_array(users, "user")
        items = _as_index_array(items, "item")

        try:
            ratings = np.array(ratings, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"ratings must be numeric: {exc}") from exc

        if not (users.shape == items.shape == ratings.shape) or users.ndim != 1:
            raise InvalidArgumentError(
                "users, items and ratings must be 1-D and the same length "
                f"(got {users.shape}, {items.shape}, {ratings.shape})"
            )
        if not np.all(np.isfinite(ratings)):
            raise InvalidArgumentError("ratings must be finite")

        for arr in (users, items, ratings):
            arr.setflags(write=False)

        self.users = users
        self.items = items
        self.ratings = ratings

    # ─────────────────────────────────────────────
    # Constructors
    # ─────────────────────────────────────────────

    @classmethod
    def from_array(cls, data, transposed: bool = False) -> "RatingDataset":
        """
        Build from an (n, 3) array of [user, item, rating] rows.

        With transposed=True the input is read as a (3, n) matrix, one
        observation per column.
        """
        try:
            arr = np.asarray(data, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"malformed coordinate list: {exc}") from exc
        if arr.size == 0:
            return cls.empty()
        if transposed:
            arr = arr.T
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise InvalidArgumentError(
                f"coordinate list must have shape (n, 3), got {arr.shape}"
            )
        return cls(arr[:, 0], arr[:, 1], arr[:, 2])

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        user_col: str = "user",
        item_col: str = "item",
        rating_col: str = "rating",
    ) -> "RatingDataset":
        missing = [c for c in (user_col, item_col, rating_col) if c not in df.columns]
        if missing:
            raise InvalidArgumentError(f"ratings frame is missing columns: {missing}")

        return cls(
            df[user_col].to_numpy(),
            df[item_col].to_numpy(),
            df[rating_col].to_numpy(dtype=np.float64),
        )

    @classmethod
    def from_sparse(cls, matrix) -> "RatingDataset":
        """Rows are users, columns are items; stored entries are observations."""
        coo = sp.coo_matrix(matrix)
        return cls(coo.row, coo.col, coo.data)

    @classmethod
    def empty(cls) -> "RatingDataset":
        return cls(np.zeros(0, dtype=np.int64), np.zeros(0, dtype=np.int64), np.zeros(0))

    @classmethod
    def coerce(cls, data) -> "RatingDataset":
        """Accept any supported input form and return a dataset view."""
        if isinstance(data, RatingDataset):
            return data
        if isinstance(data, pd.DataFrame):
            return cls.from_frame(data)
        if sp.issparse(data):
            return cls.from_sparse(data)
        return cls.from_array(data)

    # ─────────────────────────────────────────────
    # Shape
    # ─────────────────────────────────────────────

    def __len__(self) -> int:
        return int(self.ratings.shape[0])

    def __iter__(self) -> Iterator[Rating]:
        for u, i, r in zip(self.users, self.items, self.ratings):
            yield Rating(int(u), int(i), float(r))

    def __getitem__(self, index: int) -> Rating:
        return Rating(int(self.users[index]), int(self.items[index]), float(self.ratings[index]))

    @property
    def num_users(self) -> int:
        """Largest observed user index + 1 (0 for an empty dataset)."""
        return int(self.users.max()) + 1 if len(self) else 0

    @property
    def num_items(self) -> int:
        return int(self.items.max()) + 1 if len(self) else 0

    def shape(
        self, num_users: Optional[int] = None, num_items: Optional[int] = None
    ) -> Tuple[int, int]:
        return (
            self.num_users if num_users is None else num_users,
            self.num_items if num_items is None else num_items,
        )

    def to_sparse(self, num_users: Optional[int] = None, num_items: Optional[int] = None):
        """Users × items COO matrix. Duplicate coordinates are kept, not summed."""
        return sp.coo_matrix(
            (self.ratings, (self.users, self.items)),
            shape=self.shape(num_users, num_items),
        )

    def __repr__(self) -> str:
        return (
            f"RatingDataset(n={len(self)}, num_users={self.num_users}, "
            f"num_items={self.num_items})"
        )
