"""
model_utils.py
Training and artifact helpers around the regularized SVD factorizer.

This module handles:
  • Loading a ratings table (parquet or csv) with pandas
  • Mapping arbitrary user / item ids to dense indices
  • Training RegularizedSVD and dumping the factors with joblib
  • Loading artifacts back and scoring (user, item) pairs
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Tuple

import joblib
import numpy as np
import pandas as pd

from config.settings import settings
from .dataset import RatingDataset
from .errors import InvalidArgumentError, MissingDataError
from .factorizer import RegularizedSVD, predict

LOGGER = logging.getLogger(__name__)


def _resolve_path(path):
    return Path(path).expanduser().resolve()


def ensure_directory(path):
    p = _resolve_path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def load_ratings(path: Path | str) -> pd.DataFrame:
    path = _resolve_path(path)

    if not path.exists():
        raise MissingDataError(f"Ratings file not found: {path}")

    if path.suffix == ".parquet":
        df = pd.read_parquet(path)
    elif path.suffix == ".csv":
        df = pd.read_csv(path)
    else:
        raise InvalidArgumentError("Ratings must be parquet or csv")

    if df.empty:
        raise MissingDataError(f"Ratings file is empty: {path}")

    return df


def encode_ids(
    df: pd.DataFrame,
    user_col: str = "user_id",
    item_col: str = "item_id",
    rating_col: str = "rating",
) -> Tuple[RatingDataset, Dict, Dict]:
    """Map raw ids to dense 0-based codes in first-seen order."""
    u_codes = {u: i for i, u in enumerate(df[user_col].unique())}
    i_codes = {t: i for i, t in enumerate(df[item_col].unique())}

    dataset = RatingDataset(
        df[user_col].map(u_codes).to_numpy(),
        df[item_col].map(i_codes).to_numpy(),
        df[rating_col].to_numpy(dtype=np.float64),
    )
    return dataset, u_codes, i_codes


def build_svd_model(
    ratings_path: Path | str = settings.RATINGS_PATH,
    artifact_path: Path | str = settings.ARTIFACT_PATH,
    *,
    rank=settings.SVD_RANK,
    iterations=settings.SVD_ITERATIONS,
    alpha=settings.SVD_ALPHA,
    lambda_=settings.SVD_LAMBDA,
    seed=settings.SVD_SEED,
    user_col="user_id",
    item_col="item_id",
    rating_col="rating",
):
    df = load_ratings(ratings_path)
    dataset, u_codes, i_codes = encode_ids(df, user_col, item_col, rating_col)

    model = RegularizedSVD(iterations=iterations, alpha=alpha, lambda_=lambda_, seed=seed)
    user_factors, item_factors = model.apply(dataset, rank)

    artifact = _resolve_path(artifact_path)
    ensure_directory(artifact.parent)
    joblib.dump(
        {
            "user_factors": user_factors,
            "item_factors": item_factors,
            "u_codes": u_codes,
            "i_codes": i_codes,
            "hyperparameters": {"rank": rank, **model.params.model_dump()},
        },
        artifact,
    )

    LOGGER.info("SVD model saved → %s", artifact)
    return artifact


def load_svd_artifact(path=settings.ARTIFACT_PATH):
    path = _resolve_path(path)
    if not path.exists():
        raise MissingDataError(f"SVD artifact not found: {path}")
    return joblib.load(path)


def score(artifact: dict, user_id, item_id) -> float:
    """Predicted rating for raw (not encoded) ids."""
    try:
        u = artifact["u_codes"][user_id]
        i = artifact["i_codes"][item_id]
    except KeyError as exc:
        raise InvalidArgumentError(f"Unknown id: {exc.args[0]!r}") from exc

    return predict(artifact["user_factors"], artifact["item_factors"], u, i)


__all__ = [
    "load_ratings",
    "encode_ids",
    "build_svd_model",
    "load_svd_artifact",
    "score",
    "ensure_directory",
]
