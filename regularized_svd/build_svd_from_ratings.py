"""
Train a regularized SVD model from a ratings table.

Steps:
1. Read RATINGS_PATH (parquet or csv with user_id, item_id, rating)
2. Encode ids → dense indices
3. Train RegularizedSVD with the SVD_* settings
4. Save factors + id maps to ARTIFACT_PATH (joblib)
"""

import logging
import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(PROJECT_ROOT)

from config.settings import settings
from regularized_svd.model_utils import build_svd_model

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


def main():
    logging.info("Training regularized SVD from %s", settings.RATINGS_PATH)

    artifact = build_svd_model(
        settings.RATINGS_PATH,
        settings.ARTIFACT_PATH,
        rank=settings.SVD_RANK,
        iterations=settings.SVD_ITERATIONS,
        alpha=settings.SVD_ALPHA,
        lambda_=settings.SVD_LAMBDA,
        seed=settings.SVD_SEED,
    )

    logging.info("SVD model saved: %s", artifact)


if __name__ == "__main__":
    main()
