import os
from dotenv import load_dotenv

# Load .env when running locally
load_dotenv()

class Settings:
    # ─────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # ─────────────────────────────────────────────
    # Regularized SVD hyperparameters
    # ─────────────────────────────────────────────
    SVD_RANK = int(os.getenv("SVD_RANK", 20))
    SVD_ITERATIONS = int(os.getenv("SVD_ITERATIONS", 10))
    SVD_ALPHA = float(os.getenv("SVD_ALPHA", 0.01))
    SVD_LAMBDA = float(os.getenv("SVD_LAMBDA", 0.02))

    # Empty → fresh entropy on every run
    SVD_SEED = int(os.getenv("SVD_SEED")) if os.getenv("SVD_SEED") else None

    # ─────────────────────────────────────────────
    # Paths
    # ─────────────────────────────────────────────
    RATINGS_PATH = os.getenv("RATINGS_PATH", "data/ratings.parquet")
    ARTIFACT_PATH = os.getenv("ARTIFACT_PATH", "artifacts/svd.joblib")

# model_utils and the build script import this instance
settings = Settings()
