import os
from dotenv import load_dotenv

# Load .env when running locally
load_dotenv()


def _optional_float(name):
    value = os.getenv(name, "").strip()
    return float(value) if value else None


def _optional_int(name):
    value = os.getenv(name, "").strip()
    return int(value) if value else None


class Settings:
    # ─────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("PARVECMF_LOG_FILE", "")

    # ─────────────────────────────────────────────
    # Factorization hyperparameters
    # ─────────────────────────────────────────────
    NUM_FEATURES = int(os.getenv("PARVECMF_NUM_FEATURES", 100))
    NUM_ITERATIONS = int(os.getenv("PARVECMF_NUM_ITERATIONS", 10))
    LAMBDA_U = float(os.getenv("PARVECMF_LAMBDA_U", 0.1))
    LAMBDA_V = float(os.getenv("PARVECMF_LAMBDA_V", 0.1))
    CONFIDENCE = float(os.getenv("PARVECMF_CONFIDENCE", 1.0))

    # ─────────────────────────────────────────────
    # Training threads
    # ─────────────────────────────────────────────
    NUM_THREADS = int(os.getenv("PARVECMF_NUM_THREADS", os.cpu_count() or 1))

    # Seconds to wait for one phase; unset means wait until every row is done
    PHASE_TIMEOUT = _optional_float("PARVECMF_PHASE_TIMEOUT")

    # Seed for the item-feature initialization
    SEED = _optional_int("PARVECMF_SEED")

    # ─────────────────────────────────────────────
    # Paragraph vector files + artifacts
    # ─────────────────────────────────────────────
    USER_EMBEDDINGS_PATH = os.getenv("PARVECMF_USER_EMBEDDINGS", "")
    ITEM_EMBEDDINGS_PATH = os.getenv("PARVECMF_ITEM_EMBEDDINGS", "")
    ARTIFACT_DIR = os.getenv("PARVECMF_ARTIFACT_DIR", "artifacts")


# Imported by parvecmf.factorizer, parvecmf.model_utils and parvecmf.train
settings = Settings()
