"""
model_utils.py
Artifact helpers for trained factorizations.

This module handles:
  • Resolving / creating artifact directories
  • Saving a Factorization as a joblib artifact
  • Loading it back with its id mappings
"""

from __future__ import annotations

import logging
from pathlib import Path

import joblib

from config.settings import settings
from .data import IdMapping
from .factorization import Factorization

LOGGER = logging.getLogger(__name__)

# ─────────────────────────────────────────────
# PATHS
# ─────────────────────────────────────────────

ARTIFACT_DIR = Path(settings.ARTIFACT_DIR)


class MissingArtifactError(RuntimeError):
    """Raised when a factorization artifact is missing or incomplete."""
    pass


def _resolve_path(path):
    return Path(path).expanduser().resolve()


def ensure_directory(path):
    p = _resolve_path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


# ─────────────────────────────────────────────
# FACTORIZATION ARTIFACT
# ─────────────────────────────────────────────

ARTIFACT_KEYS = ("user_factors", "item_factors", "u_codes", "i_codes")


def save_factorization(
    factorization: Factorization,
    artifact_path: Path | str = ARTIFACT_DIR / "parvecmf.joblib",
) -> Path:
    artifact = _resolve_path(artifact_path)
    ensure_directory(artifact.parent)

    joblib.dump(
        {
            "user_factors": factorization.user_factors,
            "item_factors": factorization.item_factors,
            "u_codes": factorization.user_ids.codes,
            "i_codes": factorization.item_ids.codes,
        },
        artifact,
    )

    LOGGER.info("ParVecMF factorization saved → %s", artifact)
    return artifact


def load_factorization(path: Path | str = ARTIFACT_DIR / "parvecmf.joblib") -> Factorization:
    artifact = _resolve_path(path)
    if not artifact.exists():
        raise MissingArtifactError(f"Factorization artifact not found: {artifact}")

    data = joblib.load(artifact)
    missing = [k for k in ARTIFACT_KEYS if k not in data]
    if missing:
        raise MissingArtifactError(f"Artifact {artifact} is missing keys: {missing}")

    return Factorization(
        user_factors=data["user_factors"],
        item_factors=data["item_factors"],
        user_ids=IdMapping(data["u_codes"]),
        item_ids=IdMapping(data["i_codes"]),
    )


__all__ = [
    "save_factorization",
    "load_factorization",
    "ensure_directory",
    "MissingArtifactError",
    "ARTIFACT_DIR",
]
