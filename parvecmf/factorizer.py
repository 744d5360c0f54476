"""
factorizer.py
ParVecMF: alternating least squares regularized toward paragraph vectors.

Implements the methodology of "ParVecMF: A Paragraph Vector-based Matrix
Factorization Recommender System" (https://arxiv.org/abs/1706.07513).

Each iteration runs two phases:
  1. fix V, solve every user row of U in parallel (pulled toward I)
  2. fix U, solve every item row of V in parallel (pulled toward J)

Each phase builds its inverse once from the opposite matrix, then fans the
row solves out to a thread pool and waits for all of them before the next
phase reads the updated matrix.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Dict, Optional

import numpy as np
from pydantic import BaseModel, Field

from config.settings import settings
from .data import IdMapping, RatingSource, rating_matrix
from .embeddings import load_embeddings
from .exceptions import PhaseError, PhaseTimeoutError
from .factorization import Factorization, Factorizer
from .features import Features
from .solver import inverse_matrix, solve_row

LOGGER = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────

class FactorizerConfig(BaseModel):
    num_features: int = Field(gt=0)
    num_iterations: int = Field(gt=0)
    lambda_u: float = Field(gt=0)
    lambda_v: float = Field(gt=0)
    confidence: float = Field(1.0, gt=0)
    num_threads: int = Field(1, gt=0)
    user_embeddings_path: Optional[str] = None
    item_embeddings_path: Optional[str] = None
    phase_timeout: Optional[float] = Field(None, gt=0)
    seed: Optional[int] = None

    @classmethod
    def from_settings(cls, **overrides) -> "FactorizerConfig":
        values = {
            "num_features": settings.NUM_FEATURES,
            "num_iterations": settings.NUM_ITERATIONS,
            "lambda_u": settings.LAMBDA_U,
            "lambda_v": settings.LAMBDA_V,
            "confidence": settings.CONFIDENCE,
            "num_threads": settings.NUM_THREADS,
            "user_embeddings_path": settings.USER_EMBEDDINGS_PATH or None,
            "item_embeddings_path": settings.ITEM_EMBEDDINGS_PATH or None,
            "phase_timeout": settings.PHASE_TIMEOUT,
            "seed": settings.SEED,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# ─────────────────────────────────────────────
# Factorizer
# ─────────────────────────────────────────────

class ParVecMFFactorizer(Factorizer):
    """
    Factorize the ratings of `source` with paragraph vector regularization.

    Paragraph vectors come from `user_embeddings` / `item_embeddings`
    (dense index -> vector) when given, otherwise from the files named in
    the config. Both are read before the first iteration.
    """

    def __init__(
        self,
        source: RatingSource,
        config: FactorizerConfig,
        *,
        user_embeddings: Optional[Dict[int, np.ndarray]] = None,
        item_embeddings: Optional[Dict[int, np.ndarray]] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.source = source
        self.config = config
        self.user_ids = IdMapping.from_ids(source.ids_of_users())
        self.item_ids = IdMapping.from_ids(source.ids_of_items())
        self._user_embeddings = user_embeddings
        self._item_embeddings = item_embeddings
        self._rng = rng if rng is not None else np.random.default_rng(config.seed)

    def _embeddings(self, given, path, mapping, label):
        if given is not None:
            return given
        if not path:
            raise ValueError(f"No {label} paragraph vectors: pass them in or set {label}_embeddings_path")
        return load_embeddings(path, mapping, self.config.num_features)

    def _create_features(self) -> Features:
        cfg = self.config
        user_vectors = self._embeddings(self._user_embeddings, cfg.user_embeddings_path, self.user_ids, "user")
        item_vectors = self._embeddings(self._item_embeddings, cfg.item_embeddings_path, self.item_ids, "item")

        return Features(
            len(self.user_ids),
            len(self.item_ids),
            cfg.num_features,
            user_vectors,
            item_vectors,
            rng=self._rng,
        )

    def factorize(self) -> Factorization:
        LOGGER.info("starting to compute the factorization...")
        cfg = self.config

        features = self._create_features()

        user_ratings = rating_matrix(self.source, self.user_ids, self.item_ids, by_user=True)
        item_ratings = rating_matrix(self.source, self.item_ids, self.user_ids, by_user=False)

        LOGGER.info(
            "%d users, %d items, %d ratings, k=%d",
            len(self.user_ids), len(self.item_ids), user_ratings.nnz, cfg.num_features,
        )

        for iteration in range(1, cfg.num_iterations + 1):
            LOGGER.info("iteration %d/%d", iteration, cfg.num_iterations)

            # fix V - compute U
            V = features.V
            inv_v = inverse_matrix(V, cfg.confidence, cfg.lambda_u)

            def solve_user(idx):
                theta = solve_row(
                    user_ratings[idx], features.user_embedding(idx), V, inv_v, cfg.lambda_u, cfg.confidence
                )
                features.set_user_row(idx, theta)

            self._run_phase("users", len(self.user_ids), solve_user)

            # fix U - compute V
            U = features.U
            inv_u = inverse_matrix(U, cfg.confidence, cfg.lambda_v)

            def solve_item(idx):
                theta = solve_row(
                    item_ratings[idx], features.item_embedding(idx), U, inv_u, cfg.lambda_v, cfg.confidence
                )
                features.set_item_row(idx, theta)

            self._run_phase("items", len(self.item_ids), solve_item)

        result = Factorization(features.U, features.V, self.user_ids, self.item_ids)
        LOGGER.info("U sum %.6f, V sum %.6f", result.user_sum, result.item_sum)
        LOGGER.info("finished computing the factorization...")
        return result

    def _run_phase(self, phase: str, num_rows: int, solve: Callable[[int], None]) -> None:
        """
        Run `solve` for every row on a fresh pool; return only when all rows are written.

        On a row failure the queued rows are cancelled and the rows already
        running are joined before PhaseError is raised, so no worker outlives
        the call. On a timeout the running rows are not joined: they may be
        stuck, and they only write into the Features of the aborted run.
        """
        timeout = self.config.phase_timeout
        pool = ThreadPoolExecutor(
            max_workers=self.config.num_threads, thread_name_prefix=f"parvecmf-{phase}"
        )
        timed_out = False

        try:
            futures = {pool.submit(solve, idx): idx for idx in range(num_rows)}
            done, pending = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)

            for future in done:
                exc = future.exception()
                if exc is not None:
                    row = futures[future]
                    LOGGER.error("Error when computing %s features (row %d): %s", phase, row, exc)
                    raise PhaseError(phase, row, f"{phase} phase failed at row {row}: {exc}") from exc

            if pending:
                timed_out = True
                running = sum(1 for f in pending if f.running())
                LOGGER.error(
                    "%s phase timed out after %ss; abandoning %d running rows", phase, timeout, running
                )
                raise PhaseTimeoutError(
                    phase,
                    None,
                    f"{phase} phase did not finish within {timeout}s ({len(pending)} of {num_rows} rows pending)",
                )
        finally:
            pool.shutdown(wait=not timed_out, cancel_futures=True)
