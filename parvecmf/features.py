"""Feature store: user/item factor matrices plus their paragraph vector anchors."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import numpy as np

from .exceptions import DimensionMismatchError

LOGGER = logging.getLogger(__name__)

# Item factors start uniformly in [0, INIT_SCALE)
INIT_SCALE = 0.1


def _embedding_matrix(num_rows: int, num_features: int, vectors: Mapping[int, np.ndarray], label: str):
    matrix = np.zeros((num_rows, num_features), dtype=np.float64)

    for idx, vec in vectors.items():
        vec = np.asarray(vec, dtype=np.float64)
        if not 0 <= idx < num_rows:
            raise DimensionMismatchError(f"{label} embedding index {idx} outside [0, {num_rows})")
        if vec.shape != (num_features,):
            raise DimensionMismatchError(
                f"{label} embedding {idx} has shape {vec.shape}, expected ({num_features},)"
            )
        matrix[idx] = vec

    missing = num_rows - len(vectors)
    if missing:
        # rows without a paragraph vector are regularized toward zero
        LOGGER.warning("%d of %d %s rows have no paragraph vector; using zeros", missing, num_rows, label)
    return matrix, missing


class Features:
    """
    Holds U (users x k), V (items x k) and the anchors I (users x k), J (items x k).

    U starts at zero, V at small random values. I and J are filled once from
    the embedding mappings and never written again.
    """

    def __init__(
        self,
        num_users: int,
        num_items: int,
        num_features: int,
        user_embeddings: Mapping[int, np.ndarray],
        item_embeddings: Mapping[int, np.ndarray],
        rng: Optional[np.random.Generator] = None,
    ):
        if num_features < 1:
            raise ValueError("num_features must be positive")

        rng = rng if rng is not None else np.random.default_rng()
        self.num_features = num_features

        self._I, self.missing_user_embeddings = _embedding_matrix(
            num_users, num_features, user_embeddings, "user"
        )
        self._J, self.missing_item_embeddings = _embedding_matrix(
            num_items, num_features, item_embeddings, "item"
        )

        self._U = np.zeros((num_users, num_features), dtype=np.float64)
        self._V = rng.random((num_items, num_features)) * INIT_SCALE

    # Matrices
    @property
    def U(self) -> np.ndarray:
        return self._U

    @property
    def V(self) -> np.ndarray:
        return self._V

    @property
    def I(self) -> np.ndarray:
        return self._I

    @property
    def J(self) -> np.ndarray:
        return self._J

    # Rows
    def user_feature_row(self, index: int) -> np.ndarray:
        return self._U[index]

    def item_feature_row(self, index: int) -> np.ndarray:
        return self._V[index]

    def user_embedding(self, index: int) -> np.ndarray:
        return self._I[index]

    def item_embedding(self, index: int) -> np.ndarray:
        return self._J[index]

    def set_user_row(self, index: int, row) -> None:
        self._set_row(self._U, index, row)

    def set_item_row(self, index: int, row) -> None:
        self._set_row(self._V, index, row)

    def _set_row(self, matrix, index, row):
        row = np.asarray(row, dtype=np.float64)
        if row.shape != (self.num_features,):
            raise DimensionMismatchError(
                f"feature row has shape {row.shape}, expected ({self.num_features},)"
            )
        matrix[index, :] = row
