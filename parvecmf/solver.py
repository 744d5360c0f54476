"""
solver.py
Closed-form pieces of one ParVecMF sweep.

For a row with sparse ratings r, paragraph vector e and opposite factors F,
the objective

    sum_i c * (r_i - theta . F_i)^2 + lam * ||theta - e||^2

is minimized by

    theta = (c * r^T F + lam * e^T) (c * F^T F + lam * I_k)^-1

The inverse only depends on F, so it is built once per sweep and shared by
every row of that sweep.
"""

from __future__ import annotations

import numpy as np
import scipy.sparse as sp

from .exceptions import DimensionMismatchError, SingularMatrixError


def inverse_matrix(features: np.ndarray, c: float, lam: float) -> np.ndarray:
    """Return (c * F^T F + lam * I_k)^-1 for the n x k matrix F."""
    F = np.asarray(features, dtype=np.float64)
    if F.ndim != 2:
        raise DimensionMismatchError(f"feature matrix must be 2-D, got shape {F.shape}")

    k = F.shape[1]
    A = c * (F.T @ F) + lam * np.eye(k)

    try:
        inv = np.linalg.inv(A)
    except np.linalg.LinAlgError as exc:
        raise SingularMatrixError(
            f"cannot invert {k}x{k} normal matrix (c={c}, lambda={lam}): {exc}"
        ) from exc

    if not np.all(np.isfinite(inv)):
        raise SingularMatrixError(f"normal matrix inverse is not finite (c={c}, lambda={lam})")

    return inv


def solve_row(ratings, anchor, features, inverse, lam: float, c: float) -> np.ndarray:
    """
    Solve one row of the normal equation.

    Args:
        ratings: 1 x n sparse rating row (or a dense length-n vector)
        anchor: length-k paragraph vector the row is pulled toward
        features: n x k opposite factor matrix (read only)
        inverse: k x k matrix from `inverse_matrix(features, c, lam)`
        lam: regularization weight
        c: confidence scale of the fit term

    Returns:
        the updated length-k factor row
    """
    n, k = features.shape
    anchor = np.asarray(anchor, dtype=np.float64)

    if sp.issparse(ratings):
        if ratings.shape != (1, n):
            raise DimensionMismatchError(f"rating row has shape {ratings.shape}, expected (1, {n})")
    else:
        ratings = np.asarray(ratings, dtype=np.float64)
        if ratings.shape != (n,):
            raise DimensionMismatchError(f"rating vector has shape {ratings.shape}, expected ({n},)")

    if anchor.shape != (k,):
        raise DimensionMismatchError(f"anchor has shape {anchor.shape}, expected ({k},)")
    if inverse.shape != (k, k):
        raise DimensionMismatchError(f"inverse has shape {inverse.shape}, expected ({k}, {k})")

    rF = np.asarray(ratings @ features).ravel()
    return (c * rF + lam * anchor) @ inverse
