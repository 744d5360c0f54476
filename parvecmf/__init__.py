"""Convenience exports for the ParVecMF factorization package."""

from .data import (
    RatingSource,
    InMemoryRatingSource,
    IdMapping,
    load_ratings,
    rating_matrix,
)
from .embeddings import load_embeddings
from .exceptions import (
    ParVecMFError,
    EmbeddingParseError,
    SingularMatrixError,
    DimensionMismatchError,
    PhaseError,
    PhaseTimeoutError,
    UnknownIdError,
)
from .factorization import Factorization, Factorizer
from .factorizer import FactorizerConfig, ParVecMFFactorizer
from .features import Features
from .solver import inverse_matrix, solve_row

__all__ = [
    "RatingSource",
    "InMemoryRatingSource",
    "IdMapping",
    "load_ratings",
    "rating_matrix",
    "load_embeddings",
    "ParVecMFError",
    "EmbeddingParseError",
    "SingularMatrixError",
    "DimensionMismatchError",
    "PhaseError",
    "PhaseTimeoutError",
    "UnknownIdError",
    "Factorization",
    "Factorizer",
    "FactorizerConfig",
    "ParVecMFFactorizer",
    "Features",
    "inverse_matrix",
    "solve_row",
]
