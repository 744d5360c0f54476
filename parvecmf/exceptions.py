"""Errors raised while loading inputs or running a factorization."""


class ParVecMFError(RuntimeError):
    """Base class for every failure of a factorization run."""
    pass


class EmbeddingParseError(ParVecMFError):
    """Raised when a paragraph vector file cannot be read or parsed."""

    def __init__(self, path, line_no, reason):
        self.path = str(path)
        self.line_no = line_no
        self.reason = reason
        where = f"{self.path}:{line_no}" if line_no is not None else self.path
        super().__init__(f"{where}: {reason}")


class SingularMatrixError(ParVecMFError):
    """Raised when the regularized normal-equation matrix cannot be inverted."""
    pass


class DimensionMismatchError(ParVecMFError, ValueError):
    """Raised when vector or matrix shapes do not agree."""
    pass


class PhaseError(ParVecMFError):
    """Raised when a row task fails; the whole phase and run are aborted."""

    def __init__(self, phase, row, message):
        self.phase = phase
        self.row = row
        super().__init__(message)


class PhaseTimeoutError(PhaseError):
    """Raised when a phase does not finish within the configured timeout."""
    pass


class UnknownIdError(KeyError):
    """Raised when an id has no dense index in an id mapping."""
    pass
