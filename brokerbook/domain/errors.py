"""Domain error taxonomy for bill generation, ledger posting and position accounting."""

from __future__ import annotations


class ValidationError(ValueError):
    """Raised when request or trade-row input is invalid; nothing is persisted.

    Attributes:
        row_indices: Zero-based indices of offending trade rows, when row-scoped.
        row_errors: Per-row reasons keyed by row index.
    """

    def __init__(
        self,
        message: str,
        row_indices: tuple[int, ...] = (),
        row_errors: dict[int, list[str]] | None = None,
    ):
        super().__init__(message)
        self.row_indices = tuple(row_indices)
        self.row_errors = dict(row_errors or {})


class PositionOrderingError(ValidationError):
    """Raised when a trade is older than the latest trade applied to its position."""


class InvalidTradeTypeError(ValueError):
    """Raised when a trade type is neither trading (`T`) nor delivery (`D`)."""


class InvalidInputError(ValueError):
    """Raised when a rate, amount or quantity cannot be used for computation."""


class ConcurrencyConflictError(RuntimeError):
    """Raised when two writers raced on the same running aggregate."""


class PersistenceError(RuntimeError):
    """Raised when the storage collaborator fails."""


class DuplicateRecordError(PersistenceError):
    """Raised when a unique business identity already exists."""


class RecordNotFoundError(LookupError):
    """Raised when a referenced master or transactional record does not exist."""


__all__ = [
    "ValidationError",
    "PositionOrderingError",
    "InvalidTradeTypeError",
    "InvalidInputError",
    "ConcurrencyConflictError",
    "PersistenceError",
    "DuplicateRecordError",
    "RecordNotFoundError",
]
