from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.services.database import Database


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an insert would duplicate an existing key."""


class RepositoryValidationError(RepositoryError):
    """Raised when input is rejected before any statement runs."""


class PostgresRepository:
    def __init__(self, database: Database) -> None:
        self.database = database

    @staticmethod
    def _reject_fields(fields: dict[str, Any], forbidden: set[str], message: str) -> None:
        if forbidden.intersection(fields):
            raise RepositoryValidationError(message)

    @staticmethod
    def _reject_unknown_fields(fields: dict[str, Any], allowed: set[str]) -> None:
        unknown = sorted(set(fields) - allowed)
        if unknown:
            raise RepositoryValidationError(f"unsupported fields: {', '.join(unknown)}")

    @staticmethod
    def _coerce_int(value: Any) -> int | None:
        """Return ``value`` as an int, or ``None`` when it is not a whole number.

        Booleans and fractional numbers are refused rather than truncated.
        """
        if value is None or isinstance(value, bool):
            return None
        try:
            coerced = int(value)
        except (TypeError, ValueError, OverflowError):
            return None
        if isinstance(value, (float, Decimal)) and coerced != value:
            return None
        return coerced
