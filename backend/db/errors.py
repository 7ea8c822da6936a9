"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"


def _sqlstate(error: BaseException | None) -> str | None:
    if error is None:
        return None
    sqlstate = getattr(error, "sqlstate", None) or getattr(error, "pgcode", None)
    if sqlstate:
        return str(sqlstate)
    # asyncpg errors reach SQLAlchemy wrapped in an adapter exception.
    return _sqlstate(error.__cause__) if error.__cause__ is not error else None


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError is a unique-constraint conflict."""
    original = getattr(error, "orig", None)
    if _sqlstate(original) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(original or error).lower()
    return "duplicate key" in message or "unique constraint" in message


__all__ = ["UNIQUE_VIOLATION_SQLSTATE", "is_unique_violation"]
