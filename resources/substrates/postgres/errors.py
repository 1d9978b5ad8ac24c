"""Mapping of SQL driver exceptions onto shared error semantics."""

from __future__ import annotations

from packages.sns_shared.errors import (
    ErrorDetail,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
)

_DRIVER_MODULES = ("sqlalchemy", "psycopg")


def is_postgres_error(exc: Exception) -> bool:
    """Return whether ``exc`` was raised by SQLAlchemy or psycopg."""
    return type(exc).__module__.startswith(_DRIVER_MODULES)


def normalize_postgres_error(exc: Exception) -> ErrorDetail:
    """Classify one driver exception by type name and message."""
    type_name = type(exc).__name__
    text = str(exc)
    metadata = {"exception_type": type_name}

    if "UniqueViolation" in type_name or "duplicate key value" in text:
        return conflict_error(
            "row already exists", code=codes.ALREADY_EXISTS, metadata=metadata
        )
    if "OperationalError" in type_name or "timeout" in text.lower():
        return dependency_error(
            "postgres unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            metadata=metadata,
        )
    if type_name in {"InterfaceError", "ProgrammingError", "DataError"}:
        return dependency_error(
            "postgres rejected the request",
            code=codes.DEPENDENCY_FAILURE,
            retryable=False,
            metadata=metadata,
        )
    return internal_error(
        "unexpected postgres failure",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
