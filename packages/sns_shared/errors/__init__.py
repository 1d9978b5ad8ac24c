"""Shared error values for SNS components."""

from . import codes
from .detail import (
    ErrorCategory,
    ErrorDetail,
    conflict_error,
    dependency_error,
    internal_error,
    not_found_error,
    policy_error,
    validation_error,
)

__all__ = [
    "ErrorCategory",
    "ErrorDetail",
    "codes",
    "conflict_error",
    "dependency_error",
    "internal_error",
    "not_found_error",
    "policy_error",
    "validation_error",
]
