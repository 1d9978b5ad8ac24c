"""Shared error codes.

Registry-specific codes live in ``services.state.name_registry.errors``.
"""

VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
ALREADY_EXISTS = "ALREADY_EXISTS"
POLICY_VIOLATION = "POLICY_VIOLATION"
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
