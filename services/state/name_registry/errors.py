"""Registry error codes and fatal exception types.

Recoverable outcomes are returned as ``ErrorDetail`` values whose
``metadata["abi_code"]`` carries the stable small-integer code remote callers
switch on. Fatal conditions are raised and abort the invocation.
"""

from __future__ import annotations

from enum import IntEnum

from packages.sns_shared.errors import (
    ErrorDetail,
    conflict_error,
    not_found_error,
    policy_error,
    validation_error,
)

INVALID_HASH_INPUT = "INVALID_HASH_INPUT"
NOT_FOUND = "NOT_FOUND"
PARENT_NOT_FOUND = "PARENT_NOT_FOUND"
NOT_AUTHORIZED = "NOT_AUTHORIZED"
ALREADY_EXISTS = "ALREADY_EXISTS"
NAMESPACE_TOO_DEEP = "NAMESPACE_TOO_DEEP"

ABI_CODE_KEY = "abi_code"


class RegistryErrorCode(IntEnum):
    """Stable scalar codes for registry failures."""

    INVALID_HASH_INPUT = 1
    NOT_FOUND = 2
    PARENT_NOT_FOUND = 3
    NOT_AUTHORIZED = 4
    ALREADY_EXISTS = 5
    NAMESPACE_TOO_DEEP = 6


class RegistryFatalError(RuntimeError):
    """Broken registry invariant; the invocation must abort."""


class RegistryAlreadyInitializedError(RegistryFatalError):
    """Raised when initialization runs against an existing registry."""


class RegistryNotInitializedError(RegistryFatalError):
    """Raised when the registry is read or written before initialization."""


class RegistryConsistencyError(RegistryFatalError):
    """Raised when a stored node references a parent that does not exist."""


class AncestorChainTooDeepError(RegistryConsistencyError):
    """Raised when an ancestor walk exceeds the configured namespace depth."""


def invalid_hash_input(message: str, *, field: str) -> ErrorDetail:
    """Malformed or empty digest argument."""
    return validation_error(
        message,
        code=INVALID_HASH_INPUT,
        metadata=_abi(RegistryErrorCode.INVALID_HASH_INPUT, field=field),
    )


def node_not_found(digest: bytes) -> ErrorDetail:
    """Queried node is absent."""
    return not_found_error(
        "node not found",
        code=NOT_FOUND,
        metadata=_abi(RegistryErrorCode.NOT_FOUND, digest=digest.hex()),
    )


def parent_not_found(parent_digest: bytes) -> ErrorDetail:
    """Referenced parent node is absent."""
    return not_found_error(
        "parent node not found",
        code=PARENT_NOT_FOUND,
        metadata=_abi(RegistryErrorCode.PARENT_NOT_FOUND, parent_digest=parent_digest.hex()),
    )


def not_authorized(*, principal: str, parent_digest: bytes) -> ErrorDetail:
    """Caller owns neither the parent nor any permitted ancestor."""
    return policy_error(
        "caller is not authorized to register under parent",
        code=NOT_AUTHORIZED,
        metadata=_abi(
            RegistryErrorCode.NOT_AUTHORIZED,
            principal=principal,
            parent_digest=parent_digest.hex(),
        ),
    )


def node_already_exists(digest: bytes) -> ErrorDetail:
    """Child key is taken and overwrites are disabled."""
    return conflict_error(
        "node already registered",
        code=ALREADY_EXISTS,
        metadata=_abi(RegistryErrorCode.ALREADY_EXISTS, digest=digest.hex()),
    )


def namespace_too_deep(*, parent_digest: bytes, max_depth: int) -> ErrorDetail:
    """Child would sit deeper than the configured namespace depth."""
    return policy_error(
        f"registration would exceed the namespace depth limit of {max_depth}",
        code=NAMESPACE_TOO_DEEP,
        metadata=_abi(
            RegistryErrorCode.NAMESPACE_TOO_DEEP,
            parent_digest=parent_digest.hex(),
            max_depth=str(max_depth),
        ),
    )


def abi_code_of(detail: ErrorDetail) -> RegistryErrorCode | None:
    """Return the scalar registry code carried by one error, if any."""
    raw = detail.metadata.get(ABI_CODE_KEY)
    if raw is None:
        return None
    return RegistryErrorCode(int(raw))


def _abi(code: RegistryErrorCode, **extra: str) -> dict[str, str]:
    return {ABI_CODE_KEY: str(int(code)), **extra}
