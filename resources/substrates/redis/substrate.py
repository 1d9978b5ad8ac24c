"""Transport-agnostic substrate contract for Redis-backed operations."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict


class RedisHealthStatus(BaseModel):
    """Redis substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class RedisSubstrate(Protocol):
    """Protocol for the Redis hash operations the registry relies on."""

    def key_exists(self, *, key: str) -> bool:
        """Return whether one top-level key exists."""

    def hash_get(self, *, key: str, field: str) -> str | None:
        """Read one hash field or ``None`` when missing."""

    def hash_set(self, *, key: str, field: str, value: str) -> None:
        """Write one hash field, replacing any previous value."""

    def hash_set_if_absent(self, *, key: str, field: str, value: str) -> bool:
        """Write one hash field only when missing and return whether it was written."""

    def hash_exists(self, *, key: str, field: str) -> bool:
        """Return whether one hash field exists."""

    def ping(self) -> bool:
        """Return substrate liveness from Redis ``PING``."""

    def health(self) -> RedisHealthStatus:
        """Check Redis substrate readiness and detail."""
