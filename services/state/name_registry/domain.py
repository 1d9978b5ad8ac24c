"""Domain contracts for Name Registry Service payloads."""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from services.state.name_registry.digests import ZERO_DIGEST, coerce_digest

IDENTITY_MAX_LENGTH = 256


def _require_visible(value: str) -> str:
    """Reject identities made only of whitespace; the value is kept verbatim."""
    if value.strip() == "":
        raise ValueError("identity must not be blank")
    return value


Identity = Annotated[
    str,
    Field(min_length=1, max_length=IDENTITY_MAX_LENGTH),
    AfterValidator(_require_visible),
]
"""Opaque caller or owner identity, compared by exact equality."""

Target = Annotated[str, Field(max_length=IDENTITY_MAX_LENGTH)]
"""Resolved target stored and returned exactly as given."""


class Node(BaseModel):
    """One registry entry.

    ``resolved_target`` is ``None`` when no target has been assigned, which is
    how the root starts out. ``depth`` counts hops from the root, which sits
    at depth 0.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    owner: Identity
    parent_digest: bytes
    resolved_target: Target | None = None
    depth: int = Field(default=0, ge=0)

    @field_validator("parent_digest", mode="before")
    @classmethod
    def _validate_parent_digest(cls, value: object) -> bytes:
        """Require a canonical 32-byte parent digest."""
        return coerce_digest(value, field_name="parent_digest")


class NodeRecord(BaseModel):
    """Node together with the key it is stored under."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    digest: bytes
    node: Node

    @field_validator("digest", mode="before")
    @classmethod
    def _validate_digest(cls, value: object) -> bytes:
        """Require a canonical 32-byte node key."""
        return coerce_digest(value, field_name="digest")

    @property
    def digest_hex(self) -> str:
        """Return the node key as lowercase hex."""
        return self.digest.hex()

    @property
    def is_root(self) -> bool:
        """Return whether this record is the registry root."""
        return self.digest == ZERO_DIGEST


class HealthStatus(BaseModel):
    """Name registry and backing store readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_ready: bool
    store_ready: bool
    initialized: bool
    detail: str
