"""Pydantic request-validation models for Name Registry Service API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from services.state.name_registry.digests import coerce_digest
from services.state.name_registry.domain import Identity, Target

DIGEST_FIELDS = frozenset({"digest", "parent_digest", "leaf_digest"})


class _ValidationModel(BaseModel):
    """Base request model with strict shape semantics."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class DigestRequest(_ValidationModel):
    """Validated request shape for operations keyed by one node digest."""

    digest: bytes

    @field_validator("digest", mode="before")
    @classmethod
    def _validate_digest(cls, value: object, info: ValidationInfo) -> bytes:
        """Require a non-empty canonical digest."""
        return coerce_digest(value, field_name=str(info.field_name))


class ChildRequest(_ValidationModel):
    """Validated (parent, leaf) pair naming one prospective child node."""

    parent_digest: bytes
    leaf_digest: bytes

    @field_validator("parent_digest", "leaf_digest", mode="before")
    @classmethod
    def _validate_digests(cls, value: object, info: ValidationInfo) -> bytes:
        """Require non-empty canonical digests."""
        return coerce_digest(value, field_name=str(info.field_name))


class RegisterRequest(ChildRequest):
    """Validated register request shape.

    Owner and target are stored verbatim; only a literal ``None`` target means
    no target is assigned.
    """

    owner: Identity
    resolved_target: Target | None = None


class InitRequest(_ValidationModel):
    """Validated init request shape; the caller becomes the root owner."""

    principal: Identity
