"""Request metadata carried into and echoed out of every service call.

``principal`` is the caller identity supplied by the calling environment;
the registry compares it for equality with node owners and never
authenticates it itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packages.sns_shared.errors import ErrorDetail, codes, validation_error


class EnvelopeKind(str, Enum):
    """Whether a request reads registry state or changes it."""

    UNSPECIFIED = "unspecified"
    COMMAND = "command"
    QUERY = "query"


@dataclass(frozen=True)
class EnvelopeMeta:
    envelope_id: str
    trace_id: str
    parent_id: str
    timestamp: datetime
    kind: EnvelopeKind
    source: str
    principal: str


def new_meta(
    *,
    kind: EnvelopeKind,
    source: str,
    principal: str,
    trace_id: str | None = None,
    parent_id: str = "",
    envelope_id: str | None = None,
    timestamp: datetime | None = None,
) -> EnvelopeMeta:
    """Build metadata, generating ids and stamping the current UTC time as needed."""
    if timestamp is None:
        timestamp = datetime.now(UTC)
    elif timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    else:
        timestamp = timestamp.astimezone(UTC)
    return EnvelopeMeta(
        envelope_id=envelope_id or uuid4().hex,
        trace_id=trace_id or uuid4().hex,
        parent_id=parent_id,
        timestamp=timestamp,
        kind=kind,
        source=source,
        principal=principal,
    )


_Required = Annotated[str, Field(min_length=1)]


class _MetaCheck(BaseModel):
    """Read-only view of ``EnvelopeMeta`` used to collect field problems."""

    model_config = ConfigDict(from_attributes=True)

    envelope_id: _Required
    trace_id: _Required
    parent_id: str
    timestamp: datetime
    kind: EnvelopeKind
    source: _Required
    principal: _Required

    @field_validator("kind")
    @classmethod
    def _kind_is_set(cls, value: EnvelopeKind) -> EnvelopeKind:
        if value is EnvelopeKind.UNSPECIFIED:
            raise ValueError("unspecified")
        return value


def validate_meta(meta: EnvelopeMeta) -> list[ErrorDetail]:
    """Return one ``INVALID_ARGUMENT`` error per unusable metadata field."""
    try:
        _MetaCheck.model_validate(meta)
    except ValidationError as exc:
        return [_meta_error(str(err["loc"][0]) if err["loc"] else "kind") for err in exc.errors()]
    return []


def _meta_error(field: str) -> ErrorDetail:
    if field == "kind":
        message = "metadata.kind must be specified"
    elif field == "parent_id":
        message = "metadata.parent_id is invalid"
    else:
        message = f"metadata.{field} is required"
    return validation_error(message, code=codes.INVALID_ARGUMENT, metadata={"field": field})
