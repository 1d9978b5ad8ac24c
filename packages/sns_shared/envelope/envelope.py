"""Typed result envelope and its builders.

Every public service operation returns an ``Envelope[T]``: the request
metadata echoed back, an optional ``Payload[T]`` and a list of errors. An
envelope is successful exactly when ``errors`` is empty.
"""

from __future__ import annotations

from typing import Generic, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from packages.sns_shared.errors import ErrorDetail

from .meta import EnvelopeMeta

T = TypeVar("T")


class Payload(BaseModel, Generic[T]):
    """Wrapper that distinguishes a ``None`` result from no result at all."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: T


class Envelope(BaseModel, Generic[T]):
    """Result of one public operation."""

    model_config = ConfigDict(frozen=True)

    metadata: EnvelopeMeta
    payload: Payload[T] | None
    errors: list[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def has_payload(self) -> bool:
        return self.payload is not None


def success(*, meta: EnvelopeMeta, payload: T) -> Envelope[T]:
    """Wrap ``payload``, which may itself be ``None``, in an ok envelope."""
    return Envelope[T](metadata=meta, payload=Payload[T](value=payload))


def failure(*, meta: EnvelopeMeta, errors: Iterable[ErrorDetail]) -> Envelope[T]:
    """Return a payload-less envelope carrying ``errors``."""
    return Envelope[T](metadata=meta, payload=None, errors=list(errors))
