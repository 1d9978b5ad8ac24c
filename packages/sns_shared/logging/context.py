"""Structured logging context shared by every log line in a task.

Values live in a ``ContextVar`` holding a string-to-string mapping. The
formatters in ``config`` copy it onto each record, so callers bind a
namespace or trace id once instead of repeating it in every message.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

# Field names emitted by the formatters and the public API concerns.
TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"
TRACE_ID = "trace_id"
ENVELOPE_ID = "envelope_id"
PRINCIPAL = "principal"
COMPONENT_ID = "component_id"
API_NAME = "api_name"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"
OUTCOME = "outcome"
ERROR_CATEGORY = "error_category"
STAGE = "stage"
CONCERN = "concern"
SERVICE = "service"
ENVIRONMENT = "environment"

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("sns_log_context", default={})


def get_context() -> dict[str, str]:
    """Return a copy of the bound fields."""
    return dict(_CONTEXT.get())


def _merged(values: Mapping[str, object]) -> dict[str, str]:
    merged = dict(_CONTEXT.get())
    merged.update({str(k): str(v) for k, v in values.items() if v is not None})
    return merged


def bind_context(**values: object) -> None:
    """Add ``values`` to the context as strings, skipping ``None``."""
    if values:
        _CONTEXT.set(_merged(values))


def clear_context(*keys: str) -> None:
    """Drop the named keys, or everything when no key is given."""
    if keys:
        _CONTEXT.set({k: v for k, v in _CONTEXT.get().items() if k not in keys})
    else:
        _CONTEXT.set({})


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the body of a ``with`` block only."""
    token = _CONTEXT.set(_merged(values))
    try:
        yield
    finally:
        _CONTEXT.reset(token)
