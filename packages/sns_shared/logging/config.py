"""Stdout handler setup for SNS processes.

One handler on the root logger, writing either compact JSON lines or a
plain text line with the bound context appended as ``key=value`` pairs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from . import context as ctx


class ContextFilter(logging.Filter):
    """Attach the current logging context to every record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        bound = ctx.get_context()
        record.context = bound
        record.__dict__.update(bound)
        return True


def _bound(record: logging.LogRecord) -> dict[str, str]:
    value = getattr(record, "context", None)
    return value if isinstance(value, dict) else {}


class JsonFormatter(logging.Formatter):
    """One JSON object per line: core fields, then context, then any traceback."""

    def format(self, record: logging.LogRecord) -> str:
        document: dict[str, object] = {
            ctx.TIMESTAMP: datetime.now(UTC).isoformat(),
            ctx.LEVEL: record.levelname,
            ctx.LOGGER: record.name,
            ctx.MESSAGE: record.getMessage(),
            **_bound(record),
        }
        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)
        return json.dumps(document, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Text lines for local runs; context keys are sorted."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [f"{key}={value}" for key, value in sorted(_bound(record).items())]
        return " ".join([line, *pairs])


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Install the stdout handler, replacing whatever the root logger had.

    ``service`` and ``environment`` are bound into the logging context when
    given.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers[:] = [handler]

    ctx.bind_context(**{ctx.SERVICE: service or None, ctx.ENVIRONMENT: environment or None})


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
