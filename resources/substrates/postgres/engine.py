"""Engine construction and liveness probing for the Postgres substrate."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, text

from resources.substrates.postgres.config import PostgresSettings


def create_postgres_engine(config: PostgresSettings) -> Engine:
    """Return a pooled psycopg engine configured from ``config``."""
    return create_engine(
        config.url or "",
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout_seconds,
        pool_pre_ping=config.pool_pre_ping,
        connect_args={
            "connect_timeout": int(config.connect_timeout_seconds),
            "sslmode": config.sslmode,
        },
    )


def ping(engine: Engine, *, timeout_seconds: float = 1.0) -> bool:
    """Run ``SELECT 1`` under a session statement timeout.

    Any failure, including a driver that rejects ``set_config``, reads as not
    live.
    """
    statement_timeout = f"{max(1, int(timeout_seconds * 1000))}ms"
    try:
        with engine.connect() as conn:
            conn.execute(
                text("SELECT set_config('statement_timeout', :timeout_value, false)"),
                {"timeout_value": statement_timeout},
            )
            conn.execute(text("SELECT 1"))
    except Exception:  # noqa: BLE001
        return False
    return True
