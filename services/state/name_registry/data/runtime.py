"""Postgres runtime wiring owned by Name Registry Service."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Engine, text
from sqlalchemy.orm import Session, sessionmaker

from packages.sns_shared.config import SnsSettings
from resources.substrates.postgres import (
    ServiceSchemaSessionProvider,
    create_postgres_engine,
    create_session_factory,
    resolve_postgres_settings,
)
from services.state.name_registry.component import SERVICE_COMPONENT_ID

from .schema import metadata


@dataclass(frozen=True)
class RegistryPostgresRuntime:
    """Concrete handle for schema-scoped Postgres access."""

    engine: Engine
    session_factory: sessionmaker[Session]
    schema_sessions: ServiceSchemaSessionProvider
    health_timeout_seconds: float = 1.0

    @classmethod
    def from_settings(cls, settings: SnsSettings) -> "RegistryPostgresRuntime":
        """Build the runtime from typed application settings."""
        postgres_settings = resolve_postgres_settings(settings)
        engine = create_postgres_engine(postgres_settings)
        session_factory = create_session_factory(engine)
        return cls(
            engine=engine,
            session_factory=session_factory,
            schema_sessions=ServiceSchemaSessionProvider(
                session_factory=session_factory,
                schema=registry_postgres_schema(),
            ),
            health_timeout_seconds=postgres_settings.health_timeout_seconds,
        )

    def ensure_schema(self) -> None:
        """Create the service schema and its tables when missing."""
        # Tables come straight from ``metadata``; there are no versioned
        # migrations, so column changes need a manual upgrade.
        schema = self.schema_sessions.schema
        with self.engine.begin() as connection:
            connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
            connection.execute(text(f"SET LOCAL search_path TO {schema}, public"))
            metadata.create_all(connection)


def registry_postgres_schema() -> str:
    """Resolve the service-owned schema name from component identity."""
    return SERVICE_COMPONENT_ID
