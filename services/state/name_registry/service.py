"""Authoritative in-process Python API for Name Registry Service."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.sns_shared.config import SnsSettings
from packages.sns_shared.envelope import Envelope, EnvelopeMeta
from services.state.name_registry.domain import HealthStatus, NodeRecord
from services.state.name_registry.interfaces import NodeStore


class NameRegistryService(ABC):
    """Public API for the hierarchical name registry.

    The caller identity of every operation is ``meta.principal``.
    """

    @abstractmethod
    def init(self, *, meta: EnvelopeMeta) -> Envelope[NodeRecord]:
        """Create the registry with a root owned by the caller, exactly once."""

    @abstractmethod
    def resolve(self, *, meta: EnvelopeMeta, digest: bytes | str) -> Envelope[str | None]:
        """Return the resolved target of one node."""

    @abstractmethod
    def register(
        self,
        *,
        meta: EnvelopeMeta,
        parent_digest: bytes | str,
        leaf_digest: bytes | str,
        owner: str,
        resolved_target: str | None = None,
    ) -> Envelope[bytes]:
        """Create or replace the child of ``parent_digest`` and return its key."""

    @abstractmethod
    def get_node(self, *, meta: EnvelopeMeta, digest: bytes | str) -> Envelope[NodeRecord]:
        """Return the full record stored under one digest."""

    @abstractmethod
    def is_available(
        self,
        *,
        meta: EnvelopeMeta,
        parent_digest: bytes | str,
        leaf_digest: bytes | str,
    ) -> Envelope[bool]:
        """Return whether the child key for (parent, leaf) is still unregistered."""

    @abstractmethod
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return registry and backing store readiness."""


def build_name_registry_service(
    *,
    settings: SnsSettings,
    store: NodeStore | None = None,
) -> NameRegistryService:
    """Build the default implementation with the configured node store."""
    from services.state.name_registry.config import resolve_name_registry_settings
    from services.state.name_registry.implementation import (
        DefaultNameRegistryService,
    )

    service_settings = resolve_name_registry_settings(settings)
    if store is None:
        store = _build_store(
            settings=settings,
            backend=service_settings.store,
            namespace=service_settings.namespace,
        )
    return DefaultNameRegistryService(settings=service_settings, store=store)


def _build_store(*, settings: SnsSettings, backend: str, namespace: str) -> NodeStore:
    """Construct the node store selected by ``components.service.name_registry.store``."""
    from services.state.name_registry.data import (
        InMemoryNodeStore,
        RedisNodeStore,
        RegistryPostgresRuntime,
        SqlNodeStore,
    )

    if backend == "memory":
        return InMemoryNodeStore(namespace=namespace)
    if backend == "redis":
        from resources.substrates.redis import (
            RedisClientSubstrate,
            resolve_redis_settings,
        )

        redis_settings = resolve_redis_settings(settings)
        return RedisNodeStore(
            substrate=RedisClientSubstrate(settings=redis_settings),
            namespace=namespace,
            key_prefix=redis_settings.key_prefix,
        )

    runtime = RegistryPostgresRuntime.from_settings(settings)
    runtime.ensure_schema()
    return SqlNodeStore(
        sessions=runtime.schema_sessions.session,
        namespace=namespace,
        engine=runtime.engine,
        health_timeout_seconds=runtime.health_timeout_seconds,
    )
