"""SQL node store over Name Registry Service tables."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Callable

from sqlalchemy import Engine, insert, select, update
from sqlalchemy.orm import Session

from resources.substrates.postgres import ping
from services.state.name_registry.digests import ZERO_DIGEST
from services.state.name_registry.domain import Node
from services.state.name_registry.errors import (
    RegistryAlreadyInitializedError,
    RegistryNotInitializedError,
)
from services.state.name_registry.interfaces import NodeStore

from .schema import registry_namespaces, registry_nodes

SessionScope = Callable[[], AbstractContextManager[Session]]


class SqlNodeStore(NodeStore):
    """Node store over ``registry_namespaces`` and ``registry_nodes``.

    ``sessions`` yields one transactional session per call, for example
    ``ServiceSchemaSessionProvider.session``. Liveness goes through the
    substrate ``ping`` on ``engine``.
    """

    def __init__(
        self,
        *,
        sessions: SessionScope,
        namespace: str,
        engine: Engine,
        health_timeout_seconds: float = 1.0,
    ) -> None:
        self._sessions = sessions
        self._namespace = namespace
        self._engine = engine
        self._health_timeout_seconds = health_timeout_seconds

    @property
    def namespace(self) -> str:
        return self._namespace

    def exists(self) -> bool:
        """Return whether the namespace row exists."""
        with self._sessions() as session:
            return self._namespace_exists(session)

    def create(self, *, root: Node) -> None:
        """Insert the namespace row and the root node in one transaction."""
        with self._sessions() as session:
            if self._namespace_exists(session):
                raise RegistryAlreadyInitializedError(
                    f"registry already initialized: namespace={self._namespace}"
                )
            session.execute(insert(registry_namespaces).values(namespace=self._namespace))
            session.execute(
                insert(registry_nodes).values(digest=ZERO_DIGEST, **self._row(root))
            )

    def get(self, digest: bytes) -> Node | None:
        """Read one node row by key."""
        with self._sessions() as session:
            self._require_initialized(session)
            row = (
                session.execute(
                    select(registry_nodes).where(
                        registry_nodes.c.namespace == self._namespace,
                        registry_nodes.c.digest == digest,
                    )
                )
                .mappings()
                .one_or_none()
            )
            return None if row is None else _to_node(row)

    def set(self, digest: bytes, node: Node) -> None:
        """Insert or replace one node row."""
        with self._sessions() as session:
            self._require_initialized(session)
            result = session.execute(
                update(registry_nodes)
                .where(
                    registry_nodes.c.namespace == self._namespace,
                    registry_nodes.c.digest == digest,
                )
                .values(
                    owner=node.owner,
                    parent_digest=node.parent_digest,
                    resolved_target=node.resolved_target,
                    depth=node.depth,
                )
            )
            if int(result.rowcount or 0) == 0:
                session.execute(
                    insert(registry_nodes).values(digest=digest, **self._row(node))
                )

    def has(self, digest: bytes) -> bool:
        """Return whether one node row exists."""
        with self._sessions() as session:
            self._require_initialized(session)
            found = session.execute(
                select(registry_nodes.c.digest).where(
                    registry_nodes.c.namespace == self._namespace,
                    registry_nodes.c.digest == digest,
                )
            ).first()
            return found is not None

    def ping(self) -> bool:
        """Return whether the backing database answers within the health timeout."""
        return ping(self._engine, timeout_seconds=self._health_timeout_seconds)

    def _row(self, node: Node) -> dict[str, Any]:
        return {
            "namespace": self._namespace,
            "owner": node.owner,
            "parent_digest": node.parent_digest,
            "resolved_target": node.resolved_target,
            "depth": node.depth,
        }

    def _namespace_exists(self, session: Session) -> bool:
        found = session.execute(
            select(registry_namespaces.c.namespace).where(
                registry_namespaces.c.namespace == self._namespace
            )
        ).first()
        return found is not None

    def _require_initialized(self, session: Session) -> None:
        if not self._namespace_exists(session):
            raise RegistryNotInitializedError(
                f"registry not initialized: namespace={self._namespace}"
            )


def _to_node(row: Any) -> Node:
    """Map one SQL row to a strict domain node."""
    target = row["resolved_target"]
    return Node(
        owner=str(row["owner"]),
        parent_digest=bytes(row["parent_digest"]),
        resolved_target=None if target is None else str(target),
        depth=int(row["depth"]),
    )
