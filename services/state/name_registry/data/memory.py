"""In-process node store for tests and embedded use."""

from __future__ import annotations

from services.state.name_registry.digests import ZERO_DIGEST
from services.state.name_registry.domain import Node
from services.state.name_registry.errors import (
    RegistryAlreadyInitializedError,
    RegistryNotInitializedError,
)
from services.state.name_registry.interfaces import NodeStore


class InMemoryNodeStore(NodeStore):
    """Dict-backed registry aggregates keyed by namespace."""

    def __init__(
        self,
        *,
        namespace: str = "rmap",
        aggregates: dict[str, dict[bytes, Node]] | None = None,
    ) -> None:
        self._namespace = namespace
        self._aggregates = {} if aggregates is None else aggregates

    @property
    def namespace(self) -> str:
        return self._namespace

    def exists(self) -> bool:
        return self._namespace in self._aggregates

    def create(self, *, root: Node) -> None:
        if self.exists():
            raise RegistryAlreadyInitializedError(
                f"registry already initialized: namespace={self._namespace}"
            )
        self._aggregates[self._namespace] = {ZERO_DIGEST: root}

    def get(self, digest: bytes) -> Node | None:
        return self._nodes().get(digest)

    def set(self, digest: bytes, node: Node) -> None:
        self._nodes()[digest] = node

    def has(self, digest: bytes) -> bool:
        return digest in self._nodes()

    def ping(self) -> bool:
        return True

    def _nodes(self) -> dict[bytes, Node]:
        try:
            return self._aggregates[self._namespace]
        except KeyError:
            raise RegistryNotInitializedError(
                f"registry not initialized: namespace={self._namespace}"
            ) from None
