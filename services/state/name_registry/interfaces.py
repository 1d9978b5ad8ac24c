"""Transport-neutral protocol interfaces used by Name Registry Service."""

from __future__ import annotations

from typing import Protocol

from services.state.name_registry.domain import Node


class NodeStore(Protocol):
    """Protocol over the persistent registry aggregate of one namespace.

    ``get``, ``set`` and ``has`` raise ``RegistryNotInitializedError`` when the
    aggregate has not been created. The calling environment serializes
    invocations, so implementations need no locking of their own.
    """

    @property
    def namespace(self) -> str:
        """Return the namespace identifier the aggregate is stored under."""

    def exists(self) -> bool:
        """Return whether the registry aggregate has been created."""

    def create(self, *, root: Node) -> None:
        """Create the aggregate holding only ``root`` at the zero digest."""

    def get(self, digest: bytes) -> Node | None:
        """Read one node by key."""

    def set(self, digest: bytes, node: Node) -> None:
        """Write one node, replacing any node already stored at ``digest``."""

    def has(self, digest: bytes) -> bool:
        """Return whether a node is stored at ``digest``."""

    def ping(self) -> bool:
        """Return backing substrate liveness."""
