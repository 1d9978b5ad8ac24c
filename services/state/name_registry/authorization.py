"""Ownership-chain authorization for registrations."""

from __future__ import annotations

from packages.sns_shared.logging import get_logger
from services.state.name_registry.config import AuthorizationMode
from services.state.name_registry.digests import ZERO_DIGEST
from services.state.name_registry.domain import Node
from services.state.name_registry.errors import (
    AncestorChainTooDeepError,
    RegistryConsistencyError,
)
from services.state.name_registry.interfaces import NodeStore

_LOGGER = get_logger(__name__)


class AncestorAuthorizer:
    """Decide whether a caller may act on a node by walking toward the root.

    In ``ANCESTOR`` mode the owner of the node or of any ancestor is
    authorized; in ``PARENT`` mode only the node's own owner is. The walk is
    iterative and stops after ``max_depth`` parent hops.
    """

    def __init__(
        self,
        *,
        store: NodeStore,
        max_depth: int,
        mode: AuthorizationMode = AuthorizationMode.ANCESTOR,
    ) -> None:
        if max_depth <= 0:
            raise ValueError("max_depth must be > 0")
        self._store = store
        self._max_depth = max_depth
        self._mode = mode

    def is_authorized(self, *, caller: str, digest: bytes, node: Node) -> bool:
        """Return whether ``caller`` owns ``node`` or a permitted ancestor.

        ``digest`` is the key ``node`` is stored under. Top-level nodes carry
        the zero digest as their parent too, so the root is recognized by its
        own key rather than by its ``parent_digest``.
        """
        current_digest = digest
        current = node
        for _ in range(self._max_depth):
            if current.owner == caller:
                return True
            if self._mode is AuthorizationMode.PARENT or current_digest == ZERO_DIGEST:
                return False

            parent_digest = current.parent_digest
            parent = self._store.get(parent_digest)
            if parent is None:
                _LOGGER.error(
                    "Ancestor missing from registry: namespace=%s node=%s parent=%s",
                    self._store.namespace,
                    current_digest.hex(),
                    parent_digest.hex(),
                )
                raise RegistryConsistencyError(
                    f"node {current_digest.hex()} references missing parent "
                    f"{parent_digest.hex()}"
                )
            current_digest, current = parent_digest, parent

        if current.owner == caller:
            return True
        if current_digest == ZERO_DIGEST:
            return False
        raise AncestorChainTooDeepError(
            f"ancestor chain of {digest.hex()} exceeds {self._max_depth} levels"
        )
