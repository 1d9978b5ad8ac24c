"""Redis-hash node store."""

from __future__ import annotations

import json

from resources.substrates.redis import RedisSubstrate
from services.state.name_registry.digests import ZERO_DIGEST
from services.state.name_registry.domain import Node
from services.state.name_registry.errors import (
    RegistryAlreadyInitializedError,
    RegistryNotInitializedError,
)
from services.state.name_registry.interfaces import NodeStore


class RedisNodeStore(NodeStore):
    """Node store keeping one namespace in one Redis hash.

    Hash key is ``<key_prefix>:<namespace>:nodes``, fields are digest hex and
    values are JSON node documents. The root field is always present once the
    registry is created, so hash existence doubles as the initialized flag.
    """

    def __init__(
        self, *, substrate: RedisSubstrate, namespace: str, key_prefix: str = "sns"
    ) -> None:
        self._substrate = substrate
        self._namespace = namespace
        self._key = f"{key_prefix}:{namespace}:nodes"

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def key(self) -> str:
        """Return the Redis hash key holding this namespace."""
        return self._key

    def exists(self) -> bool:
        return self._substrate.key_exists(key=self._key)

    def create(self, *, root: Node) -> None:
        written = self._substrate.hash_set_if_absent(
            key=self._key, field=ZERO_DIGEST.hex(), value=encode_node(root)
        )
        if not written:
            raise RegistryAlreadyInitializedError(
                f"registry already initialized: namespace={self._namespace}"
            )

    def get(self, digest: bytes) -> Node | None:
        self._require_initialized()
        raw = self._substrate.hash_get(key=self._key, field=digest.hex())
        return None if raw is None else decode_node(raw)

    def set(self, digest: bytes, node: Node) -> None:
        self._require_initialized()
        self._substrate.hash_set(key=self._key, field=digest.hex(), value=encode_node(node))

    def has(self, digest: bytes) -> bool:
        self._require_initialized()
        return self._substrate.hash_exists(key=self._key, field=digest.hex())

    def ping(self) -> bool:
        return self._substrate.health().ready

    def _require_initialized(self) -> None:
        if not self.exists():
            raise RegistryNotInitializedError(
                f"registry not initialized: namespace={self._namespace}"
            )


def encode_node(node: Node) -> str:
    """Serialize one node as a compact JSON document with hex digests."""
    return json.dumps(
        {
            "owner": node.owner,
            "parent_digest": node.parent_digest.hex(),
            "resolved_target": node.resolved_target,
            "depth": node.depth,
        },
        separators=(",", ":"),
        sort_keys=True,
    )


def decode_node(raw: str) -> Node:
    """Parse one JSON node document written by ``encode_node``."""
    document = json.loads(raw)
    if not isinstance(document, dict):
        raise ValueError("node document must be a JSON object")
    return Node.model_validate(document)
