"""Unit tests for ancestor-chain authorization."""

from __future__ import annotations

import pytest

from services.state.name_registry.authorization import AncestorAuthorizer
from services.state.name_registry.config import AuthorizationMode
from services.state.name_registry.data import InMemoryNodeStore
from services.state.name_registry.digests import (
    ZERO_DIGEST,
    derive_child_digest,
    label_digest,
)
from services.state.name_registry.domain import Node
from services.state.name_registry.errors import (
    AncestorChainTooDeepError,
    RegistryConsistencyError,
)


def _chain(store: InMemoryNodeStore, owners: list[str]) -> list[tuple[bytes, Node]]:
    """Register one node per owner, each a child of the previous one."""
    store.create(root=Node(owner="root", parent_digest=ZERO_DIGEST))
    parent = ZERO_DIGEST
    entries: list[tuple[bytes, Node]] = []
    for index, owner in enumerate(owners):
        key = derive_child_digest(parent, label_digest(f"label{index}"))
        node = Node(owner=owner, parent_digest=parent, resolved_target=f"addr-{owner}")
        store.set(key, node)
        entries.append((key, node))
        parent = key
    return entries


def test_owner_of_node_is_authorized() -> None:
    """The node's own owner should be authorized."""
    store = InMemoryNodeStore()
    (key, node), = _chain(store, ["alice"])
    authorizer = AncestorAuthorizer(store=store, max_depth=8)

    assert authorizer.is_authorized(caller="alice", digest=key, node=node) is True


def test_every_ancestor_owner_is_authorized() -> None:
    """Owners anywhere up the chain, including the root, should be authorized."""
    store = InMemoryNodeStore()
    entries = _chain(store, ["alice", "bob", "carol"])
    key, node = entries[-1]
    authorizer = AncestorAuthorizer(store=store, max_depth=8)

    for caller in ("carol", "bob", "alice", "root"):
        assert authorizer.is_authorized(caller=caller, digest=key, node=node) is True
    assert authorizer.is_authorized(caller="mallory", digest=key, node=node) is False


def test_root_is_terminal() -> None:
    """A stranger checked against the root itself should be denied."""
    store = InMemoryNodeStore()
    _chain(store, [])
    root = store.get(ZERO_DIGEST)
    assert root is not None
    authorizer = AncestorAuthorizer(store=store, max_depth=8)

    assert authorizer.is_authorized(caller="root", digest=ZERO_DIGEST, node=root)
    assert not authorizer.is_authorized(caller="alice", digest=ZERO_DIGEST, node=root)


def test_parent_mode_ignores_ancestors() -> None:
    """Parent mode should only accept the node's own owner."""
    store = InMemoryNodeStore()
    entries = _chain(store, ["alice", "bob"])
    key, node = entries[-1]
    authorizer = AncestorAuthorizer(
        store=store, max_depth=8, mode=AuthorizationMode.PARENT
    )

    assert authorizer.is_authorized(caller="bob", digest=key, node=node) is True
    assert authorizer.is_authorized(caller="alice", digest=key, node=node) is False
    assert authorizer.is_authorized(caller="root", digest=key, node=node) is False


def test_missing_ancestor_is_a_consistency_error() -> None:
    """A dangling parent reference should abort the walk."""
    store = InMemoryNodeStore()
    _chain(store, [])
    orphan_parent = label_digest("ghost")
    orphan = Node(owner="alice", parent_digest=orphan_parent)
    orphan_key = derive_child_digest(orphan_parent, label_digest("child"))
    store.set(orphan_key, orphan)
    authorizer = AncestorAuthorizer(store=store, max_depth=8)

    with pytest.raises(RegistryConsistencyError, match="missing parent"):
        authorizer.is_authorized(caller="bob", digest=orphan_key, node=orphan)


def test_walk_is_bounded_by_max_depth() -> None:
    """Chains deeper than the configured bound should abort."""
    store = InMemoryNodeStore()
    entries = _chain(store, [f"owner{i}" for i in range(5)])
    key, node = entries[-1]

    shallow = AncestorAuthorizer(store=store, max_depth=2)
    with pytest.raises(AncestorChainTooDeepError):
        shallow.is_authorized(caller="stranger", digest=key, node=node)

    deep = AncestorAuthorizer(store=store, max_depth=5)
    assert deep.is_authorized(caller="root", digest=key, node=node) is True
    assert deep.is_authorized(caller="stranger", digest=key, node=node) is False


def test_max_depth_must_be_positive() -> None:
    """Non-positive bounds should be rejected at construction."""
    with pytest.raises(ValueError, match="max_depth must be > 0"):
        AncestorAuthorizer(store=InMemoryNodeStore(), max_depth=0)
