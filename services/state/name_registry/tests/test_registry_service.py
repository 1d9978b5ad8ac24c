"""Behavior tests for Name Registry Service semantics."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from packages.sns_shared.config import SnsSettings
from packages.sns_shared.envelope import EnvelopeKind, EnvelopeMeta, new_meta
from packages.sns_shared.errors import ErrorCategory, codes
from services.state.name_registry.config import (
    AuthorizationMode,
    NameRegistrySettings,
)
from services.state.name_registry.data import InMemoryNodeStore
from services.state.name_registry.digests import (
    ZERO_DIGEST,
    derive_child_digest,
    label_digest,
)
from services.state.name_registry.domain import Node
from services.state.name_registry.errors import (
    RegistryAlreadyInitializedError,
    RegistryConsistencyError,
    RegistryErrorCode,
    RegistryNotInitializedError,
    abi_code_of,
)
from services.state.name_registry.implementation import DefaultNameRegistryService
from services.state.name_registry.service import build_name_registry_service

INITIALIZER = "GINIT"
OWNER_A = "GOWNERA"
OWNER_C = "GOWNERC"
OWNER_D = "GOWNERD"


class _FailingStore(InMemoryNodeStore):
    """Initialized store whose reads fail with one configured exception."""

    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.create(root=Node(owner=INITIALIZER, parent_digest=ZERO_DIGEST))
        self._exc = exc

    def get(self, digest: bytes) -> Node | None:
        raise self._exc

    def has(self, digest: bytes) -> bool:
        raise self._exc

    def ping(self) -> bool:
        raise self._exc


def _meta(principal: str = INITIALIZER) -> EnvelopeMeta:
    """Return valid envelope metadata for one caller identity."""
    return new_meta(kind=EnvelopeKind.COMMAND, source="test", principal=principal)


def _service(
    settings: NameRegistrySettings | None = None,
) -> tuple[DefaultNameRegistryService, InMemoryNodeStore]:
    """Build an initialized service over an in-memory store."""
    store = InMemoryNodeStore()
    service = DefaultNameRegistryService(
        settings=settings or NameRegistrySettings(store="memory"),
        store=store,
    )
    init = service.init(meta=_meta(INITIALIZER))
    assert init.ok
    return service, store


def test_init_creates_root_owned_by_caller() -> None:
    """Init should store a root with no resolved target."""
    store = InMemoryNodeStore()
    service = DefaultNameRegistryService(
        settings=NameRegistrySettings(store="memory"), store=store
    )

    result = service.init(meta=_meta(INITIALIZER))

    assert result.ok
    assert result.payload is not None
    record = result.payload.value
    assert record.is_root
    assert record.node == Node(owner=INITIALIZER, parent_digest=ZERO_DIGEST)
    assert store.get(ZERO_DIGEST) == record.node


def test_init_twice_fails_and_leaves_registry_unchanged() -> None:
    """A second init should abort without touching stored nodes."""
    service, store = _service()
    k1 = service.register(
        meta=_meta(INITIALIZER),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner=OWNER_A,
        resolved_target="addrA",
    ).payload.value
    before = {key: store.get(key) for key in (ZERO_DIGEST, k1)}

    with pytest.raises(RegistryAlreadyInitializedError):
        service.init(meta=_meta(OWNER_D))

    assert {key: store.get(key) for key in (ZERO_DIGEST, k1)} == before


def test_operations_before_init_fail_fatally() -> None:
    """Reads and writes against an uninitialized registry should abort."""
    service = DefaultNameRegistryService(
        settings=NameRegistrySettings(store="memory"),
        store=InMemoryNodeStore(),
    )

    with pytest.raises(RegistryNotInitializedError):
        service.resolve(meta=_meta(), digest=ZERO_DIGEST)
    with pytest.raises(RegistryNotInitializedError):
        service.register(
            meta=_meta(),
            parent_digest=ZERO_DIGEST,
            leaf_digest=label_digest("com"),
            owner=OWNER_A,
        )


def test_delegation_scenario() -> None:
    """Ancestor owners may register under descendants; strangers may not."""
    service, _store = _service()

    first = service.register(
        meta=_meta(INITIALIZER),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner=OWNER_A,
        resolved_target="addrA",
    )
    assert first.ok
    k1 = first.payload.value
    assert k1 == derive_child_digest(ZERO_DIGEST, label_digest("com"))
    assert service.resolve(meta=_meta(), digest=k1).payload.value == "addrA"

    second = service.register(
        meta=_meta(OWNER_A),
        parent_digest=k1,
        leaf_digest=label_digest("example"),
        owner=OWNER_A,
        resolved_target="addrB",
    )
    assert second.ok
    k2 = second.payload.value
    assert service.resolve(meta=_meta(), digest=k2).payload.value == "addrB"

    third = service.register(
        meta=_meta(INITIALIZER),
        parent_digest=k1,
        leaf_digest=label_digest("mail"),
        owner=OWNER_C,
        resolved_target="addrC",
    )
    assert third.ok
    assert service.resolve(meta=_meta(), digest=third.payload.value).payload.value == (
        "addrC"
    )

    denied = service.register(
        meta=_meta(OWNER_D),
        parent_digest=k1,
        leaf_digest=label_digest("www"),
        owner=OWNER_D,
        resolved_target="addrD",
    )
    assert denied.ok is False
    assert denied.payload is None
    assert abi_code_of(denied.errors[0]) == RegistryErrorCode.NOT_AUTHORIZED
    assert denied.errors[0].category == ErrorCategory.POLICY
    assert service.is_available(
        meta=_meta(),
        parent_digest=k1,
        leaf_digest=label_digest("www"),
    ).payload.value is True


def test_register_accepts_hex_digests() -> None:
    """Digest arguments may be supplied as hex strings."""
    service, _store = _service()

    result = service.register(
        meta=_meta(INITIALIZER),
        parent_digest="0x" + ZERO_DIGEST.hex(),
        leaf_digest=label_digest("com").hex(),
        owner=OWNER_A,
        resolved_target="addrA",
    )

    assert result.ok
    assert result.payload.value == derive_child_digest(ZERO_DIGEST, label_digest("com"))


def test_register_under_missing_parent_returns_parent_not_found() -> None:
    """Unknown parents should be reported regardless of caller."""
    service, _store = _service()

    result = service.register(
        meta=_meta(INITIALIZER),
        parent_digest=label_digest("nowhere"),
        leaf_digest=label_digest("com"),
        owner=OWNER_A,
    )

    assert result.ok is False
    assert result.errors[0].code == "PARENT_NOT_FOUND"
    assert abi_code_of(result.errors[0]) == RegistryErrorCode.PARENT_NOT_FOUND


def test_register_overwrites_existing_node_by_default() -> None:
    """Re-registering a pair should replace owner and target."""
    service, store = _service()
    args = {"parent_digest": ZERO_DIGEST, "leaf_digest": label_digest("com")}

    first = service.register(meta=_meta(), owner=OWNER_A, resolved_target="a", **args)
    second = service.register(meta=_meta(), owner=OWNER_C, resolved_target="c", **args)

    assert first.payload.value == second.payload.value
    node = store.get(second.payload.value)
    assert node is not None
    assert (node.owner, node.resolved_target) == (OWNER_C, "c")


def test_register_rejects_existing_node_when_overwrite_disabled() -> None:
    """With overwrites disabled, a taken key should be a conflict."""
    service, store = _service(
        NameRegistrySettings(store="memory", allow_overwrite=False)
    )
    args = {"parent_digest": ZERO_DIGEST, "leaf_digest": label_digest("com")}

    first = service.register(meta=_meta(), owner=OWNER_A, resolved_target="a", **args)
    second = service.register(meta=_meta(), owner=OWNER_C, resolved_target="c", **args)

    assert first.ok
    assert second.ok is False
    assert abi_code_of(second.errors[0]) == RegistryErrorCode.ALREADY_EXISTS
    assert second.errors[0].category == ErrorCategory.CONFLICT
    assert store.get(first.payload.value).owner == OWNER_A


def test_parent_mode_denies_ancestor_owners() -> None:
    """Parent-only authorization should reject grandparent owners."""
    service, _store = _service(
        NameRegistrySettings(store="memory", authorization_mode=AuthorizationMode.PARENT)
    )
    k1 = service.register(
        meta=_meta(INITIALIZER),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner=OWNER_A,
    ).payload.value

    result = service.register(
        meta=_meta(INITIALIZER),
        parent_digest=k1,
        leaf_digest=label_digest("mail"),
        owner=OWNER_C,
    )

    assert abi_code_of(result.errors[0]) == RegistryErrorCode.NOT_AUTHORIZED


def test_register_without_target_resolves_to_none() -> None:
    """Nodes registered without a target should resolve to ``None``."""
    service, _store = _service()
    key = service.register(
        meta=_meta(),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner=OWNER_A,
    ).payload.value

    result = service.resolve(meta=_meta(), digest=key)

    assert result.ok
    assert result.payload.value is None


def test_register_validates_owner() -> None:
    """Blank owners should be rejected as invalid arguments."""
    service, _store = _service()

    result = service.register(
        meta=_meta(),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner="  ",
    )

    assert result.ok is False
    assert result.errors[0].code == codes.INVALID_ARGUMENT
    assert result.errors[0].metadata["field"] == "owner"


def test_register_rejects_malformed_digests() -> None:
    """Malformed digests should carry the invalid-hash code."""
    service, _store = _service()

    result = service.register(
        meta=_meta(),
        parent_digest=b"\x01\x02",
        leaf_digest="",
        owner=OWNER_A,
    )

    assert result.ok is False
    assert {err.metadata["field"] for err in result.errors} == {
        "parent_digest",
        "leaf_digest",
    }
    assert {abi_code_of(err) for err in result.errors} == {
        RegistryErrorCode.INVALID_HASH_INPUT
    }


def test_register_stores_owner_and_target_verbatim() -> None:
    """Surrounding whitespace is part of the identity and target values."""
    service, store = _service()

    key = service.register(
        meta=_meta(INITIALIZER),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner=" A",
        resolved_target=" addr ",
    ).payload.value

    assert service.resolve(meta=_meta(), digest=key).payload.value == " addr "
    assert store.get(key).owner == " A"

    child = service.register(
        meta=_meta(" A"),
        parent_digest=key,
        leaf_digest=label_digest("example"),
        owner=" A",
        resolved_target="",
    )
    assert child.ok
    assert service.resolve(meta=_meta(), digest=child.payload.value).payload.value == ""

    stranger = service.register(
        meta=_meta("A"),
        parent_digest=key,
        leaf_digest=label_digest("www"),
        owner="A",
    )
    assert abi_code_of(stranger.errors[0]) == RegistryErrorCode.NOT_AUTHORIZED


def test_register_rejects_overlong_owner_and_target() -> None:
    """Identities and targets longer than the column width are invalid arguments."""
    service, _store = _service()
    args = {"parent_digest": ZERO_DIGEST, "leaf_digest": label_digest("com")}

    long_owner = service.register(meta=_meta(), owner="G" * 257, **args)
    long_target = service.register(
        meta=_meta(), owner=OWNER_A, resolved_target="x" * 257, **args
    )
    at_limit = service.register(
        meta=_meta(), owner="G" * 256, resolved_target="x" * 256, **args
    )

    assert long_owner.errors[0].code == codes.INVALID_ARGUMENT
    assert long_owner.errors[0].metadata["field"] == "owner"
    assert long_target.errors[0].metadata["field"] == "resolved_target"
    assert at_limit.ok


def test_register_records_depth_below_the_limit() -> None:
    """Each registration should sit one level below its parent."""
    service, store = _service(NameRegistrySettings(store="memory", max_namespace_depth=2))

    k1 = service.register(
        meta=_meta(),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner=OWNER_A,
    ).payload.value
    k2 = service.register(
        meta=_meta(),
        parent_digest=k1,
        leaf_digest=label_digest("example"),
        owner=OWNER_A,
    ).payload.value

    assert (store.get(ZERO_DIGEST).depth, store.get(k1).depth, store.get(k2).depth) == (
        0,
        1,
        2,
    )


def test_register_beyond_depth_limit_returns_namespace_too_deep() -> None:
    """Deep registrations should fail as a policy error, never by raising."""
    service, store = _service(NameRegistrySettings(store="memory", max_namespace_depth=2))
    parent = ZERO_DIGEST
    for label in ("com", "example"):
        parent = service.register(
            meta=_meta(INITIALIZER),
            parent_digest=parent,
            leaf_digest=label_digest(label),
            owner=OWNER_A,
        ).payload.value

    for principal in (INITIALIZER, OWNER_A, OWNER_D):
        result = service.register(
            meta=_meta(principal),
            parent_digest=parent,
            leaf_digest=label_digest("mail"),
            owner=OWNER_C,
        )
        assert result.ok is False
        assert result.errors[0].code == "NAMESPACE_TOO_DEEP"
        assert abi_code_of(result.errors[0]) == RegistryErrorCode.NAMESPACE_TOO_DEEP
        assert result.errors[0].category == ErrorCategory.POLICY
        assert result.errors[0].metadata["max_depth"] == "2"

    assert store.has(derive_child_digest(parent, label_digest("mail"))) is False
    assert service.is_available(
        meta=_meta(), parent_digest=parent, leaf_digest=label_digest("mail")
    ).payload.value is True


def test_init_rejects_blank_principal() -> None:
    """A whitespace-only caller cannot own the root."""
    store = InMemoryNodeStore()
    service = DefaultNameRegistryService(
        settings=NameRegistrySettings(store="memory"), store=store
    )

    result = service.init(meta=_meta("   "))

    assert result.ok is False
    assert result.errors[0].code == codes.INVALID_ARGUMENT
    assert result.errors[0].metadata["field"] == "principal"
    assert store.exists() is False


def test_resolve_root_returns_no_target() -> None:
    """The zero digest is a valid lookup key for the root."""
    service, _store = _service()

    result = service.resolve(meta=_meta(), digest=ZERO_DIGEST)

    assert result.ok
    assert result.payload is not None
    assert result.payload.value is None


@pytest.mark.parametrize("digest", [b"", ""])
def test_resolve_empty_digest_returns_invalid_hash_input(digest: bytes | str) -> None:
    """Empty queries should be rejected before any lookup."""
    service, _store = _service()

    result = service.resolve(meta=_meta(), digest=digest)

    assert result.ok is False
    assert result.errors[0].code == "INVALID_HASH_INPUT"
    assert abi_code_of(result.errors[0]) == RegistryErrorCode.INVALID_HASH_INPUT
    assert "digest is required" in result.errors[0].message


def test_resolve_unknown_digest_returns_not_found() -> None:
    """Digests never registered should be reported as not found."""
    service, _store = _service()

    result = service.resolve(meta=_meta(), digest=label_digest("ghost"))

    assert result.ok is False
    assert abi_code_of(result.errors[0]) == RegistryErrorCode.NOT_FOUND
    assert result.errors[0].category == ErrorCategory.NOT_FOUND


def test_get_node_returns_full_record() -> None:
    """get_node should expose owner, parent and target."""
    service, _store = _service()
    key = service.register(
        meta=_meta(),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
        owner=OWNER_A,
        resolved_target="addrA",
    ).payload.value

    result = service.get_node(meta=_meta(), digest=key.hex())

    assert result.ok
    record = result.payload.value
    assert record.digest == key
    assert record.digest_hex == key.hex()
    assert record.is_root is False
    assert record.node == Node(
        owner=OWNER_A, parent_digest=ZERO_DIGEST, resolved_target="addrA", depth=1
    )
    missing = service.get_node(meta=_meta(), digest=label_digest("ghost"))
    assert abi_code_of(missing.errors[0]) == RegistryErrorCode.NOT_FOUND


def test_is_available_tracks_registration() -> None:
    """Availability should flip once a pair is registered."""
    service, _store = _service()
    args = {"parent_digest": ZERO_DIGEST, "leaf_digest": label_digest("com")}

    assert service.is_available(meta=_meta(), **args).payload.value is True
    service.register(meta=_meta(), owner=OWNER_A, **args)
    assert service.is_available(meta=_meta(), **args).payload.value is False


def test_invalid_metadata_is_rejected() -> None:
    """Missing principals should fail envelope validation."""
    service, _store = _service()

    result = service.resolve(meta=_meta(principal=""), digest=ZERO_DIGEST)

    assert result.ok is False
    assert result.errors[0].code == codes.INVALID_ARGUMENT
    assert result.errors[0].message == "metadata.principal is required"


def test_dangling_parent_aborts_registration() -> None:
    """A stored node referencing a missing parent should abort the walk."""
    service, store = _service()
    orphan_key = label_digest("orphan")
    store.set(orphan_key, Node(owner=OWNER_A, parent_digest=label_digest("ghost")))

    with pytest.raises(RegistryConsistencyError):
        service.register(
            meta=_meta(OWNER_D),
            parent_digest=orphan_key,
            leaf_digest=label_digest("child"),
            owner=OWNER_D,
        )


def test_store_errors_map_to_dependency_failures() -> None:
    """Unexpected store exceptions should become dependency errors."""
    service = DefaultNameRegistryService(
        settings=NameRegistrySettings(store="memory"),
        store=_FailingStore(RuntimeError("boom")),
    )

    result = service.resolve(meta=_meta(), digest=ZERO_DIGEST)

    assert result.ok is False
    assert result.errors[0].code == codes.DEPENDENCY_FAILURE
    assert result.errors[0].metadata["exception_type"] == "RuntimeError"


def test_sql_errors_are_normalized() -> None:
    """SQL driver failures should map to shared postgres error semantics."""
    service = DefaultNameRegistryService(
        settings=NameRegistrySettings(store="memory"),
        store=_FailingStore(OperationalError("SELECT 1", {}, Exception("down"))),
    )

    result = service.is_available(
        meta=_meta(),
        parent_digest=ZERO_DIGEST,
        leaf_digest=label_digest("com"),
    )

    assert result.ok is False
    assert result.errors[0].code == codes.DEPENDENCY_UNAVAILABLE


def test_health_reports_initialization_and_store_state() -> None:
    """Health should distinguish an empty store from a ready registry."""
    store = InMemoryNodeStore()
    service = DefaultNameRegistryService(
        settings=NameRegistrySettings(store="memory"), store=store
    )

    before = service.health(meta=_meta()).payload.value
    service.init(meta=_meta())
    after = service.health(meta=_meta()).payload.value
    broken = DefaultNameRegistryService(
        settings=NameRegistrySettings(store="memory"),
        store=_FailingStore(RuntimeError("boom")),
    ).health(meta=_meta()).payload.value

    assert (before.store_ready, before.initialized, before.detail) == (
        True,
        False,
        "registry not initialized",
    )
    assert after.service_ready is True
    assert after.detail == "ok"
    assert (broken.store_ready, broken.service_ready) == (False, False)


def test_build_name_registry_service_uses_configured_memory_store() -> None:
    """The builder should honor the configured backend and namespace."""
    settings = SnsSettings(
        components={
            "service": {"name_registry": {"store": "memory", "namespace": "Test_NS"}}
        }
    )

    service = build_name_registry_service(settings=settings)

    assert isinstance(service, DefaultNameRegistryService)
    assert isinstance(service.store, InMemoryNodeStore)
    assert service.store.namespace == "test_ns"
    assert service.init(meta=_meta()).ok


def test_build_name_registry_service_wires_redis_store() -> None:
    """The redis backend should key nodes under the substrate prefix."""
    from services.state.name_registry.data import RedisNodeStore

    settings = SnsSettings(
        components={
            "service": {"name_registry": {"store": "redis"}},
            "substrate": {"redis": {"key_prefix": "names:"}},
        }
    )

    service = build_name_registry_service(settings=settings)

    assert isinstance(service.store, RedisNodeStore)
    assert service.store.key == "names:rmap:nodes"


def test_build_name_registry_service_wires_postgres_runtime(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """The postgres backend should create tables and use schema sessions."""
    from services.state.name_registry.data import RegistryPostgresRuntime, SqlNodeStore

    calls: list[str] = []

    class _FakeSchemaSessions:
        def session(self) -> object:
            raise AssertionError("no session expected during build")

    class _FakeRuntime:
        schema_sessions = _FakeSchemaSessions()
        engine = object()
        health_timeout_seconds = 0.5

        def ensure_schema(self) -> None:
            calls.append("ensure_schema")

    monkeypatch.setattr(
        RegistryPostgresRuntime,
        "from_settings",
        classmethod(lambda cls, settings: _FakeRuntime()),
    )

    service = build_name_registry_service(settings=SnsSettings())

    assert isinstance(service.store, SqlNodeStore)
    assert calls == ["ensure_schema"]
