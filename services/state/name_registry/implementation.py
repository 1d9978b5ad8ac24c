"""Concrete Name Registry Service implementation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from packages.sns_shared.envelope import (
    Envelope,
    EnvelopeMeta,
    failure,
    success,
    validate_meta,
)
from packages.sns_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    validation_error,
)
from packages.sns_shared.logging import get_logger, public_api_instrumented
from resources.substrates.postgres.errors import (
    is_postgres_error,
    normalize_postgres_error,
)
from services.state.name_registry.authorization import AncestorAuthorizer
from services.state.name_registry.component import SERVICE_COMPONENT_ID
from services.state.name_registry.config import NameRegistrySettings
from services.state.name_registry.digests import ZERO_DIGEST, derive_child_digest
from services.state.name_registry.domain import HealthStatus, Node, NodeRecord
from services.state.name_registry.errors import (
    RegistryAlreadyInitializedError,
    RegistryFatalError,
    invalid_hash_input,
    namespace_too_deep,
    node_already_exists,
    node_not_found,
    not_authorized,
    parent_not_found,
)
from services.state.name_registry.interfaces import NodeStore
from services.state.name_registry.service import NameRegistryService
from services.state.name_registry.validation import (
    DIGEST_FIELDS,
    ChildRequest,
    DigestRequest,
    InitRequest,
    RegisterRequest,
)

_LOGGER = get_logger(__name__)


class DefaultNameRegistryService(NameRegistryService):
    """Default registry implementation over one injected ``NodeStore``."""

    def __init__(self, *, settings: NameRegistrySettings, store: NodeStore) -> None:
        self._settings = settings
        self._store = store
        self._authorizer = AncestorAuthorizer(
            store=store,
            max_depth=settings.max_namespace_depth,
            mode=settings.authorization_mode,
        )

    @property
    def store(self) -> NodeStore:
        """Return the node store backing this service."""
        return self._store

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
    )
    def init(self, *, meta: EnvelopeMeta) -> Envelope[NodeRecord]:
        """Create the registry with a root owned by ``meta.principal``."""
        request, errors = self._validate_request(
            meta=meta,
            model=InitRequest,
            payload={"principal": meta.principal},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, InitRequest)

        root = Node(owner=request.principal, parent_digest=ZERO_DIGEST)
        try:
            if self._store.exists():
                raise RegistryAlreadyInitializedError(
                    f"registry namespace '{self._store.namespace}' is already initialized"
                )
            self._store.create(root=root)
        except RegistryFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._store_failure(meta=meta, operation="init", exc=exc)

        _LOGGER.info(
            "Registry initialized: namespace=%s owner=%s",
            self._store.namespace,
            root.owner,
        )
        return success(meta=meta, payload=NodeRecord(digest=ZERO_DIGEST, node=root))

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("digest",),
    )
    def resolve(self, *, meta: EnvelopeMeta, digest: bytes | str) -> Envelope[str | None]:
        """Return the resolved target of one node; the root resolves to ``None``."""
        request, errors = self._validate_request(
            meta=meta,
            model=DigestRequest,
            payload={"digest": digest},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, DigestRequest)

        try:
            node = self._store.get(request.digest)
        except RegistryFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._store_failure(meta=meta, operation="resolve", exc=exc)

        if node is None:
            return failure(meta=meta, errors=[node_not_found(request.digest)])
        return success(meta=meta, payload=node.resolved_target)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("parent_digest", "leaf_digest"),
    )
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
        request, errors = self._validate_request(
            meta=meta,
            model=RegisterRequest,
            payload={
                "parent_digest": parent_digest,
                "leaf_digest": leaf_digest,
                "owner": owner,
                "resolved_target": resolved_target,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, RegisterRequest)

        try:
            parent = self._store.get(request.parent_digest)
            if parent is None:
                return failure(meta=meta, errors=[parent_not_found(request.parent_digest)])

            if parent.depth >= self._settings.max_namespace_depth:
                return failure(
                    meta=meta,
                    errors=[
                        namespace_too_deep(
                            parent_digest=request.parent_digest,
                            max_depth=self._settings.max_namespace_depth,
                        )
                    ],
                )

            if not self._authorizer.is_authorized(
                caller=meta.principal,
                digest=request.parent_digest,
                node=parent,
            ):
                _LOGGER.info(
                    "Registration denied: namespace=%s principal=%s parent=%s",
                    self._store.namespace,
                    meta.principal,
                    request.parent_digest.hex(),
                )
                return failure(
                    meta=meta,
                    errors=[
                        not_authorized(
                            principal=meta.principal,
                            parent_digest=request.parent_digest,
                        )
                    ],
                )

            key = derive_child_digest(request.parent_digest, request.leaf_digest)
            replaced = self._store.has(key)
            if replaced and not self._settings.allow_overwrite:
                return failure(meta=meta, errors=[node_already_exists(key)])

            self._store.set(
                key,
                Node(
                    owner=request.owner,
                    parent_digest=request.parent_digest,
                    resolved_target=request.resolved_target,
                    depth=parent.depth + 1,
                ),
            )
        except RegistryFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._store_failure(meta=meta, operation="register", exc=exc)

        _LOGGER.info(
            "Node registered: namespace=%s digest=%s parent=%s owner=%s replaced=%s",
            self._store.namespace,
            key.hex(),
            request.parent_digest.hex(),
            request.owner,
            replaced,
        )
        return success(meta=meta, payload=key)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("digest",),
    )
    def get_node(self, *, meta: EnvelopeMeta, digest: bytes | str) -> Envelope[NodeRecord]:
        """Return the full record stored under one digest."""
        request, errors = self._validate_request(
            meta=meta,
            model=DigestRequest,
            payload={"digest": digest},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, DigestRequest)

        try:
            node = self._store.get(request.digest)
        except RegistryFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._store_failure(meta=meta, operation="get_node", exc=exc)

        if node is None:
            return failure(meta=meta, errors=[node_not_found(request.digest)])
        return success(meta=meta, payload=NodeRecord(digest=request.digest, node=node))

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
        id_fields=("parent_digest", "leaf_digest"),
    )
    def is_available(
        self,
        *,
        meta: EnvelopeMeta,
        parent_digest: bytes | str,
        leaf_digest: bytes | str,
    ) -> Envelope[bool]:
        """Return whether the child key for (parent, leaf) is unregistered."""
        request, errors = self._validate_request(
            meta=meta,
            model=ChildRequest,
            payload={"parent_digest": parent_digest, "leaf_digest": leaf_digest},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, ChildRequest)

        key = derive_child_digest(request.parent_digest, request.leaf_digest)
        try:
            taken = self._store.has(key)
        except RegistryFatalError:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._store_failure(meta=meta, operation="is_available", exc=exc)
        return success(meta=meta, payload=not taken)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=SERVICE_COMPONENT_ID,
    )
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return registry readiness based on store liveness and initialization."""
        errors = validate_meta(meta)
        if errors:
            return failure(meta=meta, errors=errors)

        try:
            store_ready = bool(self._store.ping())
            initialized = store_ready and self._store.exists()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning(
                "Registry health check failed: namespace=%s exception_type=%s",
                self._store.namespace,
                type(exc).__name__,
            )
            store_ready = False
            initialized = False

        if not store_ready:
            detail = "store unavailable"
        elif not initialized:
            detail = "registry not initialized"
        else:
            detail = "ok"
        return success(
            meta=meta,
            payload=HealthStatus(
                service_ready=store_ready and initialized,
                store_ready=store_ready,
                initialized=initialized,
                detail=detail,
            ),
        )

    def _validate_request(
        self,
        *,
        meta: EnvelopeMeta,
        model: type[BaseModel],
        payload: dict[str, Any],
    ) -> tuple[BaseModel | None, list[ErrorDetail]]:
        """Validate envelope metadata and request payload model."""
        errors = validate_meta(meta)
        if errors:
            return None, errors

        try:
            request = model.model_validate(payload)
        except ValidationError as exc:
            return None, [_request_error(err) for err in exc.errors()]
        return request, []

    def _store_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        exc: Exception,
    ) -> Envelope[Any]:
        """Map one store exception into structured envelope errors."""
        _LOGGER.warning(
            "%s failed due to dependency error: namespace=%s exception_type=%s",
            operation,
            self._store.namespace,
            type(exc).__name__,
            exc_info=exc,
        )
        if is_postgres_error(exc):
            return failure(meta=meta, errors=[normalize_postgres_error(exc)])
        return failure(
            meta=meta,
            errors=[
                dependency_error(
                    f"{operation} failed",
                    code=codes.DEPENDENCY_FAILURE,
                    metadata={"exception_type": type(exc).__name__},
                )
            ],
        )


def _request_error(err: Any) -> ErrorDetail:
    """Translate one pydantic error entry into a registry error."""
    field = ".".join(str(part) for part in err["loc"])
    message = f"request validation failed: {err['msg']}"
    if field in DIGEST_FIELDS:
        return invalid_hash_input(message, field=field)
    return validation_error(
        message,
        code=codes.INVALID_ARGUMENT,
        metadata={"field": field},
    )
