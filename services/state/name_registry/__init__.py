"""Name Registry Service public API."""

from services.state.name_registry.component import SERVICE_COMPONENT_ID
from services.state.name_registry.config import (
    AuthorizationMode,
    NameRegistrySettings,
    resolve_name_registry_settings,
)
from services.state.name_registry.digests import (
    DIGEST_SIZE,
    ZERO_DIGEST,
    derive_child_digest,
    label_digest,
    namehash,
)
from services.state.name_registry.domain import HealthStatus, Node, NodeRecord
from services.state.name_registry.errors import (
    AncestorChainTooDeepError,
    RegistryAlreadyInitializedError,
    RegistryConsistencyError,
    RegistryErrorCode,
    RegistryFatalError,
    RegistryNotInitializedError,
    abi_code_of,
)
from services.state.name_registry.implementation import DefaultNameRegistryService
from services.state.name_registry.interfaces import NodeStore
from services.state.name_registry.service import (
    NameRegistryService,
    build_name_registry_service,
)

__all__ = [
    "AncestorChainTooDeepError",
    "AuthorizationMode",
    "DIGEST_SIZE",
    "DefaultNameRegistryService",
    "HealthStatus",
    "NameRegistryService",
    "NameRegistrySettings",
    "Node",
    "NodeRecord",
    "NodeStore",
    "RegistryAlreadyInitializedError",
    "RegistryConsistencyError",
    "RegistryErrorCode",
    "RegistryFatalError",
    "RegistryNotInitializedError",
    "SERVICE_COMPONENT_ID",
    "ZERO_DIGEST",
    "abi_code_of",
    "build_name_registry_service",
    "derive_child_digest",
    "label_digest",
    "namehash",
    "resolve_name_registry_settings",
]
