"""Node store backends for Name Registry Service."""

from services.state.name_registry.data.memory import InMemoryNodeStore
from services.state.name_registry.data.redis_store import RedisNodeStore
from services.state.name_registry.data.repository import SqlNodeStore
from services.state.name_registry.data.runtime import RegistryPostgresRuntime

__all__ = [
    "InMemoryNodeStore",
    "RedisNodeStore",
    "RegistryPostgresRuntime",
    "SqlNodeStore",
]
