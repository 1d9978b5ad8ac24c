"""Redis client-backed substrate implementation."""

from __future__ import annotations

from resources.substrates.redis.client import create_redis_client
from resources.substrates.redis.config import RedisSettings
from resources.substrates.redis.substrate import RedisHealthStatus, RedisSubstrate


class RedisClientSubstrate(RedisSubstrate):
    """Concrete Redis substrate using redis-py client operations."""

    def __init__(self, *, settings: RedisSettings) -> None:
        self._client = create_redis_client(settings)
        self._health_client = create_redis_client(
            settings, timeout_seconds=settings.health_timeout_seconds
        )

    def key_exists(self, *, key: str) -> bool:
        """Return whether one key exists."""
        return int(self._client.exists(key)) > 0

    def hash_get(self, *, key: str, field: str) -> str | None:
        """Read one hash field."""
        value = self._client.hget(key, field)
        if value is None:
            return None
        return str(value)

    def hash_set(self, *, key: str, field: str, value: str) -> None:
        """Write one hash field unconditionally."""
        self._client.hset(key, field, value)

    def hash_set_if_absent(self, *, key: str, field: str, value: str) -> bool:
        """Write one hash field with ``HSETNX`` semantics."""
        return bool(self._client.hsetnx(key, field, value))

    def hash_exists(self, *, key: str, field: str) -> bool:
        """Return whether one hash field exists."""
        return bool(self._client.hexists(key, field))

    def ping(self) -> bool:
        """Return Redis ping status."""
        return bool(self._health_client.ping())

    def health(self) -> RedisHealthStatus:
        """Return Redis substrate readiness and concise detail."""
        try:
            ready = self.ping()
        except Exception as exc:  # noqa: BLE001
            return RedisHealthStatus(
                ready=False,
                detail=f"redis ping failed: {type(exc).__name__}",
            )
        return RedisHealthStatus(
            ready=ready,
            detail="ok" if ready else "redis ping returned false",
        )
