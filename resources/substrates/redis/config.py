"""Redis substrate settings.

Either ``url`` is given, or it is assembled from the split host, port and
credential fields. The password may come inline or from the environment
variable named by ``password_env``, never both.
"""

from __future__ import annotations

import os
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.sns_shared.config import SnsSettings, resolve_component_settings
from resources.substrates.redis.component import RESOURCE_COMPONENT_ID


class RedisSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str | None = "redis://redis:6379/0"
    host: str = "redis"
    port: int = Field(default=6379, gt=0)
    db: int = Field(default=0, ge=0)
    username: str = ""
    password: str = ""
    password_env: str = ""
    ssl: bool = False
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    socket_timeout_seconds: float = Field(default=5.0, gt=0)
    health_timeout_seconds: float = Field(default=1.0, gt=0)
    max_connections: int = Field(default=20, gt=0)
    # Registry hashes are named ``<key_prefix>:<namespace>``.
    key_prefix: str = Field(default="sns", min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _derive(cls, data: object) -> object:
        if not isinstance(data, dict):
            return data
        values = dict(data)
        if "key_prefix" in values:
            prefix = str(values["key_prefix"]).strip().rstrip(":")
            if not prefix:
                raise ValueError("substrate.redis.key_prefix must not be blank")
            values["key_prefix"] = prefix

        url = values.get("url", cls.model_fields["url"].default)
        if url is not None and str(url).strip():
            values["url"] = str(url).strip()
            return values

        values["password"] = _password(
            str(values.get("password", "")).strip(),
            str(values.get("password_env", "")).strip(),
        )
        values["url"] = _url(values)
        return values


def _password(inline: str, env_name: str) -> str:
    if inline and env_name:
        raise ValueError("substrate.redis.password and password_env are mutually exclusive")
    if not env_name:
        return inline
    value = os.environ.get(env_name, "").strip()
    if not value:
        raise ValueError(f"substrate.redis.password_env references missing env var '{env_name}'")
    return value


def _url(values: dict[str, object]) -> str:
    host = str(values.get("host", "redis")).strip()
    if not host:
        raise ValueError("substrate.redis.host is required when url is unset")
    user = quote_plus(str(values.get("username", "")).strip())
    password = quote_plus(str(values["password"]))
    if password:
        credentials = f"{user}:{password}@"
    elif user:
        credentials = f"{user}@"
    else:
        credentials = ""
    ssl = values.get("ssl", False)
    if isinstance(ssl, str):
        ssl = ssl.strip().lower() in ("1", "true", "yes", "on")
    scheme = "rediss" if ssl else "redis"
    return f"{scheme}://{credentials}{host}:{values.get('port', 6379)}/{values.get('db', 0)}"


def resolve_redis_settings(settings: SnsSettings) -> RedisSettings:
    """Read ``components.substrate.redis``."""
    return resolve_component_settings(
        settings=settings,
        component_id=RESOURCE_COMPONENT_ID,
        model=RedisSettings,
    )
