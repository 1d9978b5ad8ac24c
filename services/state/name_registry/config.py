"""Pydantic settings for Name Registry Service behavior."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.sns_shared.config import SnsSettings, resolve_component_settings
from services.state.name_registry.component import SERVICE_COMPONENT_ID


class AuthorizationMode(str, Enum):
    """Which owners in the ancestor chain may register under a parent."""

    ANCESTOR = "ancestor"
    PARENT = "parent"


class NameRegistrySettings(BaseModel):
    """Name Registry Service runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    namespace: str = "rmap"
    store: Literal["postgres", "redis", "memory"] = "postgres"
    max_namespace_depth: int = Field(default=64, gt=0)
    authorization_mode: AuthorizationMode = AuthorizationMode.ANCESTOR
    allow_overwrite: bool = True

    @field_validator("namespace")
    @classmethod
    def _validate_namespace(cls, value: str) -> str:
        """Require a compact identifier usable as a storage key segment."""
        normalized = value.strip().lower()
        if normalized == "":
            raise ValueError("namespace is required")
        if not normalized.replace("_", "").replace("-", "").isalnum():
            raise ValueError("namespace must be alphanumeric, '-' or '_'")
        if len(normalized) > 64:
            raise ValueError("namespace must be at most 64 characters")
        return normalized


def resolve_name_registry_settings(settings: SnsSettings) -> NameRegistrySettings:
    """Resolve settings from ``components.service.name_registry``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=NameRegistrySettings,
    )
