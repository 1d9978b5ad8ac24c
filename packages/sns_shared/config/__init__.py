"""Shared configuration loading for SNS components."""

from .settings import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    LoggingSettings,
    SnsSettings,
    load_settings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "LoggingSettings",
    "SnsSettings",
    "load_settings",
    "resolve_component_settings",
]
