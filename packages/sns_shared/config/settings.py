"""Process settings for SNS components.

Settings resolve from four sources, highest first: keyword overrides,
``SNS_``-prefixed environment variables (``__`` separates nesting levels),
a YAML file and model defaults. Component settings live under
``components.<kind>.<name>`` and are validated by the owning component with
``resolve_component_settings``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "sns" / "sns.yaml"

ComponentTable = dict[str, dict[str, Any]]
TComponentSettings = TypeVar("TComponentSettings", bound=BaseModel)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "sns"
    environment: str = "dev"


class ComponentsSettings(BaseModel):
    """Raw per-component tables, grouped by component kind."""

    model_config = ConfigDict(extra="forbid")

    service: ComponentTable = Field(default_factory=dict)
    substrate: ComponentTable = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _grouped_keys_only(cls, value: object) -> object:
        """Point flat keys such as ``service_name_registry`` at their grouped form."""
        for key in value if isinstance(value, dict) else ():
            kind, _, name = str(key).partition("_")
            if name and kind in ("service", "substrate"):
                raise ValueError(
                    f"components.{key} is invalid; use components.{kind}.{name} instead"
                )
        return value


class SnsSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SNS_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
        yaml_file=DEFAULT_CONFIG_PATH,
        yaml_file_encoding="utf-8",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, YamlConfigSettingsSource(settings_cls)


def load_settings(*, config_path: str | Path | None = None, **overrides: Any) -> SnsSettings:
    """Build settings, reading YAML from ``config_path`` when one is given."""
    if config_path is None:
        return SnsSettings(**overrides)

    class _FromFile(SnsSettings):
        model_config = SettingsConfigDict(yaml_file=Path(config_path))

    return _FromFile(**overrides)


def resolve_component_settings(
    *,
    settings: SnsSettings,
    component_id: str,
    model: type[TComponentSettings],
) -> TComponentSettings:
    """Validate the table for ``component_id`` against ``model``.

    The id is ``<kind>_<name>``: ``service_name_registry`` reads
    ``components.service.name_registry``. A missing table yields model
    defaults.
    """
    kind, _, name = component_id.partition("_")
    if not name or kind not in ComponentsSettings.model_fields:
        raise ValueError(f"unsupported component id '{component_id}'")
    table: ComponentTable = getattr(settings.components, kind)
    return model.model_validate(table.get(name, {}))
