from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from orchestra.constants import HANDOFF_MARKER, HANDOFF_RESULT, STREAM_CHUNK_EVENT
from orchestra.exceptions import ConfigError
from orchestra.logging import get_logger

__all__ = [
    "OrchestraConfig",
    "load_config",
    "get_project_config_path",
]

logger = get_logger(__name__)


def _read_yaml(yaml_file: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning ``{}`` for a missing or empty file."""
    if not yaml_file.exists():
        return {}
    try:
        with open(yaml_file) as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            message=f"Invalid YAML in {yaml_file}: {e}",
            field=None,
            value=None,
        ) from e
    if loaded is None:
        logger.warning(f"Config file {yaml_file} is empty, using defaults.")
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(
            message=f"Config file {yaml_file} must contain a mapping",
            value=loaded,
        )
    return loaded


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from a YAML file."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data = _read_yaml(yaml_file) if yaml_file else {}

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the complete config data."""
        return self._config_data


class OrchestraConfig(BaseSettings):
    """Settings for the run loop and the stream adapter.

    Attributes:
        stream_chunk_event: Custom event name used when forwarding stream chunks.
        handoff_marker: Tool names containing this substring are handoffs.
        handoff_result: Placeholder result of the synthetic handoff tool result.
        live_custom_events: Yield custom events as soon as they are dispatched
            instead of after the handler returns.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRA_",
        extra="ignore",
    )

    stream_chunk_event: str = STREAM_CHUNK_EVENT
    handoff_marker: str = HANDOFF_MARKER
    handoff_result: str = HANDOFF_RESULT
    live_custom_events: bool = False

    @field_validator("stream_chunk_event", "handoff_marker")
    @classmethod
    def check_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Environment variables (ORCHESTRA_*)
        2. Init arguments (including an explicit file passed to load_config)
        3. Project YAML config (./orchestra.yaml)
        """
        return (
            env_settings,
            init_settings,
            YamlConfigSource(settings_cls, get_project_config_path()),
        )


def get_project_config_path() -> Path:
    """Return ``./orchestra.yaml`` relative to the working directory."""
    return Path.cwd() / "orchestra.yaml"


def load_config(config_path: Path | None = None) -> OrchestraConfig:
    """Load configuration with hierarchy: defaults -> project file -> env.

    Args:
        config_path: Optional explicit YAML file. When given, its values take
            precedence over ./orchestra.yaml (environment still wins).

    Returns:
        OrchestraConfig instance with merged configuration.

    Raises:
        ConfigError: If the YAML is malformed or a value is invalid.
    """
    overrides: dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(
                message=f"Config file not found: {config_path}",
                value=str(config_path),
            )
        overrides = _read_yaml(config_path)
    elif not get_project_config_path().exists():
        logger.debug("No project configuration found, using defaults.")

    try:
        return OrchestraConfig(**overrides)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
