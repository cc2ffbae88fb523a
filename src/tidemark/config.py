"""Tidemark configuration.

Settings are merged from, highest priority first:

1. Environment variables (``TIDEMARK_*``, nested with ``__``)
2. Project YAML (``./tidemark.yaml`` or the path given to :func:`load_config`)
3. User YAML (``~/.config/tidemark/config.yaml``)
4. Model defaults

Example tidemark.yaml:
    commands:
      timeout_seconds: 10
    snapshots:
      storage_root: /var/tmp/tidemark
      ghost_commit_message: "checkpoint"
    verbosity: info
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from tidemark.constants import (
    COMMAND_TIMEOUT_SECONDS,
    DEFAULT_DARCS_AUTHOR,
    DEFAULT_DARCS_PATCH_NAME,
    DEFAULT_GHOST_COMMIT_MESSAGE,
    SNAPSHOT_COMMAND_TIMEOUT_SECONDS,
)
from tidemark.exceptions import ConfigError
from tidemark.logging import get_logger

__all__ = [
    "CommandsConfig",
    "SnapshotsConfig",
    "TidemarkConfig",
    "get_project_config_path",
    "get_user_config_path",
    "load_config",
]

logger = get_logger(__name__)

PROJECT_CONFIG_FILENAME = "tidemark.yaml"

# Set by load_config() so an explicit path replaces ./tidemark.yaml
_project_config_override: ContextVar[Path | None] = ContextVar(
    "tidemark_project_config", default=None
)


class CommandsConfig(BaseModel):
    """Settings for backend CLI invocations.

    Attributes:
        timeout_seconds: Budget for every single git/darcs metadata command.
        snapshot_timeout_seconds: Budget for each command that copies or
            rewrites the working tree during snapshot create and restore.
    """

    timeout_seconds: float = Field(default=COMMAND_TIMEOUT_SECONDS, gt=0.0, le=600.0)
    snapshot_timeout_seconds: float = Field(
        default=SNAPSHOT_COMMAND_TIMEOUT_SECONDS, gt=0.0, le=3600.0
    )


class SnapshotsConfig(BaseModel):
    """Settings for the snapshot engine.

    Attributes:
        storage_root: Parent directory for darcs snapshot copies. None uses
            the system temporary directory.
        darcs_patch_name: Patch name for the dry-run record check.
        darcs_author: Author for the dry-run record check.
        ghost_commit_message: Commit message stored on git ghost commits.
    """

    storage_root: Path | None = None
    darcs_patch_name: str = DEFAULT_DARCS_PATCH_NAME
    darcs_author: str = DEFAULT_DARCS_AUTHOR
    ghost_commit_message: str = DEFAULT_GHOST_COMMIT_MESSAGE

    @field_validator("storage_root")
    @classmethod
    def check_storage_root_exists(cls, v: Path | None) -> Path | None:
        """Warn if storage_root does not exist yet."""
        if v is not None and not v.is_dir():
            logger.warning("snapshot_storage_root_missing", storage_root=str(v))
        return v

    @field_validator("darcs_patch_name", "ghost_commit_message")
    @classmethod
    def check_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source that reads a single YAML file."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Config file {yaml_file} must contain a mapping",
                    value=loaded,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class TidemarkConfig(BaseSettings):
    """Root configuration object for Tidemark."""

    model_config = SettingsConfigDict(
        env_prefix="TIDEMARK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    snapshots: SnapshotsConfig = Field(default_factory=SnapshotsConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources so that earlier entries win.

        init kwargs > environment > project YAML > user YAML.
        """
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, get_project_config_path()),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Return ``~/.config/tidemark/config.yaml``."""
    return Path.home() / ".config" / "tidemark" / "config.yaml"


def get_project_config_path() -> Path:
    """Return the project config path in effect for the current load."""
    override = _project_config_override.get()
    if override is not None:
        return override
    return Path.cwd() / PROJECT_CONFIG_FILENAME


def load_config(config_path: Path | None = None) -> TidemarkConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Project config file. Defaults to ./tidemark.yaml.

    Returns:
        The merged TidemarkConfig.

    Raises:
        ConfigError: If a config file is malformed or a value is invalid.
    """
    token = _project_config_override.set(config_path)
    try:
        project_path = get_project_config_path()
        if not project_path.exists():
            logger.debug("project_config_not_found", path=str(project_path))
        return TidemarkConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_override.reset(token)
