"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (GODOC_MCP__SERVER__TRANSPORT=http)
  2. godoc-mcp.yaml         (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("godoc-mcp")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")


def _find_config_file() -> str | None:
    """Return the path of the first godoc-mcp.yaml found, or None."""
    candidates = [
        Path("godoc-mcp.yaml"),
        Path(platformdirs.user_config_dir("godoc-mcp")) / "godoc-mcp.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080
    auth_enabled: bool = False
    auth_key: str = ""


class GoSettings(BaseModel):
    binary: str = "go"
    command_timeout_seconds: float = Field(default=120.0, gt=0)
    temp_module_name: str = "godoc-temp"
    temp_dir_prefix: str = "godoc-mcp-"


class CacheSettings(BaseModel):
    ttl_seconds: int = Field(default=300, ge=0)
    db_path: str = _DEFAULT_DB_PATH
    cleanup_interval_seconds: int = Field(default=60, gt=0)


class ProjectSettings(BaseModel):
    ttl_seconds: int = Field(default=1800, ge=0)
    sweep_interval_seconds: int = Field(default=60, gt=0)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: GODOC_MCP__SERVER__PORT=9090
        env_prefix="GODOC_MCP__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    go: GoSettings = GoSettings()
    cache: CacheSettings = CacheSettings()
    projects: ProjectSettings = ProjectSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
