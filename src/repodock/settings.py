"""
Centralized application settings.

The configuration is shared across the CLI and the API server.
"""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Type

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Project-wide settings.

    ``REPODOCK_*`` environment variables take precedence over values read from
    the TOML file, which are passed in as keyword arguments.
    """

    model_config = SettingsConfigDict(
        env_prefix="REPODOCK_",
        env_nested_delimiter="__",
        extra="allow",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings, file_secret_settings

    workspace_root: Path = Path("./workspace")
    registry_path: Optional[Path] = None
    gh_binary: str = "gh"
    gh_timeout: Optional[float] = None
    gh_list_limit: int = 1000
    api_key: Optional[str] = None
    telemetry_enabled: bool = True
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    def resolved_registry_path(self) -> Path:
        return self.registry_path or (self.workspace_root / "projects.json")


_CONFIG_ENV_VAR = "REPODOCK_CONFIG_PATH"
_DEFAULT_CONFIG_FILE = Path("repodock_settings.toml")


def _load_toml_config() -> Dict[str, Any]:
    """Load configuration from the primary TOML file on disk."""
    candidates: List[Path] = []
    config_override = os.getenv(_CONFIG_ENV_VAR)
    if config_override:
        candidates.append(Path(config_override))
    candidates.append(_DEFAULT_CONFIG_FILE)

    for candidate in candidates:
        if candidate.is_file():
            with candidate.open("rb") as handle:
                return tomllib.load(handle)
    return {}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _flatten_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Translate grouped TOML sections into AppSettings keyword arguments."""
    data: Dict[str, Any] = {}

    workspace = raw.get("workspace", {})
    if "root" in workspace:
        data["workspace_root"] = workspace["root"]
    if "registry_path" in workspace:
        data["registry_path"] = _blank_to_none(workspace["registry_path"])

    github = raw.get("github", {})
    if github:
        if "binary" in github:
            data["gh_binary"] = github["binary"]
        if "timeout" in github:
            data["gh_timeout"] = _blank_to_none(github["timeout"])
        if "list_limit" in github:
            data["gh_list_limit"] = int(github["list_limit"])

    api_section = raw.get("api", {})
    if api_section:
        if "host" in api_section:
            data["api_host"] = api_section["host"]
        if "port" in api_section:
            data["api_port"] = int(api_section["port"])

    logging_section = raw.get("logging", {})
    if "level" in logging_section:
        data["log_level"] = logging_section["level"]
    if "format" in logging_section:
        data["log_format"] = logging_section["format"]

    general = raw.get("general", {})
    if "api_key" in general:
        data["api_key"] = _blank_to_none(general["api_key"])
    if "telemetry_enabled" in general:
        data["telemetry_enabled"] = bool(general["telemetry_enabled"])

    return data


def load_settings() -> AppSettings:
    raw = _load_toml_config()
    flattened = _flatten_config(raw)
    return AppSettings(**flattened)


settings = load_settings()
