"""
Centralized application settings.

Settings are consumed by the command line front end, which uses them to
construct repositories. Repository and pipeline classes take explicit
parameters and never read this module themselves.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older interpreters
    import tomli as tomllib  # type: ignore[attr-defined]

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .storage.filesystem import SOURCE_EXTENSIONS

NamingStrategyName = Literal["name", "name@version", "direct"]

DEFAULT_SOURCE_EXTENSIONS: List[str] = list(SOURCE_EXTENSIONS)


class AppSettings(BaseSettings):
    """Project-wide settings loaded from env or .env files."""

    model_config = SettingsConfigDict(
        env_prefix="LIBREPO_",
        env_nested_delimiter="__",
        extra="allow",
    )

    repository_root: Path = Path("./libraries")
    naming_strategy: NamingStrategyName = "name"
    layout_version: int = 2
    source_extensions: List[str] = list(DEFAULT_SOURCE_EXTENSIONS)
    archive_ignore: List[str] = [".*"]
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @field_validator("layout_version")
    @classmethod
    def _check_layout(cls, value: int) -> int:
        if value not in (1, 2):
            raise ValueError("layout_version must be 1 (spark.json) or 2 (library.properties)")
        return value

    @field_validator("source_extensions")
    @classmethod
    def _normalise_extensions(cls, value: List[str]) -> List[str]:
        return [ext.lower().lstrip(".") for ext in value if ext.strip()]


_CONFIG_ENV_VAR = "LIBREPO_CONFIG_PATH"
_DEFAULT_CONFIG_FILE = Path("librepo.toml")


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

    repository = raw.get("repository", {})
    if "root" in repository:
        data["repository_root"] = repository["root"]
    if "naming" in repository:
        data["naming_strategy"] = repository["naming"]
    if "layout" in repository:
        data["layout_version"] = int(repository["layout"])
    if "source_extensions" in repository:
        data["source_extensions"] = list(repository["source_extensions"])

    archive = raw.get("archive", {})
    if "ignore" in archive:
        data["archive_ignore"] = list(archive["ignore"])

    logging_section = raw.get("logging", {})
    if "level" in logging_section:
        data["log_level"] = logging_section["level"]
    if "file" in logging_section:
        data["log_file"] = _blank_to_none(logging_section["file"])

    return data


def load_settings() -> AppSettings:
    raw = _load_toml_config()
    flattened = _flatten_config(raw)
    return AppSettings(**flattened)
