"""Application configuration handling."""

from __future__ import annotations

import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "MTADOCS_"
DEFAULT_CONFIG_PATH = Path("~/.config/mtasa-docs/config.yaml")
DAY_MS = 24 * 60 * 60 * 1000
SEVEN_DAYS_MS = 7 * DAY_MS

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("cache", "max_age_ms"): "cache_max_age_ms",
    ("embeddings", "dim"): "vector_dim",
    ("wiki", "base_url"): "wiki_base_url",
    ("wiki", "function_list_base_url"): "function_list_base_url",
    ("wiki", "fetch_timeout"): "fetch_timeout",
    ("wiki", "catalog_autoload"): "catalog_autoload",
    ("retrieval", "alias_table_path"): "alias_table_path",
    ("retrieval", "search_limit"): "default_search_limit",
    ("retrieval", "related_limit"): "default_related_limit",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path(tempfile.gettempdir()) / "mtasa-docs-cache" / "mtasa_docs.db")
    vector_dim: int = Field(default=384, gt=0)
    cache_max_age_ms: int = Field(default=SEVEN_DAYS_MS, gt=0)
    wiki_base_url: str = "https://wiki.multitheftauto.com/wiki/"
    function_list_base_url: str = "https://wiki.multitheftauto.com/extensions/_MTAThemeExtensions/"
    fetch_timeout: float | None = None
    catalog_autoload: bool = True
    alias_table_path: Path | None = None
    default_search_limit: int = Field(default=30, gt=0)
    default_related_limit: int = Field(default=10, gt=0)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @field_validator("alias_table_path", mode="before")
    @classmethod
    def _expand_alias_path(cls, value: Any) -> Path | None:
        if value in (None, ""):
            return None
        return Path(value).expanduser()

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Build settings from defaults, then the YAML file, then ``MTADOCS_*`` variables."""
        values: dict[str, Any] = {}
        config_path = _config_path(path)
        if config_path is not None:
            values.update(_read_yaml(config_path))
        values.update(_env_values(os.environ))
        return cls(**values)


def _config_path(path: Path | None) -> Path | None:
    # An explicit or env-selected path is used even when missing; the default only if present.
    if path is not None:
        return path.expanduser()
    env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.exists() else None


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    values: dict[str, Any] = {}
    for section_path, value in _walk(raw):
        field_name = _YAML_KEY_MAP.get(section_path) or section_path[-1]
        if field_name in Settings.model_fields:
            values[field_name] = value
    return values


def _walk(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> list[tuple[tuple[str, ...], Any]]:
    """Yield ``(key path, leaf value)`` pairs of a nested mapping."""
    leaves: list[tuple[tuple[str, ...], Any]] = []
    for key, value in raw.items():
        key_path = prefix + (str(key),)
        if isinstance(value, Mapping):
            leaves.extend(_walk(value, key_path))
        else:
            leaves.append((key_path, value))
    return leaves


def _env_values(environ: Mapping[str, str]) -> dict[str, Any]:
    """``MTADOCS_<FIELD>`` variables; empty values count as unset."""
    values: dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX) or value == "":
            continue
        field_name = key[len(ENV_PREFIX):].lower()
        if field_name in Settings.model_fields:
            values[field_name] = value
    return values


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings", "DAY_MS", "SEVEN_DAYS_MS"]
