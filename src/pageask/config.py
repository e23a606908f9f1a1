"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (PAGEASK__SCRAPER__API_KEY=fc-...)
  2. pageask.yaml           (searched in cwd, then ~/.config/pageask/)
  3. Hardcoded defaults

The config file is optional. Only the two provider API keys have no usable
default, and they are only checked when a provider client is built.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("pageask")
_DEFAULT_DB_PATH = os.path.join(_DEFAULT_DATA_DIR, "cache.db")


def _find_config_file() -> str | None:
    """Return the path of the first pageask.yaml found, or None."""
    candidates = [
        Path("pageask.yaml"),
        Path.home() / ".config" / "pageask" / "pageask.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ServerSettings(_Section):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "0.0.0.0"
    port: int = 8080


class ScraperSettings(_Section):
    api_key: SecretStr | None = None
    base_url: str = "https://api.firecrawl.dev"
    timeout_seconds: float = 60.0
    batch_poll_interval_seconds: float = 2.0
    batch_max_polls: int = 30


class GeneratorSettings(_Section):
    api_key: SecretStr | None = None
    model: str = "gemini-2.0-flash"


class CacheSettings(_Section):
    db_path: str = _DEFAULT_DB_PATH
    content_ttl_hours: int = 24 * 7
    answer_ttl_hours: int = 24
    cleanup_interval_hours: int = Field(default=24, ge=1)


class AcquisitionSettings(_Section):
    """Heuristic constants for related-page expansion."""

    # Substrings that mark the primary URL as documentation
    doc_site_markers: list[str] = Field(
        default_factory=lambda: [
            "/docs/",
            "/documentation/",
            "github.com",
            "api-reference",
            "/guide/",
        ]
    )
    complex_query_min_length: int = 50
    complex_query_markers: list[str] = Field(
        default_factory=lambda: ["how", "explain", "compare", "difference", "why", "versus", "vs"]
    )
    # Substrings that make a discovered link worth scraping
    related_link_markers: list[str] = Field(
        default_factory=lambda: ["/docs/", "/guide/", "/tutorial/", "/api/", "/reference/"]
    )
    related_link_extensions: list[str] = Field(default_factory=lambda: [".md", ".mdx"])
    # Substrings that disqualify a link (trackers, community pages)
    excluded_link_markers: list[str] = Field(
        default_factory=lambda: [
            "/issues",
            "/pull/",
            "/pulls",
            "/discussions",
            "/community",
            "/blog",
        ]
    )
    max_related_pages: int = 2


class LoggingSettings(_Section):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PAGEASK__SERVER__PORT=9090
        env_prefix="PAGEASK__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    scraper: ScraperSettings = ScraperSettings()
    generator: GeneratorSettings = GeneratorSettings()
    cache: CacheSettings = CacheSettings()
    acquisition: AcquisitionSettings = AcquisitionSettings()
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
