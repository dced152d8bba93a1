"""Configuration management for the sales dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "settings.yaml"


@dataclass
class PostgresSettings:
    """PostgreSQL connection settings."""
    database_url_env_var: str = "DATABASE_URL"
    connect_timeout: int = 10

    @property
    def database_url(self) -> Optional[str]:
        return os.environ.get(self.database_url_env_var)

    @property
    def configured(self) -> bool:
        return bool(self.database_url)


@dataclass
class RestSettings:
    """PostgREST / Supabase endpoint settings."""
    url_env_var: str = "SUPABASE_URL"
    key_env_var: str = "SUPABASE_ANON"
    timeout: float = 15.0

    @property
    def url(self) -> Optional[str]:
        return os.environ.get(self.url_env_var)

    @property
    def key(self) -> Optional[str]:
        return os.environ.get(self.key_env_var)

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)


@dataclass
class LocalSettings:
    """Local JSON fallback store settings."""
    path: str = "data/salesboard.json"

    @property
    def file_path(self) -> Path:
        path = Path(self.path).expanduser()
        if not path.is_absolute():
            path = Path(__file__).parent.parent / path
        return path


@dataclass
class Settings:
    """Application settings."""
    # "auto", "rest", "postgres" or "local"
    backend: str = "auto"
    log_level: str = "INFO"
    postgres: PostgresSettings = field(default_factory=PostgresSettings)
    rest: RestSettings = field(default_factory=RestSettings)
    local: LocalSettings = field(default_factory=LocalSettings)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from YAML configuration file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return Settings()

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    return Settings(
        backend=str(data.get("backend", "auto")).lower(),
        log_level=str(data.get("log_level", "INFO")).upper(),
        postgres=PostgresSettings(**(data.get("postgres") or {})),
        rest=RestSettings(**(data.get("rest") or {})),
        local=LocalSettings(**(data.get("local") or {})),
    )
