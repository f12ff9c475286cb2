"""
Central configuration for timelog.
Uses Pydantic BaseSettings for type-safe configuration from environment variables.
"""

import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env relative to this file (timelog/config.py → project root)
_ENV_FILE = Path(__file__).parent.parent / ".env"


def _load_env_file() -> None:
    """
    Load .env into os.environ, but only for keys that are currently unset
    or set to empty strings. This ensures .env values win over blank shell
    env vars (e.g. REDMINE_API_KEY='') while still allowing explicit
    non-empty shell overrides.
    """
    if not _ENV_FILE.exists():
        return
    from dotenv import dotenv_values
    for key, value in dotenv_values(_ENV_FILE).items():
        if value and not os.environ.get(key):
            os.environ[key] = value


# Run at import time so Settings() sees the correct values
_load_env_file()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Redmine (seed values; the persisted settings store is authoritative)
    redmine_url: str = ""
    redmine_api_key: str = ""
    redmine_timeout: float = 5.0  # httpx default

    # Storage
    data_dir: str = "./data"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("redmine_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, "timelog.db")

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.data_dir, "logs")


def get_settings() -> "Settings":
    """Return the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


_settings: Settings | None = None


class _SettingsProxy:
    """Lazy proxy so `from timelog.config import settings` works without eager init."""
    def __getattr__(self, name):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
