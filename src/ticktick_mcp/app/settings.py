"""Application settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "ticktick-mcp"
    app_version: str = "1.0.0"
    access_token: str = ""
    api_base_url: str = "https://api.ticktick.com/open/v1"
    inbox_project_id: str = "inbox"
    cache_path: Path = Field(default_factory=lambda: Path.home() / ".ticktick-mcp-cache.json")
    cache_ttl_hours: float = Field(default=24.0, gt=0)
    request_timeout_s: float = Field(default=10.0, ge=0.1)
    host: str = "0.0.0.0"
    port: int = Field(default=8007, ge=1, le=65535)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TICKTICK_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
