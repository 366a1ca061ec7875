"""Configuration for peerbrowse.

Created: 2026-10-19

Settings come from environment variables prefixed with ``PEERBROWSE_``
(or a local ``.env`` file), e.g. ``PEERBROWSE_API_URL=http://nas:5030``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STATE_KEY = "peerbrowse-browse-state"


class Settings(BaseSettings):
    """Runtime settings for the browse client."""

    model_config = SettingsConfigDict(
        env_prefix="PEERBROWSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Peer service (slskd-compatible REST API)
    api_url: str = "http://localhost:5030"
    api_key: str | None = None
    # A full share listing can take tens of seconds to arrive
    request_timeout: float = 60.0
    status_poll_interval: float = Field(0.5, gt=0)

    # Session snapshot
    state_key: str = DEFAULT_STATE_KEY
    state_dir: Path | None = None

    log_level: str = "INFO"


def get_config_dir() -> Path:
    """Get/create the peerbrowse config directory (~/.peerbrowse)."""
    d = Path.home() / ".peerbrowse"
    d.mkdir(parents=True, exist_ok=True)
    return d


def get_state_dir() -> Path:
    """Directory holding persisted session snapshots."""
    settings = get_settings()
    d = settings.state_dir or (get_config_dir() / "state")
    d.mkdir(parents=True, exist_ok=True)
    return d


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
