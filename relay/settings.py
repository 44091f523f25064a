"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Relay configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,  # Allow both field name and alias
    )

    # Environment
    environment: Literal["development", "production", "testing"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Local state (session id persistence)
    state_dir: Path = Field(
        default=Path.home() / ".claude-relay",
        description="Directory holding session.json and other relay state",
        validation_alias=AliasChoices("state_dir", "relay_dir"),
    )

    # Backend
    default_model: str = Field(
        default="claude-opus-4-6",
        description="Model requested from the agent backend",
    )
    channel_tag: str = Field(
        default="Terminal",
        description="Tag prefixed to every prompt so the agent knows the channel",
    )

    # Context budget
    context_window: int = Field(default=200_000, ge=1_000)
    system_prompt_estimate: int = Field(
        default=18_000,
        ge=0,
        description="Baseline token overhead of the system prompt",
    )
    tool_overhead_per_call: int = Field(default=500, ge=0)
    chars_per_token: float = Field(default=3.5, gt=0)
    warn_remaining_pct: int = Field(default=10, ge=0, le=100)
    critical_remaining_pct: int = Field(default=5, ge=0, le=100)

    # Flushing / delivery
    chunk_size_limit: int = Field(
        default=4_000,
        ge=100,
        description="Maximum characters in one delivered message",
    )
    flush_stale_seconds: float = Field(default=3.0, gt=0)
    keepalive_interval_seconds: float = Field(
        default=4.0,
        gt=0,
        description="Interval of the 'still working' indicator during a run",
    )

    # Approval gate
    approval_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Unanswered approvals auto-reject after this many seconds",
    )

    # Inbound rate limiting
    rate_limit_max: int = Field(default=10, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
