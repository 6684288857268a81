"""
Configuration settings for certpath.

Uses Pydantic Settings for environment variable management with .env file support.
Every setting can be overridden with a ``CERTPATH_`` prefixed environment variable,
e.g. ``CERTPATH_STORE_URL=sqlite:///certpath.db``.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CERTPATH_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    store_url: str = Field(
        default="file://~/.certpath/store",
        description="Blob store location: file://<dir>, sqlite:///<path>, any SQLAlchemy URL, or memory://",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Log level for the CLI (DEBUG, INFO, WARNING, ERROR)",
    )

    # ========================================
    # Admin access (shared secret)
    # ========================================
    admin_username: str = Field(
        default="admin",
        description="Admin user name",
    )
    admin_password: str = Field(
        default="password",
        description="Shared secret gating admin capabilities",
    )

    # ========================================
    # Progression
    # ========================================
    unlock_codes: list[str] = Field(
        default=["dqadm", "adm"],
        description="Reserved codes that toggle unlocking of all content",
    )
    pass_threshold: int = Field(
        default=80,
        description="Minimum exam-mode score (percent) that advances progression",
    )
    questions_per_day: int = Field(
        default=10,
        description="Questions per day in sequential (daily) quiz mode",
    )

    # ========================================
    # Remote sync
    # ========================================
    sync_url: str | None = Field(
        default=None,
        description="URL of the remote content snapshot (JSON)",
    )
    sync_timeout_seconds: float | None = Field(
        default=None,
        description="Timeout for the remote fetch; None disables the timeout",
    )
    sync_on_startup: bool = Field(
        default=True,
        description="Fetch the remote snapshot when the engine starts",
    )

    # ========================================
    # AI question generation
    # ========================================
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative AI (Gemini) API key",
    )
    ai_model: str = Field(
        default="gemini-2.0-flash",
        description="AI model for question generation",
    )
    bulk_questions_per_topic: int = Field(
        default=5,
        description="Questions generated per sub-topic by bulk generation",
    )

    def has_ai_configured(self) -> bool:
        """Check if an AI provider is configured."""
        return bool(self.gemini_api_key)

    def has_sync_configured(self) -> bool:
        """Check if a remote snapshot URL is configured."""
        return bool(self.sync_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
