"""
leadscore/config.py — Central configuration loaded from environment variables.
All modules import settings from here; never read os.environ directly elsewhere.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── LLM ──────────────────────────────────────────────────────────────────
    openrouter_api_key: Optional[str] = Field(
        default=None,
        description="OpenRouter API key. Without it, scoring runs on the rule-based fallback only.",
    )
    openrouter_model: str = Field(
        default="openai/gpt-4o-mini",
        description="OpenRouter model identifier",
    )

    # ── Store ─────────────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+pysqlite:///:memory:",
        description="SQLAlchemy URL for the offer/lead/result store",
    )

    # ── Scoring ───────────────────────────────────────────────────────────────
    scoring_use_ai: bool = Field(
        default=True,
        description="Run the remote intent classifier (False = heuristic fallback only)",
    )
    ai_timeout_ms: int = Field(
        default=30_000,
        gt=0,
        description="Timeout for a single classifier request in milliseconds",
    )
    continue_on_ai_failure: bool = Field(
        default=True,
        description="Substitute a fallback analysis when the classifier fails",
    )
    scoring_batch_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of leads scored concurrently per batch",
    )
    ai_max_retries: int = Field(
        default=3,
        ge=1,
        description="Maximum classifier attempts per lead",
    )
    ai_retry_base_delay_ms: int = Field(
        default=1_000,
        ge=0,
        description="Base delay for exponential backoff between attempts",
    )
    batch_pause_ms: int = Field(
        default=100,
        ge=0,
        description="Pause inserted between batches to throttle the classifier",
    )

    # ── Upload ────────────────────────────────────────────────────────────────
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Maximum accepted CSV upload size",
    )
    max_leads_per_upload: int = Field(
        default=1000,
        gt=0,
        description="Maximum number of prospect rows per upload",
    )

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")


# Singleton - import this everywhere
settings = Settings()
