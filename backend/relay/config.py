"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - Every timing constant of the retention and abuse policies is configurable

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Durations as plain ints in their natural unit (days, minutes, seconds):
      one env var per knob, no duration parsing
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://relay:relay@db:5432/relay"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Retention
    broadcast_ttl_days: int = Field(7, ge=1)
    decrypted_invite_grace_minutes: int = Field(10, ge=1)
    mailbox_inactivity_days: int = Field(30, ge=1)

    # Cleanup scheduler
    cleanup_interval_seconds: float = Field(60.0, gt=0)
    cleanup_scheduler_enabled: bool = True

    # Abuse limits: (window, cap) per limiter
    anonymous_rate_window_seconds: int = Field(300, ge=1)
    anonymous_rate_max_requests: int = Field(30, ge=1)
    mailbox_creation_window_seconds: int = Field(3600, ge=1)
    mailbox_creation_max_requests: int = Field(5, ge=1)
    broadcast_creation_window_seconds: int = Field(3600, ge=1)
    broadcast_creation_max_requests: int = Field(3, ge=1)
    rate_limit_token_prefix: str = "relay-anon"
    # Only enable behind a proxy that overwrites X-Forwarded-For
    rate_limit_trust_proxy: bool = False

    # Bot mitigation
    bot_min_elapsed_ms: int = Field(2000, ge=0)

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
