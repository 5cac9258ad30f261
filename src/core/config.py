"""Configuration management for lifequest."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(default="development", description="Deployment environment name")

    # Calendar Configuration
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used for calendar-day comparisons (e.g., 'Europe/Berlin')",
    )

    # Persistence Configuration
    redis_url: str | None = Field(default=None, description="Redis connection URL (e.g., redis://localhost:6379)")
    session_key_prefix: str = Field(default="lifequest-data", description="Prefix for persisted session keys")

    # OpenRouter Configuration
    openrouter_api_key: str | None = Field(default=None, description="OpenRouter API key for quest generation")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value

    # AI Model Configuration
    model_id: str = Field(
        default="anthropic/claude-3.5-sonnet",
        description="Model ID for OpenRouter quest generation",
    )
    model_provider: str | None = Field(
        default=None,
        description="Restrict OpenRouter routing to a single provider (optional)",
    )


# Application Constants
class Constants:
    """Application-wide constants."""

    # Daily Rollover
    MISSED_DAILY_HEALTH_PENALTY: int = 10
    EXHAUSTION_XP_PENALTY: int = 100
    EXHAUSTION_COIN_PENALTY: int = 50
    DEFAULT_MAX_HEALTH: int = 100

    # Progression
    SKILL_POINTS_PER_LEVEL: int = 3
    ACHIEVEMENT_UNLOCK_COINS: int = 15

    # Dungeons
    DUNGEON_SECONDS_PER_CHALLENGE: int = 30 * 60

    # Journal
    JOURNAL_ENTRY_XP: int = 25
    JOURNAL_ENTRY_COINS: int = 5
    JOURNAL_PENALTY_WINDOW_SECONDS: int = 3600
    WEEKLY_REVIEW_XP: int = 150

    # Notifications
    NOTIFICATION_INBOX_LIMIT: int = 100

    # Redis Configuration
    REDIS_MAX_CONNECTIONS: int = 10


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
