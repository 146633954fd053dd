"""Application configuration loaded from environment variables with Pydantic validation."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Forum API
    forum_api_key: SecretStr
    forum_base_url: str = "https://foru.ms/api/v1"
    forum_bearer_token: SecretStr | None = None

    # Groq
    groq_api_key: SecretStr
    groq_model: str = "llama-3.3-70b-versatile"
    llm_requests_per_minute: int = Field(default=30, ge=1, le=600)

    # Insight engine
    cache_ttl_seconds: int = Field(default=300, ge=1, le=3600)
    content_char_budget: int = Field(default=2000, ge=200, le=20000)

    # Dashboard refresh
    refresh_interval_minutes: int = Field(default=15, ge=1, le=1440)
    dashboard_thread_limit: int = Field(default=100, ge=1, le=500)

    # Logging
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Load and validate settings from environment."""
    return Settings()
