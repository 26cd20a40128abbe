"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="NODEFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core service settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Emit JSON log lines (plain text when false)",
    )

    # System of record
    api_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL for relative endpoints and record lookups",
    )
    chat_endpoint: str = Field(
        default="/api/chat",
        description="Default endpoint for API response messages",
    )

    # Networked calls
    http_timeout_ms: int = Field(
        default=10000,
        description="Default timeout for outbound requests in milliseconds",
    )

    # Verification
    verification_max_retries: int = Field(
        default=3,
        description="Maximum lookup attempts when verifying an action",
    )
    verification_retry_delay_ms: int = Field(
        default=1000,
        description="Fixed delay between verification attempts in milliseconds",
    )

    @field_validator("http_timeout_ms", "verification_max_retries")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """Validate that limits are positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    @field_validator("verification_retry_delay_ms")
    @classmethod
    def validate_delay(cls, v: int) -> int:
        """Validate that the retry delay is not negative."""
        if v < 0:
            raise ValueError("verification_retry_delay_ms must not be negative")
        return v


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
