"""Tests for configuration settings."""
import pytest
from pydantic import ValidationError

from nodeflow.config.settings import Settings, get_settings, reset_settings


class TestSettings:
    """Test Settings configuration."""

    def test_settings_default_values(self, monkeypatch):
        """Test default values are set correctly."""
        monkeypatch.delenv("NODEFLOW_API_BASE_URL", raising=False)
        monkeypatch.delenv("NODEFLOW_VERIFICATION_RETRY_DELAY_MS", raising=False)

        settings = Settings()

        # env might be 'test' from conftest.py
        assert settings.env in ("development", "test")
        assert settings.log_level == "INFO"
        assert settings.log_json is True

        assert settings.api_base_url == "http://localhost:5000"
        assert settings.chat_endpoint == "/api/chat"
        assert settings.http_timeout_ms == 10000

        assert settings.verification_max_retries == 3
        assert settings.verification_retry_delay_ms == 1000

    def test_settings_env_prefix(self, monkeypatch):
        """Test that NODEFLOW_ prefix works for environment variables."""
        monkeypatch.setenv("NODEFLOW_ENV", "production")
        monkeypatch.setenv("NODEFLOW_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("NODEFLOW_HTTP_TIMEOUT_MS", "2500")
        monkeypatch.setenv("NODEFLOW_VERIFICATION_MAX_RETRIES", "7")

        settings = Settings()

        assert settings.env == "production"
        assert settings.log_level == "DEBUG"
        assert settings.http_timeout_ms == 2500
        assert settings.verification_max_retries == 7

    @pytest.mark.parametrize("field", ["http_timeout_ms", "verification_max_retries"])
    def test_non_positive_limits_rejected(self, field):
        with pytest.raises(ValidationError) as exc_info:
            Settings(**{field: 0})

        assert f"{field} must be positive" in str(exc_info.value)

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            Settings(verification_retry_delay_ms=-1)

    def test_zero_delay_allowed(self):
        assert Settings(verification_retry_delay_ms=0).verification_retry_delay_ms == 0


class TestSettingsSingleton:
    """Test get_settings/reset_settings."""

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_reset_settings(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("NODEFLOW_CHAT_ENDPOINT", "/api/messages")

        reset_settings()
        second = get_settings()

        assert second is not first
        assert second.chat_endpoint == "/api/messages"
