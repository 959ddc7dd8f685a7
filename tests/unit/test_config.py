"""Tests for configuration management."""

import pytest
from pydantic import ValidationError


def create_test_settings(**kwargs):
    """Helper to create Settings instance without loading .env file."""
    from threatwatch.config import Settings

    return Settings(_env_file=None, **kwargs)


class TestSettings:
    """Tests for Settings defaults and environment loading."""

    def test_defaults(self) -> None:
        settings = create_test_settings()
        assert settings.environment == "production"
        assert settings.log_level == "INFO"
        assert settings.log_to_file is False
        assert settings.auto_response_enabled is False
        assert settings.include_recommendations is True
        assert settings.is_development is False

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("AUTO_RESPONSE_ENABLED", "true")
        monkeypatch.setenv("INCLUDE_RECOMMENDATIONS", "false")

        settings = create_test_settings()

        assert settings.is_development is True
        assert settings.log_level == "DEBUG"
        assert settings.auto_response_enabled is True
        assert settings.include_recommendations is False

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            create_test_settings(log_level="LOUD")
        assert "log_level" in str(exc_info.value)

    def test_log_file_path(self) -> None:
        settings = create_test_settings(log_directory="/var/log/tw", log_file_prefix="engine")
        assert settings.log_file_path == "/var/log/tw/engine.log"


class TestGetSettings:
    def test_cached(self) -> None:
        from threatwatch.config import get_settings

        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from threatwatch.config import get_settings

        first = get_settings()
        monkeypatch.setenv("AUTO_RESPONSE_ENABLED", "true")
        get_settings.cache_clear()
        second = get_settings()

        assert second is not first
        assert second.auto_response_enabled is True
