"""
Unit tests for room_booking/config.py

Tests Settings defaults, environment variable loading, production
validation, and configuration caching behavior.
"""

import logging

import pytest
from pydantic import ValidationError

from room_booking.config import Settings, configure_logging, get_settings


class TestSettingsDefaults:
    """Test Settings initialization with default values."""

    def test_settings_defaults(self, monkeypatch):
        """Settings should initialize with correct default values."""
        for name in ("PYTHON_ENV", "LOG_LEVEL", "DATABASE_URL", "STRICT_CREATION_CHECK"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.python_env == "development"
        assert settings.log_level == "INFO"
        assert settings.database_url == "sqlite:///./data/room_booking.db"
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 8000
        assert settings.strict_creation_check is False
        assert settings.max_occurrences_per_request == 366
        assert settings.booking_admin_recipient == ""
        assert settings.uses_notification_webhook is False

    def test_is_production_when_set(self):
        settings = Settings(_env_file=None, python_env="production")

        assert settings.is_production is True
        assert settings.is_development is False


class TestSettingsEnvironmentVariables:
    """Test Settings loading from environment variables."""

    def test_settings_from_env_vars(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/bookings")
        monkeypatch.setenv("STRICT_CREATION_CHECK", "true")
        monkeypatch.setenv("MAX_OCCURRENCES_PER_REQUEST", "50")
        monkeypatch.setenv("BOOKING_ADMIN_RECIPIENT", "facilities")

        settings = Settings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.uses_postgresql is True
        assert settings.strict_creation_check is True
        assert settings.max_occurrences_per_request == 50
        assert settings.booking_admin_recipient == "facilities"

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_max_occurrences_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_occurrences_per_request=0)


class TestProductionValidation:
    """Test validate_production_config()."""

    def test_development_skips_validation(self):
        Settings(_env_file=None, python_env="development").validate_production_config()

    def test_production_requires_postgresql(self):
        settings = Settings(
            _env_file=None,
            python_env="production",
            database_url="sqlite:///./data/room_booking.db",
        )

        with pytest.raises(ValueError, match="PostgreSQL"):
            settings.validate_production_config()

    def test_webhook_requires_secret(self):
        settings = Settings(
            _env_file=None,
            python_env="production",
            database_url="postgresql://db/bookings",
            notification_webhook_url="https://hooks.example.com",
        )

        with pytest.raises(ValueError, match="NOTIFICATION_WEBHOOK_SECRET"):
            settings.validate_production_config()

    def test_valid_production_config(self):
        Settings(
            _env_file=None,
            python_env="production",
            database_url="postgresql://db/bookings",
            auto_create_tables=False,
        ).validate_production_config()


class TestGetSettings:
    """Test cached settings access."""

    def test_cached(self):
        get_settings.cache_clear()

        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch):
        get_settings.cache_clear()
        first = get_settings()
        monkeypatch.setenv("BOOKING_ADMIN_RECIPIENT", "facilities")
        get_settings.cache_clear()

        try:
            assert get_settings() is not first
            assert get_settings().booking_admin_recipient == "facilities"
        finally:
            get_settings.cache_clear()


class TestConfigureLogging:
    """Test configure_logging()."""

    def test_applies_level(self):
        configure_logging(Settings(_env_file=None, log_level="WARNING"))

        assert logging.getLogger().level == logging.WARNING
        logging.getLogger().setLevel(logging.INFO)
