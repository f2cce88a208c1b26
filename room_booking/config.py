"""
Configuration management for Room Booking.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/room_booking.db",
        description="Database connection URL"
    )
    auto_create_tables: bool = Field(
        default=False,
        description="Create missing tables at API startup (development only)"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    # Booking policy
    strict_creation_check: bool = Field(
        default=False,
        description=(
            "Block new bookings against pending reservations as well as approved ones. "
            "When False, overlapping pending requests coexist until an admin decides."
        )
    )
    max_occurrences_per_request: int = Field(
        default=366,
        ge=1,
        description="Upper bound on occurrences a single recurring request may expand to"
    )

    # Notifications
    booking_admin_recipient: str = Field(
        default="",
        description="Recipient ID notified of new booking requests (empty = disabled)"
    )
    notification_webhook_url: str = Field(
        default="",
        description="Optional URL that receives every notification as a signed JSON POST"
    )
    notification_webhook_secret: str = Field(
        default="",
        description="Shared secret for the notification webhook HMAC signature"
    )
    notification_webhook_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Webhook request timeout in seconds"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        """Check if PostgreSQL is the configured database."""
        return "postgresql" in self.database_url.lower()

    @property
    def uses_notification_webhook(self) -> bool:
        """Check if notifications should also be pushed to a webhook."""
        return bool(self.notification_webhook_url)

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        if not self.uses_postgresql:
            errors.append(
                "Production requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string."
            )

        if self.uses_notification_webhook and not self.notification_webhook_secret:
            errors.append(
                "NOTIFICATION_WEBHOOK_SECRET is required when NOTIFICATION_WEBHOOK_URL is set."
            )

        if self.auto_create_tables:
            errors.append("AUTO_CREATE_TABLES must be disabled in production; use Alembic.")

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.
    Use this function throughout the application to access settings.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from room_booking.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.database_url)
    """
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(settings.log_level)
