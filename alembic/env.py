"""
Alembic environment configuration for Room Booking.

The database URL always comes from application settings (DATABASE_URL),
never from alembic.ini, so migrations and the API share one source.
"""

import logging
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from room_booking.config import get_settings
from room_booking.models.base import Base

# Models must be imported for autogenerate to see their tables
from room_booking.models.rooms import Room  # noqa: F401
from room_booking.models.bookings import Booking, BookingGroup  # noqa: F401
from room_booking.models.notifications import Notification  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

settings = get_settings()
config.set_main_option("sqlalchemy.url", settings.database_url)

target_metadata = Base.metadata

# SQLite cannot ALTER most constraints in place; batch mode recreates tables
CONTEXT_OPTIONS = {
    "target_metadata": target_metadata,
    "render_as_batch": True,
}


def run_migrations_offline() -> None:
    """Emit migration SQL to the script output without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **CONTEXT_OPTIONS,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the configured database."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            compare_type=True,
            **CONTEXT_OPTIONS,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    logger.info(f"Running migrations offline for {settings.python_env}")
    run_migrations_offline()
else:
    logger.info(f"Running migrations online for {settings.python_env}")
    run_migrations_online()
