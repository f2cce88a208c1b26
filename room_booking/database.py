"""
Database configuration and session management.

Provides:
- Database engine creation with proper configuration
- SessionLocal factory for creating database sessions
- check_connection() for health checks
- Database initialization utilities
"""

import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from room_booking.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if settings.is_production:
    settings.validate_production_config()

if "sqlite" in settings.database_url.lower():
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},  # Allow multiple threads (needed for FastAPI)
        poolclass=StaticPool,
        echo=settings.log_level == "DEBUG",
    )

    @event.listens_for(Engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints in SQLite."""
        if type(dbapi_conn).__module__.startswith("sqlite3"):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

else:
    engine = create_engine(
        settings.database_url,
        pool_size=5,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=settings.log_level == "DEBUG",
    )


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def init_db() -> None:
    """
    Initialize database by creating all tables.

    This is useful for development and testing. In production, use Alembic migrations.
    """
    from room_booking.models.base import Base

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def check_connection(db: Session) -> bool:
    """
    Test database connection.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
