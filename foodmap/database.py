"""Database connection and session management."""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings
from .models import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Create SQLAlchemy engine with connection pooling."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases live in a single connection
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using
        echo=False,  # Set to True for SQL debugging
    )


class Database:
    """Engine and session factory for the local store."""

    def __init__(self, settings: Settings):
        self.engine = create_db_engine(settings.database_url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Context manager for database sessions.

        Usage:
            with database.session() as db:
                db.query(...)
        """
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create_tables(self) -> None:
        """Create any missing tables. Alembic migrations produce the same schema."""
        Base.metadata.create_all(self.engine)

    def check_health(self) -> bool:
        """Verify database connection is working.

        Returns:
            True if database is healthy, False otherwise.
        """
        try:
            with self.session() as db:
                db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def list_tables(self) -> list[str]:
        """List all tables in the database."""
        return sorted(inspect(self.engine).get_table_names())

    def dispose(self) -> None:
        """Dispose of the engine and all connections.

        Call this during graceful shutdown.
        """
        self.engine.dispose()
