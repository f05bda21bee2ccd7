"""Database connection management."""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from meshtastic_hub.common.models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the SQLAlchemy engine and session factory."""

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize database manager.

        Args:
            database_url: SQLAlchemy database URL
            echo: Echo SQL statements
        """
        self.database_url = database_url
        self._ensure_sqlite_directory(database_url)

        engine_kwargs: dict = {"echo": echo}
        if self._is_sqlite_memory(database_url):
            # Share one connection so all sessions see the same in-memory db
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            engine_kwargs["poolclass"] = StaticPool
        elif database_url.startswith("sqlite"):
            # Sessions are opened from persistence worker threads
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self.engine: Engine = create_engine(database_url, **engine_kwargs)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @staticmethod
    def _is_sqlite_memory(database_url: str) -> bool:
        return database_url.startswith("sqlite") and (
            ":memory:" in database_url or database_url.rstrip("/") == "sqlite:"
        )

    @staticmethod
    def _ensure_sqlite_directory(database_url: str) -> None:
        """Create the parent directory of a file-based SQLite database."""
        url = make_url(database_url)
        if url.get_backend_name() != "sqlite" or not url.database:
            return
        if url.database == ":memory:":
            return
        directory = os.path.dirname(os.path.abspath(url.database))
        os.makedirs(directory, exist_ok=True)

    def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created")

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            SQLAlchemy session (caller must close it)
        """
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations.

        Commits on success, rolls back and re-raises on error.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Dispose of the engine connection pool."""
        self.engine.dispose()
