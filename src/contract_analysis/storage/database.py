"""Database connection management for the document store."""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base


logger = logging.getLogger(__name__)


def get_database_url(
    host: Optional[str] = None,
    port: Optional[int] = None,
    database: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
) -> str:
    """
    Build PostgreSQL database URL from parameters or environment variables.

    Args:
        host: Database host (default: from POSTGRES_HOST env or 'localhost')
        port: Database port (default: from POSTGRES_PORT env or 5432)
        database: Database name (default: from POSTGRES_DB env or 'contract_analysis')
        user: Database user (default: from POSTGRES_USER env or 'postgres')
        password: Database password (default: from POSTGRES_PASSWORD env or 'postgres')

    Returns:
        PostgreSQL connection URL string.
    """
    host = host or os.environ.get("POSTGRES_HOST", "localhost")
    port = port or int(os.environ.get("POSTGRES_PORT", "5432"))
    database = database or os.environ.get("POSTGRES_DB", "contract_analysis")
    user = user or os.environ.get("POSTGRES_USER", "postgres")
    password = password or os.environ.get("POSTGRES_PASSWORD", "postgres")

    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Database connection manager with a bounded connection pool.

    The engine is created once and shared across concurrent pipeline runs.
    Each session is checked out for a single operation and always returned
    to the pool, whether the operation succeeds or fails.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        pool_size: int = 5,
        max_overflow: int = 0,
        pool_timeout: int = 30,
        connect_timeout: int = 10,
        statement_timeout: float = 30.0,
        echo: bool = False,
    ):
        """
        Initialize the database manager.

        Args:
            database_url: Database connection URL. If None, built from env vars.
            pool_size: Number of connections to keep in the pool.
            max_overflow: Connections allowed beyond pool_size.
            pool_timeout: Seconds to wait for a free connection.
            connect_timeout: Seconds to wait when opening a new connection.
            statement_timeout: Seconds a statement may run before the server
                cancels it. On SQLite this bounds the wait for a locked file.
            echo: If True, log all SQL statements.
        """
        self._database_url = database_url or get_database_url()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_timeout = pool_timeout
        self._connect_timeout = connect_timeout
        self._statement_timeout = statement_timeout
        self._echo = echo

    @property
    def database_url(self) -> str:
        return self._database_url

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    def connect_args(self) -> Dict[str, Any]:
        """DBAPI connect arguments carrying the connection and statement timeouts."""
        if self.is_sqlite:
            return {"check_same_thread": False, "timeout": self._statement_timeout}
        statement_ms = int(self._statement_timeout * 1000)
        return {
            "connect_timeout": int(self._connect_timeout),
            "options": f"-c statement_timeout={statement_ms}",
        }

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            # SQLite doesn't support pool_size and max_overflow parameters
            if self.is_sqlite:
                self._engine = create_engine(
                    self._database_url,
                    echo=self._echo,
                    connect_args=self.connect_args(),
                )
                event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)
            else:
                self._engine = create_engine(
                    self._database_url,
                    pool_size=self._pool_size,
                    max_overflow=self._max_overflow,
                    pool_timeout=self._pool_timeout,
                    echo=self._echo,
                    pool_pre_ping=True,  # Enable connection health checks
                    connect_args=self.connect_args(),
                )
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get a database session with automatic cleanup.

        Yields:
            SQLAlchemy Session object.

        Example:
            with db_manager.get_session() as session:
                session.add(some_object)
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self) -> None:
        """Create all tables defined in the models."""
        Base.metadata.create_all(self.engine)
        logger.info("Database schema initialized")

    def close(self) -> None:
        """Close the database engine and release all connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def health_check(self) -> bool:
        """
        Check if the database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
