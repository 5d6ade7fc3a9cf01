"""
Database connection and session management for the SQL-backed store.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from activity_status.config import get_config
from activity_status.logger import get_logger
from activity_status.models import Base

if TYPE_CHECKING:
    from activity_status.config import StoreConfig

logger = get_logger(__name__)


def build_sqlite_url(path: str) -> str:
    """Build a SQLite database URL.

    Args:
        path: File path, ":memory:" or an existing sqlite:// URL

    Returns:
        SQLAlchemy URL string
    """
    if path.startswith("sqlite://"):
        return path
    if path == ":memory:":
        return "sqlite://"

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def _engine_kwargs(url: str, config: "StoreConfig") -> dict:
    kwargs = {
        "echo": config.echo,
        "connect_args": {
            "check_same_thread": False,  # Scheduler and request threads share the engine
            "timeout": 30,
        },
    }
    if url == "sqlite://" or ":memory:" in url:
        # A single shared connection keeps one in-memory database alive
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["poolclass"] = QueuePool
        kwargs["pool_size"] = config.pool_size
        kwargs["max_overflow"] = config.max_overflow
    return kwargs


def _set_sqlite_pragma(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class DatabaseManager:
    """Database manager for context-managed database operations."""

    def __init__(self, db_path: Optional[str] = None, store_config: Optional["StoreConfig"] = None):
        """Initialize database manager.

        Args:
            db_path: Optional database path or URL, overrides the configured one.
            store_config: Optional store configuration (global config when omitted).
        """
        self._store_config = store_config or get_config().store
        self._db_path = db_path or self._store_config.path
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def url(self) -> str:
        """Database URL."""
        return build_sqlite_url(self._db_path)

    @property
    def engine(self) -> Engine:
        """Get the database engine."""
        if self._engine is None:
            url = self.url
            self._engine = create_engine(url, **_engine_kwargs(url, self._store_config))
            event.listen(self._engine, "connect", _set_sqlite_pragma)
            logger.debug(f"Created engine for {url}")

        return self._engine

    def init_db(self, drop_all: bool = False) -> None:
        """Initialize database tables.

        Args:
            drop_all: If True, drop existing tables first
        """
        if drop_all:
            logger.warning("Dropping all tables - data will be lost!")
            Base.metadata.drop_all(bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session.

        Yields:
            SQLAlchemy Session instance
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
            )
        session = self._session_factory()

        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def __enter__(self) -> "DatabaseManager":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
