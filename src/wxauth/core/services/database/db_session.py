"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from wxauth.runtime.config.config_data import DatabaseConfig
from wxauth.runtime.context import get_config


class DbSessionService:
    def __init__(self, config: DatabaseConfig | None = None, engine: Engine | None = None):
        """Initialize the shared database engine and session factory.

        Args:
            config: Database settings; defaults to the active context config
            engine: Pre-built engine, used by tests to share an in-memory DB
        """
        self._config = config or get_config().database
        if engine is not None:
            self._engine = engine
            return

        url = self._config.url
        engine_kwargs: dict[str, Any] = {
            "echo": self._config.echo,
            "connect_args": self._get_connect_args(url),
        }
        if url.startswith("sqlite"):
            if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
                # One shared connection, or each session sees an empty database.
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                {
                    "pool_size": self._config.pool_size,
                    "max_overflow": self._config.max_overflow,
                    "pool_timeout": self._config.pool_timeout,
                    "pool_recycle": self._config.pool_recycle,
                    "pool_pre_ping": True,
                }
            )

        logger.info("Initializing database engine for {}", _redact_url(url))
        self._engine = create_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            enable_sqlite_savepoints(self._engine)

    @staticmethod
    def _get_connect_args(url: str) -> dict:
        """Get database-specific connection arguments."""
        if url.startswith("sqlite"):
            return {"check_same_thread": False}
        return {}

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(self._engine, expire_on_commit=False, autoflush=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Commit on success, roll back and re-raise on any error."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error("Database transaction failed: {}", type(e).__name__)
            raise
        finally:
            db.close()

    def create_all(self) -> None:
        """Create all database tables."""
        from wxauth.entities.core.user import UserTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error("Database health check failed: {}", type(e).__name__)
            return False

    def dispose(self) -> None:
        self._engine.dispose()


def _redact_url(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if "@" not in rest:
        return url
    return f"{scheme}{sep}***@{rest.split('@', 1)[1]}"


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests inside it.

    pysqlite defers BEGIN until the first DML statement, which makes a
    leading SAVEPOINT act as the outer transaction.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")
