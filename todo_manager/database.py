import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, StaticPool

from todo_manager.config import settings
from todo_manager.exceptions import DatabaseError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_memory_url(url: str) -> bool:
    database = make_url(url).database
    return not database or database == ":memory:"


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Build a SQLite engine.

    File databases get a fresh DBAPI connection per operation (NullPool).
    In-memory databases live only as long as their single connection, so
    that one connection is shared (StaticPool).
    Bound parameters are kept out of error messages and echo output since
    they include password hashes.
    """
    if _is_memory_url(url):
        engine = create_engine(
            url,
            echo=echo,
            hide_parameters=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(url, echo=echo, hide_parameters=True, poolclass=NullPool)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy own BEGIN so DDL participates in transactions too
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


class Database:
    """
    Persistence context: one per process, passed to every repository and
    service call instead of living in a global.
    """

    def __init__(self, url: str | None = None, echo: bool | None = None):
        self.url = url or settings.DATABASE_URL
        self.engine = create_db_engine(
            self.url, echo=settings.SQL_ECHO if echo is None else echo
        )
        self._schema_lock = threading.Lock()
        self._schema_ready = False

    @property
    def is_memory(self) -> bool:
        return _is_memory_url(self.url)

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Scoped connection for single-statement work; committed on success."""
        try:
            with self.engine.connect() as conn:
                yield conn
                conn.commit()
        except SQLAlchemyError as e:
            logger.error("Database operation failed: %s", e)
            raise DatabaseError("Database operation failed", e) from e

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Scoped explicit transaction: commit on success, rollback on any failure."""
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error("Transaction rolled back: %s", e)
            raise DatabaseError("Transaction failed and was rolled back", e) from e

    def ensure_schema(self) -> None:
        """Create or migrate the schema once for this context."""
        if self._schema_ready:
            return
        with self._schema_lock:
            if self._schema_ready:
                return
            from todo_manager.schema import SchemaManager

            SchemaManager(self).ensure_schema()
            self._schema_ready = True

    def is_healthy(self) -> bool:
        try:
            with self.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except DatabaseError as e:
            logger.warning("Database health check failed: %s", e.cause)
            return False

    def dispose(self) -> None:
        logger.info("Shutting down database %s", self.url)
        self.engine.dispose()


def create_database(url: str | None = None) -> Database:
    """Process-start entry point: build the context and bring the schema up to date."""
    db = Database(url)
    db.ensure_schema()
    return db
