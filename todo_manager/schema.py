"""
Schema bootstrap and migration.

Three layouts can be found on disk:

* FRESH   - no ``todos`` table; every table, index and the default admin are created.
* LEGACY  - ``todos`` exists without ``user_id`` (single-user databases); ownership
            columns are added and every existing row is assigned to the admin (id 1).
* CURRENT - nothing to do.

Creation and migration each run in a single transaction.
"""
import logging
from enum import Enum

from sqlalchemy import inspect, insert, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from todo_manager.config import settings
from todo_manager.database import Base, Database
from todo_manager.exceptions import DatabaseError, SchemaInitializationError
from todo_manager.models.todos import Project, RecurringTodo, Todo
from todo_manager.models.user import User
from todo_manager.utils import clock
from todo_manager.utils.security import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ID = 1
OWNER_COLUMN = "user_id"


class SchemaLayout(str, Enum):
    FRESH = "FRESH"
    LEGACY = "LEGACY"
    CURRENT = "CURRENT"


class SchemaManager:
    def __init__(self, db: Database):
        self.db = db

    def ensure_schema(self) -> SchemaLayout:
        layout = self.detect_layout()
        logger.info("Detected %s schema layout in %s", layout.value.lower(), self.db.url)

        try:
            if layout is SchemaLayout.FRESH:
                with self.db.transaction() as conn:
                    self._create_all(conn)
                logger.info("Database schema created")
            elif layout is SchemaLayout.LEGACY:
                with self.db.transaction() as conn:
                    self._migrate_legacy(conn)
                logger.info("Legacy database migrated to multi-user layout")
        except DatabaseError as e:
            logger.error("Schema initialization failed: %s", e.cause)
            raise SchemaInitializationError("Failed to initialize database schema", e.cause) from e

        return layout

    def detect_layout(self) -> SchemaLayout:
        try:
            with self.db.engine.connect() as conn:
                inspector = inspect(conn)
                if not inspector.has_table(Todo.__tablename__):
                    return SchemaLayout.FRESH
                try:
                    columns = {c["name"] for c in inspector.get_columns(Todo.__tablename__)}
                except NoSuchTableError:
                    return SchemaLayout.FRESH
        except SQLAlchemyError as e:
            logger.error("Could not inspect existing schema: %s", e)
            raise SchemaInitializationError("Failed to inspect database schema", e) from e

        if OWNER_COLUMN in columns:
            return SchemaLayout.CURRENT
        return SchemaLayout.LEGACY

    # ── Fresh install ──────────────────────────────────

    def _create_all(self, conn: Connection) -> None:
        Base.metadata.create_all(conn, checkfirst=True)
        self._insert_default_admin(conn)

    # ── Legacy migration ───────────────────────────────

    def _migrate_legacy(self, conn: Connection) -> None:
        User.__table__.create(conn, checkfirst=True)
        self._insert_default_admin(conn)

        inspector = inspect(conn)
        if inspector.has_table(Project.__tablename__):
            self._add_owner_column(conn, inspector, Project.__tablename__)
        else:
            Project.__table__.create(conn)

        self._add_owner_column(conn, inspector, Todo.__tablename__)
        RecurringTodo.__table__.create(conn, checkfirst=True)

        for table in Base.metadata.sorted_tables:
            for index in table.indexes:
                index.create(conn, checkfirst=True)

    def _add_owner_column(self, conn: Connection, inspector, table_name: str) -> None:
        columns = {c["name"] for c in inspector.get_columns(table_name)}
        if OWNER_COLUMN in columns:
            return
        # SQLite cannot add a REFERENCES column with a non-null default while FKs are on
        conn.execute(text(
            f"ALTER TABLE {table_name} "
            f"ADD COLUMN {OWNER_COLUMN} INTEGER NOT NULL DEFAULT {DEFAULT_ADMIN_ID}"
        ))
        logger.info("Added %s.%s, existing rows assigned to user %d",
                    table_name, OWNER_COLUMN, DEFAULT_ADMIN_ID)

    # ── Bootstrap account ──────────────────────────────

    def _insert_default_admin(self, conn: Connection) -> None:
        now = clock.now()
        stmt = insert(User.__table__).prefix_with("OR IGNORE").values(
            id=DEFAULT_ADMIN_ID,
            username=settings.DEFAULT_ADMIN_USERNAME,
            email=settings.DEFAULT_ADMIN_EMAIL,
            password_hash=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
            first_name="Admin",
            last_name="User",
            active=True,
            created_at=now,
            updated_at=now,
        )
        result = conn.execute(stmt)
        if result.rowcount:
            logger.warning(
                "Default admin account '%s' created with the default password. "
                "Change it on first login.", settings.DEFAULT_ADMIN_USERNAME
            )
