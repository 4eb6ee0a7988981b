import logging

from sqlalchemy import delete as sql_delete, func, insert, select, text, update as sql_update

from todo_manager.database import Database
from todo_manager.exceptions import UserNotFoundError
from todo_manager.mappers import user_from_row, user_to_values
from todo_manager.models.user import User as UserTable
from todo_manager.schemas.user import User
from todo_manager.utils import clock

logger = logging.getLogger(__name__)

users = UserTable.__table__


def create(db: Database, user: User) -> User:
    now = clock.now()
    with db.transaction() as conn:
        conn.execute(
            insert(users).values(**user_to_values(user), created_at=now, updated_at=now)
        )
        new_id = conn.execute(text("SELECT last_insert_rowid()")).scalar_one()

    logger.debug("Created user %s with id %d", user.username, new_id)
    return user.model_copy(update={"id": new_id, "created_at": now, "updated_at": now})


def find_by_id(db: Database, user_id: int) -> User | None:
    with db.connect() as conn:
        row = conn.execute(select(users).where(users.c.id == user_id)).first()
    return user_from_row(row) if row else None


def find_by_username(db: Database, username: str) -> User | None:
    with db.connect() as conn:
        row = conn.execute(select(users).where(users.c.username == username)).first()
    return user_from_row(row) if row else None


def find_by_email(db: Database, email: str) -> User | None:
    with db.connect() as conn:
        row = conn.execute(
            select(users).where(users.c.email == email.strip().lower())
        ).first()
    return user_from_row(row) if row else None


def find_all(db: Database) -> list[User]:
    with db.connect() as conn:
        rows = conn.execute(select(users).order_by(users.c.username)).all()
    return [user_from_row(r) for r in rows]


def find_all_active(db: Database) -> list[User]:
    with db.connect() as conn:
        rows = conn.execute(
            select(users).where(users.c.active.is_(True)).order_by(users.c.username)
        ).all()
    return [user_from_row(r) for r in rows]


def update(db: Database, user: User) -> User:
    now = clock.now()
    with db.connect() as conn:
        result = conn.execute(
            sql_update(users)
            .where(users.c.id == user.id)
            .values(**user_to_values(user), updated_at=now)
        )
        found = result.rowcount > 0
    if not found:
        raise UserNotFoundError(user.id)

    logger.debug("Updated user %d", user.id)
    return user.model_copy(update={"updated_at": now})


def update_last_login(db: Database, user_id: int) -> None:
    now = clock.now()
    with db.connect() as conn:
        result = conn.execute(
            sql_update(users)
            .where(users.c.id == user_id)
            .values(last_login_at=now, updated_at=now)
        )
        found = result.rowcount > 0
    if not found:
        raise UserNotFoundError(user_id)


def _set_active(db: Database, user_id: int, active: bool) -> bool:
    with db.connect() as conn:
        result = conn.execute(
            sql_update(users)
            .where(users.c.id == user_id)
            .values(active=active, updated_at=clock.now())
        )
        return result.rowcount > 0


def deactivate(db: Database, user_id: int) -> bool:
    changed = _set_active(db, user_id, False)
    if changed:
        logger.debug("Deactivated user %d", user_id)
    return changed


def reactivate(db: Database, user_id: int) -> bool:
    changed = _set_active(db, user_id, True)
    if changed:
        logger.debug("Reactivated user %d", user_id)
    return changed


def delete(db: Database, user_id: int) -> bool:
    with db.connect() as conn:
        result = conn.execute(sql_delete(users).where(users.c.id == user_id))
        deleted = result.rowcount > 0
    if deleted:
        logger.debug("Deleted user %d", user_id)
    return deleted


def exists(db: Database, user_id: int) -> bool:
    with db.connect() as conn:
        return conn.execute(
            select(users.c.id).where(users.c.id == user_id)
        ).first() is not None


def username_exists(db: Database, username: str) -> bool:
    with db.connect() as conn:
        return conn.execute(
            select(users.c.id).where(users.c.username == username)
        ).first() is not None


def email_exists(db: Database, email: str) -> bool:
    with db.connect() as conn:
        return conn.execute(
            select(users.c.id).where(users.c.email == email.strip().lower())
        ).first() is not None


def count(db: Database) -> int:
    with db.connect() as conn:
        return conn.execute(select(func.count()).select_from(users)).scalar_one()


def count_active(db: Database) -> int:
    with db.connect() as conn:
        return conn.execute(
            select(func.count()).select_from(users).where(users.c.active.is_(True))
        ).scalar_one()
