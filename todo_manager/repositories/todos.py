"""
Todo persistence.

Both todo variants share the ``todos`` row; a recurring todo also owns one
``recurring_todos`` row keyed by its id. Every read LEFT JOINs the two tables
and lets the mapper pick the variant.
"""
import logging
from datetime import date

from sqlalchemy import delete as sql_delete, func, insert, or_, select, text, update as sql_update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection

from todo_manager.database import Database
from todo_manager.exceptions import TodoNotFoundError
from todo_manager.mappers import recurrence_to_values, todo_from_row, todo_to_values
from todo_manager.models.todos import RecurringTodo as RecurringTable, Todo as TodoTable
from todo_manager.schemas.todo import FINISHED_STATUSES, Priority, RecurringTodo, Todo, TodoStatus
from todo_manager.utils import clock

logger = logging.getLogger(__name__)

todos = TodoTable.__table__
recurring = RecurringTable.__table__

_FINISHED = [s.value for s in FINISHED_STATUSES]


def _select_todos():
    return select(
        todos,
        recurring.c.recurring_interval_days,
        recurring.c.max_occurrences,
        recurring.c.current_occurrence,
    ).select_from(todos.outerjoin(recurring, recurring.c.todo_id == todos.c.id))


def _newest_first(stmt):
    return stmt.order_by(todos.c.created_at.desc(), todos.c.id.desc())


def _find(db: Database, stmt) -> list[Todo]:
    with db.connect() as conn:
        rows = conn.execute(stmt).all()
    return [todo_from_row(r) for r in rows]


def _upsert_recurrence(conn: Connection, todo: RecurringTodo) -> None:
    values = recurrence_to_values(todo)
    stmt = sqlite_insert(recurring).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[recurring.c.todo_id],
        set_={k: v for k, v in values.items() if k != "todo_id"},
    )
    conn.execute(stmt)


# ── Writes ─────────────────────────────────────────────

def create(db: Database, todo: Todo) -> Todo:
    now = clock.now()
    with db.transaction() as conn:
        conn.execute(insert(todos).values(**todo_to_values(todo), created_at=now, updated_at=now))
        new_id = conn.execute(text("SELECT last_insert_rowid()")).scalar_one()

        todo = todo.model_copy(update={"id": new_id, "created_at": now, "updated_at": now})
        if isinstance(todo, RecurringTodo):
            _upsert_recurrence(conn, todo)

    logger.debug("Created %s todo '%s' with id %d", todo.kind, todo.title, new_id)
    return todo


def update(db: Database, todo: Todo) -> Todo:
    now = clock.now()
    with db.transaction() as conn:
        result = conn.execute(
            sql_update(todos)
            .where(todos.c.id == todo.id)
            .values(**todo_to_values(todo), updated_at=now)
        )
        if result.rowcount == 0:
            raise TodoNotFoundError(todo.id)
        if isinstance(todo, RecurringTodo):
            _upsert_recurrence(conn, todo)

    logger.debug("Updated todo %d", todo.id)
    return todo.model_copy(update={"updated_at": now})


def delete(db: Database, todo_id: int) -> bool:
    with db.transaction() as conn:
        conn.execute(sql_delete(recurring).where(recurring.c.todo_id == todo_id))
        result = conn.execute(sql_delete(todos).where(todos.c.id == todo_id))
        deleted = result.rowcount > 0

    if deleted:
        logger.debug("Deleted todo %d", todo_id)
    return deleted


# ── Reads ──────────────────────────────────────────────

def find_by_id(db: Database, todo_id: int) -> Todo | None:
    with db.connect() as conn:
        row = conn.execute(_select_todos().where(todos.c.id == todo_id)).first()
    return todo_from_row(row) if row else None


def find_all(db: Database) -> list[Todo]:
    return _find(db, _newest_first(_select_todos()))


def find_by_project(db: Database, project_id: int) -> list[Todo]:
    return _find(db, _newest_first(_select_todos().where(todos.c.project_id == project_id)))


def find_by_user(db: Database, user_id: int) -> list[Todo]:
    return _find(db, _newest_first(_select_todos().where(todos.c.user_id == user_id)))


def find_by_status(db: Database, status: TodoStatus) -> list[Todo]:
    return _find(db, _newest_first(_select_todos().where(todos.c.status == status.value)))


def find_by_priority(db: Database, priority: Priority) -> list[Todo]:
    return _find(db, _newest_first(_select_todos().where(todos.c.priority == priority.value)))


def find_due_before(db: Database, day: date) -> list[Todo]:
    """Todos due on or before ``day``, earliest first."""
    return _find(
        db,
        _select_todos()
        .where(todos.c.due_date.is_not(None), todos.c.due_date <= day)
        .order_by(todos.c.due_date, todos.c.id),
    )


def find_due_on(db: Database, day: date) -> list[Todo]:
    return _find(db, _newest_first(_select_todos().where(todos.c.due_date == day)))


def find_overdue(db: Database) -> list[Todo]:
    """Past due and neither completed nor cancelled, against the same clock as Todo.is_overdue."""
    return _find(
        db,
        _select_todos()
        .where(
            todos.c.due_date.is_not(None),
            todos.c.due_date < clock.today(),
            todos.c.status.not_in(_FINISHED),
        )
        .order_by(todos.c.due_date, todos.c.id),
    )


def search(db: Database, term: str) -> list[Todo]:
    """Case-insensitive substring match on title or description."""
    pattern = f"%{term.strip().lower()}%"
    return _find(
        db,
        _newest_first(
            _select_todos().where(
                or_(
                    func.lower(todos.c.title).like(pattern),
                    func.lower(todos.c.description).like(pattern),
                )
            )
        ),
    )


def count(db: Database) -> int:
    with db.connect() as conn:
        return conn.execute(select(func.count()).select_from(todos)).scalar_one()


def count_by_status(db: Database, status: TodoStatus) -> int:
    with db.connect() as conn:
        return conn.execute(
            select(func.count()).select_from(todos).where(todos.c.status == status.value)
        ).scalar_one()


def count_by_priority(db: Database, priority: Priority) -> int:
    with db.connect() as conn:
        return conn.execute(
            select(func.count()).select_from(todos).where(todos.c.priority == priority.value)
        ).scalar_one()
