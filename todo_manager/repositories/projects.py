import logging

from sqlalchemy import delete as sql_delete, exists as sql_exists, func, insert, select, text, update as sql_update

from todo_manager.database import Database
from todo_manager.exceptions import ProjectNotFoundError
from todo_manager.mappers import project_from_row, project_to_values
from todo_manager.models.todos import Project as ProjectTable, RecurringTodo as RecurringTable, Todo as TodoTable
from todo_manager.schemas.project import Project
from todo_manager.schemas.todo import FINISHED_STATUSES, TodoStatus
from todo_manager.utils import clock

logger = logging.getLogger(__name__)

projects = ProjectTable.__table__
todos = TodoTable.__table__
recurring = RecurringTable.__table__

_FINISHED = [s.value for s in FINISHED_STATUSES]
_UNFINISHED = [TodoStatus.TODO.value, TodoStatus.IN_PROGRESS.value]


def create(db: Database, project: Project) -> Project:
    now = clock.now()
    with db.transaction() as conn:
        conn.execute(
            insert(projects).values(**project_to_values(project), created_at=now, updated_at=now)
        )
        new_id = conn.execute(text("SELECT last_insert_rowid()")).scalar_one()

    logger.debug("Created project '%s' with id %d", project.name, new_id)
    return project.model_copy(update={"id": new_id, "created_at": now, "updated_at": now})


def find_by_id(db: Database, project_id: int) -> Project | None:
    with db.connect() as conn:
        row = conn.execute(select(projects).where(projects.c.id == project_id)).first()
    return project_from_row(row) if row else None


def _find(db: Database, stmt) -> list[Project]:
    with db.connect() as conn:
        rows = conn.execute(stmt).all()
    return [project_from_row(r) for r in rows]


def find_all(db: Database) -> list[Project]:
    return _find(db, select(projects).order_by(projects.c.created_at.desc(), projects.c.id.desc()))


def find_by_user(db: Database, user_id: int) -> list[Project]:
    return _find(
        db,
        select(projects)
        .where(projects.c.user_id == user_id)
        .order_by(projects.c.created_at.desc(), projects.c.id.desc()),
    )


def find_by_name(db: Database, name: str) -> list[Project]:
    """Case-insensitive substring match on the project name."""
    pattern = f"%{name.strip().lower()}%"
    return _find(
        db,
        select(projects)
        .where(func.lower(projects.c.name).like(pattern))
        .order_by(projects.c.name),
    )


def find_completed(db: Database) -> list[Project]:
    """Projects that have todos, all of them completed or cancelled."""
    has_todos = sql_exists().where(todos.c.project_id == projects.c.id)
    has_open_todos = sql_exists().where(
        todos.c.project_id == projects.c.id,
        todos.c.status.not_in(_FINISHED),
    )
    return _find(
        db,
        select(projects)
        .where(has_todos, ~has_open_todos)
        .order_by(projects.c.created_at.desc(), projects.c.id.desc()),
    )


def find_active(db: Database) -> list[Project]:
    """Projects with at least one todo still to do or in progress."""
    has_open_todos = sql_exists().where(
        todos.c.project_id == projects.c.id,
        todos.c.status.in_(_UNFINISHED),
    )
    return _find(
        db,
        select(projects)
        .where(has_open_todos)
        .order_by(projects.c.created_at.desc(), projects.c.id.desc()),
    )


def update(db: Database, project: Project) -> Project:
    now = clock.now()
    with db.connect() as conn:
        result = conn.execute(
            sql_update(projects)
            .where(projects.c.id == project.id)
            .values(**project_to_values(project), updated_at=now)
        )
        found = result.rowcount > 0
    if not found:
        raise ProjectNotFoundError(project.id)

    logger.debug("Updated project %d", project.id)
    return project.model_copy(update={"updated_at": now})


def delete(db: Database, project_id: int) -> bool:
    """Delete a project with its todos and their recurrence rows, all or nothing."""
    project_todo_ids = select(todos.c.id).where(todos.c.project_id == project_id)

    with db.transaction() as conn:
        conn.execute(sql_delete(recurring).where(recurring.c.todo_id.in_(project_todo_ids)))
        todo_result = conn.execute(sql_delete(todos).where(todos.c.project_id == project_id))
        removed_todos = todo_result.rowcount
        result = conn.execute(sql_delete(projects).where(projects.c.id == project_id))
        deleted = result.rowcount > 0

    if deleted:
        logger.debug("Deleted project %d and %d todo(s)", project_id, removed_todos)
    return deleted


def count(db: Database) -> int:
    with db.connect() as conn:
        return conn.execute(select(func.count()).select_from(projects)).scalar_one()


def exists(db: Database, project_id: int) -> bool:
    with db.connect() as conn:
        return conn.execute(
            select(projects.c.id).where(projects.c.id == project_id)
        ).first() is not None
