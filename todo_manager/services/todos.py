import logging
from datetime import timedelta

from todo_manager.database import Database
from todo_manager.exceptions import ProjectNotFoundError, TodoNotFoundError
from todo_manager.repositories import projects as project_repo
from todo_manager.repositories import todos as todo_repo
from todo_manager.schemas.todo import (
    UNBOUNDED_OCCURRENCES,
    Priority,
    RecurringTodo,
    RecurringTodoCreate,
    Todo,
    TodoCreate,
    TodoStatistics,
    TodoStatus,
    TodoUpdate,
)
from todo_manager.utils import clock

logger = logging.getLogger(__name__)


def _require_project(db: Database, project_id: int | None) -> None:
    if project_id is not None and not project_repo.exists(db, project_id):
        raise ProjectNotFoundError(project_id)


def create_todo(db: Database, todo_data: TodoCreate, current_user_id: int) -> Todo:
    _require_project(db, todo_data.project_id)

    fields = dict(
        title=todo_data.title,
        description=todo_data.description,
        due_date=todo_data.due_date,
        priority=todo_data.priority,
        project_id=todo_data.project_id,
        user_id=current_user_id,
    )
    if isinstance(todo_data, RecurringTodoCreate):
        new_todo = RecurringTodo(
            **fields,
            recurring_interval=timedelta(days=todo_data.recurring_interval_days),
            max_occurrences=todo_data.max_occurrences or UNBOUNDED_OCCURRENCES,
        )
    else:
        new_todo = Todo(**fields)

    new_todo = todo_repo.create(db, new_todo)
    logger.info("Created todo %d '%s' for user %d", new_todo.id, new_todo.title, current_user_id)
    return new_todo


def get_todo(db: Database, todo_id: int) -> Todo:
    todo = todo_repo.find_by_id(db, todo_id)
    if todo is None:
        raise TodoNotFoundError(todo_id)
    return todo


def list_todos(db: Database, user_id: int | None = None) -> list[Todo]:
    if user_id is None:
        return todo_repo.find_all(db)
    return todo_repo.find_by_user(db, user_id)


def list_by_project(db: Database, project_id: int) -> list[Todo]:
    _require_project(db, project_id)
    return todo_repo.find_by_project(db, project_id)


def list_by_status(db: Database, status: TodoStatus) -> list[Todo]:
    return todo_repo.find_by_status(db, status)


def list_by_priority(db: Database, priority: Priority) -> list[Todo]:
    return todo_repo.find_by_priority(db, priority)


def list_overdue(db: Database) -> list[Todo]:
    return todo_repo.find_overdue(db)


def list_due_today(db: Database) -> list[Todo]:
    return todo_repo.find_due_on(db, clock.today())


def search_todos(db: Database, term: str | None) -> list[Todo]:
    if not term or not term.strip():
        return todo_repo.find_all(db)
    return todo_repo.search(db, term)


def update_todo(db: Database, todo_id: int, update_data: TodoUpdate) -> Todo:
    todo = get_todo(db, todo_id)
    changes = update_data.model_dump(exclude_unset=True)
    status = changes.pop("status", None)
    if status == todo.status:
        status = None
    if "project_id" in changes:
        _require_project(db, changes["project_id"])
    # Reject a forbidden transition before any field is written
    if status is not None and status != TodoStatus.TODO:
        _require_modifiable(todo)

    if changes:
        # Re-validate the merged state; the variant stays the one chosen at creation
        todo = type(todo).model_validate({**todo.model_dump(), **changes})
        todo = todo_repo.update(db, todo)
        logger.info("Updated todo %d", todo_id)

    # Status goes through the same transitions as the mark_* operations
    if status is not None:
        todo = update_status(db, todo_id, status)
    return todo


def _require_modifiable(todo: Todo) -> None:
    if not todo.is_modifiable:
        raise ValueError(f"Cannot modify todo in status: {todo.status.value}")


def mark_completed(db: Database, todo_id: int) -> Todo:
    """
    Complete a todo. A recurring todo with occurrences left rolls forward to its
    next occurrence instead; the final occurrence becomes COMPLETED.
    """
    todo = get_todo(db, todo_id)
    if todo.status == TodoStatus.COMPLETED:
        logger.info("Todo %d is already completed", todo_id)
        return todo
    _require_modifiable(todo)

    todo.mark_completed()
    todo = todo_repo.update(db, todo)

    if isinstance(todo, RecurringTodo) and todo.status == TodoStatus.TODO:
        logger.info(
            "Recurring todo %d advanced to occurrence %d, due %s",
            todo_id, todo.current_occurrence, todo.due_date,
        )
    else:
        logger.info("Todo %d completed", todo_id)
    return todo


def mark_in_progress(db: Database, todo_id: int) -> Todo:
    todo = get_todo(db, todo_id)
    todo.mark_in_progress()
    todo = todo_repo.update(db, todo)
    logger.info("Todo %d in progress", todo_id)
    return todo


def mark_cancelled(db: Database, todo_id: int) -> Todo:
    todo = get_todo(db, todo_id)
    todo.mark_cancelled()
    todo = todo_repo.update(db, todo)
    logger.info("Todo %d cancelled", todo_id)
    return todo


def update_status(db: Database, todo_id: int, status: TodoStatus) -> Todo:
    if status == TodoStatus.COMPLETED:
        return mark_completed(db, todo_id)
    if status == TodoStatus.IN_PROGRESS:
        return mark_in_progress(db, todo_id)
    if status == TodoStatus.CANCELLED:
        return mark_cancelled(db, todo_id)

    # Back to TODO reopens a finished todo
    todo = get_todo(db, todo_id)
    todo.status = TodoStatus.TODO
    todo = todo_repo.update(db, todo)
    logger.info("Todo %d reopened", todo_id)
    return todo


def assign_to_project(db: Database, todo_id: int, project_id: int) -> Todo:
    todo = get_todo(db, todo_id)
    _require_project(db, project_id)
    todo.project_id = project_id
    todo = todo_repo.update(db, todo)
    logger.info("Todo %d assigned to project %d", todo_id, project_id)
    return todo


def remove_from_project(db: Database, todo_id: int) -> Todo:
    todo = get_todo(db, todo_id)
    todo.project_id = None
    todo = todo_repo.update(db, todo)
    logger.info("Todo %d removed from its project", todo_id)
    return todo


def delete_todo(db: Database, todo_id: int) -> None:
    if not todo_repo.delete(db, todo_id):
        raise TodoNotFoundError(todo_id)
    logger.info("Deleted todo %d", todo_id)


def get_statistics(db: Database) -> TodoStatistics:
    return TodoStatistics(
        total=todo_repo.count(db),
        todo=todo_repo.count_by_status(db, TodoStatus.TODO),
        in_progress=todo_repo.count_by_status(db, TodoStatus.IN_PROGRESS),
        completed=todo_repo.count_by_status(db, TodoStatus.COMPLETED),
        cancelled=todo_repo.count_by_status(db, TodoStatus.CANCELLED),
        overdue=len(todo_repo.find_overdue(db)),
        by_priority={p: todo_repo.count_by_priority(db, p) for p in Priority},
    )
