"""
Row <-> entity conversion.

Pure functions, no I/O and no validation: persisted state is trusted and
rebuilt through the entities' ``from_storage`` factories. ``todo_from_row`` is
the only place that decides whether a row is a simple or a recurring todo.
"""
from datetime import timedelta
from typing import Any, Mapping

from todo_manager.schemas.project import Project
from todo_manager.schemas.todo import Priority, RecurringTodo, Todo, TodoStatus
from todo_manager.schemas.user import User

USER_FIELDS = (
    "id", "username", "email", "password_hash", "first_name", "last_name",
    "active", "created_at", "updated_at", "last_login_at",
)
PROJECT_FIELDS = (
    "id", "name", "description", "start_date", "end_date", "user_id",
    "created_at", "updated_at",
)
TODO_FIELDS = (
    "id", "title", "description", "due_date", "project_id", "user_id",
    "created_at", "updated_at",
)


def _mapping(row: Any) -> Mapping[str, Any]:
    return row._mapping if hasattr(row, "_mapping") else row


# ── Users ───────────────────────────────────────────────

def user_from_row(row) -> User:
    data = _mapping(row)
    fields = {name: data[name] for name in USER_FIELDS}
    fields["active"] = bool(fields["active"])
    return User.from_storage(**fields)


def user_to_values(user: User) -> dict[str, Any]:
    return {
        "username": user.username,
        "email": user.email,
        "password_hash": user.password_hash,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "active": user.active,
    }


# ── Projects ────────────────────────────────────────────

def project_from_row(row) -> Project:
    data = _mapping(row)
    return Project.from_storage(**{name: data[name] for name in PROJECT_FIELDS})


def project_to_values(project: Project) -> dict[str, Any]:
    return {
        "name": project.name,
        "description": project.description,
        "start_date": project.start_date,
        "end_date": project.end_date,
        "user_id": project.user_id,
    }


# ── Todos ───────────────────────────────────────────────

def is_recurring_row(row) -> bool:
    return _mapping(row).get("recurring_interval_days") is not None


def todo_from_row(row) -> Todo | RecurringTodo:
    """Map a todos LEFT JOIN recurring_todos row to the matching todo variant."""
    data = _mapping(row)
    fields = {name: data[name] for name in TODO_FIELDS}
    fields["priority"] = Priority(data["priority"])
    fields["status"] = TodoStatus(data["status"])

    if not is_recurring_row(row):
        return Todo.from_storage(**fields)

    return RecurringTodo.from_storage(
        **fields,
        recurring_interval=timedelta(days=data["recurring_interval_days"]),
        max_occurrences=data["max_occurrences"],
        current_occurrence=data["current_occurrence"],
    )


def todo_to_values(todo: Todo) -> dict[str, Any]:
    return {
        "title": todo.title,
        "description": todo.description,
        "due_date": todo.due_date,
        "priority": todo.priority.value,
        "status": todo.status.value,
        "project_id": todo.project_id,
        "user_id": todo.user_id,
    }


def recurrence_to_values(todo: RecurringTodo) -> dict[str, Any]:
    return {
        "todo_id": todo.id,
        "recurring_interval_days": todo.interval_days,
        "max_occurrences": todo.max_occurrences,
        "current_occurrence": todo.current_occurrence,
        "next_due_date": todo.next_due_date,
    }
