from datetime import date, datetime, timedelta

from todo_manager.mappers import (
    project_from_row,
    recurrence_to_values,
    todo_from_row,
    todo_to_values,
    user_from_row,
)
from todo_manager.schemas.todo import Priority, RecurringTodo, Todo, TodoStatus

CREATED = datetime(2025, 1, 2, 8, 0)

TODO_ROW = {
    "id": 7,
    "title": "Renew passport",
    "description": None,
    "due_date": date(2025, 4, 1),
    "priority": "HIGH",
    "status": "IN_PROGRESS",
    "project_id": None,
    "user_id": 2,
    "created_at": CREATED,
    "updated_at": CREATED,
    "recurring_interval_days": None,
    "max_occurrences": None,
    "current_occurrence": None,
}


def test_row_without_recurrence_is_a_simple_todo():
    todo = todo_from_row(TODO_ROW)

    assert type(todo) is Todo
    assert todo.kind == "simple"
    assert todo.priority is Priority.HIGH
    assert todo.status is TodoStatus.IN_PROGRESS
    assert todo.description is None
    assert todo.project_id is None


def test_row_with_recurrence_is_a_recurring_todo():
    row = dict(TODO_ROW, recurring_interval_days=14, max_occurrences=5, current_occurrence=2)
    todo = todo_from_row(row)

    assert isinstance(todo, RecurringTodo)
    assert todo.kind == "recurring"
    assert todo.recurring_interval == timedelta(days=14)
    assert (todo.current_occurrence, todo.max_occurrences) == (2, 5)
    assert todo.next_due_date == date(2025, 4, 15)


def test_stored_state_is_not_revalidated():
    # A past overflow from a legacy writer must still load
    row = dict(TODO_ROW, recurring_interval_days=7, max_occurrences=2, current_occurrence=3)
    todo = todo_from_row(row)
    assert todo.current_occurrence == 3


def test_todo_values_use_enum_names():
    values = todo_to_values(todo_from_row(TODO_ROW))
    assert values["priority"] == "HIGH"
    assert values["status"] == "IN_PROGRESS"
    assert "id" not in values


def test_recurrence_values_carry_next_due_date():
    todo = RecurringTodo(
        id=3, title="Water plants", due_date=date(2025, 3, 10),
        recurring_interval=timedelta(days=3),
    )
    assert recurrence_to_values(todo) == {
        "todo_id": 3,
        "recurring_interval_days": 3,
        "max_occurrences": 2147483647,
        "current_occurrence": 1,
        "next_due_date": date(2025, 3, 13),
    }


def test_user_row_maps_active_flag_to_bool():
    user = user_from_row({
        "id": 2, "username": "alice", "email": "alice@acme.io", "password_hash": "x",
        "first_name": None, "last_name": None, "active": 0,
        "created_at": CREATED, "updated_at": CREATED, "last_login_at": None,
    })
    assert user.active is False
    assert user.full_name == "alice"


def test_project_row_keeps_optional_dates_empty():
    project = project_from_row({
        "id": 1, "name": "Garden", "description": None, "start_date": None,
        "end_date": None, "user_id": 2, "created_at": CREATED, "updated_at": CREATED,
    })
    assert project.start_date is None
    assert not project.is_overdue(date(2030, 1, 1))
