from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from todo_manager.exceptions import ProjectNotFoundError, TodoNotFoundError
from todo_manager.schemas.todo import (
    Priority,
    RecurringTodo,
    RecurringTodoCreate,
    TodoCreate,
    TodoStatus,
    TodoUpdate,
)
from todo_manager.services import todos as todo_service

START = date(2025, 3, 10)


def _weekly(db, owner, max_occurrences=3):
    return todo_service.create_todo(db, RecurringTodoCreate(
        title="Weekly review",
        due_date=START,
        recurring_interval_days=7,
        max_occurrences=max_occurrences,
    ), owner.id)


def test_create_todo_assigns_owner_and_defaults(db, owner):
    todo = todo_service.create_todo(db, TodoCreate(title=" Call the bank "), owner.id)

    assert todo.id is not None
    assert todo.user_id == owner.id
    assert todo.title == "Call the bank"
    assert todo.priority is Priority.MEDIUM
    assert todo.status is TodoStatus.TODO
    assert todo.kind == "simple"


def test_create_recurring_todo(db, owner):
    todo = _weekly(db, owner)
    stored = todo_service.get_todo(db, todo.id)

    assert isinstance(stored, RecurringTodo)
    assert stored.recurring_interval == timedelta(days=7)
    assert stored.max_occurrences == 3


def test_recurring_without_limit_is_unbounded(db, owner):
    todo = _weekly(db, owner, max_occurrences=None)
    assert todo_service.get_todo(db, todo.id).is_unbounded


def test_create_todo_in_unknown_project_fails(db, owner):
    with pytest.raises(ProjectNotFoundError):
        todo_service.create_todo(db, TodoCreate(title="x", project_id=404), owner.id)


def test_invalid_input_is_rejected_before_storage(db, owner):
    with pytest.raises(ValidationError):
        TodoCreate(title="")
    with pytest.raises(ValidationError):
        RecurringTodoCreate(title="x", recurring_interval_days=0)
    assert todo_service.list_todos(db) == []


def test_get_missing_todo(db):
    with pytest.raises(TodoNotFoundError) as excinfo:
        todo_service.get_todo(db, 404)
    assert excinfo.value.todo_id == 404
    assert "404" in excinfo.value.user_friendly_message


def test_completing_recurring_todo_walks_all_occurrences(db, owner):
    todo = _weekly(db, owner, max_occurrences=3)

    second = todo_service.mark_completed(db, todo.id)
    assert (second.status, second.current_occurrence, second.due_date) == (
        TodoStatus.TODO, 2, START + timedelta(days=7)
    )

    third = todo_service.mark_completed(db, todo.id)
    stored = todo_service.get_todo(db, todo.id)
    assert (stored.status, stored.current_occurrence, stored.due_date) == (
        TodoStatus.TODO, 3, START + timedelta(days=14)
    )
    assert third.current_occurrence == 3

    final = todo_service.mark_completed(db, todo.id)
    stored = todo_service.get_todo(db, todo.id)
    assert final.status is TodoStatus.COMPLETED
    assert (stored.status, stored.current_occurrence, stored.due_date) == (
        TodoStatus.COMPLETED, 3, START + timedelta(days=14)
    )

    again = todo_service.mark_completed(db, todo.id)
    assert (again.status, again.current_occurrence, again.due_date) == (
        TodoStatus.COMPLETED, 3, START + timedelta(days=14)
    )
    assert todo_service.get_todo(db, todo.id).updated_at == stored.updated_at


def test_cancelled_todo_cannot_be_completed(db, owner):
    todo = todo_service.create_todo(db, TodoCreate(title="Paint fence"), owner.id)
    todo_service.mark_cancelled(db, todo.id)

    with pytest.raises(ValueError):
        todo_service.mark_completed(db, todo.id)
    assert todo_service.get_todo(db, todo.id).status is TodoStatus.CANCELLED


def test_simple_todo_lifecycle(db, owner):
    todo = todo_service.create_todo(db, TodoCreate(title="Paint fence"), owner.id)

    assert todo_service.mark_in_progress(db, todo.id).status is TodoStatus.IN_PROGRESS
    assert todo_service.mark_cancelled(db, todo.id).status is TodoStatus.CANCELLED
    with pytest.raises(ValueError):
        todo_service.mark_in_progress(db, todo.id)

    reopened = todo_service.update_status(db, todo.id, TodoStatus.TODO)
    assert reopened.status is TodoStatus.TODO
    assert todo_service.update_status(db, todo.id, TodoStatus.COMPLETED).status is TodoStatus.COMPLETED


def test_update_todo_changes_only_given_fields(db, owner):
    todo = _weekly(db, owner)
    updated = todo_service.update_todo(db, todo.id, TodoUpdate(title="Monthly review", priority=Priority.HIGH))

    stored = todo_service.get_todo(db, todo.id)
    assert stored.title == updated.title == "Monthly review"
    assert stored.priority is Priority.HIGH
    assert stored.due_date == START
    assert isinstance(stored, RecurringTodo)


def test_update_todo_status_completes_recurring_occurrence(db, owner):
    todo = _weekly(db, owner)
    updated = todo_service.update_todo(db, todo.id, TodoUpdate(title="Weekly sync", status=TodoStatus.COMPLETED))

    stored = todo_service.get_todo(db, todo.id)
    assert stored.title == updated.title == "Weekly sync"
    assert (stored.status, stored.current_occurrence, stored.due_date) == (
        TodoStatus.TODO, 2, START + timedelta(days=7)
    )


def test_update_todo_status_follows_transition_rules(db, owner):
    todo = todo_service.create_todo(db, TodoCreate(title="Paint fence"), owner.id)
    todo_service.mark_completed(db, todo.id)

    with pytest.raises(ValueError):
        todo_service.update_todo(db, todo.id, TodoUpdate(title="Repaint fence", status=TodoStatus.IN_PROGRESS))
    stored = todo_service.get_todo(db, todo.id)
    assert (stored.title, stored.status) == ("Paint fence", TodoStatus.COMPLETED)

    reopened = todo_service.update_todo(db, todo.id, TodoUpdate(status=TodoStatus.TODO))
    assert reopened.status is TodoStatus.TODO


def test_update_todo_rejects_blank_title(db, owner):
    todo = todo_service.create_todo(db, TodoCreate(title="Paint fence"), owner.id)
    with pytest.raises(ValidationError):
        todo_service.update_todo(db, todo.id, TodoUpdate(title=None))
    assert todo_service.get_todo(db, todo.id).title == "Paint fence"


def test_assign_and_remove_project(db, owner, project):
    todo = todo_service.create_todo(db, TodoCreate(title="Dig beds"), owner.id)

    todo_service.assign_to_project(db, todo.id, project.id)
    assert [t.id for t in todo_service.list_by_project(db, project.id)] == [todo.id]

    todo_service.remove_from_project(db, todo.id)
    assert todo_service.list_by_project(db, project.id) == []

    with pytest.raises(ProjectNotFoundError):
        todo_service.assign_to_project(db, todo.id, 404)


def test_delete_todo(db, owner):
    todo = todo_service.create_todo(db, TodoCreate(title="Temp"), owner.id)
    todo_service.delete_todo(db, todo.id)
    with pytest.raises(TodoNotFoundError):
        todo_service.delete_todo(db, todo.id)


def test_due_today_and_overdue(db, owner, frozen_clock):
    today = frozen_clock.date()
    todo_service.create_todo(db, TodoCreate(title="today", due_date=today), owner.id)
    todo_service.create_todo(db, TodoCreate(title="late", due_date=today - timedelta(days=3)), owner.id)
    todo_service.create_todo(db, TodoCreate(title="later", due_date=today + timedelta(days=3)), owner.id)

    assert [t.title for t in todo_service.list_due_today(db)] == ["today"]
    assert [t.title for t in todo_service.list_overdue(db)] == ["late"]


def test_search_and_filters(db, owner):
    todo_service.create_todo(db, TodoCreate(title="Fix bike", priority=Priority.URGENT), owner.id)
    todo_service.create_todo(db, TodoCreate(title="Buy bike lights"), owner.id)

    assert len(todo_service.search_todos(db, "BIKE")) == 2
    assert len(todo_service.search_todos(db, "  ")) == 2
    assert [t.title for t in todo_service.list_by_priority(db, Priority.URGENT)] == ["Fix bike"]
    assert len(todo_service.list_by_status(db, TodoStatus.TODO)) == 2
    assert len(todo_service.list_todos(db, owner.id)) == 2


def test_statistics(db, owner, frozen_clock):
    today = frozen_clock.date()
    a = todo_service.create_todo(db, TodoCreate(title="a", priority=Priority.HIGH), owner.id)
    b = todo_service.create_todo(db, TodoCreate(title="b", due_date=today - timedelta(days=1)), owner.id)
    c = todo_service.create_todo(db, TodoCreate(title="c", priority=Priority.LOW), owner.id)
    todo_service.mark_completed(db, a.id)
    todo_service.mark_in_progress(db, b.id)
    todo_service.mark_cancelled(db, c.id)

    stats = todo_service.get_statistics(db)
    assert (stats.total, stats.todo, stats.in_progress, stats.completed, stats.cancelled) == (3, 0, 1, 1, 1)
    assert stats.overdue == 1
    assert stats.by_priority[Priority.HIGH] == 1
    assert stats.by_priority[Priority.MEDIUM] == 1
    assert stats.by_priority[Priority.URGENT] == 0
