from datetime import date, datetime, timedelta
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from todo_manager.utils import clock
from todo_manager.utils.sanitization import sanitize_string, optional_text

# Stored when a recurring todo has no occurrence limit
UNBOUNDED_OCCURRENCES = 2147483647

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000


# ── Enums ───────────────────────────────────────────────

class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @classmethod
    def from_string(cls, value: str) -> "Priority":
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError):
            raise ValueError(f"Unknown priority: {value!r}")


class TodoStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def display_name(self) -> str:
        return {"TODO": "To Do", "IN_PROGRESS": "In Progress"}.get(self.value, self.value.title())

    @property
    def is_finished(self) -> bool:
        return self in (TodoStatus.COMPLETED, TodoStatus.CANCELLED)

    @property
    def is_modifiable(self) -> bool:
        return self in (TodoStatus.TODO, TodoStatus.IN_PROGRESS)

    @classmethod
    def from_string(cls, value: str) -> "TodoStatus":
        try:
            return cls(value.strip().upper().replace(" ", "_"))
        except (AttributeError, ValueError):
            raise ValueError(f"Unknown status: {value!r}")


FINISHED_STATUSES = (TodoStatus.COMPLETED, TodoStatus.CANCELLED)


# ── Entities ────────────────────────────────────────────

class Todo(BaseModel):
    """A simple todo. `kind` is the discriminator of the todo sum type."""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["simple"] = "simple"
    id: int | None = None
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    due_date: date | None = None
    priority: Priority = Priority.MEDIUM
    status: TodoStatus = TodoStatus.TODO
    project_id: int | None = None
    user_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def sanitize_title(cls, v):
        return sanitize_string(v)

    @field_validator("description", mode="before")
    @classmethod
    def sanitize_description(cls, v):
        return optional_text(v)

    @classmethod
    def from_storage(cls, **fields):
        """Rebuild from persisted state; stored rows are trusted and not re-validated."""
        return cls.model_construct(**fields)

    @property
    def is_modifiable(self) -> bool:
        return self.status.is_modifiable

    def is_overdue(self, today: date | None = None) -> bool:
        today = today or clock.today()
        return (
            self.due_date is not None
            and self.due_date < today
            and not self.status.is_finished
        )

    def mark_completed(self) -> None:
        self.status = TodoStatus.COMPLETED

    def mark_in_progress(self) -> None:
        if not self.is_modifiable:
            raise ValueError(f"Cannot modify todo in status: {self.status.value}")
        self.status = TodoStatus.IN_PROGRESS

    def mark_cancelled(self) -> None:
        if not self.is_modifiable:
            raise ValueError(f"Cannot modify todo in status: {self.status.value}")
        self.status = TodoStatus.CANCELLED


class RecurringTodo(Todo):
    """
    A todo that repeats every `recurring_interval` until `max_occurrences`
    is reached. Completing a non-final occurrence rolls the same row forward:
    due date moves by one interval, the occurrence counter advances and the
    status goes back to TODO.
    """

    kind: Literal["recurring"] = "recurring"
    recurring_interval: timedelta
    max_occurrences: int = Field(UNBOUNDED_OCCURRENCES, ge=1)
    current_occurrence: int = Field(1, ge=1)

    @field_validator("recurring_interval")
    @classmethod
    def whole_days(cls, v: timedelta) -> timedelta:
        if v < timedelta(days=1) or v % timedelta(days=1):
            raise ValueError("Recurring interval must be a non-zero number of whole days")
        return v

    @model_validator(mode="after")
    def occurrence_within_limit(self):
        if self.current_occurrence > self.max_occurrences:
            raise ValueError("Current occurrence cannot exceed max occurrences")
        return self

    @property
    def interval_days(self) -> int:
        return self.recurring_interval.days

    @property
    def next_due_date(self) -> date | None:
        if self.due_date is None:
            return None
        return self.due_date + self.recurring_interval

    @property
    def is_unbounded(self) -> bool:
        return self.max_occurrences == UNBOUNDED_OCCURRENCES

    def has_more_occurrences(self) -> bool:
        return self.current_occurrence < self.max_occurrences

    def is_final_occurrence(self) -> bool:
        return not self.has_more_occurrences()

    def remaining_occurrences(self) -> int | None:
        if self.is_unbounded:
            return None
        return max(0, self.max_occurrences - self.current_occurrence)

    def move_to_next_occurrence(self) -> bool:
        if not self.has_more_occurrences() or self.due_date is None:
            return False
        self.due_date = self.due_date + self.recurring_interval
        self.current_occurrence += 1
        self.status = TodoStatus.TODO
        return True

    def mark_completed(self) -> None:
        if not self.move_to_next_occurrence():
            self.status = TodoStatus.COMPLETED


AnyTodo = Annotated[Union[Todo, RecurringTodo], Field(discriminator="kind")]


# ── Write-boundary schemas ──────────────────────────────

class TodoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    due_date: date | None = None
    priority: Priority = Priority.MEDIUM
    project_id: int | None = None

    @field_validator("title", mode="before")
    @classmethod
    def sanitize_title(cls, v):
        return sanitize_string(v)

    @field_validator("description", mode="before")
    @classmethod
    def sanitize_description(cls, v):
        return optional_text(v)


class RecurringTodoCreate(TodoCreate):
    recurring_interval_days: int = Field(..., gt=0)
    max_occurrences: int | None = Field(None, ge=1)


class TodoUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    due_date: date | None = None
    priority: Priority | None = None
    status: TodoStatus | None = None
    project_id: int | None = None

    @field_validator("title", mode="before")
    @classmethod
    def sanitize_title(cls, v):
        return sanitize_string(v)

    @field_validator("description", mode="before")
    @classmethod
    def sanitize_description(cls, v):
        return optional_text(v)


class TodoStatistics(BaseModel):
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    overdue: int = 0
    by_priority: dict[Priority, int] = Field(default_factory=dict)
