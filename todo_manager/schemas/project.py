from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from todo_manager.schemas.todo import AnyTodo, TodoStatus, DESCRIPTION_MAX_LENGTH
from todo_manager.utils import clock
from todo_manager.utils.sanitization import sanitize_string, optional_text

NAME_MAX_LENGTH = 255


def _check_dates(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValueError("Project end date cannot be before start date")


# ── Common base for readable/writeable fields ──
class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("name", mode="before")
    @classmethod
    def sanitize_name(cls, v):
        return sanitize_string(v)

    @field_validator("description", mode="before")
    @classmethod
    def sanitize_description(cls, v):
        return optional_text(v)

    @model_validator(mode="after")
    def dates_in_order(self):
        _check_dates(self.start_date, self.end_date)
        return self


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("name", mode="before")
    @classmethod
    def sanitize_name(cls, v):
        return sanitize_string(v)

    @field_validator("description", mode="before")
    @classmethod
    def sanitize_description(cls, v):
        return optional_text(v)


class Project(ProjectBase):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    user_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_storage(cls, **fields):
        return cls.model_construct(**fields)

    def is_overdue(self, today: date | None = None) -> bool:
        today = today or clock.today()
        return self.end_date is not None and self.end_date < today


class ProjectDetail(Project):
    todos: list[AnyTodo] = []

    @property
    def completion_percentage(self) -> float:
        if not self.todos:
            return 0.0
        completed = sum(1 for t in self.todos if t.status == TodoStatus.COMPLETED)
        return completed * 100.0 / len(self.todos)

    @property
    def is_completed(self) -> bool:
        return bool(self.todos) and all(t.status.is_finished for t in self.todos)


class ProjectCompletionStats(BaseModel):
    project_id: int
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    overdue: int = 0
    completion_percentage: float = 0.0


class ProjectStatistics(BaseModel):
    total: int = 0
    active: int = 0
    completed: int = 0
