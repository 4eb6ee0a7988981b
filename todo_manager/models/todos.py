from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from todo_manager.database import Base
from todo_manager.models.user import User  # noqa: F401  users must be registered for the FKs below
from todo_manager.schemas.todo import UNBOUNDED_OCCURRENCES


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())


class Todo(Base):
    __tablename__ = "todos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    priority = Column(String(20), nullable=False, index=True, server_default="MEDIUM")  # LOW/MEDIUM/HIGH/URGENT
    status = Column(String(20), nullable=False, index=True, server_default="TODO")
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())


class RecurringTodo(Base):
    __tablename__ = "recurring_todos"

    todo_id = Column(Integer, ForeignKey("todos.id", ondelete="CASCADE"), primary_key=True)
    recurring_interval_days = Column(Integer, nullable=False)
    max_occurrences = Column(Integer, nullable=False, server_default=str(UNBOUNDED_OCCURRENCES))
    current_occurrence = Column(Integer, nullable=False, server_default="1")
    next_due_date = Column(Date, nullable=True)
