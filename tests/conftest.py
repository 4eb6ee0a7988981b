from datetime import date, datetime

import pytest

from todo_manager.config import settings
from todo_manager.database import Database
from todo_manager.schemas.project import ProjectCreate
from todo_manager.schemas.user import UserCreate
from todo_manager.services import auth as auth_service
from todo_manager.services import projects as project_service
from todo_manager.utils import clock

FROZEN_NOW = datetime(2025, 3, 10, 9, 30)


@pytest.fixture
def frozen_clock(monkeypatch):
    monkeypatch.setattr(clock, "now", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.fixture
def db():
    """Fresh in-memory database with the schema in place."""
    database = Database(settings.TEST_DATABASE_URL)
    database.ensure_schema()
    yield database
    database.dispose()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "todos.db"


@pytest.fixture
def file_db(db_path):
    database = Database(f"sqlite:///{db_path}")
    database.ensure_schema()
    yield database
    database.dispose()


@pytest.fixture
def owner(db):
    return auth_service.register_user(db, UserCreate(
        username="alice",
        email="Alice@Acme.io",
        password="s3cret-pass",
        first_name="Alice",
        last_name="Moreau",
    ))


@pytest.fixture
def project(db, owner):
    return project_service.create_project(db, ProjectCreate(
        name="Garden",
        description="Spring planting",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 6, 30),
    ), owner.id)
