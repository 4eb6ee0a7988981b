import logging

from todo_manager.database import Database
from todo_manager.exceptions import ProjectNotFoundError, TodoNotFoundError
from todo_manager.repositories import projects as project_repo
from todo_manager.repositories import todos as todo_repo
from todo_manager.schemas.project import (
    Project,
    ProjectCompletionStats,
    ProjectCreate,
    ProjectDetail,
    ProjectStatistics,
    ProjectUpdate,
)
from todo_manager.schemas.todo import Todo, TodoStatus
from todo_manager.utils import clock

logger = logging.getLogger(__name__)


def create_project(db: Database, project_data: ProjectCreate, current_user_id: int) -> Project:
    project = Project(**project_data.model_dump(), user_id=current_user_id)
    project = project_repo.create(db, project)
    logger.info("Created project %d '%s' for user %d", project.id, project.name, current_user_id)
    return project


def _get(db: Database, project_id: int) -> Project:
    project = project_repo.find_by_id(db, project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


def get_project(db: Database, project_id: int) -> ProjectDetail:
    """Project together with its todos."""
    project = _get(db, project_id)
    todos = todo_repo.find_by_project(db, project_id)
    return ProjectDetail.model_construct(**dict(project), todos=todos)


def list_projects(db: Database, user_id: int | None = None) -> list[Project]:
    if user_id is None:
        return project_repo.find_all(db)
    return project_repo.find_by_user(db, user_id)


def find_projects_by_name(db: Database, name: str | None) -> list[Project]:
    if not name or not name.strip():
        return project_repo.find_all(db)
    return project_repo.find_by_name(db, name)


def list_active_projects(db: Database) -> list[Project]:
    return project_repo.find_active(db)


def list_completed_projects(db: Database) -> list[Project]:
    return project_repo.find_completed(db)


def update_project(db: Database, project_id: int, update_data: ProjectUpdate) -> Project:
    project = _get(db, project_id)
    changes = update_data.model_dump(exclude_unset=True)

    # Merged state goes through ProjectBase validation, date order included
    project = Project.model_validate({**project.model_dump(), **changes})
    project = project_repo.update(db, project)
    logger.info("Updated project %d", project_id)
    return project


def add_todo_to_project(db: Database, project_id: int, todo_id: int) -> Todo:
    _get(db, project_id)
    todo = todo_repo.find_by_id(db, todo_id)
    if todo is None:
        raise TodoNotFoundError(todo_id)

    todo.project_id = project_id
    todo = todo_repo.update(db, todo)
    logger.info("Added todo %d to project %d", todo_id, project_id)
    return todo


def remove_todo_from_project(db: Database, project_id: int, todo_id: int) -> Todo:
    _get(db, project_id)
    todo = todo_repo.find_by_id(db, todo_id)
    if todo is None:
        raise TodoNotFoundError(todo_id)
    if todo.project_id != project_id:
        raise ValueError(f"Todo {todo_id} does not belong to project {project_id}")

    todo.project_id = None
    todo = todo_repo.update(db, todo)
    logger.info("Removed todo %d from project %d", todo_id, project_id)
    return todo


def get_completion_stats(db: Database, project_id: int) -> ProjectCompletionStats:
    _get(db, project_id)
    todos = todo_repo.find_by_project(db, project_id)
    today = clock.today()

    by_status = {status: 0 for status in TodoStatus}
    for todo in todos:
        by_status[todo.status] += 1

    total = len(todos)
    completed = by_status[TodoStatus.COMPLETED]
    return ProjectCompletionStats(
        project_id=project_id,
        total=total,
        todo=by_status[TodoStatus.TODO],
        in_progress=by_status[TodoStatus.IN_PROGRESS],
        completed=completed,
        cancelled=by_status[TodoStatus.CANCELLED],
        overdue=sum(1 for t in todos if t.is_overdue(today)),
        completion_percentage=completed * 100.0 / total if total else 0.0,
    )


def delete_project(db: Database, project_id: int) -> None:
    """Remove a project and every todo in it."""
    if not project_repo.delete(db, project_id):
        raise ProjectNotFoundError(project_id)
    logger.info("Deleted project %d", project_id)


def get_statistics(db: Database) -> ProjectStatistics:
    return ProjectStatistics(
        total=project_repo.count(db),
        active=len(project_repo.find_active(db)),
        completed=len(project_repo.find_completed(db)),
    )
