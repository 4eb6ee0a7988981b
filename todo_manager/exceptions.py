"""Typed failures raised by the persistence core and its services."""


class TodoManagementError(Exception):
    """Base class for every failure the core reports to its callers."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def user_friendly_message(self) -> str:
        return self.message


class DatabaseError(TodoManagementError):
    """Connectivity or statement failure, carrying the driver error as cause."""

    @property
    def user_friendly_message(self) -> str:
        return (
            "A database error occurred. Please try again later. "
            "If the problem persists, contact support."
        )


class SchemaInitializationError(DatabaseError):
    """Schema creation or migration failed; startup must abort."""


class PasswordHashingError(TodoManagementError):
    """The hashing primitive is missing or broken. Not recoverable."""


class AuthenticationError(TodoManagementError):
    pass


class TodoNotFoundError(TodoManagementError):
    def __init__(self, todo_id: int | None, message: str | None = None):
        super().__init__(message or f"Todo not found: {todo_id}")
        self.todo_id = todo_id

    @property
    def user_friendly_message(self) -> str:
        if self.todo_id is not None:
            return f"The requested todo (ID: {self.todo_id}) could not be found."
        return "The requested todo could not be found."


class ProjectNotFoundError(TodoManagementError):
    def __init__(self, project_id: int | None, message: str | None = None):
        super().__init__(message or f"Project not found: {project_id}")
        self.project_id = project_id

    @property
    def user_friendly_message(self) -> str:
        if self.project_id is not None:
            return f"The requested project (ID: {self.project_id}) could not be found."
        return "The requested project could not be found."


class UserNotFoundError(TodoManagementError):
    def __init__(self, user_id: int | None, message: str | None = None):
        super().__init__(message or f"User not found: {user_id}")
        self.user_id = user_id

    @property
    def user_friendly_message(self) -> str:
        if self.user_id is not None:
            return f"The requested user (ID: {self.user_id}) could not be found."
        return "The requested user could not be found."
