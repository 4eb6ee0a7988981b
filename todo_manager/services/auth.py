import logging

from todo_manager.config import settings
from todo_manager.database import Database
from todo_manager.exceptions import AuthenticationError, UserNotFoundError
from todo_manager.repositories import users as user_repo
from todo_manager.schemas.user import User, UserCreate, UserUpdate
from todo_manager.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


def _check_password_policy(password: str | None) -> None:
    if not password or not password.strip():
        raise AuthenticationError("Password cannot be empty")
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise AuthenticationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )


def register_user(db: Database, data: UserCreate) -> User:
    _check_password_policy(data.password)

    if user_repo.username_exists(db, data.username):
        raise AuthenticationError(f"Username already exists: {data.username}")
    if user_repo.email_exists(db, data.email):
        raise AuthenticationError(f"Email already exists: {data.email}")

    user = User(
        username=data.username,
        email=data.email,
        password_hash=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
    )
    user = user_repo.create(db, user)
    logger.info("Registered user %s (id %d)", user.username, user.id)
    return user


def authenticate(db: Database, username: str, password: str) -> User:
    """
    Check credentials and record the login.

    Unknown usernames and wrong passwords fail with the same message so the
    caller cannot probe which accounts exist.
    """
    if not username or not username.strip() or not password:
        raise AuthenticationError(INVALID_CREDENTIALS)

    user = user_repo.find_by_username(db, username.strip())
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", username.strip())
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not user.active:
        logger.warning("Login rejected for deactivated user %s", user.username)
        raise AuthenticationError("Account is deactivated")

    user_repo.update_last_login(db, user.id)
    logger.info("User %s logged in", user.username)
    return user_repo.find_by_id(db, user.id)


def change_password(db: Database, user_id: int, old_password: str, new_password: str) -> None:
    user = user_repo.find_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    if not verify_password(old_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")
    _check_password_policy(new_password)
    if old_password == new_password:
        raise AuthenticationError("New password must be different from the current password")

    user_repo.update(db, user.model_copy(update={"password_hash": get_password_hash(new_password)}))
    logger.info("Password changed for user %s", user.username)


def update_profile(db: Database, user_id: int, data: UserUpdate) -> User:
    user = user_repo.find_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    changes = data.model_dump(exclude_unset=True)
    new_email = changes.get("email")
    if new_email and new_email != user.email and user_repo.email_exists(db, new_email):
        raise AuthenticationError(f"Email already exists: {new_email}")
    if "email" in changes and not new_email:
        changes.pop("email")

    user = user_repo.update(db, user.model_copy(update=changes))
    logger.info("Profile updated for user %s", user.username)
    return user


def requires_password_change(user: User) -> bool:
    """True while the bootstrap admin still signs in with the configured default password."""
    return (
        user.username == settings.DEFAULT_ADMIN_USERNAME
        and verify_password(settings.DEFAULT_ADMIN_PASSWORD, user.password_hash)
    )
