import base64
import binascii
import hashlib
import hmac
import logging
import secrets

from todo_manager.exceptions import PasswordHashingError

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "sha256"
SALT_LENGTH = 32


def _digest(salt: bytes, password: str) -> bytes:
    try:
        hasher = hashlib.new(HASH_ALGORITHM)
    except ValueError as e:
        raise PasswordHashingError("Password hashing algorithm not available", e) from e
    hasher.update(salt)
    hasher.update(password.encode("utf-8"))
    return hasher.digest()


def get_password_hash(password: str) -> str:
    """
    Salt and hash a password for storage.
    Returns Base64(salt || sha256(salt || password)).
    """
    salt = secrets.token_bytes(SALT_LENGTH)
    return base64.b64encode(salt + _digest(salt, password)).decode("ascii")


def verify_password(plain_password: str | None, stored_hash: str | None) -> bool:
    if not plain_password:
        return False

    if not stored_hash:
        logger.error("Stored password hash is empty")
        return False

    try:
        salt_and_hash = base64.b64decode(stored_hash, validate=True)
    except (binascii.Error, ValueError):
        logger.error("Stored password hash is not valid Base64")
        return False

    if len(salt_and_hash) <= SALT_LENGTH:
        logger.error("Decoded password hash is too short")
        return False

    salt, expected = salt_and_hash[:SALT_LENGTH], salt_and_hash[SALT_LENGTH:]
    return hmac.compare_digest(expected, _digest(salt, plain_password))
