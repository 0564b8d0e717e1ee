"""bcrypt password hashing for retreat accounts."""
from __future__ import annotations

import bcrypt

from retreat_store.config import get_settings

_ENCODING = "utf-8"


class PasswordValidationError(ValueError):
    """Raised when a new password is rejected."""


def validate_password_strength(password: str) -> None:
    """Reject passwords shorter than ``min_password_length``.

    Raises:
        PasswordValidationError: If the password is missing or too short.
    """
    min_length = get_settings().min_password_length
    if not password or len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long.")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(_ENCODING), bcrypt.gensalt()).decode(_ENCODING)


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode(_ENCODING), password_hash.encode(_ENCODING))
    except (ValueError, TypeError, AttributeError):
        return False
