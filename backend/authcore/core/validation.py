import re

from authcore.core.errors import ValidationError
from authcore.core.security import BCRYPT_MAX_SECRET_BYTES

USERNAME_MAX_LENGTH = 64
PASSWORD_MAX_BYTES = BCRYPT_MAX_SECRET_BYTES

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.@-]+$")


def normalize_username(username: str) -> str:
    """Strip surrounding whitespace and check the allowed characters"""
    if not isinstance(username, str):
        raise ValidationError("Username is required")
    value = username.strip()
    if not value:
        raise ValidationError("Username is required")
    if len(value) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters")
    if not _USERNAME_RE.match(value):
        raise ValidationError("Username may only contain letters, digits and . _ @ -")
    return value


def username_key(username: str) -> str:
    """Uniqueness key: usernames compare case-insensitively"""
    return username.casefold()


def validate_new_password(password: str) -> str:
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return password


def require_login_fields(username: str, password: str) -> str:
    """
    Minimal checks for a log-in attempt.

    Log-in does not enforce the sign-up character policy: an unknown name is
    simply an incorrect username. Only empty fields are rejected up front.
    """
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("Username is required")
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required")
    return username.strip()
