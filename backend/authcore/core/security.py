from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from jose import JWTError, jwt
from passlib.context import CryptContext

from authcore.core.errors import HasherError

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of a secret
BCRYPT_MAX_SECRET_BYTES = 72


class PasswordHasher:
    """
    One-way salted password hashing backed by bcrypt.

    The returned hash is self-describing ($2b$<cost>$<salt><digest>), so the
    salt and cost travel with it and verification needs nothing else.
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        # CryptContext handles password hashing using bcrypt
        # 'deprecated="auto"' allows passlib to handle deprecation warnings automatically
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__ident="2b",
            # Refuse to hash over-long secrets instead of truncating them
            bcrypt__truncate_error=True,
        )

    def hash(self, secret: str) -> str:
        """Hash a secret with a freshly generated salt"""
        if len(secret.encode("utf-8")) > BCRYPT_MAX_SECRET_BYTES:
            raise ValueError(f"Secret must be at most {BCRYPT_MAX_SECRET_BYTES} bytes")
        try:
            return self._context.hash(secret)
        except Exception as exc:
            # Entropy source or bcrypt backend failure - not retryable
            raise HasherError("Password hashing failed") from exc

    def verify(self, secret: str, hashed: str) -> bool:
        """Verify a secret against a hash using constant-time comparison"""
        if not secret or not hashed:
            return False
        if len(secret.encode("utf-8")) > BCRYPT_MAX_SECRET_BYTES:
            # bcrypt would compare only the first 72 bytes and accept any suffix
            return False
        try:
            # Salt and cost are read from the hash itself
            return self._context.verify(secret, hashed)
        except (ValueError, TypeError):
            # Unidentifiable or malformed hash - indistinguishable from a wrong password
            logger.debug("Password hash could not be parsed; treating as mismatch")
            return False
        except Exception as exc:
            # e.g. passlib MissingBackendError - a broken hasher, not a wrong password
            raise HasherError("Password verification failed") from exc


def create_signed_token(
    data: dict,
    secret_key: str,
    algorithm: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed token with issued-at and optional expiration claims"""
    # Copy data to avoid mutating the original dict
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode["iat"] = now
    if expires_delta is not None:
        # JWT standard 'exp' claim - checked automatically on decode
        to_encode["exp"] = now + expires_delta
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_signed_token(token: str, secret_key: str, algorithm: str) -> Optional[dict]:
    """Decode and verify a signed token"""
    try:
        # Verify signature and expiration automatically
        # Returns None if token is invalid, expired, or tampered with
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        return None
