from datetime import timedelta
from typing import Optional
import logging

from authcore.core.config import DEFAULT_SESSION_EXPIRE_MINUTES
from authcore.core.results import UserRecord
from authcore.core.security import create_signed_token, decode_signed_token
from authcore.storage.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class SessionCodec:
    """
    Maps an authenticated user to a signed session token and back.

    The token carries only the user id. Every resolution reads the user
    from the store again, so a deleted account stops resolving immediately
    and profile changes are never served stale.
    """

    def __init__(
        self,
        store: CredentialStore,
        secret_key: str,
        algorithm: str = "HS256",
        max_age: Optional[timedelta] = timedelta(minutes=DEFAULT_SESSION_EXPIRE_MINUTES),
    ):
        self.store = store
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.max_age = max_age

    def serialize(self, user: UserRecord) -> str:
        # 'sub' (subject) is the JWT standard claim for the principal
        return create_signed_token(
            {"sub": str(user.id)},
            self.secret_key,
            self.algorithm,
            expires_delta=self.max_age,
        )

    def deserialize(self, token: Optional[str]) -> Optional[UserRecord]:
        """
        Resolve a token to the current user record.

        Returns None for missing, tampered, expired or malformed tokens and
        for users deleted after the token was issued. Store failures are
        raised, not reported as None.
        """
        if not token:
            return None

        payload = decode_signed_token(token, self.secret_key, self.algorithm)
        if payload is None:
            return None

        # Token stores the id as a string, the store uses integers
        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            logger.warning("Session token with an invalid subject")
            return None

        user = self.store.find_by_id(user_id)
        if user is None:
            logger.info(f"Session token refers to missing user {user_id}")
        return user
