import logging
from typing import Optional

from authcore.core.errors import InfrastructureFailure, ValidationError
from authcore.core.results import Accept, AuthOutcome, Fail, Reject, RejectReason
from authcore.core.security import PasswordHasher
from authcore.core.validation import require_login_fields
from authcore.storage.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class Authenticator:
    """
    Turns a (username, password) pair into Accept, Reject or Fail.

    One attempt is: validate input, look the user up, then verify the
    password against the stored hash. Nothing is written, so an attempt
    that is abandoned halfway leaves no trace.

    There is no lockout or throttling here; repeated attempts are unlimited.
    """

    def __init__(self, store: CredentialStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher
        self._dummy_hash: Optional[str] = None

    def _verify_against_dummy(self, password: str) -> None:
        # Spend the same bcrypt work on a miss as on a hit so response
        # time does not reveal which usernames exist
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash("not-a-real-password")
        self.hasher.verify(password, self._dummy_hash)

    def authenticate(self, username: str, password: str) -> AuthOutcome:
        try:
            username = require_login_fields(username, password)
        except ValidationError as exc:
            return Reject(RejectReason.INVALID_INPUT, str(exc))

        try:
            user = self.store.find_by_username(username)
            if user is None:
                self._verify_against_dummy(password)
                # The submitted name is not logged, it may be a mistyped password
                logger.info("Log-in rejected: unknown username")
                return Reject(RejectReason.INCORRECT_USERNAME, "Incorrect username")

            if not self.hasher.verify(password, user.password_hash):
                logger.info(f"Log-in rejected: incorrect password for user {user.id}")
                return Reject(RejectReason.INCORRECT_PASSWORD, "Incorrect password")
        except InfrastructureFailure as exc:
            logger.error(f"Authentication failed: {str(exc)}", exc_info=True)
            return Fail(exc)

        logger.info(f"Log-in accepted for user {user.id}")
        return Accept(user)
