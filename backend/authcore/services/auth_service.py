from datetime import timedelta
from typing import Optional
import logging

from sqlalchemy.orm import sessionmaker

from authcore.core.config import DEFAULT_SESSION_EXPIRE_MINUTES, Settings
from authcore.core.errors import InfrastructureFailure, UsernameTakenError, ValidationError
from authcore.core.results import (
    Accept,
    Fail,
    LogInError,
    LogInErrorReason,
    LogInOk,
    LogInResult,
    SignUpError,
    SignUpErrorReason,
    SignUpOk,
    SignUpResult,
    UserRecord,
)
from authcore.core.security import DEFAULT_BCRYPT_ROUNDS, PasswordHasher
from authcore.core.validation import normalize_username, validate_new_password
from authcore.services.authenticator import Authenticator
from authcore.services.session_codec import SessionCodec
from authcore.storage.credential_store import CredentialStore, SqlAlchemyCredentialStore

logger = logging.getLogger(__name__)


class AuthService:
    """Boundary operations called by the web layer: sign up, log in, resolve, log out"""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        authenticator: Authenticator,
        codec: SessionCodec,
    ):
        self.store = store
        self.hasher = hasher
        self.authenticator = authenticator
        self.codec = codec

    @classmethod
    def build(
        cls,
        store: CredentialStore,
        secret_key: str,
        algorithm: str = "HS256",
        rounds: int = DEFAULT_BCRYPT_ROUNDS,
        session_max_age: Optional[timedelta] = timedelta(minutes=DEFAULT_SESSION_EXPIRE_MINUTES),
    ) -> "AuthService":
        """Wire the hasher, authenticator and codec around one store"""
        hasher = PasswordHasher(rounds=rounds)
        return cls(
            store=store,
            hasher=hasher,
            authenticator=Authenticator(store, hasher),
            codec=SessionCodec(store, secret_key, algorithm=algorithm, max_age=session_max_age),
        )

    @classmethod
    def from_settings(cls, settings: Settings, session_factory: sessionmaker) -> "AuthService":
        return cls.build(
            SqlAlchemyCredentialStore(session_factory),
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            rounds=settings.BCRYPT_ROUNDS,
            session_max_age=timedelta(minutes=settings.SESSION_EXPIRE_MINUTES),
        )

    def sign_up(self, username: str, password: str) -> SignUpResult:
        """
        Register a new user.

        The insert is committed before this returns, so a successful result
        always means the row exists and the user can log in right away.
        """
        try:
            username = normalize_username(username)
            validate_new_password(password)
        except ValidationError as exc:
            return SignUpError(SignUpErrorReason.INVALID_INPUT, str(exc))

        try:
            # Skip the expensive hash when the name is obviously taken
            if self.store.find_by_username(username) is not None:
                raise UsernameTakenError(username)

            password_hash = self.hasher.hash(password)
            user_id = self.store.insert(username, password_hash)
        except UsernameTakenError:
            logger.info("Sign-up rejected: username already taken")
            return SignUpError(SignUpErrorReason.USERNAME_TAKEN, "Username already taken")
        except InfrastructureFailure as exc:
            logger.error(f"Sign-up failed: {str(exc)}", exc_info=True)
            return SignUpError(SignUpErrorReason.INTERNAL, "Internal error")

        logger.info(f"Signed up user {user_id}")
        return SignUpOk(id=user_id, username=username)

    def log_in(self, username: str, password: str) -> LogInResult:
        outcome = self.authenticator.authenticate(username, password)
        if isinstance(outcome, Accept):
            return LogInOk(user=outcome.user, token=self.codec.serialize(outcome.user))
        if isinstance(outcome, Fail):
            return LogInError(LogInErrorReason.INTERNAL, "Internal error")
        # Reject reasons map one to one
        return LogInError(LogInErrorReason(outcome.reason.value), outcome.detail)

    def resolve_session(self, token: Optional[str]) -> Optional[UserRecord]:
        """Resolved user, or None. Raises InfrastructureFailure if the store is down."""
        return self.codec.deserialize(token)

    def log_out(self, token: Optional[str]) -> None:
        # No server-side revocation list: the transport drops the cookie.
        # A token stays verifiable until it expires or its user is deleted.
        if token:
            logger.info("Session logged out")
