from abc import ABC, abstractmethod
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from authcore.core.errors import StoreUnavailableError, UsernameTakenError
from authcore.core.results import UserRecord
from authcore.core.validation import username_key
from authcore.models.user import User

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Persistence of user records, keyed by unique id and unique username"""

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def insert(self, username: str, password_hash: str) -> int:
        """Store a new user and return its id. Raises UsernameTakenError."""


def _to_record(user: User) -> UserRecord:
    return UserRecord(id=user.id, username=user.username, password_hash=user.password_hash)


class SqlAlchemyCredentialStore(CredentialStore):
    def __init__(self, session_factory: sessionmaker):
        # Every operation checks a connection out of the engine's pool
        # and returns it when the session closes
        self._session_factory = session_factory

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        with self._session_factory() as db:
            try:
                user = db.query(User).filter(User.username_key == username_key(username)).first()
            except SQLAlchemyError as exc:
                raise StoreUnavailableError("User lookup by username failed") from exc
            return _to_record(user) if user else None

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._session_factory() as db:
            try:
                user = db.query(User).filter(User.id == user_id).first()
            except SQLAlchemyError as exc:
                raise StoreUnavailableError("User lookup by id failed") from exc
            return _to_record(user) if user else None

    def insert(self, username: str, password_hash: str) -> int:
        key = username_key(username)
        with self._session_factory() as db:
            try:
                # Explicit check gives a clean error in the common case
                if db.query(User.id).filter(User.username_key == key).first() is not None:
                    raise UsernameTakenError(username)

                db_user = User(username=username, username_key=key, password_hash=password_hash)
                db.add(db_user)
                db.commit()
                # Refresh to load the auto-generated id
                db.refresh(db_user)
                return db_user.id
            except IntegrityError as exc:
                # Two sign-ups raced past the check above; the unique constraint decides
                db.rollback()
                raise UsernameTakenError(username) from exc
            except SQLAlchemyError as exc:
                db.rollback()
                logger.error(f"Insert failed for new user: {str(exc)}")
                raise StoreUnavailableError("User insert failed") from exc
