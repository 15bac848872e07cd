import threading
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from authcore.core.config import Settings
from authcore.core.database import build_engine, build_session_factory, init_db
from authcore.core.errors import StoreUnavailableError, UsernameTakenError
from authcore.core.results import UserRecord
from authcore.core.security import PasswordHasher
from authcore.core.validation import username_key
from authcore.main import create_app
from authcore.models.user import User
from authcore.services.auth_service import AuthService
from authcore.storage.credential_store import CredentialStore, SqlAlchemyCredentialStore

# bcrypt's minimum cost - keeps the suite fast
TEST_ROUNDS = 4
TEST_SECRET = "test-secret-key"


class FakeCredentialStore(CredentialStore):
    """In-memory store used to test the services without a database"""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[int, UserRecord] = {}
        self._next_id = 1
        self.fail_with: Optional[Exception] = None
        self.lookups = 0

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        self._check()
        self.lookups += 1
        key = username_key(username)
        for user in self._users.values():
            if username_key(user.username) == key:
                return user
        return None

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        self._check()
        self.lookups += 1
        return self._users.get(user_id)

    def insert(self, username: str, password_hash: str) -> int:
        self._check()
        with self._lock:
            key = username_key(username)
            if any(username_key(u.username) == key for u in self._users.values()):
                raise UsernameTakenError(username)
            user_id = self._next_id
            self._next_id += 1
            self._users[user_id] = UserRecord(id=user_id, username=username, password_hash=password_hash)
            return user_id

    def delete(self, user_id: int) -> None:
        self._users.pop(user_id, None)


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture()
def fake_store() -> FakeCredentialStore:
    return FakeCredentialStore()


@pytest.fixture()
def store_down() -> StoreUnavailableError:
    return StoreUnavailableError("connection refused")


@pytest.fixture()
def session_factory():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def sql_store(session_factory) -> SqlAlchemyCredentialStore:
    return SqlAlchemyCredentialStore(session_factory)


@pytest.fixture()
def delete_user(session_factory):
    """Remove a row directly, standing in for an administrative delete"""
    def _delete(user_id: int) -> None:
        with session_factory() as db:
            db.query(User).filter(User.id == user_id).delete()
            db.commit()
    return _delete


@pytest.fixture()
def auth_service(sql_store) -> AuthService:
    return AuthService.build(sql_store, secret_key=TEST_SECRET, rounds=TEST_ROUNDS)


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY=TEST_SECRET,
        BCRYPT_ROUNDS=TEST_ROUNDS,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def client(test_settings, session_factory):
    app = create_app(test_settings, session_factory=session_factory)
    with TestClient(app) as c:
        yield c
