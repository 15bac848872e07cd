from datetime import timedelta

import pytest
from jose import jwt

from authcore.core.results import UserRecord
from authcore.services.session_codec import SessionCodec

SECRET = "codec-secret"


@pytest.fixture()
def codec(fake_store):
    return SessionCodec(fake_store, SECRET)


@pytest.fixture()
def alice(fake_store):
    user_id = fake_store.insert("alice", "$2b$04$hash")
    return fake_store.find_by_id(user_id)


def test_round_trip_returns_the_same_user(codec, alice):
    assert codec.deserialize(codec.serialize(alice)) == alice


def test_token_payload_is_only_the_user_id(codec, alice):
    claims = jwt.get_unverified_claims(codec.serialize(alice))
    assert claims["sub"] == str(alice.id)
    assert set(claims) <= {"sub", "iat", "exp"}
    assert "alice" not in str(claims)


def test_deleted_user_resolves_to_none(codec, alice, fake_store):
    token = codec.serialize(alice)
    fake_store.delete(alice.id)
    assert codec.deserialize(token) is None


def test_every_resolution_queries_the_store(codec, alice, fake_store):
    token = codec.serialize(alice)
    before = fake_store.lookups
    first = codec.deserialize(token)
    second = codec.deserialize(token)
    assert first == second == alice
    assert fake_store.lookups == before + 2


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_unusable_tokens_resolve_to_none(codec, token):
    assert codec.deserialize(token) is None


def test_tampered_token_resolves_to_none(codec, alice):
    forged = jwt.encode({"sub": str(alice.id)}, "someone-elses-key", algorithm="HS256")
    assert codec.deserialize(forged) is None


def test_expired_token_resolves_to_none(fake_store, alice):
    codec = SessionCodec(fake_store, SECRET, max_age=timedelta(seconds=-1))
    assert codec.deserialize(codec.serialize(alice)) is None


def test_non_numeric_subject_resolves_to_none(codec):
    token = jwt.encode({"sub": "alice"}, SECRET, algorithm="HS256")
    assert codec.deserialize(token) is None


def test_store_failure_propagates(codec, alice, fake_store, store_down):
    token = codec.serialize(alice)
    fake_store.fail_with = store_down
    with pytest.raises(type(store_down)):
        codec.deserialize(token)


def test_resolution_sees_the_current_record(codec, fake_store):
    user_id = fake_store.insert("alice", "h1")
    token = codec.serialize(UserRecord(id=user_id, username="alice", password_hash="h1"))

    # Replace the stored record behind the token's back
    fake_store._users[user_id] = UserRecord(id=user_id, username="Alice", password_hash="h2")
    assert codec.deserialize(token).username == "Alice"
