import time

import jwt
import pytest

from ledger_bank.config import get_settings
from ledger_bank.services import security
from ledger_bank.services.validators import is_valid_email, validate_login, validate_registration


def test_password_hash_round_trip():
    hashed = security.hash_password("s3cret-pass", rounds=4)
    assert hashed != "s3cret-pass"
    assert security.verify_password("s3cret-pass", hashed)
    assert not security.verify_password("wrong", hashed)


def test_verify_password_with_garbage_hash():
    assert security.verify_password("anything", "not-a-bcrypt-hash") is False


def test_token_hash_is_stable_sha256():
    digest = security.hash_token("abc")
    assert digest == security.hash_token("abc")
    assert len(digest) == 64


def test_access_token_round_trip():
    from uuid import uuid4

    user_id = uuid4()
    token, expires_at = security.create_access_token(user_id, "alice")
    payload = security.decode_access_token(token)
    assert payload["sub"] == str(user_id)
    assert payload["username"] == "alice"
    assert payload["exp"] >= int(time.time())
    assert expires_at.tzinfo is None

    other, _ = security.create_access_token(user_id, "alice")
    assert other != token


def test_decode_rejects_tampered_and_expired_tokens():
    settings = get_settings()
    forged = jwt.encode({"sub": "x", "exp": int(time.time()) + 60}, "other-secret", algorithm="HS256")
    assert security.decode_access_token(forged) is None

    expired = jwt.encode({"sub": "x", "exp": int(time.time()) - 60}, settings.jwt_secret, algorithm="HS256")
    assert security.decode_access_token(expired) is None


@pytest.mark.parametrize(
    "email,ok",
    [("a@b.co", True), ("first.last@example.com", True), ("nope", False), ("a@b", False), ("a b@c.com", False), ("", False)],
)
def test_is_valid_email(email, ok):
    assert is_valid_email(email) is ok


def test_validate_registration():
    assert validate_registration("alice", "alice@example.com", "secret1", "Alice") == []
    assert validate_registration("alice", None, "secret1", "Alice") == ["All fields are required"]
    assert validate_registration("alice", "alice@example.com", "  ", "Alice") == ["All fields are required"]
    assert validate_registration("alice", "alice@example.com", "x" * 80, "Alice") == [
        "Password must be at most 72 bytes"
    ]
    errors = validate_registration("a" * 60, "bad", "123", "Alice")
    assert len(errors) == 3


def test_validate_login():
    assert validate_login("alice", "pw") == []
    assert validate_login(" ", "pw") == ["Username and password are required"]
    assert validate_login("alice", None) == ["Username and password are required"]
