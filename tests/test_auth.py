from datetime import datetime, timedelta, UTC

import pytest
from jose import jwt

from app.errors import Unauthenticated
from app.utils.auth import TokenCodec, hash_password, verify_password

SECRET = "test-secret"
ISSUED_AT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def token_clock():
    return Clock(ISSUED_AT)


@pytest.fixture
def codec(token_clock):
    return TokenCodec(SECRET, clock=token_clock)


def test_issue_and_verify(codec):
    token = codec.issue("user-1")
    assert codec.verify(token) == "user-1"


def test_token_carries_one_hour_expiry(codec):
    claims = jwt.get_unverified_claims(codec.issue("user-1"))
    assert claims["sub"] == "user-1"
    assert claims["exp"] == int((ISSUED_AT + timedelta(hours=1)).timestamp())


def test_expiry_boundary(codec, token_clock):
    token = codec.issue("user-1")
    expires = ISSUED_AT + timedelta(hours=1)

    token_clock.now = expires
    assert codec.verify(token) == "user-1"

    token_clock.now = expires + timedelta(seconds=1)
    with pytest.raises(Unauthenticated) as exc:
        codec.verify(token)
    assert "expired" in exc.value.message.lower()


def test_wrong_signature_rejected(codec, token_clock):
    forged = TokenCodec("other-secret", clock=token_clock).issue("user-1")
    with pytest.raises(Unauthenticated):
        codec.verify(forged)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_malformed_tokens_rejected(codec, token):
    with pytest.raises(Unauthenticated):
        codec.verify(token)


def test_token_without_subject_rejected(codec):
    exp = int((ISSUED_AT + timedelta(hours=1)).timestamp())
    token = jwt.encode({"exp": exp}, SECRET, algorithm="HS256")
    with pytest.raises(Unauthenticated):
        codec.verify(token)


def test_token_without_expiry_rejected(codec):
    token = jwt.encode({"sub": "user-1"}, SECRET, algorithm="HS256")
    with pytest.raises(Unauthenticated):
        codec.verify(token)


def test_password_hashing():
    hashed = hash_password("correct_horse_battery_staple")
    assert hashed != "correct_horse_battery_staple"
    assert verify_password("correct_horse_battery_staple", hashed)
    assert not verify_password("wrong password", hashed)


def test_password_too_long():
    with pytest.raises(ValueError):
        hash_password("a" * 100)
