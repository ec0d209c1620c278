"""
Token codec and password hashing
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from lostfound.core.security import (
    TOKEN_LIFETIME,
    BadSignature,
    MalformedToken,
    PasswordHasher,
    Principal,
    TokenCodec,
    TokenExpired,
)
from lostfound.models.enums import Role

SECRET = "unit-test-secret-key-of-sufficient-length"
ISSUED_AT = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(ISSUED_AT)


@pytest.fixture
def codec(clock) -> TokenCodec:
    return TokenCodec(SECRET, clock=clock)


def test_issue_then_validate_returns_same_principal(codec):
    principal = Principal(id=7, username="alice", role=Role.GUARD)
    assert codec.validate(codec.issue(principal)) == principal


def test_token_carries_expected_claims(codec):
    token = codec.issue(Principal(id=3, username="bob", role=Role.STUDENT))
    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == "3"
    assert claims["username"] == "bob"
    assert claims["role"] == "student"
    assert claims["exp"] - claims["iat"] == int(TOKEN_LIFETIME.total_seconds())


def test_token_valid_until_expiry_then_rejected(codec, clock):
    token = codec.issue(Principal(id=1, username="carol", role=Role.ADMIN))

    clock.now = ISSUED_AT + TOKEN_LIFETIME
    assert codec.validate(token).username == "carol"

    clock.now = ISSUED_AT + TOKEN_LIFETIME + timedelta(seconds=1)
    with pytest.raises(TokenExpired):
        codec.validate(token)


def test_tampered_signature_is_rejected(codec):
    token = codec.issue(Principal(id=1, username="dave", role=Role.STUDENT))
    header, payload, signature = token.split(".")
    # The last base64 character may only carry padding bits, so flip one before it.
    position = len(signature) // 2
    swapped = "A" if signature[position] != "A" else "B"
    tampered = ".".join([header, payload, signature[:position] + swapped + signature[position + 1:]])

    with pytest.raises(BadSignature):
        codec.validate(tampered)


def test_token_signed_with_other_secret_is_rejected(codec, clock):
    other = TokenCodec("another-secret-key-of-sufficient-length", clock=clock)
    token = other.issue(Principal(id=1, username="erin", role=Role.STUDENT))
    with pytest.raises(BadSignature):
        codec.validate(token)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_garbage_is_malformed(codec, token):
    with pytest.raises(MalformedToken):
        codec.validate(token)


def test_token_with_unknown_role_is_malformed(codec, clock):
    claims = {
        "sub": "1",
        "username": "mallory",
        "role": "superuser",
        "iat": int(clock.now.timestamp()),
        "exp": int((clock.now + TOKEN_LIFETIME).timestamp()),
    }
    token = jwt.encode(claims, SECRET, algorithm="HS256")
    with pytest.raises(MalformedToken):
        codec.validate(token)


def test_issue_rejects_unknown_role(codec):
    with pytest.raises(ValueError):
        codec.issue(Principal(id=1, username="x", role="superuser"))


def test_codec_requires_secret():
    with pytest.raises(ValueError):
        TokenCodec("")


def test_password_hash_roundtrip():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("hunter22")
    assert hashed != "hunter22"
    assert hasher.verify("hunter22", hashed)
    assert not hasher.verify("wrong", hashed)


def test_password_verify_with_corrupt_hash_is_false():
    assert PasswordHasher(rounds=4).verify("hunter22", "not-a-bcrypt-hash") is False
