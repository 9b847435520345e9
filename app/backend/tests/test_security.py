from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.core.auth import RequestUserContext, has_permission, naive_utc
from app.core.security import (
    InvalidTokenError,
    api_key_expiry,
    create_access_token,
    decode_access_token,
    generate_api_key,
    hash_password,
    is_valid_permission,
    verify_api_key,
    verify_password,
)


def test_password_hash_round_trip() -> None:
    password_hash = hash_password("s3nha-forte")

    assert password_hash.startswith("pbkdf2:sha256")
    assert verify_password(password_hash, "s3nha-forte") is True
    assert verify_password(password_hash, "wrong") is False


def test_access_token_carries_subject() -> None:
    user_id = str(uuid.uuid4())

    payload = decode_access_token(create_access_token({"sub": user_id, "email": "a@huntly.test"}))

    assert payload["sub"] == user_id
    assert payload["email"] == "a@huntly.test"


def test_expired_or_tampered_tokens_are_rejected() -> None:
    expired = create_access_token({"sub": "x"}, expires_delta=timedelta(seconds=-10))
    with pytest.raises(InvalidTokenError):
        decode_access_token(expired)

    forged = jwt.encode({"sub": "x"}, "not-the-server-secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        decode_access_token(forged)


def test_token_without_subject_is_rejected() -> None:
    with pytest.raises(InvalidTokenError):
        decode_access_token(create_access_token({"email": "nobody@huntly.test"}))


def test_generated_api_key_is_prefixed_and_hashed() -> None:
    raw_key, key_hash, prefix = generate_api_key()

    assert raw_key.startswith("hntly_")
    assert prefix == raw_key[:12]
    assert len(key_hash) == 64
    assert verify_api_key(raw_key, key_hash) is True
    assert verify_api_key(raw_key + "x", key_hash) is False


def test_api_key_expiry_options() -> None:
    now = datetime(2026, 1, 1, 12, 0, 0)

    assert api_key_expiry("7d", now=now) == now + timedelta(days=7)
    assert api_key_expiry("1y", now=now) == now + timedelta(days=365)
    assert api_key_expiry("never", now=now) is None
    with pytest.raises(ValueError):
        api_key_expiry("2w", now=now)


def test_permission_catalogue() -> None:
    assert is_valid_permission("transactions:read") is True
    assert is_valid_permission("full-access") is True
    assert is_valid_permission("clients:read") is False


def test_has_permission_for_sessions_and_api_keys() -> None:
    session = RequestUserContext(user_id=uuid.uuid4(), email="a@huntly.test", member_id=None)
    limited_key = RequestUserContext(
        user_id=None,
        email=None,
        member_id=None,
        api_key_id=uuid.uuid4(),
        api_key_permissions=("transactions:read",),
    )
    full_key = RequestUserContext(
        user_id=None,
        email=None,
        member_id=None,
        api_key_id=uuid.uuid4(),
        api_key_permissions=("full-access",),
    )

    assert has_permission(session, "tasks:delete") is True
    assert has_permission(limited_key, "transactions:read") is True
    assert has_permission(limited_key, "transactions:write") is False
    assert has_permission(full_key, "tasks:delete") is True


def test_admin_access_follows_member_roles() -> None:
    developer = RequestUserContext(user_id=uuid.uuid4(), email=None, member_id=uuid.uuid4(), member_roles=("DEVELOPER",))
    cfo = RequestUserContext(
        user_id=uuid.uuid4(),
        email=None,
        member_id=uuid.uuid4(),
        member_roles=("PROJECT_MANAGER", "CFO"),
    )

    assert developer.has_admin_access is False
    assert cfo.has_admin_access is True


def test_naive_utc_drops_timezone_after_conversion() -> None:
    aware = datetime(2026, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=-3)))

    assert naive_utc(aware) == datetime(2026, 1, 1, 15, 0)
    assert naive_utc(datetime(2026, 1, 1, 12, 0)) == datetime(2026, 1, 1, 12, 0)
