"""Password hashing, JWT tokens and API key helpers."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from app.core.config import get_settings

PASSWORD_HASH_METHOD = "pbkdf2:sha256"

API_PERMISSIONS: dict[str, str] = {
    "transactions:read": "Read ledger transactions",
    "transactions:write": "Create and update ledger transactions",
    "transactions:delete": "Delete ledger transactions",
    "internal-projects:read": "Read internal projects",
    "internal-projects:write": "Create and update internal projects",
    "tasks:read": "Read tasks",
    "tasks:write": "Create, update and move tasks",
    "tasks:delete": "Delete tasks",
    "full-access": "Every permission above",
}
FULL_ACCESS = "full-access"
DEFAULT_API_PERMISSIONS = ["transactions:read", "transactions:write"]

API_KEY_EXPIRY_OPTIONS: dict[str, timedelta | None] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
    "never": None,
}

# Characters of the raw key kept for display, prefix included.
_API_KEY_DISPLAY_LENGTH = 12


class InvalidTokenError(Exception):
    """Raised when a JWT cannot be decoded or lacks required claims."""


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT carrying ``claims`` plus an ``exp`` timestamp."""

    settings = get_settings()
    to_encode = dict(claims)
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode a JWT and return its payload.

    Raises ``InvalidTokenError`` for bad signatures, expired tokens and tokens
    without a ``sub`` claim.
    """

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if not payload.get("sub"):
        raise InvalidTokenError("Token has no subject.")
    return payload


def generate_api_key() -> tuple[str, str, str]:
    """Return ``(raw_key, key_hash, display_prefix)`` for a new API key."""

    raw_key = f"{get_settings().api_key_prefix}{secrets.token_urlsafe(32)}"
    return raw_key, hash_api_key(raw_key), raw_key[:_API_KEY_DISPLAY_LENGTH]


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def verify_api_key(raw_key: str, key_hash: str) -> bool:
    return hmac.compare_digest(hash_api_key(raw_key), key_hash)


def is_valid_permission(permission: str) -> bool:
    return permission in API_PERMISSIONS


def api_key_expiry(option: str, *, now: datetime | None = None) -> datetime | None:
    """Resolve an expiry option such as ``30d`` into an absolute timestamp."""

    if option not in API_KEY_EXPIRY_OPTIONS:
        raise ValueError(f"Unknown expiry option: {option}")
    delta = API_KEY_EXPIRY_OPTIONS[option]
    if delta is None:
        return None
    return (now or datetime.utcnow()) + delta
