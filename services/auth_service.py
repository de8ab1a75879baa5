"""
Authentication service.

Issues and verifies the JWT bearer tokens that protect the sales API, and
validates operator credentials against a small in-memory user store seeded
from configuration.

Passwords are hashed with passlib (Argon2; bcrypt hashes are still accepted
for verification). Tokens are HS256 JWTs signed with JWT_SECRET_KEY.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional
from uuid import uuid4

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from config import Settings, get_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")

TOKEN_TYPE = "access"


@dataclass(frozen=True, slots=True)
class AuthUser:
    user_id: str
    username: str
    role: str


@dataclass(frozen=True, slots=True)
class _UserRecord:
    user_id: str
    username: str
    role: str
    password_hash: str


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


class InMemoryUserStore:
    """User store kept in process memory. Username lookup is case-insensitive."""

    def __init__(self) -> None:
        self._users: List[_UserRecord] = []

    def add_user(self, username: str, password: str, role: str = "User") -> AuthUser:
        record = _UserRecord(
            user_id=uuid4().hex,
            username=username,
            role=role,
            password_hash=get_password_hash(password),
        )
        self._users.append(record)
        return AuthUser(user_id=record.user_id, username=record.username, role=record.role)

    def validate(self, username: str, password: str) -> Optional[AuthUser]:
        for user in self._users:
            if user.username.casefold() == username.casefold():
                if not verify_password(password, user.password_hash):
                    return None
                return AuthUser(user_id=user.user_id, username=user.username, role=user.role)
        return None


@lru_cache(maxsize=1)
def get_user_store() -> InMemoryUserStore:
    """Process-wide user store with the configured admin account."""

    settings = get_settings()
    store = InMemoryUserStore()
    store.add_user(settings.admin_username, settings.admin_password, role="Admin")
    return store


def authenticate(username: str, password: str, store: Optional[InMemoryUserStore] = None) -> Optional[AuthUser]:
    """Return the user for valid credentials, None otherwise."""

    if not username or not username.strip() or not password or not password.strip():
        return None

    user = (store or get_user_store()).validate(username.strip(), password)
    if user is None:
        logger.warning("Rejected login for %s", username)
    return user


def _secret(settings: Settings) -> str:
    if not settings.jwt_secret_key:
        raise RuntimeError(
            "Missing environment variable: JWT_SECRET_KEY. "
            "Set JWT_SECRET_KEY to a long random string."
        )
    return settings.jwt_secret_key


def create_access_token(user: AuthUser, settings: Optional[Settings] = None) -> str:
    """
    Create a signed access token for `user`.

    Claims: sub (user id), name, role, iat, exp, type="access".
    """

    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": user.user_id,
        "name": user.username,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
        "type": TOKEN_TYPE,
    }
    return jwt.encode(claims, _secret(settings), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Verify signature and expiry of an access token and return its claims.

    Raises:
        InvalidTokenError: bad signature, expired, malformed or not an access token
    """

    settings = settings or get_settings()
    payload = jwt.decode(
        token,
        _secret(settings),
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("type") != TOKEN_TYPE:
        raise InvalidTokenError(f"Invalid token type: {payload.get('type')!r}")
    return payload


__all__ = [
    "AuthUser",
    "InMemoryUserStore",
    "authenticate",
    "create_access_token",
    "decode_access_token",
    "get_password_hash",
    "get_user_store",
    "verify_password",
]
