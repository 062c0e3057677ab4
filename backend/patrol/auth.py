from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from .config import settings

ACCESS_COOKIE_NAME = "access_token"
REFRESH_COOKIE_NAME = "refresh_token"

ACCESS = "access"
REFRESH = "refresh"


class TokenSubject(BaseModel):
    """The operator a token was issued to; ``user_id`` is stamped on audit rows."""

    user_id: int
    email: str


class LoginRequest(BaseModel):
    email: str
    password: str


def _ttl(token_type: str) -> timedelta:
    if token_type == REFRESH:
        return timedelta(days=settings.refresh_token_ttl_days)
    return timedelta(minutes=settings.access_token_ttl_minutes)


def issue_token(subject: TokenSubject, token_type: str) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": subject.email,
        "uid": subject.user_id,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + _ttl(token_type),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(subject: TokenSubject) -> str:
    return issue_token(subject, ACCESS)


def create_refresh_token(subject: TokenSubject) -> str:
    return issue_token(subject, REFRESH)


def decode_token(token: str, expected_type: str) -> TokenSubject | None:
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None

    user_id = claims.get("uid")
    email = claims.get("sub")
    if claims.get("type") != expected_type or not email or not isinstance(user_id, int):
        return None
    return TokenSubject(user_id=user_id, email=email)
