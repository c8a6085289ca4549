# backend/app/security/jwt.py
"""
Stateless tokens (HS256 JWT via python-jose).

Session claims: sub (user id as string), id, username, email, role, exp.
Pending second-factor claims: sub, username, purpose="2fa", exp. The two
kinds are not interchangeable in either direction.

Every decoding failure - bad signature, malformed token, expired token,
missing claims, wrong kind - surfaces as the same InvalidTokenError.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from backend.app.core.config import settings
from backend.app.schemas.user import TokenPayload

TWO_FACTOR_PURPOSE = "2fa"


class InvalidTokenError(Exception):
    """Token could not be validated."""


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_session_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a session token for a user record."""
    return create_access_token(
        data={
            "sub": str(user.id),
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
        },
        expires_delta=expires_delta,
    )


def create_two_factor_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived proof that `user` passed the password step."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.TWO_FACTOR_PENDING_MINUTES)
    return create_access_token(
        data={
            "sub": str(user.id),
            "username": user.username,
            "purpose": TWO_FACTOR_PURPOSE,
        },
        expires_delta=expires_delta,
    )


def _decode(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc


def decode_access_token(token: str) -> TokenPayload:
    payload = _decode(token)
    if "purpose" in payload:
        raise InvalidTokenError("not a session token")
    try:
        return TokenPayload(**payload)
    except ValidationError as exc:
        raise InvalidTokenError(str(exc)) from exc


def decode_two_factor_token(token: str) -> Dict[str, str]:
    """Return the `sub` and `username` claims of a pending second-factor token."""
    payload = _decode(token)
    if payload.get("purpose") != TWO_FACTOR_PURPOSE:
        raise InvalidTokenError("not a second-factor token")
    sub, username = payload.get("sub"), payload.get("username")
    if not isinstance(sub, str) or not isinstance(username, str):
        raise InvalidTokenError("missing claims")
    return {"sub": sub, "username": username}
