"""
JWT token handling for the bearer authentication filter.

Tokens are issued by the account service and signed with the shared
JWT_SECRET_KEY; this API only verifies them. ``create_access_token`` exists
for operators and tests that need to mint a token with the same secret.
"""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError

from recipe_catalog.core.config import get_settings


def create_access_token(
    subject: str | Any,
    expires_delta: timedelta | None = None,
    email: str | None = None,
) -> str:
    """Create a JWT access token."""
    settings = get_settings()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "type": "access",
    }
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode and validate a JWT token. Returns payload or None if invalid."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if payload.get("type", "access") != "access" or not payload.get("sub"):
        return None
    return payload
