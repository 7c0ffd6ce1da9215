"""
Request dependencies for authentication.

Protected routes depend on ``get_current_user``: a missing bearer token is
answered with 401, an invalid or expired one with 403. Routes with optional
authentication depend on ``get_optional_user`` which never fails.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from recipe_catalog.core.errors import AppError
from recipe_catalog.core.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity carried by a verified access token."""
    id: str
    email: Optional[str] = None


def _user_from_payload(payload: dict) -> AuthenticatedUser:
    return AuthenticatedUser(id=str(payload["sub"]), email=payload.get("email"))


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Require a valid bearer token."""
    if credentials is None or not credentials.credentials:
        raise AppError.unauthorized("Access token required")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise AppError.forbidden("Invalid or expired token")

    user = _user_from_payload(payload)
    # Picked up by the error handler when logging failures
    request.state.user_id = user.id
    return user


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthenticatedUser]:
    """Return the caller's identity when a valid token is sent, otherwise None."""
    if credentials is None or not credentials.credentials:
        return None

    payload = decode_token(credentials.credentials)
    if payload is None:
        return None

    user = _user_from_payload(payload)
    request.state.user_id = user.id
    return user
