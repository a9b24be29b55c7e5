"""
FastAPI dependencies for authentication.

Resolves the current user from a session token carried either in the
``Authorization: Bearer`` header or in the session cookie.
"""

from typing import Annotated

from fastapi import Cookie, Depends, Header, HTTPException, status

from n2nadmin.db.auth import Session, User
from n2nadmin.server.auth.utils import hash_token
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

SESSION_COOKIE = "n2nadmin_session"


# =============================================================================
# User Extraction
# =============================================================================


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extract token from Authorization header."""
    if not authorization:
        return None
    if not authorization.startswith("Bearer "):
        return None
    return authorization[7:].strip() or None


def get_user_from_token(token: str) -> User | None:
    """
    Look up the user owning a session token.

    Expired sessions are deleted on sight.

    Returns:
        User if the session is valid, None otherwise.
    """
    session = Session.get_or_none(Session.token_hash == hash_token(token))
    if session is None:
        return None

    if session.is_expired():
        session.delete_instance()
        return None

    return session.user


# =============================================================================
# Authentication Dependencies
# =============================================================================


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    session_token: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
) -> User:
    """
    Get current authenticated user.

    Raises HTTPException 401 if not authenticated.
    """
    token = _extract_bearer_token(authorization) or session_token
    user = get_user_from_token(token) if token else None

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_current_token(
    authorization: Annotated[str | None, Header()] = None,
    session_token: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
) -> str | None:
    """Return the raw session token of the request, if any."""
    return _extract_bearer_token(authorization) or session_token


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
