"""
Authentication API routes for n2n-admin.

Provides endpoints for:
- Login (throttled per client address and per account)
- Logout
- Current user info
- Password change
"""

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from n2nadmin.db.auth import Session, User
from n2nadmin.models.requests import ChangePasswordRequest, LoginRequest
from n2nadmin.server.auth.dependencies import (
    SESSION_COOKIE,
    CurrentUser,
    get_current_token,
)
from n2nadmin.server.auth.utils import (
    generate_session_token,
    hash_password,
    hash_token,
    verify_password,
)
from n2nadmin.server.state import ServicesDep
from n2nadmin.services.login_throttle import account_key
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _locked_response(message: str, remaining: float) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": message, "locked": True, "seconds": int(remaining)},
    )


def _minutes(remaining: float) -> int:
    return int(remaining // 60) + 1


# =============================================================================
# Login/Logout Endpoints
# =============================================================================


@router.post("/login")
def login(body: LoginRequest, request: Request, response: Response, services: ServicesDep):
    """
    Login with username and password.

    Rejects the attempt with 429 while either the client address or the
    account is locked. Returns a session token and sets the session cookie.
    """
    throttle = services.throttle
    client = _client_address(request)

    locked, remaining = throttle.check_lock(client)
    if locked:
        return _locked_response(
            f"Too many login attempts, try again in {_minutes(remaining)} minutes",
            remaining,
        )

    locked, remaining = throttle.check_lock(account_key(body.username))
    if locked:
        return _locked_response(
            f"This account is temporarily locked, try again in "
            f"{_minutes(remaining)} minutes",
            remaining,
        )

    user = User.get_or_none(User.username == body.username)
    if user is None or not verify_password(body.password, user.password_hash):
        locked, remaining = throttle.record_failure(client, body.username)
        logger.info(f"Failed login for '{body.username}' from {client}")
        if locked:
            return _locked_response(
                f"Too many failed logins, locked for {int(remaining // 60)} minutes",
                remaining,
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    throttle.record_success(client, body.username)

    token = generate_session_token()
    expires_at = datetime.datetime.now() + datetime.timedelta(
        hours=services.config.SESSION_EXPIRE_HOURS
    )
    Session.create(token_hash=hash_token(token), user=user, expires_at=expires_at)

    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=services.config.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="lax",
    )

    logger.info(f"User '{user.username}' logged in from {client}")
    return {"token": token, "user": user.to_dict()}


@router.post("/logout")
def logout(
    user: CurrentUser,
    response: Response,
    token: Annotated[str | None, Depends(get_current_token)],
):
    """Invalidate the current session."""
    if token:
        Session.delete().where(Session.token_hash == hash_token(token)).execute()
    response.delete_cookie(key=SESSION_COOKIE)
    logger.info(f"User '{user.username}' logged out")
    return {"message": "logged out"}


@router.get("/me")
def me(user: CurrentUser):
    """Get the current user."""
    return user.to_dict()


# =============================================================================
# Password Management
# =============================================================================


@router.post("/change-password")
def change_password(body: ChangePasswordRequest, user: CurrentUser, services: ServicesDep):
    """Change the current user's password."""
    min_length = services.config.MIN_PASSWORD_LENGTH
    if len(body.new_password) < min_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"New password must be at least {min_length} characters",
        )

    if not verify_password(body.old_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Old password incorrect",
        )

    user.password_hash = hash_password(body.new_password)
    user.save()

    logger.info(f"User '{user.username}' changed password")
    return {"message": "success"}
