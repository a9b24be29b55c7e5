"""
Authentication module for n2n-admin.

Provides utilities, dependencies, and routes for authentication.
"""

from n2nadmin.server.auth.dependencies import (
    SESSION_COOKIE,
    CurrentUser,
    get_current_user,
)
from n2nadmin.server.auth.utils import (
    generate_session_token,
    hash_password,
    hash_token,
    verify_password,
)

__all__ = [
    # Utils
    "hash_password",
    "verify_password",
    "generate_session_token",
    "hash_token",
    # Dependencies
    "SESSION_COOKIE",
    "CurrentUser",
    "get_current_user",
]
