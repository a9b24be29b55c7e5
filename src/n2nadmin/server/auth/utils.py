"""
Authentication utilities for n2n-admin.

Provides functions for password hashing (bcrypt), session token
generation, and token hashing (SHA3-512).
"""

import hashlib
import secrets

import bcrypt

from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Password Hashing (bcrypt)
# =============================================================================


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password.

    Returns:
        Bcrypt hash string.
    """
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Returns:
        True if password matches, False otherwise (including malformed hashes).
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Password verification failed: {e}")
        return False


# =============================================================================
# Session Tokens
# =============================================================================


def generate_session_token() -> str:
    """
    Generate a session token.

    Returns:
        32-byte hex-encoded random token (64 chars).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash a token using SHA3-512.

    Session tokens are stored as hashes; the plaintext is only returned
    once at login.

    Returns:
        SHA3-512 hash as hex string (128 chars).
    """
    return hashlib.sha3_512(token.encode("utf-8")).hexdigest()
