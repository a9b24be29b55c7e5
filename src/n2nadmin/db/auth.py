"""
Authentication database models for n2n-admin.

This module defines models for administrator accounts and login sessions.
"""

import datetime

import peewee

from n2nadmin.db.base import BaseModel


# =============================================================================
# User Model
# =============================================================================


class User(BaseModel):
    """
    An administrator account.

    Users authenticate with username/password and receive a session token.
    """

    id = peewee.AutoField()
    username = peewee.CharField(unique=True, max_length=100, index=True)
    password_hash = peewee.CharField(max_length=255)  # bcrypt hash
    is_admin = peewee.BooleanField(default=True)
    created_at = peewee.DateTimeField(default=datetime.datetime.now)

    class Meta:
        table_name = "users"

    def to_dict(self) -> dict:
        """Convert user to dictionary for API responses."""
        return {
            "id": self.id,
            "username": self.username,
            "is_admin": self.is_admin,
        }


# =============================================================================
# Session Model
# =============================================================================


class Session(BaseModel):
    """
    An active login session.

    Only the SHA3-512 hash of the session token is stored; the plaintext
    token is returned once at login.
    """

    id = peewee.AutoField()
    token_hash = peewee.CharField(max_length=128, unique=True, index=True)
    user = peewee.ForeignKeyField(User, backref="sessions", on_delete="CASCADE")
    expires_at = peewee.DateTimeField()
    created_at = peewee.DateTimeField(default=datetime.datetime.now)

    class Meta:
        table_name = "sessions"

    def is_expired(self) -> bool:
        """Check if session has expired."""
        return datetime.datetime.now() > self.expires_at

    @classmethod
    def purge_expired(cls) -> int:
        """
        Delete every session past its expiry.

        Returns:
            Number of sessions removed.
        """
        return (
            cls.delete().where(cls.expires_at < datetime.datetime.now()).execute()
        )
