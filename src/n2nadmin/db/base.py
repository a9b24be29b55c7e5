"""
Database base configuration and utilities.

This module provides the foundation for n2n-admin's database layer using
Peewee ORM with SQLite backend.

Components:
    - db: Global SQLite database instance
    - BaseModel: Base class for all database models
    - initialize_database: Database setup and first-run admin bootstrap
"""

import secrets
import string

import peewee

from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_ADMIN_USERNAME = "admin"
_PASSWORD_ALPHABET = string.ascii_letters + string.digits


# =============================================================================
# Database Instance
# =============================================================================

# Global database instance - path set via initialize_database()
db = peewee.SqliteDatabase(None, pragmas={"foreign_keys": 1})


# =============================================================================
# Base Model
# =============================================================================


class BaseModel(peewee.Model):
    """
    Base model for all n2n-admin database models.

    All models inherit from this class to share the database connection.
    """

    class Meta:
        database = db


# =============================================================================
# Database Lifecycle
# =============================================================================


def all_models() -> list[type[BaseModel]]:
    # Import models here to avoid circular imports
    from n2nadmin.db.auth import Session, User
    from n2nadmin.db.inventory import Community, Node, Setting

    return [Node, Community, Setting, User, Session]


def initialize_database(db_path: str) -> str | None:
    """
    Connect to the database, create tables and bootstrap the admin user.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        The generated admin password if the admin account was created by
        this call, otherwise None.

    Raises:
        peewee.OperationalError: If database connection fails.
    """
    logger.debug(f"Initializing database at: {db_path}")

    try:
        db.init(db_path, pragmas={"foreign_keys": 1})
        db.connect(reuse_if_open=True)
        db.create_tables(all_models(), safe=True)
    except peewee.OperationalError as e:
        logger.error(f"Failed to initialize database '{db_path}': {e}")
        raise

    logger.info(f"Database initialized: {db_path}")
    return _ensure_admin_user()


def _ensure_admin_user() -> str | None:
    """Create the first admin account with a random password if none exist."""
    from n2nadmin.db.auth import User
    from n2nadmin.server.auth.utils import hash_password

    if User.select().count() > 0:
        return None

    password = generate_password(12)
    User.create(
        username=DEFAULT_ADMIN_USERNAME,
        password_hash=hash_password(password),
        is_admin=True,
    )

    logger.warning("========================================")
    logger.warning("  First start: administrator account created")
    logger.warning(f"  Username: {DEFAULT_ADMIN_USERNAME}")
    logger.warning(f"  Password: {password}")
    logger.warning("  Log in and change this password now!")
    logger.warning("========================================")
    return password


def generate_password(length: int) -> str:
    """Generate a random alphanumeric password."""
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def close_database() -> None:
    """Close the database connection if open."""
    if not db.is_closed():
        db.close()
        logger.debug("Database connection closed")
