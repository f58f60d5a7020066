"""Database engine utilities.

This module centralizes engine construction so all SQLAlchemy connectivity
stays inside the db layer.
"""

from sqlalchemy import Engine, create_engine


def db_create_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for application database access.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Engine with pre-ping enabled so stale pooled connections are replaced.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")

    return create_engine(database_url, pool_pre_ping=True)
