"""Database health service implementations for connectivity checks."""

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from brokerbook.domain import HealthStatus

from .interfaces import DatabaseHealthPort


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Database health service backed by a lightweight engine round trip."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL with the password masked."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Verify connectivity and that the bookkeeping schema is migrated.

        Returns:
            HealthStatus: Health payload with status and diagnostic detail.

        Raises:
            ConnectionError: Raised when the database is unreachable or the ledger table is missing.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                ledger_table = connection.execute(text("SELECT to_regclass('public.ledger_entry')")).scalar()
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        if ledger_table is None:
            raise ConnectionError("database reachable but ledger schema is not migrated")
        return HealthStatus(status="ok", detail="database connectivity and ledger schema verified")
