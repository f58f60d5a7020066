"""Regression tests for fixed SQL templates and error mapping in db-layer query paths."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from brokerbook.db import (
	SQLAlchemyBookkeepingService,
	SQLAlchemyBookkeepingTransaction,
	SQLAlchemyMasterDataService,
	db_build_advisory_lock_keys,
)
from brokerbook.db.bookkeeping import LEDGER_SEQUENCE_CONSTRAINT, db_map_integrity_error
from brokerbook.domain import Book, ConcurrencyConflictError, DuplicateRecordError, PersistenceError


class _MappingResultStub:
    """Stub mapping result wrapper for SQLAlchemy-like query responses."""

    def __init__(self, rows: list[dict]):
        self._rows = rows

    def mappings(self) -> _MappingResultStub:
        return self

    def all(self) -> list[dict]:
        return self._rows

    def first(self) -> dict | None:
        return self._rows[0] if self._rows else None


class _ConnectionStub:
    """Connection stub capturing executed SQL and parameters."""

    def __init__(self, rows: list[dict]):
        self._rows = rows
        self.executed_queries: list[str] = []
        self.executed_parameters: list[dict] = []

    def __enter__(self) -> _ConnectionStub:
        return self

    def __exit__(self, exc_type, exc, traceback) -> bool:
        _ = (exc_type, exc, traceback)
        return False

    def execute(self, statement, parameters: dict | None = None):
        """Capture execute input and return deterministic row result.

        Args:
            statement: SQLAlchemy text clause or raw string.
            parameters: Bound query parameters.

        Returns:
            _MappingResultStub: Query result stub.
        """

        statement_text = getattr(statement, "text", str(statement))
        self.executed_queries.append(statement_text)
        self.executed_parameters.append(parameters or {})
        return _MappingResultStub(rows=self._rows)


class _EngineStub:
    """Engine stub that returns a predefined connection object."""

    def __init__(self, connection: _ConnectionStub):
        self._connection = connection

    def connect(self) -> _ConnectionStub:
        return self._connection

    def begin(self) -> _ConnectionStub:
        return self._connection


class _DiagnosticsStub:
    def __init__(self, constraint_name: str | None):
        self.constraint_name = constraint_name


class _DriverErrorStub(Exception):
    """Driver-level error exposing psycopg-style `diag` and `sqlstate`."""

    def __init__(self, constraint_name: str | None, sqlstate: str | None):
        super().__init__(f"violation of {constraint_name}")
        self.diag = _DiagnosticsStub(constraint_name)
        self.sqlstate = sqlstate


def _integrity_error(constraint_name: str | None, sqlstate: str | None) -> IntegrityError:
    return IntegrityError("INSERT", {}, _DriverErrorStub(constraint_name, sqlstate))


def test_db_ledger_list_entries_for_account_uses_fixed_template() -> None:
    """Filter by book and account and order by per-account sequence."""

    connection = _ConnectionStub(rows=[])
    service = SQLAlchemyBookkeepingService(engine=_EngineStub(connection=connection))

    service.db_ledger_list_entries(Book.FO, account_code="P001")

    executed_query = connection.executed_queries[0]
    assert "WHERE book = :book AND account_code = :account_code" in executed_query
    assert "ORDER BY account_code ASC, account_sequence ASC" in executed_query
    assert connection.executed_parameters[0] == {"book": "fo", "account_code": "P001"}


def test_db_position_list_without_party_has_no_filter() -> None:
    connection = _ConnectionStub(rows=[])
    service = SQLAlchemyBookkeepingService(engine=_EngineStub(connection=connection))

    service.db_position_list()
    service.db_position_list(party_id=uuid4())

    assert "WHERE" not in connection.executed_queries[0]
    assert "WHERE party_id = :party_id" in connection.executed_queries[1]


def test_db_bill_list_rejects_invalid_page_before_query() -> None:
    connection = _ConnectionStub(rows=[])
    service = SQLAlchemyBookkeepingService(engine=_EngineStub(connection=connection))

    with pytest.raises(ValueError, match="limit must be greater than or equal to 1"):
        service.db_bill_list(Book.EQUITY, limit=0, offset=0)
    assert connection.executed_queries == []


def test_db_master_party_list_uses_paged_template() -> None:
    connection = _ConnectionStub(rows=[])
    service = SQLAlchemyMasterDataService(engine=_EngineStub(connection=connection))

    assert service.db_party_list(limit=5, offset=10) == []

    executed_query = connection.executed_queries[0]
    assert "ORDER BY party_code ASC LIMIT :limit OFFSET :offset" in executed_query
    assert connection.executed_parameters[0] == {"limit": 5, "offset": 10}


def test_db_lock_key_takes_transaction_scoped_advisory_lock() -> None:
    connection = _ConnectionStub(rows=[])
    transaction = SQLAlchemyBookkeepingTransaction(connection)

    transaction.db_lock_key("ledger:equity:P001")

    key_1, key_2 = db_build_advisory_lock_keys("ledger:equity:P001")
    assert connection.executed_queries[0] == "SELECT pg_advisory_xact_lock(:key_1, :key_2)"
    assert connection.executed_parameters[0] == {"key_1": key_1, "key_2": key_2}


def test_db_advisory_lock_keys_are_deterministic_signed_int32() -> None:
    first = db_build_advisory_lock_keys("ledger:equity:P001")

    assert first == db_build_advisory_lock_keys("  ledger:equity:P001 ")
    assert first != db_build_advisory_lock_keys("ledger:equity:P002")
    assert all(-(2**31) <= key < 2**31 for key in first)
    with pytest.raises(ValueError):
        db_build_advisory_lock_keys("   ")


@pytest.mark.parametrize(
    ("constraint_name", "sqlstate", "expected_type"),
    [
        (LEDGER_SEQUENCE_CONSTRAINT, "23505", ConcurrencyConflictError),
        ("uq_bill_number", "23505", DuplicateRecordError),
        ("ck_ledger_entry_single_side", "23514", PersistenceError),
    ],
)
def test_db_map_integrity_error_by_constraint(constraint_name: str, sqlstate: str, expected_type: type) -> None:
    mapped = db_map_integrity_error(_integrity_error(constraint_name, sqlstate), "insert failed")

    assert type(mapped) is expected_type
    assert str(mapped).startswith("insert failed")
