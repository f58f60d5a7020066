"""Database service for transactional bill, ledger, payment and position persistence."""

from __future__ import annotations

import hashlib
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from brokerbook.domain import (
    Bill,
    BillItem,
    BillStatus,
    BillType,
    Book,
    ConcurrencyConflictError,
    Contract,
    ContractSide,
    ContractStatus,
    DuplicateRecordError,
    LedgerEntry,
    LedgerEntryKind,
    Payment,
    PersistenceError,
    Position,
    RecordNotFoundError,
    TradeType,
)

from .interfaces import BookkeepingRepositoryPort, BookkeepingTransactionPort, PositionTradeRecord


LEDGER_SEQUENCE_CONSTRAINT = "uq_ledger_entry_account_sequence"
_UNIQUE_VIOLATION_SQLSTATE = "23505"

_BILL_COLUMNS = (
    "bill_id, bill_number, book, bill_type, account_code, party_id, broker_id, bill_date, "
    "trade_amount, brokerage_amount, total_amount, paid_amount, status"
)
_CONTRACT_COLUMNS = (
    "contract_id, contract_number, book, party_id, broker_id, settlement_id, instrument_id, trade_date, "
    "trade_type, contract_type, quantity, rate, amount, brokerage_rate, brokerage_amount, "
    "broker_brokerage_rate, broker_brokerage_amount, party_bill_number, broker_bill_number, status"
)
_LEDGER_COLUMNS = (
    "ledger_entry_id, book, account_code, account_sequence, entry_kind, entry_date, particulars, "
    "debit_amount, credit_amount, balance, party_id, broker_id, bill_number"
)
_POSITION_COLUMNS = (
    "party_id, instrument_id, quantity, avg_price, realized_pnl, last_trade_date, last_trade_rate"
)
_PAYMENT_COLUMNS = "payment_id, payment_number, bill_number, amount, payment_date, method, notes, payment_reference"


def db_build_advisory_lock_keys(lock_name: str) -> tuple[int, int]:
    """Create deterministic advisory lock keys for one named serialization scope.

    Args:
        lock_name: Scope name such as `ledger:equity:P001`.

    Returns:
        tuple[int, int]: Two signed int32 lock keys for PostgreSQL advisory lock.

    Raises:
        ValueError: Raised when lock_name is blank.
    """

    normalized_lock_name = (lock_name or "").strip()
    if not normalized_lock_name:
        raise ValueError("lock_name must not be blank")
    digest = hashlib.sha256(normalized_lock_name.encode("utf-8")).digest()
    key_1 = int.from_bytes(digest[0:4], byteorder="big", signed=True)
    key_2 = int.from_bytes(digest[4:8], byteorder="big", signed=True)
    return key_1, key_2


def db_map_integrity_error(error: IntegrityError, message: str) -> Exception:
    """Translate an integrity violation into a domain persistence error.

    Args:
        error: SQLAlchemy integrity error.
        message: Message for the translated error.

    Returns:
        Exception: `ConcurrencyConflictError` for a taken ledger sequence,
        `DuplicateRecordError` for other unique violations, else `PersistenceError`.
    """

    original_error = getattr(error, "orig", None)
    diagnostics = getattr(original_error, "diag", None)
    constraint_name = getattr(diagnostics, "constraint_name", None) or ""
    sqlstate = getattr(original_error, "sqlstate", None)

    if constraint_name == LEDGER_SEQUENCE_CONSTRAINT or LEDGER_SEQUENCE_CONSTRAINT in str(original_error):
        return ConcurrencyConflictError(f"{message}: ledger account sequence already taken")
    if sqlstate == _UNIQUE_VIOLATION_SQLSTATE:
        return DuplicateRecordError(f"{message}: duplicate record ({constraint_name or 'unique constraint'})")
    return PersistenceError(f"{message}: integrity violation")


class SQLAlchemyBookkeepingTransaction(BookkeepingTransactionPort):
    """Bookkeeping operations bound to one open SQLAlchemy connection transaction."""

    def __init__(self, connection: Connection):
        if connection is None:
            raise ValueError("connection must not be None")
        self._connection = connection

    def db_lock_key(self, lock_name: str) -> None:
        key_1, key_2 = db_build_advisory_lock_keys(lock_name)
        self._connection.execute(
            text("SELECT pg_advisory_xact_lock(:key_1, :key_2)"),
            {"key_1": key_1, "key_2": key_2},
        )

    def db_ledger_fetch_latest(self, book: Book, account_code: str) -> LedgerEntry | None:
        row = self._connection.execute(
            text(
                f"SELECT {_LEDGER_COLUMNS} "
                "FROM ledger_entry "
                "WHERE book = :book AND account_code = :account_code "
                "ORDER BY account_sequence DESC "
                "LIMIT 1"
            ),
            {"book": book.value, "account_code": account_code},
        ).mappings().first()
        return db_map_ledger_entry(row) if row is not None else None

    def db_ledger_insert(self, entry: LedgerEntry) -> LedgerEntry:
        try:
            row = self._connection.execute(
                text(
                    "INSERT INTO ledger_entry ("
                    "book, account_code, account_sequence, entry_kind, entry_date, particulars, "
                    "debit_amount, credit_amount, balance, party_id, broker_id, bill_number"
                    ") VALUES ("
                    ":book, :account_code, :account_sequence, :entry_kind, :entry_date, :particulars, "
                    ":debit_amount, :credit_amount, :balance, :party_id, :broker_id, :bill_number"
                    ") "
                    f"RETURNING {_LEDGER_COLUMNS}"
                ),
                {
                    "book": entry.book.value,
                    "account_code": entry.account_code,
                    "account_sequence": entry.account_sequence,
                    "entry_kind": entry.entry_kind.value,
                    "entry_date": entry.entry_date,
                    "particulars": entry.particulars,
                    "debit_amount": entry.debit_amount,
                    "credit_amount": entry.credit_amount,
                    "balance": entry.balance,
                    "party_id": entry.party_id,
                    "broker_id": entry.broker_id,
                    "bill_number": entry.bill_number,
                },
            ).mappings().one()
        except IntegrityError as error:
            raise db_map_integrity_error(error, "failed to insert ledger entry") from error
        return db_map_ledger_entry(row)

    def db_bill_next_sequence(self, bill_date: date) -> int:
        row = self._connection.execute(
            text(
                "SELECT COALESCE(MAX(CAST(split_part(bill_number, '-', 2) AS INTEGER)), 0) + 1 AS next_sequence "
                "FROM bill "
                "WHERE bill_date = :bill_date"
            ),
            {"bill_date": bill_date},
        ).mappings().one()
        return int(row["next_sequence"])

    def db_bill_insert(self, bill: Bill) -> Bill:
        try:
            bill_row = self._connection.execute(
                text(
                    "INSERT INTO bill ("
                    "bill_number, book, bill_type, account_code, party_id, broker_id, bill_date, "
                    "trade_amount, brokerage_amount, total_amount, paid_amount, status"
                    ") VALUES ("
                    ":bill_number, :book, :bill_type, :account_code, :party_id, :broker_id, :bill_date, "
                    ":trade_amount, :brokerage_amount, :total_amount, :paid_amount, :status"
                    ") "
                    f"RETURNING {_BILL_COLUMNS}"
                ),
                {
                    "bill_number": bill.bill_number,
                    "book": bill.book.value,
                    "bill_type": bill.bill_type.value,
                    "account_code": bill.account_code,
                    "party_id": bill.party_id,
                    "broker_id": bill.broker_id,
                    "bill_date": bill.bill_date,
                    "trade_amount": bill.trade_amount,
                    "brokerage_amount": bill.brokerage_amount,
                    "total_amount": bill.total_amount,
                    "paid_amount": bill.paid_amount,
                    "status": bill.status.value,
                },
            ).mappings().one()
        except IntegrityError as error:
            raise db_map_integrity_error(error, f"failed to insert bill {bill.bill_number}") from error

        return db_map_bill(bill_row, items=bill.items)

    def db_bill_items_insert(self, bill_number: str, items: tuple[BillItem, ...]) -> None:
        """Insert bill lines once their contracts exist."""

        if not items:
            return
        try:
            self._connection.execute(
                text(
                    "INSERT INTO bill_item ("
                    "bill_id, line_number, contract_number, instrument_id, description, contract_type, trade_type, "
                    "quantity, rate, trade_amount, brokerage_rate, brokerage_amount, amount"
                    ") SELECT bill_id, :line_number, :contract_number, :instrument_id, :description, :contract_type, "
                    ":trade_type, :quantity, :rate, :trade_amount, :brokerage_rate, :brokerage_amount, :amount "
                    "FROM bill WHERE bill_number = :bill_number"
                ),
                [
                    {
                        "bill_number": bill_number,
                        "line_number": item.line_number,
                        "contract_number": item.contract_number,
                        "instrument_id": item.instrument_id,
                        "description": item.description,
                        "contract_type": item.contract_type.value,
                        "trade_type": item.trade_type.value,
                        "quantity": item.quantity,
                        "rate": item.rate,
                        "trade_amount": item.trade_amount,
                        "brokerage_rate": item.brokerage_rate,
                        "brokerage_amount": item.brokerage_amount,
                        "amount": item.amount,
                    }
                    for item in items
                ],
            )
        except IntegrityError as error:
            raise db_map_integrity_error(error, f"failed to insert items of bill {bill_number}") from error

    def db_bill_fetch_for_update(self, bill_number: str) -> Bill | None:
        row = self._connection.execute(
            text(f"SELECT {_BILL_COLUMNS} FROM bill WHERE bill_number = :bill_number FOR UPDATE"),
            {"bill_number": bill_number},
        ).mappings().first()
        if row is None:
            return None
        return db_map_bill(row, items=db_fetch_bill_items(self._connection, row["bill_id"]))

    def db_bill_update_payment(self, bill_number: str, paid_amount: Decimal, status: BillStatus) -> Bill:
        row = self._connection.execute(
            text(
                "UPDATE bill SET paid_amount = :paid_amount, status = :status, updated_at_utc = now() "
                "WHERE bill_number = :bill_number "
                f"RETURNING {_BILL_COLUMNS}"
            ),
            {"bill_number": bill_number, "paid_amount": paid_amount, "status": status.value},
        ).mappings().first()
        if row is None:
            raise RecordNotFoundError(f"bill not found: {bill_number}")
        return db_map_bill(row, items=db_fetch_bill_items(self._connection, row["bill_id"]))

    def db_contract_insert(self, contract: Contract) -> Contract:
        try:
            row = self._connection.execute(
                text(
                    "INSERT INTO contract ("
                    "contract_number, book, party_id, broker_id, settlement_id, instrument_id, trade_date, "
                    "trade_type, contract_type, quantity, rate, amount, brokerage_rate, brokerage_amount, "
                    "broker_brokerage_rate, broker_brokerage_amount, party_bill_number, broker_bill_number, status"
                    ") VALUES ("
                    ":contract_number, :book, :party_id, :broker_id, :settlement_id, :instrument_id, :trade_date, "
                    ":trade_type, :contract_type, :quantity, :rate, :amount, :brokerage_rate, :brokerage_amount, "
                    ":broker_brokerage_rate, :broker_brokerage_amount, :party_bill_number, :broker_bill_number, :status"
                    ") "
                    f"RETURNING {_CONTRACT_COLUMNS}"
                ),
                {
                    "contract_number": contract.contract_number,
                    "book": contract.book.value,
                    "party_id": contract.party_id,
                    "broker_id": contract.broker_id,
                    "settlement_id": contract.settlement_id,
                    "instrument_id": contract.instrument_id,
                    "trade_date": contract.trade_date,
                    "trade_type": contract.trade_type.value,
                    "contract_type": contract.contract_type.value,
                    "quantity": contract.quantity,
                    "rate": contract.rate,
                    "amount": contract.amount,
                    "brokerage_rate": contract.brokerage_rate,
                    "brokerage_amount": contract.brokerage_amount,
                    "broker_brokerage_rate": contract.broker_brokerage_rate,
                    "broker_brokerage_amount": contract.broker_brokerage_amount,
                    "party_bill_number": contract.party_bill_number,
                    "broker_bill_number": contract.broker_bill_number,
                    "status": contract.status.value,
                },
            ).mappings().one()
        except IntegrityError as error:
            raise db_map_integrity_error(error, f"failed to insert contract {contract.contract_number}") from error
        return db_map_contract(row)

    def db_contract_fetch_for_update(self, contract_number: str) -> Contract | None:
        row = self._connection.execute(
            text(f"SELECT {_CONTRACT_COLUMNS} FROM contract WHERE contract_number = :contract_number FOR UPDATE"),
            {"contract_number": contract_number},
        ).mappings().first()
        return db_map_contract(row) if row is not None else None

    def db_contract_update_status(self, contract_number: str, status: ContractStatus) -> Contract:
        row = self._connection.execute(
            text(
                "UPDATE contract SET status = :status, updated_at_utc = now() "
                "WHERE contract_number = :contract_number "
                f"RETURNING {_CONTRACT_COLUMNS}"
            ),
            {"contract_number": contract_number, "status": status.value},
        ).mappings().first()
        if row is None:
            raise RecordNotFoundError(f"contract not found: {contract_number}")
        return db_map_contract(row)

    def db_payment_next_sequence(self, payment_date: date) -> int:
        row = self._connection.execute(
            text(
                "SELECT COALESCE(MAX(CAST(split_part(payment_number, '-', 2) AS INTEGER)), 0) + 1 AS next_sequence "
                "FROM payment "
                "WHERE payment_date = :payment_date"
            ),
            {"payment_date": payment_date},
        ).mappings().one()
        return int(row["next_sequence"])

    def db_payment_get_by_reference(self, payment_reference: str) -> Payment | None:
        row = self._connection.execute(
            text(f"SELECT {_PAYMENT_COLUMNS} FROM payment WHERE payment_reference = :payment_reference"),
            {"payment_reference": payment_reference},
        ).mappings().first()
        return db_map_payment(row) if row is not None else None

    def db_payment_insert(self, payment: Payment) -> Payment:
        try:
            row = self._connection.execute(
                text(
                    "INSERT INTO payment "
                    "(payment_number, bill_id, bill_number, amount, payment_date, method, notes, payment_reference) "
                    "SELECT :payment_number, bill_id, bill_number, :amount, :payment_date, :method, :notes, :payment_reference "
                    "FROM bill WHERE bill_number = :bill_number "
                    f"RETURNING {_PAYMENT_COLUMNS}"
                ),
                {
                    "payment_number": payment.payment_number,
                    "bill_number": payment.bill_number,
                    "amount": payment.amount,
                    "payment_date": payment.payment_date,
                    "method": payment.method,
                    "notes": payment.notes,
                    "payment_reference": payment.payment_reference,
                },
            ).mappings().first()
        except IntegrityError as error:
            raise db_map_integrity_error(error, f"failed to insert payment {payment.payment_number}") from error
        if row is None:
            raise RecordNotFoundError(f"bill not found: {payment.bill_number}")
        return db_map_payment(row)

    def db_position_fetch_for_update(self, party_id: UUID, instrument_id: UUID) -> Position | None:
        row = self._connection.execute(
            text(
                f"SELECT {_POSITION_COLUMNS} FROM position "
                "WHERE party_id = :party_id AND instrument_id = :instrument_id "
                "FOR UPDATE"
            ),
            {"party_id": party_id, "instrument_id": instrument_id},
        ).mappings().first()
        return db_map_position(row) if row is not None else None

    def db_position_upsert(self, position: Position) -> Position:
        row = self._connection.execute(
            text(
                "INSERT INTO position ("
                "party_id, instrument_id, quantity, avg_price, realized_pnl, last_trade_date, last_trade_rate"
                ") VALUES ("
                ":party_id, :instrument_id, :quantity, :avg_price, :realized_pnl, :last_trade_date, :last_trade_rate"
                ") "
                "ON CONFLICT (party_id, instrument_id) DO UPDATE SET "
                "quantity = EXCLUDED.quantity, "
                "avg_price = EXCLUDED.avg_price, "
                "realized_pnl = EXCLUDED.realized_pnl, "
                "last_trade_date = EXCLUDED.last_trade_date, "
                "last_trade_rate = EXCLUDED.last_trade_rate, "
                "updated_at_utc = now() "
                f"RETURNING {_POSITION_COLUMNS}"
            ),
            {
                "party_id": position.party_id,
                "instrument_id": position.instrument_id,
                "quantity": position.quantity,
                "avg_price": position.avg_price,
                "realized_pnl": position.realized_pnl,
                "last_trade_date": position.last_trade_date,
                "last_trade_rate": position.last_trade_rate,
            },
        ).mappings().one()
        return db_map_position(row)

    def db_position_trade_insert(self, record: PositionTradeRecord) -> None:
        try:
            self._connection.execute(
                text(
                    "INSERT INTO position_trade ("
                    "trade_reference, party_id, instrument_id, trade_date, signed_quantity, rate, "
                    "realized_pnl, quantity_after, avg_price_after"
                    ") VALUES ("
                    ":trade_reference, :party_id, :instrument_id, :trade_date, :signed_quantity, :rate, "
                    ":realized_pnl, :quantity_after, :avg_price_after"
                    ")"
                ),
                {
                    "trade_reference": record.trade_reference,
                    "party_id": record.party_id,
                    "instrument_id": record.instrument_id,
                    "trade_date": record.trade_date,
                    "signed_quantity": record.signed_quantity,
                    "rate": record.rate,
                    "realized_pnl": record.realized_pnl,
                    "quantity_after": record.quantity_after,
                    "avg_price_after": record.avg_price_after,
                },
            )
        except IntegrityError as error:
            raise db_map_integrity_error(error, f"failed to record trade {record.trade_reference}") from error


class SQLAlchemyBookkeepingService(BookkeepingRepositoryPort):
    """SQLAlchemy-backed bookkeeping repository.

    Writes happen inside `db_transaction()`; each block is one PostgreSQL
    transaction, so a batch of contracts, bills and ledger entries commits
    together or not at all.
    """

    def __init__(self, engine: Engine):
        """Initialize bookkeeping persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    @contextmanager
    def db_transaction(self) -> Iterator[SQLAlchemyBookkeepingTransaction]:
        """Open one atomic bookkeeping transaction.

        Yields:
            SQLAlchemyBookkeepingTransaction: Operations bound to the open transaction.

        Raises:
            ConcurrencyConflictError: Raised when a ledger sequence race is detected at commit.
            DuplicateRecordError: Raised when a unique identity is violated at commit.
            PersistenceError: Raised when the database fails.
        """

        try:
            with self._engine.begin() as connection:
                yield SQLAlchemyBookkeepingTransaction(connection)
        except IntegrityError as error:
            raise db_map_integrity_error(error, "bookkeeping transaction failed") from error
        except SQLAlchemyError as error:
            raise PersistenceError("bookkeeping transaction failed") from error

    def db_ledger_list_entries(self, book: Book, account_code: str | None = None) -> list[LedgerEntry]:
        statement = f"SELECT {_LEDGER_COLUMNS} FROM ledger_entry WHERE book = :book "
        parameters: dict[str, Any] = {"book": book.value}
        if account_code is not None:
            statement += "AND account_code = :account_code "
            parameters["account_code"] = account_code
        statement += "ORDER BY account_code ASC, account_sequence ASC"

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(text(statement), parameters).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to list ledger entries") from error
        return [db_map_ledger_entry(row) for row in rows]

    def db_bill_get(self, bill_number: str) -> Bill | None:
        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(f"SELECT {_BILL_COLUMNS} FROM bill WHERE bill_number = :bill_number"),
                    {"bill_number": bill_number},
                ).mappings().first()
                if row is None:
                    return None
                items = db_fetch_bill_items(connection, row["bill_id"])
        except SQLAlchemyError as error:
            raise PersistenceError("failed to read bill") from error
        return db_map_bill(row, items=items)

    def db_bill_list(self, book: Book, limit: int, offset: int) -> list[Bill]:
        if limit < 1:
            raise ValueError("limit must be greater than or equal to 1")
        if offset < 0:
            raise ValueError("offset must be greater than or equal to 0")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        f"SELECT {_BILL_COLUMNS} FROM bill "
                        "WHERE book = :book "
                        "ORDER BY bill_date DESC, bill_number DESC "
                        "LIMIT :limit OFFSET :offset"
                    ),
                    {"book": book.value, "limit": limit, "offset": offset},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to list bills") from error
        return [db_map_bill(row, items=()) for row in rows]

    def db_contract_list_for_bill(self, bill_number: str) -> list[Contract]:
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        f"SELECT {_CONTRACT_COLUMNS} FROM contract "
                        "WHERE party_bill_number = :bill_number OR broker_bill_number = :bill_number "
                        "ORDER BY contract_number ASC"
                    ),
                    {"bill_number": bill_number},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to list contracts") from error
        return [db_map_contract(row) for row in rows]

    def db_contract_list(self, book: Book, party_id: UUID | None = None) -> list[Contract]:
        statement = f"SELECT {_CONTRACT_COLUMNS} FROM contract WHERE book = :book "
        parameters: dict[str, Any] = {"book": book.value}
        if party_id is not None:
            statement += "AND party_id = :party_id "
            parameters["party_id"] = party_id
        statement += "ORDER BY trade_date ASC, contract_number ASC"
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(text(statement), parameters).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to list contracts") from error
        return [db_map_contract(row) for row in rows]

    def db_payment_list_for_bill(self, bill_number: str) -> list[Payment]:
        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        f"SELECT {_PAYMENT_COLUMNS} FROM payment "
                        "WHERE bill_number = :bill_number "
                        "ORDER BY payment_date ASC, payment_number ASC"
                    ),
                    {"bill_number": bill_number},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to list payments") from error
        return [db_map_payment(row) for row in rows]

    def db_position_list(self, party_id: UUID | None = None) -> list[Position]:
        statement = f"SELECT {_POSITION_COLUMNS} FROM position "
        parameters: dict[str, Any] = {}
        if party_id is not None:
            statement += "WHERE party_id = :party_id "
            parameters["party_id"] = party_id
        statement += "ORDER BY party_id ASC, instrument_id ASC"

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(text(statement), parameters).mappings().all()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to list positions") from error
        return [db_map_position(row) for row in rows]


def db_fetch_bill_items(connection: Connection, bill_id: UUID) -> tuple[BillItem, ...]:
    """Read bill lines ordered by line number."""

    rows = connection.execute(
        text(
            "SELECT line_number, contract_number, instrument_id, description, contract_type, trade_type, "
            "quantity, rate, trade_amount, brokerage_rate, brokerage_amount, amount "
            "FROM bill_item WHERE bill_id = :bill_id ORDER BY line_number ASC"
        ),
        {"bill_id": bill_id},
    ).mappings().all()
    return tuple(
        BillItem(
            line_number=row["line_number"],
            contract_number=row["contract_number"],
            instrument_id=row["instrument_id"],
            description=row["description"],
            contract_type=ContractSide(row["contract_type"]),
            trade_type=TradeType(row["trade_type"]),
            quantity=int(row["quantity"]),
            rate=row["rate"],
            trade_amount=row["trade_amount"],
            brokerage_rate=row["brokerage_rate"],
            brokerage_amount=row["brokerage_amount"],
            amount=row["amount"],
        )
        for row in rows
    )


def db_map_bill(row: Any, items: tuple[BillItem, ...]) -> Bill:
    """Map SQLAlchemy row mapping to typed bill."""

    return Bill(
        bill_id=row["bill_id"],
        bill_number=row["bill_number"],
        book=Book(row["book"]),
        bill_type=BillType(row["bill_type"]),
        account_code=row["account_code"],
        party_id=row["party_id"],
        broker_id=row["broker_id"],
        bill_date=row["bill_date"],
        trade_amount=row["trade_amount"],
        brokerage_amount=row["brokerage_amount"],
        total_amount=row["total_amount"],
        paid_amount=row["paid_amount"],
        status=BillStatus(row["status"]),
        items=tuple(items),
    )


def db_map_contract(row: Any) -> Contract:
    """Map SQLAlchemy row mapping to typed contract."""

    return Contract(
        contract_id=row["contract_id"],
        contract_number=row["contract_number"],
        book=Book(row["book"]),
        party_id=row["party_id"],
        broker_id=row["broker_id"],
        settlement_id=row["settlement_id"],
        instrument_id=row["instrument_id"],
        trade_date=row["trade_date"],
        trade_type=TradeType(row["trade_type"]),
        contract_type=ContractSide(row["contract_type"]),
        quantity=int(row["quantity"]),
        rate=row["rate"],
        amount=row["amount"],
        brokerage_rate=row["brokerage_rate"],
        brokerage_amount=row["brokerage_amount"],
        broker_brokerage_rate=row["broker_brokerage_rate"],
        broker_brokerage_amount=row["broker_brokerage_amount"],
        party_bill_number=row["party_bill_number"],
        broker_bill_number=row["broker_bill_number"],
        status=ContractStatus(row["status"]),
    )


def db_map_ledger_entry(row: Any) -> LedgerEntry:
    """Map SQLAlchemy row mapping to typed ledger entry."""

    return LedgerEntry(
        ledger_entry_id=row["ledger_entry_id"],
        book=Book(row["book"]),
        account_code=row["account_code"],
        account_sequence=int(row["account_sequence"]),
        entry_kind=LedgerEntryKind(row["entry_kind"]),
        entry_date=row["entry_date"],
        particulars=row["particulars"],
        debit_amount=row["debit_amount"],
        credit_amount=row["credit_amount"],
        balance=row["balance"],
        party_id=row["party_id"],
        broker_id=row["broker_id"],
        bill_number=row["bill_number"],
    )


def db_map_position(row: Any) -> Position:
    """Map SQLAlchemy row mapping to typed position."""

    return Position(
        party_id=row["party_id"],
        instrument_id=row["instrument_id"],
        quantity=int(row["quantity"]),
        avg_price=row["avg_price"],
        realized_pnl=row["realized_pnl"],
        last_trade_date=row["last_trade_date"],
        last_trade_rate=row["last_trade_rate"],
    )


def db_map_payment(row: Any) -> Payment:
    """Map SQLAlchemy row mapping to typed payment."""

    return Payment(
        payment_id=row["payment_id"],
        payment_number=row["payment_number"],
        bill_number=row["bill_number"],
        amount=row["amount"],
        payment_date=row["payment_date"],
        method=row["method"],
        notes=row["notes"],
        payment_reference=row["payment_reference"],
    )
