"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules; services in
other layers depend only on the ports declared here.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from brokerbook.domain import (
    HOUSE_ACCOUNT_NAMES,
    Bill,
    BillItem,
    BillStatus,
    Book,
    Broker,
    Contract,
    ContractStatus,
    HealthStatus,
    Instrument,
    InstrumentType,
    LedgerEntry,
    Party,
    Payment,
    Position,
    Settlement,
    SettlementType,
    ValidationError,
)


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target."""

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


@dataclass(frozen=True)
class PartyCreateRequest:
    """Input contract for creating one party.

    Attributes:
        party_code: Unique party code.
        name: Display name.
        trading_slab: Trading brokerage percentage.
        delivery_slab: Delivery brokerage percentage.
        interest_rate: Optional monthly interest percentage.
        phone: Optional phone number.
        email: Optional email address.
        address: Optional postal address.
    """

    party_code: str
    name: str
    trading_slab: Decimal
    delivery_slab: Decimal
    interest_rate: Decimal | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    def __post_init__(self) -> None:
        # Party codes double as ledger account codes.
        if (self.party_code or "").strip().upper() in HOUSE_ACCOUNT_NAMES:
            raise ValidationError(f"party_code={self.party_code} is reserved for a house account")


@dataclass(frozen=True)
class BrokerCreateRequest:
    """Input contract for creating one broker."""

    broker_code: str
    name: str
    trading_slab: Decimal
    delivery_slab: Decimal
    phone: str | None = None
    email: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class InstrumentCreateRequest:
    """Input contract for creating one instrument."""

    instrument_code: str
    name: str
    instrument_type: InstrumentType = InstrumentType.EQ
    exchange_code: str | None = None
    expiry_date: date | None = None
    strike_price: Decimal | None = None
    lot_size: int = 1


@dataclass(frozen=True)
class SettlementCreateRequest:
    """Input contract for creating one settlement period."""

    settlement_number: str
    settlement_type: SettlementType
    start_date: date
    end_date: date


@dataclass(frozen=True)
class PositionTradeRecord:
    """Audit row for one trade applied to a position.

    Attributes:
        trade_reference: Unique trade reference; a reference can update a position once.
        party_id: Party identifier.
        instrument_id: Instrument identifier.
        trade_date: Trade date.
        signed_quantity: Positive for buy, negative for sell.
        rate: Trade price.
        realized_pnl: Realized P&L booked by the trade.
        quantity_after: Position quantity after the trade.
        avg_price_after: Position average price after the trade.
    """

    trade_reference: str
    party_id: UUID
    instrument_id: UUID
    trade_date: date
    signed_quantity: int
    rate: Decimal
    realized_pnl: Decimal
    quantity_after: int
    avg_price_after: Decimal | None


class MasterDataRepositoryPort(Protocol):
    """Port definition for party, broker, instrument and settlement masters."""

    def db_party_create(self, request: PartyCreateRequest) -> Party:
        """Insert one party.

        Raises:
            DuplicateRecordError: Raised when the party code already exists.
            PersistenceError: Raised when persistence fails.
        """

    def db_party_get_by_code(self, party_code: str) -> Party | None:
        """Fetch one party by code."""

    def db_party_list(self, limit: int, offset: int) -> list[Party]:
        """List parties ordered by code."""

    def db_party_update_slabs(
        self,
        party_code: str,
        trading_slab: Decimal,
        delivery_slab: Decimal,
    ) -> Party | None:
        """Update party slabs for future contracts; returns None when the party is unknown."""

    def db_broker_create(self, request: BrokerCreateRequest) -> Broker:
        """Insert one broker."""

    def db_broker_get_by_code(self, broker_code: str) -> Broker | None:
        """Fetch one broker by code."""

    def db_broker_list(self, limit: int, offset: int) -> list[Broker]:
        """List brokers ordered by code."""

    def db_instrument_create(self, request: InstrumentCreateRequest) -> Instrument:
        """Insert one instrument."""

    def db_instrument_get_by_code(self, instrument_code: str) -> Instrument | None:
        """Fetch one instrument by code."""

    def db_instrument_get_by_id(self, instrument_id: UUID) -> Instrument | None:
        """Fetch one instrument by identifier."""

    def db_instrument_list(self, limit: int, offset: int) -> list[Instrument]:
        """List instruments ordered by code."""

    def db_settlement_create(self, request: SettlementCreateRequest) -> Settlement:
        """Insert one settlement period."""

    def db_settlement_get_by_number(self, settlement_number: str) -> Settlement | None:
        """Fetch one settlement by number."""

    def db_settlement_list(self, limit: int, offset: int) -> list[Settlement]:
        """List settlements, newest first."""


class BookkeepingTransactionPort(Protocol):
    """Operations available inside one open bookkeeping transaction.

    Every method runs on the same database transaction; nothing is visible to
    other sessions until the surrounding `db_transaction()` block commits.
    """

    def db_lock_key(self, lock_name: str) -> None:
        """Block until the transaction holds the serialization lock for `lock_name`."""

    def db_ledger_fetch_latest(self, book: Book, account_code: str) -> LedgerEntry | None:
        """Return the account's entry with the highest insertion sequence."""

    def db_ledger_insert(self, entry: LedgerEntry) -> LedgerEntry:
        """Append one entry.

        Raises:
            ConcurrencyConflictError: Raised when the account sequence is already taken.
        """

    def db_bill_next_sequence(self, bill_date: date) -> int:
        """Return the next free bill sequence for one bill date."""

    def db_bill_insert(self, bill: Bill) -> Bill:
        """Insert one bill header.

        Raises:
            DuplicateRecordError: Raised when the bill number already exists.
        """

    def db_bill_items_insert(self, bill_number: str, items: tuple[BillItem, ...]) -> None:
        """Insert the lines of an inserted bill; their contracts must already exist."""

    def db_bill_fetch_for_update(self, bill_number: str) -> Bill | None:
        """Fetch and row-lock one bill."""

    def db_bill_update_payment(self, bill_number: str, paid_amount: Decimal, status: BillStatus) -> Bill:
        """Store a new paid amount and status."""

    def db_contract_insert(self, contract: Contract) -> Contract:
        """Insert one contract.

        Raises:
            DuplicateRecordError: Raised when the contract number already exists.
        """

    def db_contract_fetch_for_update(self, contract_number: str) -> Contract | None:
        """Fetch and row-lock one contract."""

    def db_contract_update_status(self, contract_number: str, status: ContractStatus) -> Contract:
        """Store a new contract status."""

    def db_payment_next_sequence(self, payment_date: date) -> int:
        """Return the next free payment sequence for one payment date."""

    def db_payment_get_by_reference(self, payment_reference: str) -> Payment | None:
        """Fetch the payment recorded under one caller reference."""

    def db_payment_insert(self, payment: Payment) -> Payment:
        """Insert one payment."""

    def db_position_fetch_for_update(self, party_id: UUID, instrument_id: UUID) -> Position | None:
        """Fetch and row-lock one position."""

    def db_position_upsert(self, position: Position) -> Position:
        """Insert or replace one position aggregate."""

    def db_position_trade_insert(self, record: PositionTradeRecord) -> None:
        """Record one applied trade.

        Raises:
            DuplicateRecordError: Raised when the trade reference was already applied.
        """


class BookkeepingRepositoryPort(Protocol):
    """Port definition for transactional bookkeeping writes and reads."""

    def db_transaction(self) -> AbstractContextManager[BookkeepingTransactionPort]:
        """Open one atomic transaction; commit on normal exit, roll back on error."""

    def db_ledger_list_entries(
        self,
        book: Book,
        account_code: str | None = None,
    ) -> list[LedgerEntry]:
        """List entries of one book, optionally one account, by account and sequence."""

    def db_bill_get(self, bill_number: str) -> Bill | None:
        """Fetch one bill with its items."""

    def db_bill_list(self, book: Book, limit: int, offset: int) -> list[Bill]:
        """List bills of one book, newest first, without items."""

    def db_contract_list_for_bill(self, bill_number: str) -> list[Contract]:
        """List contracts generated with one bill."""

    def db_contract_list(self, book: Book, party_id: UUID | None = None) -> list[Contract]:
        """List contracts of one book, optionally one party, by trade date and contract number."""

    def db_payment_list_for_bill(self, bill_number: str) -> list[Payment]:
        """List payments recorded against one bill."""

    def db_position_list(self, party_id: UUID | None = None) -> list[Position]:
        """List positions, optionally for one party."""
