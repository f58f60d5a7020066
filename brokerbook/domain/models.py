"""Typed domain models shared across runtime layers.

Master data, contracts, bills, ledger entries and positions are plain frozen
dataclasses so each layer exchanges explicit records instead of loose row dicts.
Monetary values are `Decimal`; quantities are integers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


MAIN_BROKER_ACCOUNT_CODE = "MAIN-BROKER"
SUB_BROKER_ACCOUNT_CODE = "SUB-BROKER"
HOUSE_ACCOUNT_NAMES = {
    MAIN_BROKER_ACCOUNT_CODE: "Main Broker",
    SUB_BROKER_ACCOUNT_CODE: "Sub Broker Profit",
}


class Book(str, Enum):
    """Bookkeeping module a contract, bill or ledger entry belongs to."""

    EQUITY = "equity"
    FO = "fo"


class TradeType(str, Enum):
    """Trade type flag selecting the trading or delivery slab."""

    TRADING = "T"
    DELIVERY = "D"


class ContractSide(str, Enum):
    """Direction of one contract leg."""

    BUY = "buy"
    SELL = "sell"


class ContractStatus(str, Enum):
    """Contract lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BillType(str, Enum):
    """Bill perspective."""

    PARTY = "party"
    BROKER = "broker"


class BillStatus(str, Enum):
    """Settlement status derived from paid amount against bill total."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class LedgerEntryKind(str, Enum):
    """Explicit ledger entry classification set when the entry is created."""

    PARTY_BILL = "party_bill"
    BROKER_BILL = "broker_bill"
    SUB_BROKER_PROFIT = "sub_broker_profit"
    PAYMENT = "payment"
    BROKER_PAYMENT = "broker_payment"
    ADJUSTMENT = "adjustment"


class InstrumentType(str, Enum):
    """Instrument category; equities carry `EQ`, derivatives their contract kind."""

    EQ = "EQ"
    FUT = "FUT"
    CE = "CE"
    PE = "PE"


class SettlementType(str, Enum):
    """Settlement batch period kind."""

    DELIVERY = "delivery"
    TRADING = "trading"
    AUCTION = "auction"


CONTRACT_STATUS_TRANSITIONS = {
    ContractStatus.ACTIVE: frozenset({ContractStatus.COMPLETED, ContractStatus.CANCELLED}),
    ContractStatus.COMPLETED: frozenset(),
    ContractStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class Party:
    """Client master record.

    Attributes:
        party_id: Internal party identifier.
        party_code: Unique business code, also the party's ledger account code.
        name: Display name.
        trading_slab: Brokerage percentage for trading (`T`) contracts.
        delivery_slab: Brokerage percentage for delivery (`D`) contracts.
        interest_rate: Optional monthly interest percentage on owed balances.
        phone: Optional phone number.
        email: Optional email address.
        address: Optional postal address.
    """

    party_id: UUID
    party_code: str
    name: str
    trading_slab: Decimal
    delivery_slab: Decimal
    interest_rate: Decimal | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class Broker:
    """Upstream broker master record; slabs price the broker's own share."""

    broker_id: UUID
    broker_code: str
    name: str
    trading_slab: Decimal
    delivery_slab: Decimal
    phone: str | None = None
    email: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class Instrument:
    """Tradable instrument master record.

    Attributes:
        instrument_id: Internal instrument identifier.
        instrument_code: Unique business code (symbol or derivative display code).
        name: Display name.
        instrument_type: `EQ` for equities, `FUT`/`CE`/`PE` for derivatives.
        exchange_code: Optional exchange-side code.
        expiry_date: Derivative expiry date.
        strike_price: Option strike price.
        lot_size: Units per lot; F&O trade rows are quoted in lots.
    """

    instrument_id: UUID
    instrument_code: str
    name: str
    instrument_type: InstrumentType = InstrumentType.EQ
    exchange_code: str | None = None
    expiry_date: date | None = None
    strike_price: Decimal | None = None
    lot_size: int = 1


@dataclass(frozen=True)
class Settlement:
    """Descriptive settlement period contracts are tagged with."""

    settlement_id: UUID
    settlement_number: str
    settlement_type: SettlementType
    start_date: date
    end_date: date


@dataclass(frozen=True)
class Contract:
    """One trade leg with brokerage snapshots taken at creation time.

    Attributes:
        contract_number: Unique contract number.
        book: Owning book.
        party_id: Client identifier.
        broker_id: Upstream broker identifier.
        settlement_id: Optional settlement identifier.
        instrument_id: Instrument identifier.
        trade_date: Trade date.
        trade_type: Slab selector (`T` or `D`).
        contract_type: Buy or sell.
        quantity: Positive unit quantity.
        rate: Positive trade price.
        amount: `quantity * rate` rounded to currency precision.
        brokerage_rate: Party slab snapshot.
        brokerage_amount: Brokerage charged to the party.
        broker_brokerage_rate: Broker slab snapshot.
        broker_brokerage_amount: Broker's own share of brokerage.
        party_bill_number: Party bill generated from this contract.
        broker_bill_number: Broker bill generated from this contract.
        status: Lifecycle status.
        contract_id: Persistence identifier, unset before insert.
    """

    contract_number: str
    book: Book
    party_id: UUID
    broker_id: UUID
    settlement_id: UUID | None
    instrument_id: UUID
    trade_date: date
    trade_type: TradeType
    contract_type: ContractSide
    quantity: int
    rate: Decimal
    amount: Decimal
    brokerage_rate: Decimal
    brokerage_amount: Decimal
    broker_brokerage_rate: Decimal
    broker_brokerage_amount: Decimal
    party_bill_number: str
    broker_bill_number: str
    status: ContractStatus = ContractStatus.ACTIVE
    contract_id: UUID | None = None

    @property
    def signed_amount(self) -> Decimal:
        """Return trade amount signed by direction (buy positive, sell negative)."""

        return self.amount if self.contract_type == ContractSide.BUY else -self.amount

    @property
    def signed_quantity(self) -> int:
        """Return quantity signed by direction (buy positive, sell negative)."""

        return self.quantity if self.contract_type == ContractSide.BUY else -self.quantity


@dataclass(frozen=True)
class BillItem:
    """One bill line seen from its bill's perspective.

    Attributes:
        line_number: 1-based position within the bill.
        contract_number: Originating contract.
        instrument_id: Instrument identifier.
        description: Human-readable line text.
        contract_type: Buy or sell.
        trade_type: Slab selector used for the line.
        quantity: Unit quantity.
        rate: Trade price.
        trade_amount: Unsigned `quantity * rate`.
        brokerage_rate: Slab applied for this bill's perspective.
        brokerage_amount: Brokerage for this bill's perspective.
        amount: Signed trade amount plus brokerage; items sum to the bill total.
    """

    line_number: int
    contract_number: str
    instrument_id: UUID
    description: str
    contract_type: ContractSide
    trade_type: TradeType
    quantity: int
    rate: Decimal
    trade_amount: Decimal
    brokerage_rate: Decimal
    brokerage_amount: Decimal
    amount: Decimal


@dataclass(frozen=True)
class Bill:
    """Party or broker bill.

    Attributes:
        bill_number: Unique bill number.
        book: Owning book.
        bill_type: Party or broker.
        account_code: Ledger account the bill posts to.
        party_id: Party identifier for party bills.
        broker_id: Broker identifier for both bill types.
        bill_date: Bill date.
        trade_amount: Net signed trade amount.
        brokerage_amount: Total brokerage from this bill's perspective.
        total_amount: `trade_amount + brokerage_amount`.
        paid_amount: Amount settled so far.
        status: Derived settlement status.
        items: Bill lines.
        bill_id: Persistence identifier, unset before insert.
    """

    bill_number: str
    book: Book
    bill_type: BillType
    account_code: str
    party_id: UUID | None
    broker_id: UUID | None
    bill_date: date
    trade_amount: Decimal
    brokerage_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal = Decimal("0.00")
    status: BillStatus = BillStatus.PENDING
    items: tuple[BillItem, ...] = field(default_factory=tuple)
    bill_id: UUID | None = None


@dataclass(frozen=True)
class LedgerEntry:
    """Append-only ledger row carrying the running balance after itself.

    Attributes:
        book: Owning book.
        account_code: Party code or house account code.
        account_sequence: 1-based insertion sequence within the account.
        entry_kind: Explicit classification.
        entry_date: Business date (may be backdated).
        particulars: Free-text narration, never parsed.
        debit_amount: Increase of the amount owed on this account.
        credit_amount: Decrease of the amount owed on this account.
        balance: Running balance after this entry.
        party_id: Party identifier for party accounts.
        broker_id: Broker identifier for broker-related entries.
        bill_number: Optional originating bill.
        ledger_entry_id: Persistence identifier, unset before insert.
    """

    book: Book
    account_code: str
    account_sequence: int
    entry_kind: LedgerEntryKind
    entry_date: date
    particulars: str
    debit_amount: Decimal
    credit_amount: Decimal
    balance: Decimal
    party_id: UUID | None = None
    broker_id: UUID | None = None
    bill_number: str | None = None
    ledger_entry_id: UUID | None = None


@dataclass(frozen=True)
class Position:
    """F&O position aggregate for one (party, instrument) key.

    Attributes:
        party_id: Party identifier.
        instrument_id: Instrument identifier.
        quantity: Signed open quantity (positive long, negative short, zero closed).
        avg_price: Weighted average cost of the open quantity, None while flat.
        realized_pnl: Cumulative realized profit and loss.
        last_trade_date: Date of the latest applied trade.
        last_trade_rate: Rate of the latest applied trade.
    """

    party_id: UUID
    instrument_id: UUID
    quantity: int
    avg_price: Decimal | None
    realized_pnl: Decimal
    last_trade_date: date | None
    last_trade_rate: Decimal | None

    @property
    def is_open(self) -> bool:
        """Return whether the position holds a non-zero quantity."""

        return self.quantity != 0


@dataclass(frozen=True)
class Payment:
    """Settlement received or paid against one bill."""

    payment_number: str
    bill_number: str
    amount: Decimal
    payment_date: date
    method: str
    notes: str | None = None
    payment_reference: str | None = None
    payment_id: UUID | None = None
