"""Bill batch construction from validated trade rows.

One batch of trade rows for a single party and broker becomes a set of
contracts, one party bill and one broker bill. Party lines carry brokerage at
the party's slab; broker lines carry the broker's own share at the broker's
slab. The difference is the sub-broker profit posted to the house.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from brokerbook.domain.errors import InvalidInputError, InvalidTradeTypeError, ValidationError
from brokerbook.domain.models import (
    MAIN_BROKER_ACCOUNT_CODE,
    Bill,
    BillItem,
    BillStatus,
    BillType,
    Book,
    Broker,
    Contract,
    ContractSide,
    Instrument,
    InstrumentType,
    Party,
    Settlement,
    TradeType,
)

from .brokerage import brokerage_compute, brokerage_round_currency, brokerage_to_decimal, brokerage_trade_amount
from .slab_rates import slab_normalize_trade_type, slab_resolve_rate


PARTY_BILL_PREFIX = "PTY"
BROKER_BILL_PREFIX = "BRK"
CONTRACT_PREFIX = "C"
_PAID_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class TradeRow:
    """One uploaded trade row.

    Attributes:
        instrument_code: Instrument business code.
        trade_date: Trade date.
        trade_type: Trade-type flag (`T` or `D`).
        contract_type: `buy` or `sell`.
        quantity: Share quantity for equity rows, lot count for F&O rows.
        rate: Trade price.
    """

    instrument_code: str | None
    trade_date: date | None
    trade_type: object
    contract_type: object
    quantity: object
    rate: object


@dataclass(frozen=True)
class BillBatchCommonFields:
    """Fields shared by every row of one batch."""

    party: Party
    broker: Broker
    settlement: Settlement | None = None


@dataclass(frozen=True)
class BillBatchResult:
    """Built, not yet persisted, batch output.

    Attributes:
        contracts: One contract per trade row, in row order.
        party_bill: Bill charged to the party.
        broker_bill: Bill reflecting the upstream broker's share.
        sub_broker_profit: Party brokerage minus broker share.
    """

    contracts: tuple[Contract, ...]
    party_bill: Bill
    broker_bill: Bill
    sub_broker_profit: Decimal


@dataclass(frozen=True)
class _ValidatedRow:
    instrument: Instrument
    trade_date: date
    trade_type: TradeType
    contract_type: ContractSide
    quantity: int
    rate: Decimal


def bill_build_number(prefix: str, bill_date: date, sequence: int) -> str:
    """Render a bill or payment number as `<PREFIX><YYYYMMDD>-<NNN>`.

    Raises:
        ValueError: Raised when sequence is not positive.
    """

    if sequence < 1:
        raise ValueError("sequence must be greater than zero")
    return f"{prefix}{bill_date:%Y%m%d}-{sequence:03d}"


def bill_build_contract_number(bill_date: date, sequence: int, row_number: int) -> str:
    """Render a contract number as `C<YYYYMMDD>-<NNN>-<row>`."""

    return f"{bill_build_number(CONTRACT_PREFIX, bill_date, sequence)}-{row_number:03d}"


def bill_derive_status(total_amount: Decimal, paid_amount: Decimal) -> BillStatus:
    """Derive bill status from paid amount against the absolute bill total.

    Args:
        total_amount: Signed bill total.
        paid_amount: Amount settled so far.

    Returns:
        BillStatus: `paid` within 0.01 of the total, `partial` when anything is paid, else `pending`.
    """

    if paid_amount <= Decimal("0"):
        return BillStatus.PENDING
    if paid_amount >= abs(total_amount) - _PAID_TOLERANCE:
        return BillStatus.PAID
    return BillStatus.PARTIAL


def bill_batch_validate_rows(
    book: Book,
    rows: Sequence[TradeRow],
    instruments: Mapping[str, Instrument],
) -> list[_ValidatedRow]:
    """Validate every trade row and collect all offending row indices.

    Args:
        book: Target book; F&O rows must reference derivative instruments.
        rows: Trade rows in upload order.
        instruments: Known instruments keyed by instrument code.

    Returns:
        list[_ValidatedRow]: Normalized rows in input order.

    Raises:
        ValidationError: Raised when the batch is empty or any row is invalid.
    """

    if not rows:
        raise ValidationError("rows must not be empty")

    validated_rows: list[_ValidatedRow] = []
    row_errors: dict[int, list[str]] = {}

    for row_index, row in enumerate(rows):
        reasons: list[str] = []

        instrument = None
        instrument_code = (row.instrument_code or "").strip()
        if not instrument_code:
            reasons.append("instrument is required")
        else:
            instrument = instruments.get(instrument_code)
            if instrument is None:
                reasons.append(f"unknown instrument={instrument_code}")
            elif book == Book.FO and instrument.instrument_type == InstrumentType.EQ:
                reasons.append(f"instrument={instrument_code} is not a derivative")

        if row.trade_date is None:
            reasons.append("trade_date is required")

        trade_type = None
        try:
            trade_type = slab_normalize_trade_type(row.trade_type)
        except InvalidTradeTypeError as error:
            reasons.append(str(error))

        contract_type = None
        if isinstance(row.contract_type, str) and row.contract_type.strip().lower() in {"buy", "sell"}:
            contract_type = ContractSide(row.contract_type.strip().lower())
        elif isinstance(row.contract_type, ContractSide):
            contract_type = row.contract_type
        else:
            reasons.append(f"unsupported contract_type={row.contract_type!r}")

        quantity = row.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            reasons.append("quantity must be a positive integer")

        rate = None
        try:
            rate = brokerage_to_decimal(row.rate, "rate")
            if rate <= Decimal("0"):
                reasons.append("rate must be greater than zero")
        except InvalidInputError as error:
            reasons.append(str(error))

        if reasons:
            row_errors[row_index] = reasons
            continue

        unit_quantity = quantity * instrument.lot_size if book == Book.FO else quantity
        validated_rows.append(
            _ValidatedRow(
                instrument=instrument,
                trade_date=row.trade_date,
                trade_type=trade_type,
                contract_type=contract_type,
                quantity=unit_quantity,
                rate=rate,
            )
        )

    if row_errors:
        offending = tuple(sorted(row_errors))
        raise ValidationError(
            f"invalid trade rows at indices {list(offending)}",
            row_indices=offending,
            row_errors=row_errors,
        )
    return validated_rows


def bill_batch_build(
    book: Book,
    common_fields: BillBatchCommonFields,
    rows: Sequence[TradeRow],
    instruments: Mapping[str, Instrument],
    bill_date: date,
    bill_sequence: int,
) -> BillBatchResult:
    """Build contracts plus party and broker bills for one trade batch.

    Args:
        book: Target book.
        common_fields: Party, broker and optional settlement shared by all rows.
        rows: Trade rows in upload order.
        instruments: Known instruments keyed by instrument code.
        bill_date: Bill date for both bills.
        bill_sequence: Per-date sequence shared by both bill numbers.

    Returns:
        BillBatchResult: Contracts and bills ready for persistence.

    Raises:
        ValidationError: Raised when any row is invalid.
        InvalidTradeTypeError: Raised when slab resolution rejects a trade type.
        InvalidInputError: Raised when a party or broker slab is unusable.
        ValueError: Raised when common fields are missing.
    """

    if common_fields is None or common_fields.party is None or common_fields.broker is None:
        raise ValueError("common_fields.party and common_fields.broker must not be None")
    if bill_date is None:
        raise ValueError("bill_date must not be None")

    validated_rows = bill_batch_validate_rows(book=book, rows=rows, instruments=instruments)

    party = common_fields.party
    broker = common_fields.broker
    settlement_id = common_fields.settlement.settlement_id if common_fields.settlement is not None else None
    party_bill_number = bill_build_number(PARTY_BILL_PREFIX, bill_date, bill_sequence)
    broker_bill_number = bill_build_number(BROKER_BILL_PREFIX, bill_date, bill_sequence)

    contracts: list[Contract] = []
    party_items: list[BillItem] = []
    broker_items: list[BillItem] = []

    for row_number, row in enumerate(validated_rows, start=1):
        amount = brokerage_trade_amount(row.quantity, row.rate)
        party_rate = slab_resolve_rate(party, row.trade_type)
        broker_rate = slab_resolve_rate(broker, row.trade_type)
        party_brokerage = brokerage_compute(amount, party_rate)
        broker_share = brokerage_compute(amount, broker_rate)

        contract = Contract(
            contract_number=bill_build_contract_number(bill_date, bill_sequence, row_number),
            book=book,
            party_id=party.party_id,
            broker_id=broker.broker_id,
            settlement_id=settlement_id,
            instrument_id=row.instrument.instrument_id,
            trade_date=row.trade_date,
            trade_type=row.trade_type,
            contract_type=row.contract_type,
            quantity=row.quantity,
            rate=row.rate,
            amount=amount,
            brokerage_rate=party_rate,
            brokerage_amount=party_brokerage,
            broker_brokerage_rate=broker_rate,
            broker_brokerage_amount=broker_share,
            party_bill_number=party_bill_number,
            broker_bill_number=broker_bill_number,
        )
        contracts.append(contract)

        description = _bill_describe_line(row.instrument, row.contract_type, row.trade_type)
        party_items.append(
            _bill_build_item(row_number, contract, description, party_rate, party_brokerage)
        )
        broker_items.append(
            _bill_build_item(row_number, contract, description, broker_rate, broker_share)
        )

    party_bill = _bill_assemble(
        bill_number=party_bill_number,
        book=book,
        bill_type=BillType.PARTY,
        account_code=party.party_code,
        party_id=party.party_id,
        broker_id=broker.broker_id,
        bill_date=bill_date,
        items=party_items,
    )
    broker_bill = _bill_assemble(
        bill_number=broker_bill_number,
        book=book,
        bill_type=BillType.BROKER,
        account_code=MAIN_BROKER_ACCOUNT_CODE,
        party_id=None,
        broker_id=broker.broker_id,
        bill_date=bill_date,
        items=broker_items,
    )

    return BillBatchResult(
        contracts=tuple(contracts),
        party_bill=party_bill,
        broker_bill=broker_bill,
        sub_broker_profit=party_bill.brokerage_amount - broker_bill.brokerage_amount,
    )


def _bill_build_item(
    line_number: int,
    contract: Contract,
    description: str,
    brokerage_rate: Decimal,
    brokerage_amount: Decimal,
) -> BillItem:
    return BillItem(
        line_number=line_number,
        contract_number=contract.contract_number,
        instrument_id=contract.instrument_id,
        description=description,
        contract_type=contract.contract_type,
        trade_type=contract.trade_type,
        quantity=contract.quantity,
        rate=contract.rate,
        trade_amount=contract.amount,
        brokerage_rate=brokerage_rate,
        brokerage_amount=brokerage_amount,
        amount=contract.signed_amount + brokerage_amount,
    )


def _bill_assemble(
    bill_number: str,
    book: Book,
    bill_type: BillType,
    account_code: str,
    party_id: UUID | None,
    broker_id: UUID | None,
    bill_date: date,
    items: list[BillItem],
) -> Bill:
    """Sum bill lines into bill totals; totals are exact sums of item values."""

    trade_amount = sum((item.amount - item.brokerage_amount for item in items), Decimal("0.00"))
    brokerage_amount = sum((item.brokerage_amount for item in items), Decimal("0.00"))
    total_amount = sum((item.amount for item in items), Decimal("0.00"))
    return Bill(
        bill_number=bill_number,
        book=book,
        bill_type=bill_type,
        account_code=account_code,
        party_id=party_id,
        broker_id=broker_id,
        bill_date=bill_date,
        trade_amount=brokerage_round_currency(trade_amount),
        brokerage_amount=brokerage_round_currency(brokerage_amount),
        total_amount=brokerage_round_currency(total_amount),
        items=tuple(items),
    )


def _bill_describe_line(instrument: Instrument, contract_type: ContractSide, trade_type: TradeType) -> str:
    """Render line text such as `BUY RELIANCE (T)` or `SELL NIFTY 2026-10-29 FUT (T)`."""

    parts = [contract_type.value.upper(), instrument.instrument_code]
    if instrument.instrument_type != InstrumentType.EQ:
        if instrument.expiry_date is not None:
            parts.append(instrument.expiry_date.isoformat())
        if instrument.strike_price is not None:
            parts.append(format(instrument.strike_price.normalize(), "f"))
        parts.append(instrument.instrument_type.value)
    return f"{' '.join(parts)} ({trade_type.value})"


__all__ = [
    "BROKER_BILL_PREFIX",
    "CONTRACT_PREFIX",
    "PARTY_BILL_PREFIX",
    "BillBatchCommonFields",
    "BillBatchResult",
    "TradeRow",
    "bill_batch_build",
    "bill_batch_validate_rows",
    "bill_build_contract_number",
    "bill_build_number",
    "bill_derive_status",
]
