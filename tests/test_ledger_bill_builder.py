"""Tests for bill batch construction from trade rows."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from brokerbook.domain import (
    MAIN_BROKER_ACCOUNT_CODE,
    BillStatus,
    BillType,
    Book,
    Broker,
    ContractSide,
    Instrument,
    InstrumentType,
    Party,
    TradeType,
    ValidationError,
)
from brokerbook.ledger.bill_builder import (
    BillBatchCommonFields,
    TradeRow,
    bill_batch_build,
    bill_build_contract_number,
    bill_build_number,
    bill_derive_status,
)


BILL_DATE = date(2026, 10, 17)
PARTY = Party(
    party_id=uuid4(),
    party_code="P001",
    name="Asha Traders",
    trading_slab=Decimal("0.10"),
    delivery_slab=Decimal("1.30"),
)
BROKER = Broker(
    broker_id=uuid4(),
    broker_code="B001",
    name="Main Street Securities",
    trading_slab=Decimal("0.05"),
    delivery_slab=Decimal("1.00"),
)
EQUITY = Instrument(instrument_id=uuid4(), instrument_code="RELIANCE", name="Reliance Industries")
FUTURE = Instrument(
    instrument_id=uuid4(),
    instrument_code="NIFTY-OCT-FUT",
    name="Nifty October Future",
    instrument_type=InstrumentType.FUT,
    expiry_date=date(2026, 10, 29),
    lot_size=50,
)
INSTRUMENTS = {EQUITY.instrument_code: EQUITY, FUTURE.instrument_code: FUTURE}


def _row(**overrides) -> TradeRow:
    values = {
        "instrument_code": "RELIANCE",
        "trade_date": date(2026, 10, 16),
        "trade_type": "T",
        "contract_type": "buy",
        "quantity": 100,
        "rate": Decimal("50"),
    }
    values.update(overrides)
    return TradeRow(**values)


def _build(rows: list[TradeRow], book: Book = Book.EQUITY, sequence: int = 1):
    return bill_batch_build(
        book=book,
        common_fields=BillBatchCommonFields(party=PARTY, broker=BROKER),
        rows=rows,
        instruments=INSTRUMENTS,
        bill_date=BILL_DATE,
        bill_sequence=sequence,
    )


def test_bill_batch_splits_brokerage_between_party_broker_and_house() -> None:
    """100 @ 50 trading: party pays 5.00, broker keeps 2.50, house earns 2.50."""

    result = _build([_row()])

    contract = result.contracts[0]
    assert contract.amount == Decimal("5000.00")
    assert contract.brokerage_rate == Decimal("0.10")
    assert contract.brokerage_amount == Decimal("5.00")
    assert contract.broker_brokerage_rate == Decimal("0.05")
    assert contract.broker_brokerage_amount == Decimal("2.50")
    assert result.party_bill.brokerage_amount == Decimal("5.00")
    assert result.party_bill.total_amount == Decimal("5005.00")
    assert result.broker_bill.brokerage_amount == Decimal("2.50")
    assert result.broker_bill.total_amount == Decimal("5002.50")
    assert result.sub_broker_profit == Decimal("2.50")


def test_bill_batch_numbers_bills_and_contracts_from_shared_sequence() -> None:
    result = _build([_row(), _row(contract_type="sell", rate=Decimal("55"))], sequence=7)

    assert result.party_bill.bill_number == "PTY20261017-007"
    assert result.broker_bill.bill_number == "BRK20261017-007"
    assert [contract.contract_number for contract in result.contracts] == [
        "C20261017-007-001",
        "C20261017-007-002",
    ]
    assert all(contract.party_bill_number == "PTY20261017-007" for contract in result.contracts)


def test_bill_batch_signs_sell_lines_and_sums_items() -> None:
    """Buy 100@50 and sell 100@55 net to a credit of 500 less brokerage."""

    result = _build([_row(), _row(contract_type="sell", rate=Decimal("55"))])

    buy_item, sell_item = result.party_bill.items
    assert buy_item.amount == Decimal("5005.00")
    assert sell_item.brokerage_amount == Decimal("5.50")
    assert sell_item.amount == Decimal("-5494.50")
    assert result.party_bill.trade_amount == Decimal("-500.00")
    assert result.party_bill.total_amount == sum(item.amount for item in result.party_bill.items)
    assert result.party_bill.total_amount == Decimal("-489.50")


def test_bill_batch_uses_delivery_slab_for_delivery_trades() -> None:
    result = _build([_row(trade_type="d")])

    assert result.contracts[0].trade_type == TradeType.DELIVERY
    assert result.contracts[0].brokerage_amount == Decimal("65.00")
    assert result.contracts[0].broker_brokerage_amount == Decimal("50.00")
    assert result.sub_broker_profit == Decimal("15.00")


def test_bill_batch_assigns_bills_to_party_and_main_broker_accounts() -> None:
    result = _build([_row()])

    assert result.party_bill.bill_type == BillType.PARTY
    assert result.party_bill.account_code == "P001"
    assert result.party_bill.party_id == PARTY.party_id
    assert result.broker_bill.bill_type == BillType.BROKER
    assert result.broker_bill.account_code == MAIN_BROKER_ACCOUNT_CODE
    assert result.broker_bill.party_id is None
    assert result.party_bill.status == BillStatus.PENDING


def test_bill_batch_converts_lots_to_units_for_fo_book() -> None:
    result = _build([_row(instrument_code="NIFTY-OCT-FUT", quantity=2, rate=Decimal("24000"))], book=Book.FO)

    contract = result.contracts[0]
    assert contract.quantity == 100
    assert contract.amount == Decimal("2400000.00")
    assert contract.contract_type == ContractSide.BUY
    assert result.party_bill.items[0].description == "BUY NIFTY-OCT-FUT 2026-10-29 FUT (T)"


def test_bill_batch_reports_every_invalid_row_index() -> None:
    rows = [
        _row(),
        _row(trade_type="X"),
        _row(),
        _row(instrument_code="UNKNOWN", quantity=0),
        _row(rate=None),
    ]

    with pytest.raises(ValidationError) as error_info:
        _build(rows)

    assert error_info.value.row_indices == (1, 3, 4)
    assert len(error_info.value.row_errors[3]) == 2


def test_bill_batch_rejects_equity_instrument_in_fo_book() -> None:
    with pytest.raises(ValidationError) as error_info:
        _build([_row()], book=Book.FO)

    assert error_info.value.row_indices == (0,)


def test_bill_batch_rejects_empty_rows() -> None:
    with pytest.raises(ValidationError):
        _build([])


def test_bill_number_helpers_render_fixed_width_sequences() -> None:
    assert bill_build_number("PAY", BILL_DATE, 12) == "PAY20261017-012"
    assert bill_build_contract_number(BILL_DATE, 3, 14) == "C20261017-003-014"
    with pytest.raises(ValueError):
        bill_build_number("PTY", BILL_DATE, 0)


@pytest.mark.parametrize(
    ("total", "paid", "expected"),
    [
        ("5005.00", "0", BillStatus.PENDING),
        ("5005.00", "1000", BillStatus.PARTIAL),
        ("5005.00", "5004.99", BillStatus.PAID),
        ("-489.50", "489.50", BillStatus.PAID),
    ],
)
def test_bill_derive_status_compares_paid_with_absolute_total(total: str, paid: str, expected: BillStatus) -> None:
    assert bill_derive_status(Decimal(total), Decimal(paid)) == expected
