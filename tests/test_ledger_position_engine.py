"""Tests for weighted-average position updates and valuation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from brokerbook.domain import InvalidInputError, Position, PositionOrderingError, ValidationError
from brokerbook.ledger.position_engine import (
    PositionTransition,
    position_apply_trade,
    position_compute_unrealized,
    position_value_all,
)


PARTY_ID = uuid4()
INSTRUMENT_ID = uuid4()


def _apply(position: Position | None, quantity: int, rate: str, trade_date: date = date(2026, 10, 12)):
    return position_apply_trade(
        position=position,
        party_id=PARTY_ID,
        instrument_id=INSTRUMENT_ID,
        signed_delta_qty=quantity,
        trade_rate=Decimal(rate),
        trade_date=trade_date,
    )


def test_position_accumulates_at_weighted_average() -> None:
    """buy 100@10 then buy 100@20 yields 200 at 15."""

    opened = _apply(None, 100, "10")
    accumulated = _apply(opened.position, 100, "20")

    assert opened.transition == PositionTransition.OPEN
    assert accumulated.transition == PositionTransition.ACCUMULATE
    assert accumulated.position.quantity == 200
    assert accumulated.position.avg_price == Decimal("15.0000")
    assert accumulated.position.realized_pnl == Decimal("0.00")


def test_position_partial_reduction_realizes_and_keeps_average() -> None:
    """From 200@15, sell 50@30 realizes 750 and leaves 150@15."""

    position = _apply(_apply(None, 100, "10").position, 100, "20").position

    reduced = _apply(position, -50, "30")

    assert reduced.transition == PositionTransition.REDUCE
    assert reduced.realized_increment == Decimal("750.00")
    assert reduced.closed_quantity == 50
    assert reduced.position.quantity == 150
    assert reduced.position.avg_price == Decimal("15.0000")
    assert reduced.position.realized_pnl == Decimal("750.00")


def test_position_exact_close_realizes_remaining_and_goes_flat() -> None:
    """Selling the remaining 150@20 adds 750 more and closes the position."""

    position = _apply(_apply(None, 100, "10").position, 100, "20").position
    position = _apply(position, -50, "30").position

    closed = _apply(position, -150, "20")

    assert closed.transition == PositionTransition.CLOSE
    assert closed.realized_increment == Decimal("750.00")
    assert closed.position.quantity == 0
    assert closed.position.avg_price is None
    assert closed.position.realized_pnl == Decimal("1500.00")
    assert closed.position.is_open is False


def test_position_flip_realizes_covered_short_and_opens_excess() -> None:
    """Short 100@10 then buy 150@12 realizes -200 and opens a long 50@12."""

    short = _apply(None, -100, "10")
    flipped = _apply(short.position, 150, "12")

    assert short.position.quantity == -100
    assert flipped.transition == PositionTransition.FLIP
    assert flipped.realized_increment == Decimal("-200.00")
    assert flipped.closed_quantity == 100
    assert flipped.position.quantity == 50
    assert flipped.position.avg_price == Decimal("12.0000")
    assert flipped.position.realized_pnl == Decimal("-200.00")


def test_position_short_accumulation_keeps_positive_average() -> None:
    first = _apply(None, -10, "100")
    second = _apply(first.position, -30, "120")

    assert second.position.quantity == -40
    assert second.position.avg_price == Decimal("115.0000")


def test_position_reopen_after_close_starts_from_trade_rate() -> None:
    closed = _apply(_apply(None, 10, "100").position, -10, "110").position

    reopened = _apply(closed, 5, "90")

    assert reopened.transition == PositionTransition.OPEN
    assert reopened.position.avg_price == Decimal("90.0000")
    assert reopened.position.realized_pnl == Decimal("100.00")


def test_position_rejects_trade_older_than_last_applied() -> None:
    position = _apply(None, 10, "100", trade_date=date(2026, 10, 14)).position

    with pytest.raises(PositionOrderingError) as error_info:
        _apply(position, 10, "100", trade_date=date(2026, 10, 13))

    assert isinstance(error_info.value, ValidationError)


def test_position_accepts_same_day_trades() -> None:
    position = _apply(None, 10, "100", trade_date=date(2026, 10, 14)).position

    outcome = _apply(position, 10, "110", trade_date=date(2026, 10, 14))

    assert outcome.position.quantity == 20


@pytest.mark.parametrize(("quantity", "rate"), [(0, "10"), (10, "0"), (10, "-1")])
def test_position_rejects_zero_quantity_and_non_positive_rate(quantity: int, rate: str) -> None:
    with pytest.raises(InvalidInputError):
        _apply(None, quantity, rate)


def test_position_rejects_position_of_other_key() -> None:
    position = _apply(None, 10, "100").position

    with pytest.raises(ValueError):
        position_apply_trade(
            position=position,
            party_id=uuid4(),
            instrument_id=INSTRUMENT_ID,
            signed_delta_qty=5,
            trade_rate=Decimal("100"),
            trade_date=date(2026, 10, 12),
        )


def test_position_unrealized_uses_reference_price() -> None:
    long_position = _apply(None, 50, "200").position
    short_position = _apply(None, -50, "200").position

    assert position_compute_unrealized(long_position, Decimal("210")) == Decimal("500.00")
    assert position_compute_unrealized(short_position, Decimal("210")) == Decimal("-500.00")
    with pytest.raises(InvalidInputError):
        position_compute_unrealized(long_position, Decimal("0"))


def test_position_value_all_skips_closed_and_reports_missing_prices() -> None:
    open_position = _apply(None, 50, "200").position
    closed_position = Position(
        party_id=PARTY_ID,
        instrument_id=uuid4(),
        quantity=0,
        avg_price=None,
        realized_pnl=Decimal("10.00"),
        last_trade_date=date(2026, 10, 12),
        last_trade_rate=Decimal("5"),
    )
    unpriced_position = Position(
        party_id=PARTY_ID,
        instrument_id=uuid4(),
        quantity=-5,
        avg_price=Decimal("20"),
        realized_pnl=Decimal("0.00"),
        last_trade_date=date(2026, 10, 12),
        last_trade_rate=Decimal("20"),
    )

    valuations, missing = position_value_all(
        [open_position, closed_position, unpriced_position],
        {INSTRUMENT_ID: Decimal("190")},
    )

    assert [item.unrealized_pnl for item in valuations] == [Decimal("-500.00")]
    assert missing == [unpriced_position.instrument_id]
