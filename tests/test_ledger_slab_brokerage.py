"""Tests for slab-rate resolution and brokerage arithmetic."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from brokerbook.domain import Broker, InvalidInputError, InvalidTradeTypeError, Party, TradeType
from brokerbook.ledger.brokerage import (
    brokerage_compute,
    brokerage_round_currency,
    brokerage_to_decimal,
    brokerage_trade_amount,
)
from brokerbook.ledger.slab_rates import slab_normalize_trade_type, slab_resolve_rate


def _party(trading_slab: str = "0.10", delivery_slab: str = "1.30") -> Party:
    return Party(
        party_id=uuid4(),
        party_code="P001",
        name="Asha Traders",
        trading_slab=Decimal(trading_slab),
        delivery_slab=Decimal(delivery_slab),
    )


def test_slab_resolve_rate_selects_slab_by_trade_type() -> None:
    """Trading trades use the trading slab and delivery trades the delivery slab."""

    party = _party()

    assert slab_resolve_rate(party, "T") == Decimal("0.10")
    assert slab_resolve_rate(party, TradeType.DELIVERY) == Decimal("1.30")


def test_slab_resolve_rate_accepts_lowercase_and_padded_flags() -> None:
    broker = Broker(
        broker_id=uuid4(),
        broker_code="B001",
        name="Main Street Securities",
        trading_slab=Decimal("0.05"),
        delivery_slab=Decimal("1.00"),
    )

    assert slab_resolve_rate(broker, " d ") == Decimal("1.00")
    assert slab_normalize_trade_type("t") == TradeType.TRADING


@pytest.mark.parametrize("trade_type", ["X", "", None, 1])
def test_slab_resolve_rate_rejects_unknown_trade_type(trade_type: object) -> None:
    with pytest.raises(InvalidTradeTypeError):
        slab_resolve_rate(_party(), trade_type)


def test_slab_resolve_rate_rejects_missing_entity_and_negative_slab() -> None:
    with pytest.raises(InvalidInputError):
        slab_resolve_rate(None, "T")
    with pytest.raises(InvalidInputError):
        slab_resolve_rate(_party(trading_slab="-0.01"), "T")


def test_brokerage_compute_rounds_half_up_to_currency() -> None:
    """0.10% of 5000 is 5.00; 0.125% of 1001 is 1.25125 which rounds to 1.25."""

    assert brokerage_compute(Decimal("5000.00"), Decimal("0.10")) == Decimal("5.00")
    assert brokerage_compute(Decimal("1001.00"), Decimal("0.125")) == Decimal("1.25")
    assert brokerage_compute(Decimal("1000.00"), Decimal("0.0005")) == Decimal("0.01")


def test_brokerage_compute_is_zero_for_zero_rate() -> None:
    assert brokerage_compute(Decimal("5000.00"), Decimal("0")) == Decimal("0.00")


def test_brokerage_compute_rejects_negative_inputs() -> None:
    with pytest.raises(InvalidInputError):
        brokerage_compute(Decimal("-1"), Decimal("0.10"))
    with pytest.raises(InvalidInputError):
        brokerage_compute(Decimal("100"), Decimal("-0.10"))


def test_brokerage_trade_amount_multiplies_quantity_and_rate() -> None:
    assert brokerage_trade_amount(100, Decimal("50")) == Decimal("5000.00")
    assert brokerage_trade_amount(3, "33.335") == Decimal("100.01")


@pytest.mark.parametrize("quantity", [0, -5, True, 1.5])
def test_brokerage_trade_amount_rejects_non_positive_quantity(quantity: object) -> None:
    with pytest.raises(InvalidInputError):
        brokerage_trade_amount(quantity, Decimal("10"))


def test_brokerage_to_decimal_avoids_float_noise_and_rejects_non_finite() -> None:
    assert brokerage_to_decimal(0.1, "rate") == Decimal("0.1")
    with pytest.raises(InvalidInputError):
        brokerage_to_decimal("nan", "rate")
    with pytest.raises(InvalidInputError):
        brokerage_to_decimal("abc", "rate")
    with pytest.raises(InvalidInputError):
        brokerage_to_decimal(None, "rate")


def test_brokerage_round_currency_uses_half_up() -> None:
    assert brokerage_round_currency(Decimal("2.345")) == Decimal("2.35")
    assert brokerage_round_currency(Decimal("-2.345")) == Decimal("-2.35")
