"""Weighted-average position accounting primitives for the F&O book."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from brokerbook.domain.errors import InvalidInputError, PositionOrderingError
from brokerbook.domain.models import Position

from .brokerage import brokerage_round_currency, brokerage_round_price, brokerage_to_decimal


_ZERO = Decimal("0")


class PositionTransition(str, Enum):
    """Kind of state change one trade caused on a position."""

    OPEN = "open"
    ACCUMULATE = "accumulate"
    REDUCE = "reduce"
    CLOSE = "close"
    FLIP = "flip"


@dataclass(frozen=True)
class PositionTradeOutcome:
    """Result of applying one trade to a position.

    Attributes:
        position: Position after the trade.
        transition: State change the trade caused.
        realized_increment: Realized P&L booked by this trade.
        closed_quantity: Quantity of the prior position closed by this trade.
    """

    position: Position
    transition: PositionTransition
    realized_increment: Decimal
    closed_quantity: int


@dataclass(frozen=True)
class PositionValuation:
    """Unrealized P&L of one position at a caller-supplied reference price."""

    party_id: UUID
    instrument_id: UUID
    quantity: int
    avg_price: Decimal | None
    reference_price: Decimal
    unrealized_pnl: Decimal


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def position_apply_trade(
    position: Position | None,
    party_id: UUID,
    instrument_id: UUID,
    signed_delta_qty: int,
    trade_rate: object,
    trade_date: date,
) -> PositionTradeOutcome:
    """Apply one trade to the position of a (party, instrument) key.

    Rules by prior state and trade direction:
    flat opens at the trade rate; same-sign trades re-weight the average;
    opposite-sign trades realize `closed * (rate - avg) * sign(old)` and keep
    the average on a partial reduction, clear it on an exact close, and open
    the excess at the trade rate on a flip.

    Args:
        position: Current position, or None when the key has never traded.
        party_id: Party identifier.
        instrument_id: Instrument identifier.
        signed_delta_qty: Positive for buy, negative for sell.
        trade_rate: Positive trade price.
        trade_date: Trade date; must not precede the position's last trade date.

    Returns:
        PositionTradeOutcome: New position and realized increment.

    Raises:
        InvalidInputError: Raised when quantity is zero or rate is not positive.
        PositionOrderingError: Raised when the trade is older than the last applied trade.
        ValueError: Raised when the position belongs to another key.
    """

    if isinstance(signed_delta_qty, bool) or not isinstance(signed_delta_qty, int) or signed_delta_qty == 0:
        raise InvalidInputError("signed_delta_qty must be a non-zero integer")
    rate = brokerage_to_decimal(trade_rate, "trade_rate")
    if rate <= _ZERO:
        raise InvalidInputError("trade_rate must be greater than zero")
    if trade_date is None:
        raise InvalidInputError("trade_date is required")

    if position is not None:
        if position.party_id != party_id or position.instrument_id != instrument_id:
            raise ValueError("position must belong to the traded (party, instrument) key")
        if position.last_trade_date is not None and trade_date < position.last_trade_date:
            raise PositionOrderingError(
                f"trade_date={trade_date.isoformat()} precedes last_trade_date="
                f"{position.last_trade_date.isoformat()}"
            )

    old_quantity = position.quantity if position is not None else 0
    old_avg = position.avg_price if position is not None else None
    realized_pnl = position.realized_pnl if position is not None else Decimal("0.00")

    realized_increment = Decimal("0.00")
    closed_quantity = 0

    if old_quantity == 0:
        transition = PositionTransition.OPEN
        new_quantity = signed_delta_qty
        new_avg = brokerage_round_price(rate)
    elif _sign(old_quantity) == _sign(signed_delta_qty):
        transition = PositionTransition.ACCUMULATE
        new_quantity = old_quantity + signed_delta_qty
        weighted_cost = Decimal(old_quantity) * old_avg + Decimal(signed_delta_qty) * rate
        new_avg = brokerage_round_price(weighted_cost / Decimal(new_quantity))
    else:
        closed_quantity = min(abs(signed_delta_qty), abs(old_quantity))
        realized_increment = brokerage_round_currency(
            Decimal(closed_quantity) * (rate - old_avg) * _sign(old_quantity)
        )
        new_quantity = old_quantity + signed_delta_qty
        if new_quantity == 0:
            transition = PositionTransition.CLOSE
            new_avg = None
        elif _sign(new_quantity) == _sign(old_quantity):
            transition = PositionTransition.REDUCE
            new_avg = old_avg
        else:
            transition = PositionTransition.FLIP
            new_avg = brokerage_round_price(rate)

    return PositionTradeOutcome(
        position=Position(
            party_id=party_id,
            instrument_id=instrument_id,
            quantity=new_quantity,
            avg_price=new_avg,
            realized_pnl=brokerage_round_currency(realized_pnl + realized_increment),
            last_trade_date=trade_date,
            last_trade_rate=rate,
        ),
        transition=transition,
        realized_increment=realized_increment,
        closed_quantity=closed_quantity,
    )


def position_compute_unrealized(position: Position, reference_price: object) -> Decimal:
    """Compute `quantity * (reference_price - avg_price)` for one position.

    The reference price is always supplied by the caller; closed positions value to zero.

    Raises:
        InvalidInputError: Raised when the reference price is missing, non-finite or not positive.
    """

    price = brokerage_to_decimal(reference_price, "reference_price")
    if price <= _ZERO:
        raise InvalidInputError("reference_price must be greater than zero")
    if position.quantity == 0 or position.avg_price is None:
        return Decimal("0.00")
    return brokerage_round_currency(Decimal(position.quantity) * (price - position.avg_price))


def position_value_all(
    positions: list[Position],
    reference_prices: Mapping[UUID, object],
) -> tuple[list[PositionValuation], list[UUID]]:
    """Value positions against reference prices keyed by instrument.

    Args:
        positions: Positions to value.
        reference_prices: Reference price per instrument identifier.

    Returns:
        tuple[list[PositionValuation], list[UUID]]: Valuations for open positions
        with a price, and instrument identifiers of open positions without one.
    """

    valuations: list[PositionValuation] = []
    missing_instrument_ids: list[UUID] = []
    for position in positions:
        if not position.is_open:
            continue
        if position.instrument_id not in reference_prices:
            if position.instrument_id not in missing_instrument_ids:
                missing_instrument_ids.append(position.instrument_id)
            continue
        reference_price = brokerage_to_decimal(reference_prices[position.instrument_id], "reference_price")
        valuations.append(
            PositionValuation(
                party_id=position.party_id,
                instrument_id=position.instrument_id,
                quantity=position.quantity,
                avg_price=position.avg_price,
                reference_price=reference_price,
                unrealized_pnl=position_compute_unrealized(position, reference_price),
            )
        )
    return valuations, missing_instrument_ids


__all__ = [
    "PositionTradeOutcome",
    "PositionTransition",
    "PositionValuation",
    "position_apply_trade",
    "position_compute_unrealized",
    "position_value_all",
]
