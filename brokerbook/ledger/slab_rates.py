"""Slab-rate lookup for parties and brokers."""

from __future__ import annotations

from decimal import Decimal

from brokerbook.domain.errors import InvalidInputError, InvalidTradeTypeError
from brokerbook.domain.models import Broker, Party, TradeType

from .brokerage import brokerage_to_decimal


def slab_normalize_trade_type(trade_type: object) -> TradeType:
    """Normalize a trade-type flag to `TradeType`.

    Args:
        trade_type: `TradeType` member or text such as `"T"`, `" d "`.

    Returns:
        TradeType: Normalized trade type.

    Raises:
        InvalidTradeTypeError: Raised for anything other than trading or delivery.
    """

    if isinstance(trade_type, TradeType):
        return trade_type
    if not isinstance(trade_type, str):
        raise InvalidTradeTypeError(f"unsupported trade_type={trade_type!r}")
    try:
        return TradeType(trade_type.strip().upper())
    except ValueError as error:
        raise InvalidTradeTypeError(f"unsupported trade_type={trade_type!r}") from error


def slab_resolve_rate(entity: Party | Broker, trade_type: object) -> Decimal:
    """Return the brokerage percentage applicable to one trade.

    Trading (`T`) trades use `trading_slab`; delivery (`D`) trades use
    `delivery_slab`. The caller snapshots the returned rate into the contract.

    Args:
        entity: Party or broker whose slabs apply.
        trade_type: Trade-type flag.

    Returns:
        Decimal: Non-negative slab percentage.

    Raises:
        InvalidTradeTypeError: Raised when trade type is unsupported.
        InvalidInputError: Raised when the entity is missing or its slab is unusable.
    """

    if entity is None:
        raise InvalidInputError("entity must not be None")

    normalized_trade_type = slab_normalize_trade_type(trade_type)
    if normalized_trade_type == TradeType.TRADING:
        slab_value = entity.trading_slab
        slab_name = "trading_slab"
    else:
        slab_value = entity.delivery_slab
        slab_name = "delivery_slab"

    rate = brokerage_to_decimal(slab_value, slab_name)
    if rate < Decimal("0"):
        raise InvalidInputError(f"{slab_name} must not be negative")
    return rate


__all__ = ["slab_normalize_trade_type", "slab_resolve_rate"]
