"""Equity holdings reduction over equity-book contracts."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from brokerbook.domain.errors import ValidationError
from brokerbook.domain.models import Book, Contract, ContractSide, ContractStatus


@dataclass(frozen=True)
class HoldingBrokerShare:
    """Quantity one broker contributed to a holding."""

    broker_id: UUID
    net_quantity: int
    last_trade_date: date


@dataclass(frozen=True)
class HoldingRow:
    """Net equity holding of one party in one instrument.

    Attributes:
        party_id: Holding party.
        instrument_id: Held instrument.
        buy_quantity: Units bought across brokers.
        sell_quantity: Units sold across brokers.
        net_quantity: `buy_quantity - sell_quantity`; negative for a net short.
        last_trade_date: Latest contributing trade date.
        brokers: Per-broker net quantities ordered by broker id.
    """

    party_id: UUID
    instrument_id: UUID
    buy_quantity: int
    sell_quantity: int
    net_quantity: int
    last_trade_date: date
    brokers: tuple[HoldingBrokerShare, ...]


@dataclass(frozen=True)
class BrokerHoldingRow:
    """Net equity quantity routed through one broker in one instrument."""

    broker_id: UUID
    instrument_id: UUID
    net_quantity: int
    party_count: int
    last_trade_date: date


def holdings_select_contracts(
    contracts: Iterable[Contract],
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[Contract]:
    """Keep non-cancelled equity contracts traded inside the optional date window.

    Raises:
        ValidationError: Raised when `from_date` is after `to_date`.
    """

    if from_date is not None and to_date is not None and from_date > to_date:
        raise ValidationError("from_date must not be after to_date")
    return [
        contract
        for contract in contracts
        if contract.book == Book.EQUITY
        and contract.status != ContractStatus.CANCELLED
        and (from_date is None or contract.trade_date >= from_date)
        and (to_date is None or contract.trade_date <= to_date)
    ]


def holdings_aggregate(
    contracts: Iterable[Contract],
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[HoldingRow]:
    """Reduce contracts to one net holding per party and instrument.

    Args:
        contracts: Contracts of any book; only active and completed equity legs count.
        from_date: Optional inclusive lower trade-date bound.
        to_date: Optional inclusive upper trade-date bound.

    Returns:
        list[HoldingRow]: Rows ordered by net quantity descending.

    Raises:
        ValidationError: Raised when the date window is inverted.
    """

    grouped: dict[tuple[UUID, UUID], list[Contract]] = {}
    for contract in holdings_select_contracts(contracts, from_date=from_date, to_date=to_date):
        grouped.setdefault((contract.party_id, contract.instrument_id), []).append(contract)

    rows: list[HoldingRow] = []
    for (party_id, instrument_id), legs in grouped.items():
        by_broker: dict[UUID, list[Contract]] = {}
        for leg in legs:
            by_broker.setdefault(leg.broker_id, []).append(leg)
        brokers = tuple(
            HoldingBrokerShare(
                broker_id=broker_id,
                net_quantity=sum(leg.signed_quantity for leg in broker_legs),
                last_trade_date=max(leg.trade_date for leg in broker_legs),
            )
            for broker_id, broker_legs in sorted(by_broker.items(), key=lambda item: str(item[0]))
        )
        buy_quantity = sum(leg.quantity for leg in legs if leg.contract_type == ContractSide.BUY)
        sell_quantity = sum(leg.quantity for leg in legs if leg.contract_type == ContractSide.SELL)
        rows.append(
            HoldingRow(
                party_id=party_id,
                instrument_id=instrument_id,
                buy_quantity=buy_quantity,
                sell_quantity=sell_quantity,
                net_quantity=buy_quantity - sell_quantity,
                last_trade_date=max(leg.trade_date for leg in legs),
                brokers=brokers,
            )
        )
    rows.sort(key=lambda row: (-row.net_quantity, str(row.party_id), str(row.instrument_id)))
    return rows


def holdings_aggregate_by_broker(
    contracts: Iterable[Contract],
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[BrokerHoldingRow]:
    """Reduce contracts to one net quantity per broker and instrument, ordered by net quantity descending."""

    grouped: dict[tuple[UUID, UUID], list[Contract]] = {}
    for contract in holdings_select_contracts(contracts, from_date=from_date, to_date=to_date):
        grouped.setdefault((contract.broker_id, contract.instrument_id), []).append(contract)

    rows = [
        BrokerHoldingRow(
            broker_id=broker_id,
            instrument_id=instrument_id,
            net_quantity=sum(leg.signed_quantity for leg in legs),
            party_count=len({leg.party_id for leg in legs}),
            last_trade_date=max(leg.trade_date for leg in legs),
        )
        for (broker_id, instrument_id), legs in grouped.items()
    ]
    rows.sort(key=lambda row: (-row.net_quantity, str(row.broker_id), str(row.instrument_id)))
    return rows


__all__ = [
    "BrokerHoldingRow",
    "HoldingBrokerShare",
    "HoldingRow",
    "holdings_aggregate",
    "holdings_aggregate_by_broker",
    "holdings_select_contracts",
]
