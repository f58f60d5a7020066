"""F&O position update and reporting service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from brokerbook.db import BookkeepingRepositoryPort, BookkeepingTransactionPort, MasterDataRepositoryPort, PositionTradeRecord
from brokerbook.domain.errors import ConcurrencyConflictError, RecordNotFoundError, ValidationError
from brokerbook.domain.models import InstrumentType, Position

from .position_engine import PositionTradeOutcome, PositionValuation, position_apply_trade, position_value_all


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionTradeRequest:
    """Input contract for one F&O trade applied to a position.

    Attributes:
        trade_reference: Unique reference; the contract number for batch trades.
        party_id: Party identifier.
        instrument_id: Instrument identifier.
        signed_delta_qty: Positive for buy, negative for sell, in units.
        trade_rate: Trade price.
        trade_date: Trade date.
    """

    trade_reference: str
    party_id: UUID
    instrument_id: UUID
    signed_delta_qty: int
    trade_rate: Decimal
    trade_date: date


@dataclass(frozen=True)
class PositionReport:
    """Open and closed positions listed separately."""

    open_positions: tuple[Position, ...]
    closed_positions: tuple[Position, ...]


@dataclass(frozen=True)
class PositionValuationReport:
    """Unrealized P&L of open positions for supplied reference prices.

    Attributes:
        valuations: One valuation per open position with a reference price.
        total_unrealized_pnl: Sum of valued positions.
        missing_price_instrument_ids: Open instruments without a supplied price.
    """

    valuations: tuple[PositionValuation, ...]
    total_unrealized_pnl: Decimal
    missing_price_instrument_ids: tuple[UUID, ...]


def position_lock_name(party_id: UUID, instrument_id: UUID) -> str:
    """Return the serialization key for one (party, instrument) position."""

    return f"position:{party_id}:{instrument_id}"


def position_apply_in_transaction(
    transaction: BookkeepingTransactionPort,
    request: PositionTradeRequest,
) -> PositionTradeOutcome:
    """Apply one trade to its position inside an open bookkeeping transaction.

    Args:
        transaction: Open bookkeeping transaction.
        request: Trade to apply.

    Returns:
        PositionTradeOutcome: Persisted position and realized increment.

    Raises:
        ValidationError: Raised when the trade reference is blank.
        PositionOrderingError: Raised when the trade is older than the last applied trade.
        DuplicateRecordError: Raised when the trade reference was already applied.
    """

    trade_reference = (request.trade_reference or "").strip()
    if not trade_reference:
        raise ValidationError("trade_reference must not be blank")

    transaction.db_lock_key(position_lock_name(request.party_id, request.instrument_id))
    current_position = transaction.db_position_fetch_for_update(request.party_id, request.instrument_id)
    outcome = position_apply_trade(
        position=current_position,
        party_id=request.party_id,
        instrument_id=request.instrument_id,
        signed_delta_qty=request.signed_delta_qty,
        trade_rate=request.trade_rate,
        trade_date=request.trade_date,
    )
    transaction.db_position_trade_insert(
        PositionTradeRecord(
            trade_reference=trade_reference,
            party_id=request.party_id,
            instrument_id=request.instrument_id,
            trade_date=request.trade_date,
            signed_quantity=request.signed_delta_qty,
            rate=outcome.position.last_trade_rate,
            realized_pnl=outcome.realized_increment,
            quantity_after=outcome.position.quantity,
            avg_price_after=outcome.position.avg_price,
        )
    )
    persisted_position = transaction.db_position_upsert(outcome.position)
    return PositionTradeOutcome(
        position=persisted_position,
        transition=outcome.transition,
        realized_increment=outcome.realized_increment,
        closed_quantity=outcome.closed_quantity,
    )


class PositionService:
    """Apply standalone F&O trades and report positions."""

    def __init__(
        self,
        repository: BookkeepingRepositoryPort,
        master_repository: MasterDataRepositoryPort,
        retry_attempts: int = 3,
    ):
        if repository is None:
            raise ValueError("repository must not be None")
        if master_repository is None:
            raise ValueError("master_repository must not be None")
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be greater than or equal to 1")
        self._repository = repository
        self._master_repository = master_repository
        self._retry_attempts = retry_attempts

    def position_apply(self, request: PositionTradeRequest) -> PositionTradeOutcome:
        """Apply one trade in its own transaction.

        Args:
            request: Trade to apply.

        Returns:
            PositionTradeOutcome: Persisted position and realized increment.

        Raises:
            ValidationError: Raised when the trade is invalid, out of order, or on an equity instrument.
            RecordNotFoundError: Raised when the instrument is unknown.
            DuplicateRecordError: Raised when the trade reference was already applied.
            ConcurrencyConflictError: Raised when every attempt hit a write conflict.
        """

        instrument = self._master_repository.db_instrument_get_by_id(request.instrument_id)
        if instrument is None:
            raise RecordNotFoundError(f"instrument not found: {request.instrument_id}")
        if instrument.instrument_type == InstrumentType.EQ:
            raise ValidationError(f"instrument={instrument.instrument_code} is not a derivative")

        for attempt in range(1, self._retry_attempts + 1):
            try:
                with self._repository.db_transaction() as transaction:
                    outcome = position_apply_in_transaction(transaction, request)
            except ConcurrencyConflictError:
                if attempt >= self._retry_attempts:
                    raise
                logger.warning("position update conflict reference=%s attempt=%s, retrying", request.trade_reference, attempt)
                continue

            logger.info(
                "applied trade reference=%s party=%s instrument=%s transition=%s quantity=%s realized=%s",
                request.trade_reference,
                request.party_id,
                request.instrument_id,
                outcome.transition.value,
                outcome.position.quantity,
                outcome.realized_increment,
            )
            return outcome

        raise ConcurrencyConflictError("position update retries exhausted")

    def position_report(self, party_id: UUID | None = None) -> PositionReport:
        """Split positions into open and closed (zero-quantity) lists."""

        positions = self._repository.db_position_list(party_id=party_id)
        return PositionReport(
            open_positions=tuple(position for position in positions if position.is_open),
            closed_positions=tuple(position for position in positions if not position.is_open),
        )

    def position_valuation(
        self,
        reference_prices: Mapping[UUID, Decimal],
        party_id: UUID | None = None,
    ) -> PositionValuationReport:
        """Value open positions against caller-supplied reference prices.

        Args:
            reference_prices: Reference price per instrument identifier.
            party_id: Optional party filter.

        Returns:
            PositionValuationReport: Valuations plus instruments lacking a price.
        """

        positions = self._repository.db_position_list(party_id=party_id)
        valuations, missing_instrument_ids = position_value_all(positions, reference_prices)
        return PositionValuationReport(
            valuations=tuple(valuations),
            total_unrealized_pnl=sum((item.unrealized_pnl for item in valuations), Decimal("0.00")),
            missing_price_instrument_ids=tuple(missing_instrument_ids),
        )


__all__ = [
    "PositionReport",
    "PositionService",
    "PositionTradeRequest",
    "PositionValuationReport",
    "position_apply_in_transaction",
    "position_lock_name",
]
