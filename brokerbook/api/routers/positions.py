"""F&O position API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from brokerbook.db import MasterDataRepositoryPort
from brokerbook.domain import RecordNotFoundError
from brokerbook.ledger import PositionService, PositionTradeRequest

from ..errors import API_HANDLED_ERRORS, api_error_response
from ..schemas import PositionTradeBody, PositionValuationBody
from ..serialization import api_decimal, api_serialize_position, api_serialize_position_valuation


def api_create_position_router(
    position_service: PositionService,
    master_repository: MasterDataRepositoryPort,
) -> APIRouter:
    """Create F&O position router.

    Args:
        position_service: Position update and reporting service.
        master_repository: Party and instrument code lookups.

    Returns:
        APIRouter: Router exposing `/fo/positions` endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if position_service is None:
        raise ValueError("position_service must not be None")
    if master_repository is None:
        raise ValueError("master_repository must not be None")

    router = APIRouter(prefix="/fo/positions", tags=["positions"])

    def api_resolve_party_id(party_code: str | None) -> UUID | None:
        if party_code is None:
            return None
        party = master_repository.db_party_get_by_code(party_code.strip())
        if party is None:
            raise RecordNotFoundError(f"party not found: {party_code}")
        return party.party_id

    @router.post("/trades")
    def api_position_trade_apply(body: PositionTradeBody) -> JSONResponse:
        """Apply one F&O trade; a repeated trade reference is rejected as a duplicate."""

        try:
            party_id = api_resolve_party_id(body.party_code)
            instrument = master_repository.db_instrument_get_by_code(body.instrument_code.strip())
            if instrument is None:
                raise RecordNotFoundError(f"instrument not found: {body.instrument_code}")
            outcome = position_service.position_apply(
                PositionTradeRequest(
                    trade_reference=body.trade_reference.strip(),
                    party_id=party_id,
                    instrument_id=instrument.instrument_id,
                    signed_delta_qty=body.signed_delta_qty,
                    trade_rate=body.trade_rate,
                    trade_date=body.trade_date,
                )
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)

        payload = {
            "position": api_serialize_position(outcome.position),
            "transition": outcome.transition.value,
            "realized_increment": api_decimal(outcome.realized_increment),
            "closed_quantity": outcome.closed_quantity,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_201_CREATED)

    @router.get("")
    def api_position_report(party_code: str | None = Query(default=None)) -> JSONResponse:
        try:
            report = position_service.position_report(party_id=api_resolve_party_id(party_code))
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {
            "open": [api_serialize_position(position) for position in report.open_positions],
            "closed": [api_serialize_position(position) for position in report.closed_positions],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/valuation")
    def api_position_valuation(body: PositionValuationBody) -> JSONResponse:
        """Value open positions against reference prices keyed by instrument code."""

        unknown_codes: list[str] = []
        code_by_instrument_id = {}
        reference_prices = {}
        try:
            party_id = api_resolve_party_id(body.party_code)
            for instrument_code, price in body.reference_prices.items():
                instrument = master_repository.db_instrument_get_by_code(instrument_code.strip())
                if instrument is None:
                    unknown_codes.append(instrument_code)
                    continue
                reference_prices[instrument.instrument_id] = price
                code_by_instrument_id[instrument.instrument_id] = instrument.instrument_code
            report = position_service.position_valuation(reference_prices, party_id=party_id)
            missing_codes = []
            for instrument_id in report.missing_price_instrument_ids:
                instrument = master_repository.db_instrument_get_by_id(instrument_id)
                missing_codes.append(str(instrument_id) if instrument is None else instrument.instrument_code)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)

        valuations = []
        for valuation in report.valuations:
            serialized = api_serialize_position_valuation(valuation)
            serialized["instrument_code"] = code_by_instrument_id.get(valuation.instrument_id)
            valuations.append(serialized)
        payload = {
            "valuations": valuations,
            "total_unrealized_pnl": api_decimal(report.total_unrealized_pnl),
            "missing_prices": missing_codes,
            "unknown_instrument_codes": unknown_codes,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_position_router"]
