"""Equity holdings API router."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from brokerbook.ledger import LedgerReportingService

from ..errors import API_HANDLED_ERRORS, api_error_response
from ..serialization import api_serialize_broker_holding, api_serialize_holding


def api_create_holdings_router(reporting_service: LedgerReportingService) -> APIRouter:
    """Create equity holdings router.

    Args:
        reporting_service: Holdings reporting service.

    Returns:
        APIRouter: Router exposing `/holdings` endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if reporting_service is None:
        raise ValueError("reporting_service must not be None")

    router = APIRouter(prefix="/holdings", tags=["holdings"])

    def api_holdings_payload(party_code: str | None, from_date: date | None, to_date: date | None) -> JSONResponse:
        try:
            report = reporting_service.holdings_report(party_code=party_code, from_date=from_date, to_date=to_date)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {
            "from_date": from_date.isoformat() if from_date else None,
            "to_date": to_date.isoformat() if to_date else None,
            "holdings": [api_serialize_holding(row, report) for row in report.rows],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("")
    def api_holdings_list(
        party_code: str | None = Query(default=None),
        from_date: date | None = Query(default=None),
        to_date: date | None = Query(default=None),
    ) -> JSONResponse:
        """Net equity holdings per party and instrument, largest first."""

        return api_holdings_payload(party_code, from_date, to_date)

    @router.get("/parties/{party_code}")
    def api_holdings_party(
        party_code: str,
        from_date: date | None = Query(default=None),
        to_date: date | None = Query(default=None),
    ) -> JSONResponse:
        return api_holdings_payload(party_code, from_date, to_date)

    @router.get("/brokers")
    def api_holdings_brokers(
        from_date: date | None = Query(default=None),
        to_date: date | None = Query(default=None),
    ) -> JSONResponse:
        try:
            report = reporting_service.holdings_broker_report(from_date=from_date, to_date=to_date)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {"holdings": [api_serialize_broker_holding(row, report) for row in report.rows]}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_holdings_router"]
