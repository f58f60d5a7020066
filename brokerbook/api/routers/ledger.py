"""Ledger API router for postings, statements, summaries and interest."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from brokerbook.domain import Book
from brokerbook.ledger import LedgerPostingRequest, LedgerPostingService, LedgerReportingService

from ..errors import API_HANDLED_ERRORS, api_error_response
from ..schemas import LedgerEntryBody
from ..serialization import (
    api_decimal,
    api_serialize_continuity_break,
    api_serialize_interest,
    api_serialize_ledger_entry,
    api_serialize_summary_row,
)


def api_create_ledger_router(
    ledger_posting_service: LedgerPostingService,
    reporting_service: LedgerReportingService,
) -> APIRouter:
    """Create ledger router.

    Args:
        ledger_posting_service: Running-balance posting service.
        reporting_service: Summary and interest reporting service.

    Returns:
        APIRouter: Router exposing ledger endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if ledger_posting_service is None:
        raise ValueError("ledger_posting_service must not be None")
    if reporting_service is None:
        raise ValueError("reporting_service must not be None")

    router = APIRouter(tags=["ledger"])

    @router.post("/books/{book}/ledger/entries")
    def api_ledger_entry_create(book: Book, body: LedgerEntryBody) -> JSONResponse:
        """Post one manual entry to a party or house account; the balance follows the account's latest entry."""

        account_code = body.account_code.strip()
        try:
            entry = ledger_posting_service.ledger_post(
                LedgerPostingRequest(
                    book=book,
                    account_code=account_code,
                    entry_date=body.entry_date,
                    particulars=body.particulars,
                    debit_amount=body.debit_amount,
                    credit_amount=body.credit_amount,
                    entry_kind=body.entry_kind,
                    bill_number=body.bill_number,
                )
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_ledger_entry(entry), status_code=status.HTTP_201_CREATED)

    @router.get("/books/{book}/ledger/accounts/{account_code}")
    def api_ledger_account_statement(book: Book, account_code: str) -> JSONResponse:
        try:
            entries = ledger_posting_service.ledger_list_account(book, account_code.strip())
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {
            "book": book.value,
            "account_code": account_code.strip(),
            "closing_balance": api_decimal(entries[-1].balance) if entries else "0.00",
            "entries": [api_serialize_ledger_entry(entry) for entry in entries],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/books/{book}/ledger/summary")
    def api_ledger_summary(book: Book) -> JSONResponse:
        try:
            rows = reporting_service.ledger_summary(book)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {"book": book.value, "accounts": [api_serialize_summary_row(row) for row in rows]}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/books/{book}/ledger/continuity")
    def api_ledger_continuity(book: Book) -> JSONResponse:
        """Report every entry whose balance does not follow from its predecessor."""

        try:
            breaks = ledger_posting_service.ledger_verify(book)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {
            "book": book.value,
            "status": "ok" if not breaks else "broken",
            "breaks": [api_serialize_continuity_break(item) for item in breaks],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/books/{book}/interest/{party_code}")
    def api_ledger_interest(
        book: Book,
        party_code: str,
        from_date: date = Query(),
        to_date: date = Query(),
    ) -> JSONResponse:
        try:
            result = reporting_service.ledger_interest(book, party_code, from_date, to_date)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        if result is None:
            payload = {"party_code": party_code, "status": "no_interest_rate"}
            return JSONResponse(content=payload, status_code=status.HTTP_200_OK)
        return JSONResponse(content=api_serialize_interest(result), status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_ledger_router"]
