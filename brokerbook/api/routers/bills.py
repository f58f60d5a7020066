"""Bill API router for batch creation, bill reads, payments and contract status."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from brokerbook.config import AppSettings
from brokerbook.db import BookkeepingRepositoryPort
from brokerbook.domain import Book
from brokerbook.ledger import BillBatchOutcome, BillBatchRequest, BillBatchService, PaymentService, TradeRow

from ..errors import API_HANDLED_ERRORS, api_error_response, api_not_found_response
from ..schemas import BillBatchBody, ContractStatusBody, PaymentBody
from ..serialization import (
    api_decimal,
    api_serialize_bill,
    api_serialize_contract,
    api_serialize_ledger_entry,
    api_serialize_payment,
    api_serialize_position,
)


def api_create_bill_router(
    settings: AppSettings,
    bill_batch_service: BillBatchService,
    payment_service: PaymentService,
    bookkeeping_repository: BookkeepingRepositoryPort,
) -> APIRouter:
    """Create bill router.

    Args:
        settings: Runtime settings used for pagination defaults.
        bill_batch_service: Batch creation and contract status service.
        payment_service: Bill payment service.
        bookkeeping_repository: DB-layer bookkeeping reads.

    Returns:
        APIRouter: Router exposing bill endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if bill_batch_service is None:
        raise ValueError("bill_batch_service must not be None")
    if payment_service is None:
        raise ValueError("payment_service must not be None")
    if bookkeeping_repository is None:
        raise ValueError("bookkeeping_repository must not be None")

    router = APIRouter(tags=["bills"])

    @router.post("/books/{book}/bill-batches")
    def api_bill_batch_create(book: Book, body: BillBatchBody) -> JSONResponse:
        """Turn a batch of trade rows into contracts, bills and ledger postings.

        Returns:
            JSONResponse: 201 with the persisted batch, or an error envelope.
        """

        request = BillBatchRequest(
            book=book,
            party_code=body.party_code,
            broker_code=body.broker_code,
            settlement_number=body.settlement_number,
            bill_date=body.bill_date,
            bill_sequence=body.bill_sequence,
            rows=[
                TradeRow(
                    instrument_code=row.instrument_code,
                    trade_date=row.trade_date,
                    trade_type=row.trade_type,
                    contract_type=row.contract_type,
                    quantity=row.quantity,
                    rate=row.rate,
                )
                for row in body.rows
            ],
        )
        try:
            outcome = bill_batch_service.bill_batch_create(request)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_bill_batch(outcome), status_code=status.HTTP_201_CREATED)

    @router.get("/books/{book}/bills")
    def api_bill_list(
        book: Book,
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        applied_limit = min(limit, settings.api_max_limit)
        try:
            bills = bookkeeping_repository.db_bill_list(book=book, limit=applied_limit, offset=offset)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {
            "items": [api_serialize_bill(bill, include_items=False) for bill in bills],
            "page": {"limit": limit, "applied_limit": applied_limit, "offset": offset, "returned": len(bills)},
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/bills/{bill_number}")
    def api_bill_detail(bill_number: str) -> JSONResponse:
        """Return one bill with items, contracts and payments."""

        try:
            bill = bookkeeping_repository.db_bill_get(bill_number.strip())
            if bill is None:
                return api_not_found_response(f"bill not found: {bill_number}")
            contracts = bookkeeping_repository.db_contract_list_for_bill(bill.bill_number)
            payments = bookkeeping_repository.db_payment_list_for_bill(bill.bill_number)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)

        payload = api_serialize_bill(bill)
        payload["contracts"] = [api_serialize_contract(contract) for contract in contracts]
        payload["payments"] = [api_serialize_payment(payment) for payment in payments]
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/bills/{bill_number}/payments")
    def api_bill_payment_create(bill_number: str, body: PaymentBody) -> JSONResponse:
        try:
            outcome = payment_service.payment_record(
                bill_number=bill_number,
                amount=body.amount,
                payment_date=body.payment_date,
                method=body.method,
                notes=body.notes,
                payment_reference=body.payment_reference,
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        payload = {
            "payment": api_serialize_payment(outcome.payment),
            "bill": api_serialize_bill(outcome.bill, include_items=False),
            "ledger_entry": api_serialize_ledger_entry(outcome.ledger_entry),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_201_CREATED)

    @router.patch("/contracts/{contract_number}/status")
    def api_contract_status_update(contract_number: str, body: ContractStatusBody) -> JSONResponse:
        try:
            contract = bill_batch_service.contract_update_status(contract_number, body.status)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_contract(contract), status_code=status.HTTP_200_OK)

    return router


def api_serialize_bill_batch(outcome: BillBatchOutcome) -> dict[str, object]:
    """Serialize a persisted bill batch."""

    return {
        "contracts": [api_serialize_contract(contract) for contract in outcome.contracts],
        "party_bill": api_serialize_bill(outcome.party_bill),
        "broker_bill": api_serialize_bill(outcome.broker_bill),
        "sub_broker_profit": api_decimal(outcome.sub_broker_profit),
        "ledger_entries": [api_serialize_ledger_entry(entry) for entry in outcome.ledger_entries],
        "positions": [api_serialize_position(item.position) for item in outcome.position_outcomes],
    }


__all__ = ["api_create_bill_router", "api_serialize_bill_batch"]
