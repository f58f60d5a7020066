"""Master data API router for parties, brokers, instruments and settlements."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from brokerbook.config import AppSettings
from brokerbook.db import (
    BrokerCreateRequest,
    InstrumentCreateRequest,
    MasterDataRepositoryPort,
    PartyCreateRequest,
    SettlementCreateRequest,
)

from ..errors import API_HANDLED_ERRORS, api_error_response, api_not_found_response
from ..schemas import BrokerCreateBody, InstrumentCreateBody, PartyCreateBody, PartySlabUpdateBody, SettlementCreateBody
from ..serialization import (
    api_serialize_broker,
    api_serialize_instrument,
    api_serialize_party,
    api_serialize_settlement,
)


def api_create_master_data_router(settings: AppSettings, master_repository: MasterDataRepositoryPort) -> APIRouter:
    """Create master data router with create and list endpoints.

    Args:
        settings: Runtime settings used for pagination defaults.
        master_repository: DB-layer master data repository.

    Returns:
        APIRouter: Router exposing master data endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if master_repository is None:
        raise ValueError("master_repository must not be None")

    router = APIRouter(tags=["master-data"])

    def api_page(items: list[dict[str, object]], limit: int, offset: int) -> JSONResponse:
        payload = {
            "items": items,
            "page": {"limit": limit, "offset": offset, "returned": len(items)},
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/parties")
    def api_party_create(body: PartyCreateBody) -> JSONResponse:
        """Create one party; the party code becomes its ledger account code."""

        try:
            party = master_repository.db_party_create(
                PartyCreateRequest(
                    party_code=body.party_code.strip(),
                    name=body.name.strip(),
                    trading_slab=body.trading_slab,
                    delivery_slab=body.delivery_slab,
                    interest_rate=body.interest_rate,
                    phone=body.phone,
                    email=body.email,
                    address=body.address,
                )
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_party(party), status_code=status.HTTP_201_CREATED)

    @router.get("/parties")
    def api_party_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        applied_limit = min(limit, settings.api_max_limit)
        try:
            parties = master_repository.db_party_list(limit=applied_limit, offset=offset)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return api_page([api_serialize_party(party) for party in parties], applied_limit, offset)

    @router.patch("/parties/{party_code}/slabs")
    def api_party_update_slabs(party_code: str, body: PartySlabUpdateBody) -> JSONResponse:
        """Change party slabs for future contracts; posted contracts keep their snapshots."""

        try:
            party = master_repository.db_party_update_slabs(
                party_code=party_code.strip(),
                trading_slab=body.trading_slab,
                delivery_slab=body.delivery_slab,
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        if party is None:
            return api_not_found_response(f"party not found: {party_code}")
        return JSONResponse(content=api_serialize_party(party), status_code=status.HTTP_200_OK)

    @router.post("/brokers")
    def api_broker_create(body: BrokerCreateBody) -> JSONResponse:
        try:
            broker = master_repository.db_broker_create(
                BrokerCreateRequest(
                    broker_code=body.broker_code.strip(),
                    name=body.name.strip(),
                    trading_slab=body.trading_slab,
                    delivery_slab=body.delivery_slab,
                    phone=body.phone,
                    email=body.email,
                    address=body.address,
                )
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_broker(broker), status_code=status.HTTP_201_CREATED)

    @router.get("/brokers")
    def api_broker_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        applied_limit = min(limit, settings.api_max_limit)
        try:
            brokers = master_repository.db_broker_list(limit=applied_limit, offset=offset)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return api_page([api_serialize_broker(broker) for broker in brokers], applied_limit, offset)

    @router.post("/instruments")
    def api_instrument_create(body: InstrumentCreateBody) -> JSONResponse:
        try:
            instrument = master_repository.db_instrument_create(
                InstrumentCreateRequest(
                    instrument_code=body.instrument_code.strip(),
                    name=body.name.strip(),
                    instrument_type=body.instrument_type,
                    exchange_code=body.exchange_code,
                    expiry_date=body.expiry_date,
                    strike_price=body.strike_price,
                    lot_size=body.lot_size,
                )
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_instrument(instrument), status_code=status.HTTP_201_CREATED)

    @router.get("/instruments")
    def api_instrument_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        applied_limit = min(limit, settings.api_max_limit)
        try:
            instruments = master_repository.db_instrument_list(limit=applied_limit, offset=offset)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return api_page([api_serialize_instrument(item) for item in instruments], applied_limit, offset)

    @router.post("/settlements")
    def api_settlement_create(body: SettlementCreateBody) -> JSONResponse:
        try:
            settlement = master_repository.db_settlement_create(
                SettlementCreateRequest(
                    settlement_number=body.settlement_number.strip(),
                    settlement_type=body.settlement_type,
                    start_date=body.start_date,
                    end_date=body.end_date,
                )
            )
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return JSONResponse(content=api_serialize_settlement(settlement), status_code=status.HTTP_201_CREATED)

    @router.get("/settlements")
    def api_settlement_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        applied_limit = min(limit, settings.api_max_limit)
        try:
            settlements = master_repository.db_settlement_list(limit=applied_limit, offset=offset)
        except API_HANDLED_ERRORS as error:
            return api_error_response(error)
        return api_page([api_serialize_settlement(item) for item in settlements], applied_limit, offset)

    return router


__all__ = ["api_create_master_data_router"]
