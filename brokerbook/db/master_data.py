"""Database service for party, broker, instrument and settlement master data."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from brokerbook.domain import (
    Broker,
    Instrument,
    InstrumentType,
    Party,
    PersistenceError,
    Settlement,
    SettlementType,
)

from .bookkeeping import db_map_integrity_error
from .interfaces import (
    BrokerCreateRequest,
    InstrumentCreateRequest,
    MasterDataRepositoryPort,
    PartyCreateRequest,
    SettlementCreateRequest,
)


_PARTY_COLUMNS = (
    "party_id, party_code, name, trading_slab, delivery_slab, interest_rate, phone, email, address"
)
_BROKER_COLUMNS = "broker_id, broker_code, name, trading_slab, delivery_slab, phone, email, address"
_INSTRUMENT_COLUMNS = (
    "instrument_id, instrument_code, name, instrument_type, exchange_code, expiry_date, strike_price, lot_size"
)
_SETTLEMENT_COLUMNS = "settlement_id, settlement_number, settlement_type, start_date, end_date"


class SQLAlchemyMasterDataService(MasterDataRepositoryPort):
    """SQLAlchemy-backed master data repository."""

    def __init__(self, engine: Engine):
        """Initialize master data persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_party_create(self, request: PartyCreateRequest) -> Party:
        row = self._db_insert_returning(
            statement=(
                "INSERT INTO party ("
                "party_code, name, trading_slab, delivery_slab, interest_rate, phone, email, address"
                ") VALUES ("
                ":party_code, :name, :trading_slab, :delivery_slab, :interest_rate, :phone, :email, :address"
                ") "
                f"RETURNING {_PARTY_COLUMNS}"
            ),
            parameters={
                "party_code": request.party_code,
                "name": request.name,
                "trading_slab": request.trading_slab,
                "delivery_slab": request.delivery_slab,
                "interest_rate": request.interest_rate,
                "phone": request.phone,
                "email": request.email,
                "address": request.address,
            },
            record_label=f"party {request.party_code}",
        )
        return _db_map_party(row)

    def db_party_get_by_code(self, party_code: str) -> Party | None:
        row = self._db_fetch_one(
            f"SELECT {_PARTY_COLUMNS} FROM party WHERE party_code = :party_code",
            {"party_code": party_code},
        )
        return _db_map_party(row) if row is not None else None

    def db_party_list(self, limit: int, offset: int) -> list[Party]:
        rows = self._db_fetch_page(f"SELECT {_PARTY_COLUMNS} FROM party ORDER BY party_code ASC", limit, offset)
        return [_db_map_party(row) for row in rows]

    def db_party_update_slabs(self, party_code: str, trading_slab: Decimal, delivery_slab: Decimal) -> Party | None:
        try:
            with self._engine.begin() as connection:
                row = connection.execute(
                    text(
                        "UPDATE party SET trading_slab = :trading_slab, delivery_slab = :delivery_slab, "
                        "updated_at_utc = now() "
                        "WHERE party_code = :party_code "
                        f"RETURNING {_PARTY_COLUMNS}"
                    ),
                    {"party_code": party_code, "trading_slab": trading_slab, "delivery_slab": delivery_slab},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to update party slabs") from error
        return _db_map_party(row) if row is not None else None

    def db_broker_create(self, request: BrokerCreateRequest) -> Broker:
        row = self._db_insert_returning(
            statement=(
                "INSERT INTO broker ("
                "broker_code, name, trading_slab, delivery_slab, phone, email, address"
                ") VALUES ("
                ":broker_code, :name, :trading_slab, :delivery_slab, :phone, :email, :address"
                ") "
                f"RETURNING {_BROKER_COLUMNS}"
            ),
            parameters={
                "broker_code": request.broker_code,
                "name": request.name,
                "trading_slab": request.trading_slab,
                "delivery_slab": request.delivery_slab,
                "phone": request.phone,
                "email": request.email,
                "address": request.address,
            },
            record_label=f"broker {request.broker_code}",
        )
        return _db_map_broker(row)

    def db_broker_get_by_code(self, broker_code: str) -> Broker | None:
        row = self._db_fetch_one(
            f"SELECT {_BROKER_COLUMNS} FROM broker WHERE broker_code = :broker_code",
            {"broker_code": broker_code},
        )
        return _db_map_broker(row) if row is not None else None

    def db_broker_list(self, limit: int, offset: int) -> list[Broker]:
        rows = self._db_fetch_page(f"SELECT {_BROKER_COLUMNS} FROM broker ORDER BY broker_code ASC", limit, offset)
        return [_db_map_broker(row) for row in rows]

    def db_instrument_create(self, request: InstrumentCreateRequest) -> Instrument:
        row = self._db_insert_returning(
            statement=(
                "INSERT INTO instrument ("
                "instrument_code, name, instrument_type, exchange_code, expiry_date, strike_price, lot_size"
                ") VALUES ("
                ":instrument_code, :name, :instrument_type, :exchange_code, :expiry_date, :strike_price, :lot_size"
                ") "
                f"RETURNING {_INSTRUMENT_COLUMNS}"
            ),
            parameters={
                "instrument_code": request.instrument_code,
                "name": request.name,
                "instrument_type": request.instrument_type.value,
                "exchange_code": request.exchange_code,
                "expiry_date": request.expiry_date,
                "strike_price": request.strike_price,
                "lot_size": request.lot_size,
            },
            record_label=f"instrument {request.instrument_code}",
        )
        return _db_map_instrument(row)

    def db_instrument_get_by_code(self, instrument_code: str) -> Instrument | None:
        row = self._db_fetch_one(
            f"SELECT {_INSTRUMENT_COLUMNS} FROM instrument WHERE instrument_code = :instrument_code",
            {"instrument_code": instrument_code},
        )
        return _db_map_instrument(row) if row is not None else None

    def db_instrument_get_by_id(self, instrument_id: UUID) -> Instrument | None:
        row = self._db_fetch_one(
            f"SELECT {_INSTRUMENT_COLUMNS} FROM instrument WHERE instrument_id = :instrument_id",
            {"instrument_id": instrument_id},
        )
        return _db_map_instrument(row) if row is not None else None

    def db_instrument_list(self, limit: int, offset: int) -> list[Instrument]:
        rows = self._db_fetch_page(
            f"SELECT {_INSTRUMENT_COLUMNS} FROM instrument ORDER BY instrument_code ASC", limit, offset
        )
        return [_db_map_instrument(row) for row in rows]

    def db_settlement_create(self, request: SettlementCreateRequest) -> Settlement:
        row = self._db_insert_returning(
            statement=(
                "INSERT INTO settlement (settlement_number, settlement_type, start_date, end_date) "
                "VALUES (:settlement_number, :settlement_type, :start_date, :end_date) "
                f"RETURNING {_SETTLEMENT_COLUMNS}"
            ),
            parameters={
                "settlement_number": request.settlement_number,
                "settlement_type": request.settlement_type.value,
                "start_date": request.start_date,
                "end_date": request.end_date,
            },
            record_label=f"settlement {request.settlement_number}",
        )
        return _db_map_settlement(row)

    def db_settlement_get_by_number(self, settlement_number: str) -> Settlement | None:
        row = self._db_fetch_one(
            f"SELECT {_SETTLEMENT_COLUMNS} FROM settlement WHERE settlement_number = :settlement_number",
            {"settlement_number": settlement_number},
        )
        return _db_map_settlement(row) if row is not None else None

    def db_settlement_list(self, limit: int, offset: int) -> list[Settlement]:
        rows = self._db_fetch_page(
            f"SELECT {_SETTLEMENT_COLUMNS} FROM settlement ORDER BY start_date DESC, settlement_number ASC",
            limit,
            offset,
        )
        return [_db_map_settlement(row) for row in rows]

    def _db_insert_returning(self, statement: str, parameters: dict[str, Any], record_label: str) -> Any:
        """Run one insert statement and return its single RETURNING row.

        Raises:
            DuplicateRecordError: Raised when the business code already exists.
            PersistenceError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                return connection.execute(text(statement), parameters).mappings().one()
        except IntegrityError as error:
            raise db_map_integrity_error(error, f"failed to create {record_label}") from error
        except SQLAlchemyError as error:
            raise PersistenceError(f"failed to create {record_label}") from error

    def _db_fetch_one(self, statement: str, parameters: dict[str, Any]) -> Any:
        try:
            with self._engine.connect() as connection:
                return connection.execute(text(statement), parameters).mappings().first()
        except SQLAlchemyError as error:
            raise PersistenceError("failed to read master data") from error

    def _db_fetch_page(self, statement: str, limit: int, offset: int) -> list[Any]:
        if limit < 1:
            raise ValueError("limit must be greater than or equal to 1")
        if offset < 0:
            raise ValueError("offset must be greater than or equal to 0")

        try:
            with self._engine.connect() as connection:
                return list(
                    connection.execute(
                        text(f"{statement} LIMIT :limit OFFSET :offset"),
                        {"limit": limit, "offset": offset},
                    ).mappings().all()
                )
        except SQLAlchemyError as error:
            raise PersistenceError("failed to list master data") from error


def _db_map_party(row: Any) -> Party:
    return Party(
        party_id=row["party_id"],
        party_code=row["party_code"],
        name=row["name"],
        trading_slab=row["trading_slab"],
        delivery_slab=row["delivery_slab"],
        interest_rate=row["interest_rate"],
        phone=row["phone"],
        email=row["email"],
        address=row["address"],
    )


def _db_map_broker(row: Any) -> Broker:
    return Broker(
        broker_id=row["broker_id"],
        broker_code=row["broker_code"],
        name=row["name"],
        trading_slab=row["trading_slab"],
        delivery_slab=row["delivery_slab"],
        phone=row["phone"],
        email=row["email"],
        address=row["address"],
    )


def _db_map_instrument(row: Any) -> Instrument:
    return Instrument(
        instrument_id=row["instrument_id"],
        instrument_code=row["instrument_code"],
        name=row["name"],
        instrument_type=InstrumentType(row["instrument_type"]),
        exchange_code=row["exchange_code"],
        expiry_date=row["expiry_date"],
        strike_price=row["strike_price"],
        lot_size=int(row["lot_size"]),
    )


def _db_map_settlement(row: Any) -> Settlement:
    return Settlement(
        settlement_id=row["settlement_id"],
        settlement_number=row["settlement_number"],
        settlement_type=SettlementType(row["settlement_type"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
    )
