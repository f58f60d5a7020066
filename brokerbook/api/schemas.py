"""Request body models for API routes."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from brokerbook.domain import ContractStatus, InstrumentType, LedgerEntryKind, SettlementType


class PartyCreateBody(BaseModel):
    party_code: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1)
    trading_slab: Decimal = Field(ge=0)
    delivery_slab: Decimal = Field(ge=0)
    interest_rate: Decimal | None = Field(default=None, ge=0)
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class PartySlabUpdateBody(BaseModel):
    trading_slab: Decimal = Field(ge=0)
    delivery_slab: Decimal = Field(ge=0)


class BrokerCreateBody(BaseModel):
    broker_code: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1)
    trading_slab: Decimal = Field(ge=0)
    delivery_slab: Decimal = Field(ge=0)
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class InstrumentCreateBody(BaseModel):
    instrument_code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1)
    instrument_type: InstrumentType = InstrumentType.EQ
    exchange_code: str | None = None
    expiry_date: date | None = None
    strike_price: Decimal | None = Field(default=None, gt=0)
    lot_size: int = Field(default=1, ge=1)


class SettlementCreateBody(BaseModel):
    settlement_number: str = Field(min_length=1, max_length=32)
    settlement_type: SettlementType
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _validate_period(self) -> "SettlementCreateBody":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self


class TradeRowBody(BaseModel):
    """One uploaded row; per-row checks happen in the bill builder so all bad rows are reported together."""

    instrument_code: str | None = None
    trade_date: date | None = None
    trade_type: str | None = None
    contract_type: str | None = None
    quantity: int | None = None
    rate: Decimal | None = None


class BillBatchBody(BaseModel):
    party_code: str
    broker_code: str
    settlement_number: str | None = None
    bill_date: date | None = None
    bill_sequence: int | None = Field(default=None, ge=1)
    rows: list[TradeRowBody]


class PaymentBody(BaseModel):
    amount: Decimal = Field(gt=0)
    payment_date: date | None = None
    method: str = Field(default="cash", min_length=1)
    notes: str | None = None
    payment_reference: str | None = Field(default=None, min_length=1)


class ContractStatusBody(BaseModel):
    status: ContractStatus


class LedgerEntryBody(BaseModel):
    account_code: str = Field(min_length=1)
    entry_date: date
    particulars: str = ""
    debit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    credit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    entry_kind: LedgerEntryKind = LedgerEntryKind.ADJUSTMENT
    bill_number: str | None = None


class PositionTradeBody(BaseModel):
    trade_reference: str = Field(min_length=1)
    party_code: str = Field(min_length=1)
    instrument_code: str = Field(min_length=1)
    signed_delta_qty: int
    trade_rate: Decimal = Field(gt=0)
    trade_date: date


class PositionValuationBody(BaseModel):
    reference_prices: dict[str, Decimal]
    party_code: str | None = None
