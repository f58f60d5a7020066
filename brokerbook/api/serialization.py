"""JSON serialization helpers for typed domain records."""

from __future__ import annotations

from decimal import Decimal

from brokerbook.domain import Bill, BillItem, Broker, Contract, Instrument, LedgerEntry, Party, Payment, Position, Settlement
from brokerbook.ledger import (
    AccountSummaryRow,
    BrokerHoldingRow,
    BrokerHoldingsReport,
    HoldingRow,
    HoldingsReport,
    InterestComputationResult,
    LedgerContinuityBreak,
    PositionValuation,
)


def api_decimal(value: Decimal | None) -> str | None:
    """Render a decimal as a plain string so no precision is lost in JSON."""

    if value is None:
        return None
    return format(value, "f")


def api_serialize_party(party: Party) -> dict[str, object]:
    return {
        "party_id": str(party.party_id),
        "party_code": party.party_code,
        "name": party.name,
        "trading_slab": api_decimal(party.trading_slab),
        "delivery_slab": api_decimal(party.delivery_slab),
        "interest_rate": api_decimal(party.interest_rate),
        "phone": party.phone,
        "email": party.email,
        "address": party.address,
    }


def api_serialize_broker(broker: Broker) -> dict[str, object]:
    return {
        "broker_id": str(broker.broker_id),
        "broker_code": broker.broker_code,
        "name": broker.name,
        "trading_slab": api_decimal(broker.trading_slab),
        "delivery_slab": api_decimal(broker.delivery_slab),
        "phone": broker.phone,
        "email": broker.email,
        "address": broker.address,
    }


def api_serialize_instrument(instrument: Instrument) -> dict[str, object]:
    return {
        "instrument_id": str(instrument.instrument_id),
        "instrument_code": instrument.instrument_code,
        "name": instrument.name,
        "instrument_type": instrument.instrument_type.value,
        "exchange_code": instrument.exchange_code,
        "expiry_date": None if instrument.expiry_date is None else instrument.expiry_date.isoformat(),
        "strike_price": api_decimal(instrument.strike_price),
        "lot_size": instrument.lot_size,
    }


def api_serialize_settlement(settlement: Settlement) -> dict[str, object]:
    return {
        "settlement_id": str(settlement.settlement_id),
        "settlement_number": settlement.settlement_number,
        "settlement_type": settlement.settlement_type.value,
        "start_date": settlement.start_date.isoformat(),
        "end_date": settlement.end_date.isoformat(),
    }


def api_serialize_contract(contract: Contract) -> dict[str, object]:
    return {
        "contract_number": contract.contract_number,
        "book": contract.book.value,
        "party_id": str(contract.party_id),
        "broker_id": str(contract.broker_id),
        "settlement_id": None if contract.settlement_id is None else str(contract.settlement_id),
        "instrument_id": str(contract.instrument_id),
        "trade_date": contract.trade_date.isoformat(),
        "trade_type": contract.trade_type.value,
        "contract_type": contract.contract_type.value,
        "quantity": contract.quantity,
        "rate": api_decimal(contract.rate),
        "amount": api_decimal(contract.amount),
        "brokerage_rate": api_decimal(contract.brokerage_rate),
        "brokerage_amount": api_decimal(contract.brokerage_amount),
        "broker_brokerage_rate": api_decimal(contract.broker_brokerage_rate),
        "broker_brokerage_amount": api_decimal(contract.broker_brokerage_amount),
        "party_bill_number": contract.party_bill_number,
        "broker_bill_number": contract.broker_bill_number,
        "status": contract.status.value,
    }


def api_serialize_bill_item(item: BillItem) -> dict[str, object]:
    return {
        "line_number": item.line_number,
        "contract_number": item.contract_number,
        "instrument_id": str(item.instrument_id),
        "description": item.description,
        "contract_type": item.contract_type.value,
        "trade_type": item.trade_type.value,
        "quantity": item.quantity,
        "rate": api_decimal(item.rate),
        "trade_amount": api_decimal(item.trade_amount),
        "brokerage_rate": api_decimal(item.brokerage_rate),
        "brokerage_amount": api_decimal(item.brokerage_amount),
        "amount": api_decimal(item.amount),
    }


def api_serialize_bill(bill: Bill, include_items: bool = True) -> dict[str, object]:
    payload: dict[str, object] = {
        "bill_number": bill.bill_number,
        "book": bill.book.value,
        "bill_type": bill.bill_type.value,
        "account_code": bill.account_code,
        "party_id": None if bill.party_id is None else str(bill.party_id),
        "broker_id": None if bill.broker_id is None else str(bill.broker_id),
        "bill_date": bill.bill_date.isoformat(),
        "trade_amount": api_decimal(bill.trade_amount),
        "brokerage_amount": api_decimal(bill.brokerage_amount),
        "total_amount": api_decimal(bill.total_amount),
        "paid_amount": api_decimal(bill.paid_amount),
        "status": bill.status.value,
    }
    if include_items:
        payload["items"] = [api_serialize_bill_item(item) for item in bill.items]
    return payload


def api_serialize_ledger_entry(entry: LedgerEntry) -> dict[str, object]:
    return {
        "book": entry.book.value,
        "account_code": entry.account_code,
        "account_sequence": entry.account_sequence,
        "entry_kind": entry.entry_kind.value,
        "entry_date": entry.entry_date.isoformat(),
        "particulars": entry.particulars,
        "debit_amount": api_decimal(entry.debit_amount),
        "credit_amount": api_decimal(entry.credit_amount),
        "balance": api_decimal(entry.balance),
        "bill_number": entry.bill_number,
    }


def api_serialize_payment(payment: Payment) -> dict[str, object]:
    return {
        "payment_number": payment.payment_number,
        "bill_number": payment.bill_number,
        "amount": api_decimal(payment.amount),
        "payment_date": payment.payment_date.isoformat(),
        "method": payment.method,
        "notes": payment.notes,
        "payment_reference": payment.payment_reference,
    }


def api_serialize_position(position: Position) -> dict[str, object]:
    return {
        "party_id": str(position.party_id),
        "instrument_id": str(position.instrument_id),
        "quantity": position.quantity,
        "avg_price": api_decimal(position.avg_price),
        "realized_pnl": api_decimal(position.realized_pnl),
        "last_trade_date": None if position.last_trade_date is None else position.last_trade_date.isoformat(),
        "last_trade_rate": api_decimal(position.last_trade_rate),
    }


def api_serialize_position_valuation(valuation: PositionValuation) -> dict[str, object]:
    return {
        "party_id": str(valuation.party_id),
        "instrument_id": str(valuation.instrument_id),
        "quantity": valuation.quantity,
        "avg_price": api_decimal(valuation.avg_price),
        "reference_price": api_decimal(valuation.reference_price),
        "unrealized_pnl": api_decimal(valuation.unrealized_pnl),
    }


def api_serialize_summary_row(row: AccountSummaryRow) -> dict[str, object]:
    return {
        "account_code": row.account_code,
        "account_name": row.account_name,
        "entry_count": row.entry_count,
        "total_debit": api_decimal(row.total_debit),
        "total_credit": api_decimal(row.total_credit),
        "closing_balance": api_decimal(row.closing_balance),
        "balance_side": row.balance_side,
    }


def api_serialize_continuity_break(continuity_break: LedgerContinuityBreak) -> dict[str, object]:
    return {
        "account_code": continuity_break.account_code,
        "account_sequence": continuity_break.account_sequence,
        "expected_balance": api_decimal(continuity_break.expected_balance),
        "recorded_balance": api_decimal(continuity_break.recorded_balance),
    }


def api_serialize_interest(result: InterestComputationResult) -> dict[str, object]:
    return {
        "account_code": result.account_code,
        "interest_rate": api_decimal(result.interest_rate),
        "from_date": result.from_date.isoformat(),
        "to_date": result.to_date.isoformat(),
        "total_days": result.total_days,
        "opening_balance": api_decimal(result.opening_balance),
        "average_daily_owed": api_decimal(result.average_daily_owed),
        "total_interest": api_decimal(result.total_interest),
        "principal_plus_interest": api_decimal(result.principal_plus_interest),
        "daily_breakdown": [
            {
                "date": day.day.isoformat(),
                "closing_balance": api_decimal(day.closing_balance),
                "owed_amount": api_decimal(day.owed_amount),
                "interest": api_decimal(day.interest),
            }
            for day in result.daily_breakdown
        ],
    }


def api_serialize_holding(row: HoldingRow, report: HoldingsReport) -> dict[str, object]:
    return {
        "party_code": report.party_codes.get(row.party_id, str(row.party_id)),
        "instrument_code": report.instrument_codes.get(row.instrument_id, str(row.instrument_id)),
        "buy_quantity": row.buy_quantity,
        "sell_quantity": row.sell_quantity,
        "net_quantity": row.net_quantity,
        "last_trade_date": row.last_trade_date.isoformat(),
        "brokers": [
            {
                "broker_code": report.broker_codes.get(share.broker_id, str(share.broker_id)),
                "net_quantity": share.net_quantity,
                "last_trade_date": share.last_trade_date.isoformat(),
            }
            for share in row.brokers
        ],
    }


def api_serialize_broker_holding(row: BrokerHoldingRow, report: BrokerHoldingsReport) -> dict[str, object]:
    return {
        "broker_code": report.broker_codes.get(row.broker_id, str(row.broker_id)),
        "instrument_code": report.instrument_codes.get(row.instrument_id, str(row.instrument_id)),
        "net_quantity": row.net_quantity,
        "party_count": row.party_count,
        "last_trade_date": row.last_trade_date.isoformat(),
    }
