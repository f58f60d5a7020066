"""Bookkeeping schema baseline

Revision ID: 20261017_01
Revises: None
Create Date: 2026-10-17
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20261017_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk(column_name: str) -> sa.Column:
    return sa.Column(column_name, postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def _money(column_name: str, nullable: bool = False, default: str | None = "0") -> sa.Column:
    server_default = None if default is None else sa.text(default)
    return sa.Column(column_name, sa.Numeric(18, 2), nullable=nullable, server_default=server_default)


def upgrade() -> None:
    """Upgrade schema."""

    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "party",
        _uuid_pk("party_id"),
        sa.Column("party_code", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("trading_slab", sa.Numeric(9, 4), nullable=False),
        sa.Column("delivery_slab", sa.Numeric(9, 4), nullable=False),
        sa.Column("interest_rate", sa.Numeric(9, 4), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("party_code", name="uq_party_code"),
        sa.CheckConstraint("trading_slab >= 0 and delivery_slab >= 0", name="ck_party_slabs_non_negative"),
    )

    op.create_table(
        "broker",
        _uuid_pk("broker_id"),
        sa.Column("broker_code", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("trading_slab", sa.Numeric(9, 4), nullable=False),
        sa.Column("delivery_slab", sa.Numeric(9, 4), nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("broker_code", name="uq_broker_code"),
        sa.CheckConstraint("trading_slab >= 0 and delivery_slab >= 0", name="ck_broker_slabs_non_negative"),
    )

    op.create_table(
        "instrument",
        _uuid_pk("instrument_id"),
        sa.Column("instrument_code", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("instrument_type", sa.Text(), nullable=False, server_default=sa.text("'EQ'")),
        sa.Column("exchange_code", sa.Text(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("strike_price", sa.Numeric(18, 4), nullable=True),
        sa.Column("lot_size", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.UniqueConstraint("instrument_code", name="uq_instrument_code"),
        sa.CheckConstraint("instrument_type in ('EQ', 'FUT', 'CE', 'PE')", name="ck_instrument_type"),
        sa.CheckConstraint("lot_size >= 1", name="ck_instrument_lot_size_positive"),
    )

    op.create_table(
        "settlement",
        _uuid_pk("settlement_id"),
        sa.Column("settlement_number", sa.Text(), nullable=False),
        sa.Column("settlement_type", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("settlement_number", name="uq_settlement_number"),
        sa.CheckConstraint("settlement_type in ('delivery', 'trading', 'auction')", name="ck_settlement_type"),
        sa.CheckConstraint("end_date >= start_date", name="ck_settlement_period"),
    )

    op.create_table(
        "bill",
        _uuid_pk("bill_id"),
        sa.Column("bill_number", sa.Text(), nullable=False),
        sa.Column("book", sa.Text(), nullable=False),
        sa.Column("bill_type", sa.Text(), nullable=False),
        sa.Column("account_code", sa.Text(), nullable=False),
        sa.Column("party_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("party.party_id"), nullable=True),
        sa.Column("broker_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("broker.broker_id"), nullable=True),
        sa.Column("bill_date", sa.Date(), nullable=False),
        _money("trade_amount"),
        _money("brokerage_amount"),
        _money("total_amount"),
        _money("paid_amount"),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
        sa.UniqueConstraint("bill_number", name="uq_bill_number"),
        sa.CheckConstraint("book in ('equity', 'fo')", name="ck_bill_book"),
        sa.CheckConstraint("bill_type in ('party', 'broker')", name="ck_bill_type"),
        sa.CheckConstraint("status in ('pending', 'partial', 'paid')", name="ck_bill_status"),
        sa.CheckConstraint("paid_amount >= 0", name="ck_bill_paid_non_negative"),
    )
    op.create_index("ix_bill_book_date", "bill", ["book", "bill_date"])
    op.create_index("ix_bill_party_id", "bill", ["party_id"])

    op.create_table(
        "contract",
        _uuid_pk("contract_id"),
        sa.Column("contract_number", sa.Text(), nullable=False),
        sa.Column("book", sa.Text(), nullable=False),
        sa.Column("party_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("party.party_id"), nullable=False),
        sa.Column("broker_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("broker.broker_id"), nullable=False),
        sa.Column("settlement_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("settlement.settlement_id"), nullable=True),
        sa.Column("instrument_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("instrument.instrument_id"), nullable=False),
        sa.Column("trade_date", sa.Date(), nullable=False),
        sa.Column("trade_type", sa.Text(), nullable=False),
        sa.Column("contract_type", sa.Text(), nullable=False),
        sa.Column("quantity", sa.BigInteger(), nullable=False),
        sa.Column("rate", sa.Numeric(18, 4), nullable=False),
        _money("amount", default=None),
        sa.Column("brokerage_rate", sa.Numeric(9, 4), nullable=False),
        _money("brokerage_amount", default=None),
        sa.Column("broker_brokerage_rate", sa.Numeric(9, 4), nullable=False),
        _money("broker_brokerage_amount", default=None),
        sa.Column("party_bill_number", sa.Text(), sa.ForeignKey("bill.bill_number"), nullable=False),
        sa.Column("broker_bill_number", sa.Text(), sa.ForeignKey("bill.bill_number"), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'active'")),
        *_timestamps(),
        sa.UniqueConstraint("contract_number", name="uq_contract_number"),
        sa.CheckConstraint("trade_type in ('T', 'D')", name="ck_contract_trade_type"),
        sa.CheckConstraint("contract_type in ('buy', 'sell')", name="ck_contract_type"),
        sa.CheckConstraint("status in ('active', 'completed', 'cancelled')", name="ck_contract_status"),
        sa.CheckConstraint("quantity > 0", name="ck_contract_quantity_positive"),
        sa.CheckConstraint("rate > 0", name="ck_contract_rate_positive"),
    )
    op.create_index("ix_contract_party_bill_number", "contract", ["party_bill_number"])
    op.create_index("ix_contract_broker_bill_number", "contract", ["broker_bill_number"])

    op.create_table(
        "bill_item",
        _uuid_pk("bill_item_id"),
        sa.Column("bill_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bill.bill_id", ondelete="CASCADE"), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("contract_number", sa.Text(), sa.ForeignKey("contract.contract_number"), nullable=False),
        sa.Column("instrument_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("instrument.instrument_id"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("contract_type", sa.Text(), nullable=False),
        sa.Column("trade_type", sa.Text(), nullable=False),
        sa.Column("quantity", sa.BigInteger(), nullable=False),
        sa.Column("rate", sa.Numeric(18, 4), nullable=False),
        _money("trade_amount", default=None),
        sa.Column("brokerage_rate", sa.Numeric(9, 4), nullable=False),
        _money("brokerage_amount", default=None),
        _money("amount", default=None),
        sa.UniqueConstraint("bill_id", "line_number", name="uq_bill_item_line"),
    )

    op.create_table(
        "ledger_entry",
        _uuid_pk("ledger_entry_id"),
        sa.Column("book", sa.Text(), nullable=False),
        sa.Column("account_code", sa.Text(), nullable=False),
        sa.Column("account_sequence", sa.BigInteger(), nullable=False),
        sa.Column("entry_kind", sa.Text(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("particulars", sa.Text(), nullable=False, server_default=sa.text("''")),
        _money("debit_amount"),
        _money("credit_amount"),
        _money("balance", default=None),
        sa.Column("party_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("party.party_id"), nullable=True),
        sa.Column("broker_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("broker.broker_id"), nullable=True),
        sa.Column("bill_number", sa.Text(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("book", "account_code", "account_sequence", name="uq_ledger_entry_account_sequence"),
        sa.CheckConstraint("book in ('equity', 'fo')", name="ck_ledger_entry_book"),
        sa.CheckConstraint("account_sequence >= 1", name="ck_ledger_entry_sequence_positive"),
        sa.CheckConstraint("debit_amount >= 0 and credit_amount >= 0", name="ck_ledger_entry_amounts_non_negative"),
        sa.CheckConstraint("debit_amount = 0 or credit_amount = 0", name="ck_ledger_entry_single_side"),
        sa.CheckConstraint(
            "entry_kind in ('party_bill', 'broker_bill', 'sub_broker_profit', 'payment', 'broker_payment', 'adjustment')",
            name="ck_ledger_entry_kind",
        ),
    )
    op.create_index("ix_ledger_entry_book_entry_date", "ledger_entry", ["book", "entry_date"])
    op.create_index("ix_ledger_entry_bill_number", "ledger_entry", ["bill_number"])

    op.create_table(
        "position",
        sa.Column("party_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("party.party_id"), primary_key=True),
        sa.Column("instrument_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("instrument.instrument_id"), primary_key=True),
        sa.Column("quantity", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("avg_price", sa.Numeric(18, 4), nullable=True),
        _money("realized_pnl"),
        sa.Column("last_trade_date", sa.Date(), nullable=True),
        sa.Column("last_trade_rate", sa.Numeric(18, 4), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("avg_price >= 0", name="ck_position_avg_price_non_negative"),
    )

    op.create_table(
        "position_trade",
        _uuid_pk("position_trade_id"),
        sa.Column("trade_reference", sa.Text(), nullable=False),
        sa.Column("party_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("party.party_id"), nullable=False),
        sa.Column("instrument_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("instrument.instrument_id"), nullable=False),
        sa.Column("trade_date", sa.Date(), nullable=False),
        sa.Column("signed_quantity", sa.BigInteger(), nullable=False),
        sa.Column("rate", sa.Numeric(18, 4), nullable=False),
        _money("realized_pnl"),
        sa.Column("quantity_after", sa.BigInteger(), nullable=False),
        sa.Column("avg_price_after", sa.Numeric(18, 4), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("trade_reference", name="uq_position_trade_reference"),
        sa.CheckConstraint("signed_quantity <> 0", name="ck_position_trade_quantity_non_zero"),
    )
    op.create_index("ix_position_trade_party_instrument", "position_trade", ["party_id", "instrument_id", "trade_date"])

    op.create_table(
        "payment",
        _uuid_pk("payment_id"),
        sa.Column("payment_number", sa.Text(), nullable=False),
        sa.Column("bill_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bill.bill_id"), nullable=False),
        sa.Column("bill_number", sa.Text(), nullable=False),
        _money("amount", default=None),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("method", sa.Text(), nullable=False, server_default=sa.text("'cash'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("payment_number", name="uq_payment_number"),
        sa.CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
    )
    op.create_index("ix_payment_bill_number", "payment", ["bill_number"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_payment_bill_number", table_name="payment")
    op.drop_table("payment")
    op.drop_index("ix_position_trade_party_instrument", table_name="position_trade")
    op.drop_table("position_trade")
    op.drop_table("position")
    op.drop_index("ix_ledger_entry_bill_number", table_name="ledger_entry")
    op.drop_index("ix_ledger_entry_book_entry_date", table_name="ledger_entry")
    op.drop_table("ledger_entry")
    op.drop_table("bill_item")
    op.drop_index("ix_contract_broker_bill_number", table_name="contract")
    op.drop_index("ix_contract_party_bill_number", table_name="contract")
    op.drop_table("contract")
    op.drop_index("ix_bill_party_id", table_name="bill")
    op.drop_index("ix_bill_book_date", table_name="bill")
    op.drop_table("bill")
    op.drop_table("settlement")
    op.drop_table("instrument")
    op.drop_table("broker")
    op.drop_table("party")
