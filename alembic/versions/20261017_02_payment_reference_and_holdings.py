"""Payment reference, reserved party codes, and holdings index

Revision ID: 20261017_02
Revises: 20261017_01
Create Date: 2026-10-17
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261017_02"
down_revision: Union[str, Sequence[str], None] = "20261017_01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.add_column("payment", sa.Column("payment_reference", sa.Text(), nullable=True))
    op.create_unique_constraint("uq_payment_reference", "payment", ["payment_reference"])

    op.create_check_constraint(
        "ck_party_code_not_house",
        "party",
        "upper(party_code) not in ('MAIN-BROKER', 'SUB-BROKER')",
    )

    op.create_index(
        "ix_contract_book_party_instrument",
        "contract",
        ["book", "party_id", "instrument_id"],
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_contract_book_party_instrument", table_name="contract")
    op.drop_constraint("ck_party_code_not_house", "party", type_="check")
    op.drop_constraint("uq_payment_reference", "payment", type_="unique")
    op.drop_column("payment", "payment_reference")
