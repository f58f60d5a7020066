"""Per-account ledger summary reduction."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from brokerbook.domain.models import HOUSE_ACCOUNT_NAMES, LedgerEntry


@dataclass(frozen=True)
class AccountSummaryRow:
    """Summary of one ledger account.

    Attributes:
        account_code: Party code or house account code.
        account_name: Display name, falling back to the code.
        entry_count: Number of entries in the account.
        total_debit: Sum of debit amounts.
        total_credit: Sum of credit amounts.
        closing_balance: Balance stored on the last entry by insertion sequence.
        balance_side: `DR` when positive, `CR` when negative, `NIL` when zero.
    """

    account_code: str
    account_name: str
    entry_count: int
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal
    balance_side: str


def summary_balance_side(balance: Decimal) -> str:
    """Return `DR`, `CR` or `NIL` for a balance."""

    if balance > 0:
        return "DR"
    if balance < 0:
        return "CR"
    return "NIL"


def summary_aggregate(
    entries: Iterable[LedgerEntry],
    account_names: Mapping[str, str] | None = None,
) -> list[AccountSummaryRow]:
    """Group ledger entries by account and reduce each group.

    Closing balance is read from the last entry rather than recomputed from
    totals, so the summary always reproduces the poster's running value.

    Args:
        entries: Ledger entries of one book.
        account_names: Optional display names keyed by account code.

    Returns:
        list[AccountSummaryRow]: Rows ordered by account code.
    """

    names = dict(HOUSE_ACCOUNT_NAMES)
    names.update(account_names or {})

    grouped_entries: dict[str, list[LedgerEntry]] = {}
    for entry in entries:
        grouped_entries.setdefault(entry.account_code, []).append(entry)

    rows: list[AccountSummaryRow] = []
    for account_code in sorted(grouped_entries):
        account_entries = grouped_entries[account_code]
        last_entry = max(account_entries, key=lambda item: item.account_sequence)
        rows.append(
            AccountSummaryRow(
                account_code=account_code,
                account_name=names.get(account_code, account_code),
                entry_count=len(account_entries),
                total_debit=sum((item.debit_amount for item in account_entries), Decimal("0.00")),
                total_credit=sum((item.credit_amount for item in account_entries), Decimal("0.00")),
                closing_balance=last_entry.balance,
                balance_side=summary_balance_side(last_entry.balance),
            )
        )
    return rows


__all__ = ["AccountSummaryRow", "summary_aggregate", "summary_balance_side"]
