"""Interest on outstanding party balances."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from brokerbook.domain.errors import InvalidInputError, ValidationError
from brokerbook.domain.models import LedgerEntry

from .brokerage import brokerage_round_currency, brokerage_to_decimal


_DAYS_PER_MONTH = Decimal("30")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InterestDay:
    """Closing balance, owed amount and accrued interest for one calendar day."""

    day: date
    closing_balance: Decimal
    owed_amount: Decimal
    interest: Decimal


@dataclass(frozen=True)
class InterestComputationResult:
    """Interest accrued on one account over a date range.

    Attributes:
        account_code: Party account code.
        interest_rate: Monthly interest percentage.
        from_date: First day of the range.
        to_date: Last day of the range.
        total_days: Number of days in the range.
        opening_balance: Balance before `from_date`.
        average_daily_owed: Mean owed amount across all days.
        total_interest: Interest over the range, rounded to 0.01.
        principal_plus_interest: Last day's owed amount plus total interest.
        daily_breakdown: Per-day detail.
    """

    account_code: str
    interest_rate: Decimal
    from_date: date
    to_date: date
    total_days: int
    opening_balance: Decimal
    average_daily_owed: Decimal
    total_interest: Decimal
    principal_plus_interest: Decimal
    daily_breakdown: tuple[InterestDay, ...]


def interest_compute(
    account_code: str,
    entries: Iterable[LedgerEntry],
    interest_rate: object,
    from_date: date,
    to_date: date,
) -> InterestComputationResult:
    """Accrue simple daily interest on positive (owed) closing balances.

    The ledger is replayed by entry date, so backdated entries count from the
    day they are dated. The monthly rate is pro-rated as `rate / 100 / 30` per day.

    Args:
        account_code: Party account code.
        entries: All entries of the account.
        interest_rate: Monthly interest percentage.
        from_date: First day of the range.
        to_date: Last day of the range, inclusive.

    Returns:
        InterestComputationResult: Totals and daily breakdown.

    Raises:
        ValidationError: Raised when the date range is missing or inverted.
        InvalidInputError: Raised when the rate is negative or non-numeric.
    """

    if from_date is None or to_date is None:
        raise ValidationError("from_date and to_date are required")
    if to_date < from_date:
        raise ValidationError("to_date must not precede from_date")
    rate = brokerage_to_decimal(interest_rate, "interest_rate")
    if rate < 0:
        raise InvalidInputError("interest_rate must not be negative")

    daily_rate = rate / _HUNDRED / _DAYS_PER_MONTH
    opening_balance = Decimal("0.00")
    movement_by_day: dict[date, Decimal] = {}
    for entry in entries:
        movement = entry.debit_amount - entry.credit_amount
        if entry.entry_date < from_date:
            opening_balance += movement
        elif entry.entry_date <= to_date:
            movement_by_day[entry.entry_date] = movement_by_day.get(entry.entry_date, Decimal("0.00")) + movement

    breakdown: list[InterestDay] = []
    running_balance = opening_balance
    owed_sum = Decimal("0.00")
    unrounded_interest = Decimal("0")
    current_day = from_date
    while current_day <= to_date:
        running_balance += movement_by_day.get(current_day, Decimal("0.00"))
        owed_amount = running_balance if running_balance > 0 else Decimal("0.00")
        day_interest = owed_amount * daily_rate
        owed_sum += owed_amount
        unrounded_interest += day_interest
        breakdown.append(
            InterestDay(
                day=current_day,
                closing_balance=running_balance,
                owed_amount=owed_amount,
                interest=brokerage_round_currency(day_interest),
            )
        )
        current_day += timedelta(days=1)

    total_days = len(breakdown)
    total_interest = brokerage_round_currency(unrounded_interest)
    return InterestComputationResult(
        account_code=account_code,
        interest_rate=rate,
        from_date=from_date,
        to_date=to_date,
        total_days=total_days,
        opening_balance=opening_balance,
        average_daily_owed=brokerage_round_currency(owed_sum / Decimal(total_days)),
        total_interest=total_interest,
        principal_plus_interest=brokerage_round_currency(breakdown[-1].owed_amount + total_interest),
        daily_breakdown=tuple(breakdown),
    )


__all__ = ["InterestComputationResult", "InterestDay", "interest_compute"]
