"""Bill payment recording with ledger settlement postings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from brokerbook.db import BookkeepingRepositoryPort
from brokerbook.domain.errors import DuplicateRecordError, InvalidInputError, RecordNotFoundError, ValidationError
from brokerbook.domain.models import Bill, BillType, LedgerEntry, LedgerEntryKind, Payment

from .bill_builder import bill_build_number, bill_derive_status
from .brokerage import brokerage_round_currency, brokerage_to_decimal
from .business_dates import business_resolve_today
from .ledger_poster import LedgerPostingRequest, ledger_post_in_transaction


logger = logging.getLogger(__name__)

PAYMENT_PREFIX = "PAY"
_OVERPAY_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class PaymentOutcome:
    """Persisted payment with the updated bill and its ledger posting."""

    payment: Payment
    bill: Bill
    ledger_entry: LedgerEntry


class PaymentService:
    """Record payments against party and broker bills."""

    def __init__(self, repository: BookkeepingRepositoryPort, business_timezone: str = "Asia/Kolkata"):
        if repository is None:
            raise ValueError("repository must not be None")
        self._repository = repository
        self._business_timezone = business_timezone

    def payment_record(
        self,
        bill_number: str,
        amount: object,
        payment_date: date | None = None,
        method: str = "cash",
        notes: str | None = None,
        payment_reference: str | None = None,
    ) -> PaymentOutcome:
        """Record one payment and post it on the opposite side of the bill posting.

        A bill that debited its account is settled by a credit and vice versa,
        so a fully paid bill leaves no residue on the account.

        Args:
            bill_number: Bill being settled.
            amount: Positive payment amount.
            payment_date: Optional payment date; defaults to today in the business timezone.
            method: Payment method label.
            notes: Optional free-text notes.
            payment_reference: Optional caller reference; each reference is recorded at most once.

        Returns:
            PaymentOutcome: Payment, updated bill and ledger entry.

        Raises:
            ValidationError: Raised when the amount is invalid or exceeds the outstanding amount.
            RecordNotFoundError: Raised when the bill is unknown.
            DuplicateRecordError: Raised when the payment reference was already recorded.
            PersistenceError: Raised when storage fails.
        """

        normalized_bill_number = (bill_number or "").strip()
        if not normalized_bill_number:
            raise ValidationError("bill_number must not be blank")
        normalized_method = (method or "").strip()
        if not normalized_method:
            raise ValidationError("method must not be blank")
        try:
            payment_amount = brokerage_round_currency(brokerage_to_decimal(amount, "amount"))
        except InvalidInputError as error:
            raise ValidationError(str(error)) from error
        if payment_amount <= Decimal("0"):
            raise ValidationError("amount must be greater than zero")
        normalized_reference = None
        if payment_reference is not None:
            normalized_reference = payment_reference.strip()
            if not normalized_reference:
                raise ValidationError("payment_reference must not be blank")

        resolved_date = payment_date or business_resolve_today(self._business_timezone)

        with self._repository.db_transaction() as transaction:
            transaction.db_lock_key(f"payment-sequence:{resolved_date.isoformat()}")
            if normalized_reference is not None:
                existing = transaction.db_payment_get_by_reference(normalized_reference)
                if existing is not None:
                    raise DuplicateRecordError(
                        f"payment reference {normalized_reference} already recorded as {existing.payment_number}"
                    )
            bill = transaction.db_bill_fetch_for_update(normalized_bill_number)
            if bill is None:
                raise RecordNotFoundError(f"bill not found: {normalized_bill_number}")

            outstanding = abs(bill.total_amount) - bill.paid_amount
            if outstanding <= Decimal("0"):
                raise ValidationError(f"bill {bill.bill_number} is already settled")
            if payment_amount > outstanding + _OVERPAY_TOLERANCE:
                raise ValidationError(f"amount {payment_amount} exceeds outstanding {outstanding}")

            paid_amount = bill.paid_amount + payment_amount
            sequence = transaction.db_payment_next_sequence(resolved_date)
            payment = transaction.db_payment_insert(
                Payment(
                    payment_number=bill_build_number(PAYMENT_PREFIX, resolved_date, sequence),
                    bill_number=bill.bill_number,
                    amount=payment_amount,
                    payment_date=resolved_date,
                    method=normalized_method,
                    notes=notes,
                    payment_reference=normalized_reference,
                )
            )
            updated_bill = transaction.db_bill_update_payment(
                bill.bill_number,
                paid_amount,
                bill_derive_status(bill.total_amount, paid_amount),
            )

            bill_was_debited = bill.total_amount > Decimal("0")
            ledger_entry = ledger_post_in_transaction(
                transaction,
                LedgerPostingRequest(
                    book=bill.book,
                    account_code=bill.account_code,
                    entry_date=resolved_date,
                    particulars=f"Payment {payment.payment_number} against {bill.bill_number} ({normalized_method})",
                    debit_amount=Decimal("0.00") if bill_was_debited else payment_amount,
                    credit_amount=payment_amount if bill_was_debited else Decimal("0.00"),
                    entry_kind=(
                        LedgerEntryKind.PAYMENT if bill.bill_type == BillType.PARTY else LedgerEntryKind.BROKER_PAYMENT
                    ),
                    party_id=bill.party_id,
                    broker_id=bill.broker_id,
                    bill_number=bill.bill_number,
                ),
            )

        logger.info(
            "recorded payment payment=%s bill=%s amount=%s status=%s",
            payment.payment_number,
            updated_bill.bill_number,
            payment.amount,
            updated_bill.status.value,
        )
        return PaymentOutcome(payment=payment, bill=updated_bill, ledger_entry=ledger_entry)


__all__ = ["PAYMENT_PREFIX", "PaymentOutcome", "PaymentService"]
