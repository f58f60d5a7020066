"""Ledger posting with running balances.

Every account in every book follows one rule: `balance = prior + debit - credit`.
For party accounts a positive balance is owed by the party to the house. House
accounts use the same arithmetic; a positive `MAIN-BROKER` balance is owed by
the house to the upstream broker and a positive `SUB-BROKER` balance is accrued
sub-broker profit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from brokerbook.db import BookkeepingRepositoryPort, BookkeepingTransactionPort, MasterDataRepositoryPort
from brokerbook.domain.errors import ConcurrencyConflictError, InvalidInputError, RecordNotFoundError, ValidationError
from brokerbook.domain.models import HOUSE_ACCOUNT_NAMES, Book, LedgerEntry, LedgerEntryKind

from .brokerage import brokerage_round_currency, brokerage_to_decimal


logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")

# Bill, broker-bill and profit kinds are only posted by the bill and payment services.
MANUAL_ENTRY_KINDS = frozenset({LedgerEntryKind.ADJUSTMENT, LedgerEntryKind.PAYMENT})


@dataclass(frozen=True)
class LedgerPostingRequest:
    """Input contract for one ledger posting.

    Attributes:
        book: Target book.
        account_code: Party code or house account code.
        entry_date: Business date of the entry; may be backdated.
        particulars: Free-text narration.
        debit_amount: Increase of the amount owed on the account.
        credit_amount: Decrease of the amount owed on the account.
        entry_kind: Explicit entry classification.
        party_id: Party identifier for party accounts.
        broker_id: Broker identifier for broker-related entries.
        bill_number: Optional originating bill.
    """

    book: Book
    account_code: str
    entry_date: date
    particulars: str
    debit_amount: Decimal
    credit_amount: Decimal
    entry_kind: LedgerEntryKind = LedgerEntryKind.ADJUSTMENT
    party_id: UUID | None = None
    broker_id: UUID | None = None
    bill_number: str | None = None


@dataclass(frozen=True)
class LedgerContinuityBreak:
    """One entry whose stored balance does not follow from its predecessor.

    Attributes:
        book: Owning book.
        account_code: Account code.
        account_sequence: Sequence of the offending entry.
        expected_balance: `previous balance + debit - credit`.
        recorded_balance: Balance stored on the entry.
    """

    book: Book
    account_code: str
    account_sequence: int
    expected_balance: Decimal
    recorded_balance: Decimal


def ledger_posting_for_amount(net_amount: Decimal) -> tuple[Decimal, Decimal]:
    """Split a signed amount into `(debit, credit)`.

    A positive amount is a debit, a negative amount a credit of its absolute
    value, and zero posts nothing on either side.
    """

    rounded_amount = brokerage_round_currency(net_amount)
    if rounded_amount > _ZERO:
        return rounded_amount, _ZERO
    if rounded_amount < _ZERO:
        return _ZERO, -rounded_amount
    return _ZERO, _ZERO


def ledger_compute_balance(prior_balance: Decimal, debit_amount: Decimal, credit_amount: Decimal) -> Decimal:
    """Return `prior_balance + debit_amount - credit_amount` at currency precision."""

    return brokerage_round_currency(prior_balance + debit_amount - credit_amount)


def ledger_validate_request(request: LedgerPostingRequest) -> LedgerPostingRequest:
    """Validate and normalize one posting request.

    Args:
        request: Candidate posting.

    Returns:
        LedgerPostingRequest: Request with stripped account code and rounded amounts.

    Raises:
        ValidationError: Raised when required fields are missing, amounts are
            negative, or both sides carry a value.
    """

    if request is None:
        raise ValidationError("request must not be None")
    if not isinstance(request.book, Book):
        raise ValidationError(f"unsupported book={request.book!r}")
    account_code = (request.account_code or "").strip()
    if not account_code:
        raise ValidationError("account_code must not be blank")
    if request.entry_date is None:
        raise ValidationError("entry_date is required")
    if not isinstance(request.entry_kind, LedgerEntryKind):
        raise ValidationError(f"unsupported entry_kind={request.entry_kind!r}")

    try:
        debit_amount = brokerage_round_currency(brokerage_to_decimal(request.debit_amount, "debit_amount"))
        credit_amount = brokerage_round_currency(brokerage_to_decimal(request.credit_amount, "credit_amount"))
    except InvalidInputError as error:
        raise ValidationError(str(error)) from error

    if debit_amount < _ZERO or credit_amount < _ZERO:
        raise ValidationError("debit_amount and credit_amount must not be negative")
    if debit_amount > _ZERO and credit_amount > _ZERO:
        raise ValidationError("only one of debit_amount or credit_amount may be non-zero")

    return LedgerPostingRequest(
        book=request.book,
        account_code=account_code,
        entry_date=request.entry_date,
        particulars=(request.particulars or "").strip(),
        debit_amount=debit_amount,
        credit_amount=credit_amount,
        entry_kind=request.entry_kind,
        party_id=request.party_id,
        broker_id=request.broker_id,
        bill_number=request.bill_number,
    )


def ledger_build_entry(request: LedgerPostingRequest, prior_entry: LedgerEntry | None) -> LedgerEntry:
    """Build the next entry for an account from its latest entry.

    Args:
        request: Validated posting request.
        prior_entry: Latest entry of the same account by insertion sequence, or None.

    Returns:
        LedgerEntry: New entry carrying sequence and running balance.

    Raises:
        ValueError: Raised when the prior entry belongs to another account.
    """

    if prior_entry is not None and (
        prior_entry.book != request.book or prior_entry.account_code != request.account_code
    ):
        raise ValueError("prior_entry must belong to the posted account")

    prior_balance = prior_entry.balance if prior_entry is not None else _ZERO
    prior_sequence = prior_entry.account_sequence if prior_entry is not None else 0
    return LedgerEntry(
        book=request.book,
        account_code=request.account_code,
        account_sequence=prior_sequence + 1,
        entry_kind=request.entry_kind,
        entry_date=request.entry_date,
        particulars=request.particulars,
        debit_amount=request.debit_amount,
        credit_amount=request.credit_amount,
        balance=ledger_compute_balance(prior_balance, request.debit_amount, request.credit_amount),
        party_id=request.party_id,
        broker_id=request.broker_id,
        bill_number=request.bill_number,
    )


def ledger_lock_name(book: Book, account_code: str) -> str:
    """Return the serialization key for one ledger account."""

    return f"ledger:{book.value}:{account_code}"


def ledger_post_in_transaction(transaction: BookkeepingTransactionPort, request: LedgerPostingRequest) -> LedgerEntry:
    """Append one entry inside an open bookkeeping transaction.

    The account lock serializes the read of the latest balance with the insert
    of the next entry; the unique account sequence catches any residual race.

    Args:
        transaction: Open bookkeeping transaction.
        request: Posting request.

    Returns:
        LedgerEntry: Persisted entry.

    Raises:
        ValidationError: Raised when the request is invalid.
        ConcurrencyConflictError: Raised when another writer appended the same sequence.
        PersistenceError: Raised when storage fails.
    """

    validated_request = ledger_validate_request(request)
    transaction.db_lock_key(ledger_lock_name(validated_request.book, validated_request.account_code))
    prior_entry = transaction.db_ledger_fetch_latest(validated_request.book, validated_request.account_code)
    entry = ledger_build_entry(validated_request, prior_entry)
    return transaction.db_ledger_insert(entry)


def ledger_verify_balance_continuity(entries: Iterable[LedgerEntry]) -> list[LedgerContinuityBreak]:
    """Report entries whose balance breaks `previous + debit - credit`.

    Entries are grouped per `(book, account_code)` and ordered by insertion
    sequence; the first entry of each account is checked against zero.

    Args:
        entries: Ledger entries of any accounts, in any order.

    Returns:
        list[LedgerContinuityBreak]: Breaks ordered by account then sequence.
    """

    entries_by_account: dict[tuple[Book, str], list[LedgerEntry]] = {}
    for entry in entries:
        entries_by_account.setdefault((entry.book, entry.account_code), []).append(entry)

    breaks: list[LedgerContinuityBreak] = []
    for (book, account_code) in sorted(entries_by_account, key=lambda key: (key[0].value, key[1])):
        previous_balance = _ZERO
        for entry in sorted(entries_by_account[(book, account_code)], key=lambda item: item.account_sequence):
            expected_balance = ledger_compute_balance(previous_balance, entry.debit_amount, entry.credit_amount)
            if expected_balance != entry.balance:
                breaks.append(
                    LedgerContinuityBreak(
                        book=book,
                        account_code=account_code,
                        account_sequence=entry.account_sequence,
                        expected_balance=expected_balance,
                        recorded_balance=entry.balance,
                    )
                )
            previous_balance = entry.balance
    return breaks


class LedgerPostingService:
    """Single-entry posting service with retry on balance races."""

    def __init__(
        self,
        repository: BookkeepingRepositoryPort,
        master_repository: MasterDataRepositoryPort,
        retry_attempts: int = 3,
    ):
        """Initialize ledger posting service.

        Args:
            repository: Bookkeeping repository providing transactions and reads.
            master_repository: Party lookup used to resolve posted account codes.
            retry_attempts: Attempts per posting when a concurrency conflict occurs.

        Raises:
            ValueError: Raised when a repository is None or retry_attempts is below one.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        if master_repository is None:
            raise ValueError("master_repository must not be None")
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be greater than or equal to 1")
        self._repository = repository
        self._master_repository = master_repository
        self._retry_attempts = retry_attempts

    def ledger_post(self, request: LedgerPostingRequest) -> LedgerEntry:
        """Post one entry in its own transaction.

        Args:
            request: Posting request.

        Returns:
            LedgerEntry: Persisted entry.

        Raises:
            ValidationError: Raised when the request is invalid or uses a bill-only entry kind.
            RecordNotFoundError: Raised when the account code is neither a party nor a house account.
            ConcurrencyConflictError: Raised when every attempt lost a balance race.
            PersistenceError: Raised when storage fails.
        """

        validated_request = ledger_validate_request(request)
        if validated_request.entry_kind not in MANUAL_ENTRY_KINDS:
            raise ValidationError(f"entry_kind={validated_request.entry_kind.value} is reserved for bill postings")
        validated_request = self._ledger_resolve_account(validated_request)
        for attempt in range(1, self._retry_attempts + 1):
            try:
                with self._repository.db_transaction() as transaction:
                    entry = ledger_post_in_transaction(transaction, validated_request)
            except ConcurrencyConflictError:
                if attempt >= self._retry_attempts:
                    raise
                logger.warning(
                    "ledger posting conflict book=%s account=%s attempt=%s, retrying",
                    validated_request.book.value,
                    validated_request.account_code,
                    attempt,
                )
                continue

            logger.info(
                "posted ledger entry book=%s account=%s sequence=%s debit=%s credit=%s balance=%s",
                entry.book.value,
                entry.account_code,
                entry.account_sequence,
                entry.debit_amount,
                entry.credit_amount,
                entry.balance,
            )
            return entry

        raise ConcurrencyConflictError("ledger posting retries exhausted")

    def _ledger_resolve_account(self, request: LedgerPostingRequest) -> LedgerPostingRequest:
        if request.account_code in HOUSE_ACCOUNT_NAMES:
            return replace(request, party_id=None)
        party = self._master_repository.db_party_get_by_code(request.account_code)
        if party is None:
            raise RecordNotFoundError(f"ledger account not found: {request.account_code}")
        return replace(request, party_id=party.party_id)

    def ledger_list_account(self, book: Book, account_code: str) -> list[LedgerEntry]:
        """Return one account statement ordered by insertion sequence."""

        normalized_code = (account_code or "").strip()
        if not normalized_code:
            raise ValidationError("account_code must not be blank")
        return self._repository.db_ledger_list_entries(book=book, account_code=normalized_code)

    def ledger_verify(self, book: Book) -> list[LedgerContinuityBreak]:
        """Verify running-balance continuity for every account of one book."""

        return ledger_verify_balance_continuity(self._repository.db_ledger_list_entries(book=book))


__all__ = [
    "LedgerContinuityBreak",
    "LedgerPostingRequest",
    "LedgerPostingService",
    "MANUAL_ENTRY_KINDS",
    "ledger_build_entry",
    "ledger_compute_balance",
    "ledger_lock_name",
    "ledger_post_in_transaction",
    "ledger_posting_for_amount",
    "ledger_validate_request",
    "ledger_verify_balance_continuity",
]
