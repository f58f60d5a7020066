"""Tests for running-balance ledger posting and continuity checks."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from brokerbook.domain import (
    MAIN_BROKER_ACCOUNT_CODE,
    Book,
    ConcurrencyConflictError,
    LedgerEntryKind,
    RecordNotFoundError,
    ValidationError,
)
from brokerbook.ledger.ledger_poster import (
    LedgerPostingRequest,
    LedgerPostingService,
    ledger_build_entry,
    ledger_posting_for_amount,
    ledger_verify_balance_continuity,
)


def _request(debit: str = "0", credit: str = "0", entry_date: date = date(2026, 10, 16), **overrides):
    values = {
        "book": Book.EQUITY,
        "account_code": "P001",
        "entry_date": entry_date,
        "particulars": "manual adjustment",
        "debit_amount": Decimal(debit),
        "credit_amount": Decimal(credit),
    }
    values.update(overrides)
    return LedgerPostingRequest(**values)


def _service(bookkeeping_repository, master_repository, retry_attempts: int = 3) -> LedgerPostingService:
    return LedgerPostingService(
        repository=bookkeeping_repository,
        master_repository=master_repository,
        retry_attempts=retry_attempts,
    )


def test_ledger_posting_for_amount_maps_sign_to_side() -> None:
    assert ledger_posting_for_amount(Decimal("5005.00")) == (Decimal("5005.00"), Decimal("0.00"))
    assert ledger_posting_for_amount(Decimal("-489.50")) == (Decimal("0.00"), Decimal("489.50"))
    assert ledger_posting_for_amount(Decimal("0")) == (Decimal("0.00"), Decimal("0.00"))


def test_ledger_build_entry_starts_first_entry_from_zero() -> None:
    entry = ledger_build_entry(_request(debit="5005.00"), prior_entry=None)

    assert entry.account_sequence == 1
    assert entry.balance == Decimal("5005.00")
    assert entry.entry_kind == LedgerEntryKind.ADJUSTMENT


def test_ledger_build_entry_rejects_prior_entry_of_other_account() -> None:
    prior = ledger_build_entry(_request(debit="10"), prior_entry=None)

    with pytest.raises(ValueError):
        ledger_build_entry(_request(account_code="P002", debit="10"), prior_entry=prior)


def test_ledger_service_chains_balances_in_insertion_order(bookkeeping_repository, master_repository, seeded_masters) -> None:
    """Balances follow insertion order even when a later entry is backdated."""

    service = _service(bookkeeping_repository, master_repository)

    first = service.ledger_post(_request(debit="1000"))
    second = service.ledger_post(_request(credit="400", entry_date=date(2026, 10, 1)))
    third = service.ledger_post(_request(credit="700"))

    assert [entry.account_sequence for entry in (first, second, third)] == [1, 2, 3]
    assert [entry.balance for entry in (first, second, third)] == [
        Decimal("1000.00"),
        Decimal("600.00"),
        Decimal("-100.00"),
    ]
    assert service.ledger_verify(Book.EQUITY) == []


def test_ledger_service_keeps_books_and_accounts_independent(bookkeeping_repository, master_repository, seeded_masters) -> None:
    service = _service(bookkeeping_repository, master_repository)

    service.ledger_post(_request(debit="100"))
    other_book = service.ledger_post(_request(debit="50", book=Book.FO))
    other_account = service.ledger_post(_request(debit="25", account_code=MAIN_BROKER_ACCOUNT_CODE))

    assert other_book.account_sequence == 1
    assert other_book.balance == Decimal("50.00")
    assert other_account.balance == Decimal("25.00")


@pytest.mark.parametrize(
    ("debit", "credit"),
    [("10", "5"), ("-1", "0"), ("0", "-1")],
)
def test_ledger_service_rejects_two_sided_or_negative_postings(
    bookkeeping_repository,
    master_repository,
    seeded_masters,
    debit: str,
    credit: str,
) -> None:
    service = _service(bookkeeping_repository, master_repository)

    with pytest.raises(ValidationError):
        service.ledger_post(_request(debit=debit, credit=credit))

    assert bookkeeping_repository.state.ledger_entries == []


def test_ledger_service_rejects_blank_account_code(bookkeeping_repository, master_repository, seeded_masters) -> None:
    service = _service(bookkeeping_repository, master_repository)

    with pytest.raises(ValidationError):
        service.ledger_post(_request(debit="1", account_code="   "))


def test_ledger_service_retries_after_sequence_conflict(bookkeeping_repository, master_repository, seeded_masters) -> None:
    service = _service(bookkeeping_repository, master_repository, retry_attempts=3)
    bookkeeping_repository.ledger_conflicts_remaining = 2

    entry = service.ledger_post(_request(debit="10"))

    assert entry.account_sequence == 1
    assert len(bookkeeping_repository.state.ledger_entries) == 1


def test_ledger_service_raises_when_conflicts_exhaust_retries(bookkeeping_repository, master_repository, seeded_masters) -> None:
    service = _service(bookkeeping_repository, master_repository, retry_attempts=2)
    bookkeeping_repository.ledger_conflicts_remaining = 2

    with pytest.raises(ConcurrencyConflictError):
        service.ledger_post(_request(debit="10"))

    assert bookkeeping_repository.state.ledger_entries == []


def test_ledger_service_locks_the_posted_account(bookkeeping_repository, master_repository, seeded_masters) -> None:
    _service(bookkeeping_repository, master_repository).ledger_post(_request(debit="10"))

    assert "ledger:equity:P001" in bookkeeping_repository.lock_names


def test_ledger_verify_reports_tampered_balances(bookkeeping_repository, master_repository, seeded_masters) -> None:
    service = _service(bookkeeping_repository, master_repository)
    service.ledger_post(_request(debit="100"))
    service.ledger_post(_request(debit="50"))
    entries = bookkeeping_repository.state.ledger_entries
    entries[1] = replace(entries[1], balance=Decimal("175.00"))

    breaks = ledger_verify_balance_continuity(entries)

    assert len(breaks) == 1
    assert breaks[0].account_sequence == 2
    assert breaks[0].expected_balance == Decimal("150.00")
    assert breaks[0].recorded_balance == Decimal("175.00")


def test_ledger_service_stamps_party_id_on_party_postings(bookkeeping_repository, master_repository, seeded_masters) -> None:
    entry = _service(bookkeeping_repository, master_repository).ledger_post(_request(debit="10"))

    assert entry.party_id == seeded_masters.party.party_id


def test_ledger_service_posts_to_house_accounts_without_party(bookkeeping_repository, master_repository) -> None:
    entry = _service(bookkeeping_repository, master_repository).ledger_post(
        _request(credit="10", account_code=MAIN_BROKER_ACCOUNT_CODE)
    )

    assert entry.account_code == MAIN_BROKER_ACCOUNT_CODE
    assert entry.party_id is None
    assert entry.balance == Decimal("-10.00")


def test_ledger_service_rejects_unknown_account_code(bookkeeping_repository, master_repository, seeded_masters) -> None:
    """A mistyped party code must not open a new account."""

    with pytest.raises(RecordNotFoundError):
        _service(bookkeeping_repository, master_repository).ledger_post(_request(debit="10", account_code="P0O1"))

    assert bookkeeping_repository.state.ledger_entries == []
    assert bookkeeping_repository.lock_names == []


@pytest.mark.parametrize(
    "entry_kind",
    [
        LedgerEntryKind.PARTY_BILL,
        LedgerEntryKind.BROKER_BILL,
        LedgerEntryKind.SUB_BROKER_PROFIT,
        LedgerEntryKind.BROKER_PAYMENT,
    ],
)
def test_ledger_service_rejects_bill_only_entry_kinds(
    bookkeeping_repository,
    master_repository,
    seeded_masters,
    entry_kind: LedgerEntryKind,
) -> None:
    with pytest.raises(ValidationError):
        _service(bookkeeping_repository, master_repository).ledger_post(_request(debit="10", entry_kind=entry_kind))

    assert bookkeeping_repository.state.ledger_entries == []


def test_ledger_service_accepts_manual_payment_kind(bookkeeping_repository, master_repository, seeded_masters) -> None:
    entry = _service(bookkeeping_repository, master_repository).ledger_post(
        _request(credit="10", entry_kind=LedgerEntryKind.PAYMENT)
    )

    assert entry.entry_kind == LedgerEntryKind.PAYMENT
