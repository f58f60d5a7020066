"""Read-only reporting: account summaries, party interest and equity holdings."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from brokerbook.db import BookkeepingRepositoryPort, MasterDataRepositoryPort
from brokerbook.domain.errors import RecordNotFoundError, ValidationError
from brokerbook.domain.models import Book

from .holdings import BrokerHoldingRow, HoldingRow, holdings_aggregate, holdings_aggregate_by_broker
from .interest import InterestComputationResult, interest_compute
from .summary import AccountSummaryRow, summary_aggregate


_NAME_PAGE_SIZE = 500


@dataclass(frozen=True)
class HoldingsReport:
    """Holding rows with the master codes needed to label them."""

    rows: list[HoldingRow]
    party_codes: dict[UUID, str]
    broker_codes: dict[UUID, str]
    instrument_codes: dict[UUID, str]


@dataclass(frozen=True)
class BrokerHoldingsReport:
    """Per-broker holding rows with broker and instrument codes."""

    rows: list[BrokerHoldingRow]
    broker_codes: dict[UUID, str]
    instrument_codes: dict[UUID, str]


class LedgerReportingService:
    """Reduce posted ledger entries into reports."""

    def __init__(self, master_repository: MasterDataRepositoryPort, bookkeeping_repository: BookkeepingRepositoryPort):
        """Initialize reporting service.

        Args:
            master_repository: Party reads for names and interest rates.
            bookkeeping_repository: Ledger entry reads.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if master_repository is None:
            raise ValueError("master_repository must not be None")
        if bookkeeping_repository is None:
            raise ValueError("bookkeeping_repository must not be None")
        self._master_repository = master_repository
        self._bookkeeping_repository = bookkeeping_repository

    def ledger_summary(self, book: Book) -> list[AccountSummaryRow]:
        """Summarize every account of one book."""

        entries = self._bookkeeping_repository.db_ledger_list_entries(book=book)
        return summary_aggregate(entries, account_names=self._ledger_party_names())

    def ledger_interest(
        self,
        book: Book,
        party_code: str,
        from_date: date,
        to_date: date,
    ) -> InterestComputationResult | None:
        """Compute interest owed by one party over a date range.

        Returns:
            InterestComputationResult | None: None when the party has no interest rate.

        Raises:
            RecordNotFoundError: Raised when the party is unknown.
            ValidationError: Raised when the date range is invalid.
        """

        normalized_code = (party_code or "").strip()
        if not normalized_code:
            raise ValidationError("party_code must not be blank")
        party = self._master_repository.db_party_get_by_code(normalized_code)
        if party is None:
            raise RecordNotFoundError(f"party not found: {normalized_code}")
        if party.interest_rate is None or party.interest_rate <= 0:
            return None

        entries = self._bookkeeping_repository.db_ledger_list_entries(book=book, account_code=party.party_code)
        return interest_compute(
            account_code=party.party_code,
            entries=entries,
            interest_rate=party.interest_rate,
            from_date=from_date,
            to_date=to_date,
        )

    def holdings_report(
        self,
        party_code: str | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> HoldingsReport:
        """Net equity holdings per party and instrument with a per-broker breakdown.

        Args:
            party_code: Optional party filter.
            from_date: Optional inclusive lower trade-date bound.
            to_date: Optional inclusive upper trade-date bound.

        Returns:
            HoldingsReport: Rows ordered by net quantity descending, plus code lookups.

        Raises:
            RecordNotFoundError: Raised when the party filter is unknown.
            ValidationError: Raised when the date window is inverted.
        """

        party_id = None
        if party_code is not None:
            normalized_code = party_code.strip()
            party = self._master_repository.db_party_get_by_code(normalized_code)
            if party is None:
                raise RecordNotFoundError(f"party not found: {normalized_code}")
            party_id = party.party_id

        contracts = self._bookkeeping_repository.db_contract_list(book=Book.EQUITY, party_id=party_id)
        rows = holdings_aggregate(contracts, from_date=from_date, to_date=to_date)
        return HoldingsReport(
            rows=rows,
            party_codes=self._reporting_party_codes(),
            broker_codes=self._reporting_broker_codes(),
            instrument_codes=self._reporting_instrument_codes({row.instrument_id for row in rows}),
        )

    def holdings_broker_report(self, from_date: date | None = None, to_date: date | None = None) -> BrokerHoldingsReport:
        """Net equity quantity per broker and instrument."""

        contracts = self._bookkeeping_repository.db_contract_list(book=Book.EQUITY)
        rows = holdings_aggregate_by_broker(contracts, from_date=from_date, to_date=to_date)
        return BrokerHoldingsReport(
            rows=rows,
            broker_codes=self._reporting_broker_codes(),
            instrument_codes=self._reporting_instrument_codes({row.instrument_id for row in rows}),
        )

    def _ledger_party_names(self) -> dict[str, str]:
        parties = self._reporting_list_all(self._master_repository.db_party_list)
        return {party.party_code: party.name for party in parties}

    def _reporting_party_codes(self) -> dict[UUID, str]:
        parties = self._reporting_list_all(self._master_repository.db_party_list)
        return {party.party_id: party.party_code for party in parties}

    def _reporting_broker_codes(self) -> dict[UUID, str]:
        brokers = self._reporting_list_all(self._master_repository.db_broker_list)
        return {broker.broker_id: broker.broker_code for broker in brokers}

    def _reporting_instrument_codes(self, instrument_ids: set[UUID]) -> dict[UUID, str]:
        codes: dict[UUID, str] = {}
        for instrument_id in instrument_ids:
            instrument = self._master_repository.db_instrument_get_by_id(instrument_id)
            if instrument is not None:
                codes[instrument_id] = instrument.instrument_code
        return codes

    @staticmethod
    def _reporting_list_all(list_page: Callable[..., list[Any]]) -> list[Any]:
        records: list[Any] = []
        offset = 0
        while True:
            page = list_page(limit=_NAME_PAGE_SIZE, offset=offset)
            records.extend(page)
            if len(page) < _NAME_PAGE_SIZE:
                return records
            offset += _NAME_PAGE_SIZE


__all__ = ["BrokerHoldingsReport", "HoldingsReport", "LedgerReportingService"]
