"""Bill batch workflow: contracts, bills, ledger postings and F&O positions in one transaction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from brokerbook.db import BookkeepingRepositoryPort, BookkeepingTransactionPort, MasterDataRepositoryPort
from brokerbook.domain.errors import (
    ConcurrencyConflictError,
    DuplicateRecordError,
    RecordNotFoundError,
    ValidationError,
)
from brokerbook.domain.models import (
    CONTRACT_STATUS_TRANSITIONS,
    MAIN_BROKER_ACCOUNT_CODE,
    SUB_BROKER_ACCOUNT_CODE,
    Bill,
    Book,
    Contract,
    ContractStatus,
    Instrument,
    LedgerEntry,
    LedgerEntryKind,
)

from .bill_builder import BillBatchCommonFields, TradeRow, bill_batch_build, bill_batch_validate_rows
from .business_dates import business_resolve_today
from .ledger_poster import LedgerPostingRequest, ledger_lock_name, ledger_post_in_transaction, ledger_posting_for_amount
from .position_engine import PositionTradeOutcome
from .position_service import PositionTradeRequest, position_apply_in_transaction, position_lock_name


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BillBatchRequest:
    """Input contract for one bill batch.

    Attributes:
        book: Target book.
        party_code: Party the batch is billed to.
        broker_code: Upstream broker the batch was executed with.
        rows: Trade rows in upload order.
        settlement_number: Optional settlement tag.
        bill_date: Optional bill date; defaults to today in the business timezone.
        bill_sequence: Optional caller-chosen sequence for idempotent retries.
    """

    book: Book
    party_code: str
    broker_code: str
    rows: Sequence[TradeRow]
    settlement_number: str | None = None
    bill_date: date | None = None
    bill_sequence: int | None = None


@dataclass(frozen=True)
class BillBatchOutcome:
    """Persisted result of one bill batch.

    Attributes:
        contracts: Persisted contracts in row order.
        party_bill: Persisted party bill.
        broker_bill: Persisted broker bill.
        sub_broker_profit: Party brokerage minus broker share.
        ledger_entries: Party, main-broker and sub-broker postings.
        position_outcomes: Position updates, F&O book only.
    """

    contracts: tuple[Contract, ...]
    party_bill: Bill
    broker_bill: Bill
    sub_broker_profit: Decimal
    ledger_entries: tuple[LedgerEntry, ...]
    position_outcomes: tuple[PositionTradeOutcome, ...] = ()


class BillBatchService:
    """Create bill batches and manage contract status."""

    def __init__(
        self,
        master_repository: MasterDataRepositoryPort,
        bookkeeping_repository: BookkeepingRepositoryPort,
        business_timezone: str = "Asia/Kolkata",
        retry_attempts: int = 3,
    ):
        """Initialize bill batch service.

        Args:
            master_repository: Party, broker, instrument and settlement reads.
            bookkeeping_repository: Transactional bookkeeping writes.
            business_timezone: Timezone resolving the default bill date.
            retry_attempts: Attempts per batch after a ledger race.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if master_repository is None:
            raise ValueError("master_repository must not be None")
        if bookkeeping_repository is None:
            raise ValueError("bookkeeping_repository must not be None")
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be greater than or equal to 1")
        self._master_repository = master_repository
        self._bookkeeping_repository = bookkeeping_repository
        self._business_timezone = business_timezone
        self._retry_attempts = retry_attempts

    def bill_batch_create(self, request: BillBatchRequest) -> BillBatchOutcome:
        """Create contracts, both bills, three ledger postings and F&O position updates.

        Everything is written in one transaction; on any failure nothing persists.

        Args:
            request: Bill batch request.

        Returns:
            BillBatchOutcome: Persisted batch.

        Raises:
            ValidationError: Raised when the request or any row is invalid.
            RecordNotFoundError: Raised when party, broker or settlement is unknown.
            InvalidTradeTypeError: Raised when slab resolution fails.
            InvalidInputError: Raised when a slab is unusable.
            DuplicateRecordError: Raised when the bill or contract numbers already exist.
            ConcurrencyConflictError: Raised when every attempt lost a ledger race.
            PersistenceError: Raised when storage fails.
        """

        if request is None:
            raise ValidationError("request must not be None")
        if not isinstance(request.book, Book):
            raise ValidationError(f"unsupported book={request.book!r}")
        if request.bill_sequence is not None and request.bill_sequence < 1:
            raise ValidationError("bill_sequence must be greater than zero")

        common_fields = self._bill_resolve_common_fields(request)
        instruments = self._bill_resolve_instruments(request.rows)
        bill_batch_validate_rows(book=request.book, rows=request.rows, instruments=instruments)
        bill_date = request.bill_date or business_resolve_today(self._business_timezone)

        for attempt in range(1, self._retry_attempts + 1):
            try:
                with self._bookkeeping_repository.db_transaction() as transaction:
                    outcome = self._bill_batch_write(
                        transaction=transaction,
                        request=request,
                        common_fields=common_fields,
                        instruments=instruments,
                        bill_date=bill_date,
                    )
            except ConcurrencyConflictError:
                if attempt >= self._retry_attempts:
                    raise
                logger.warning("bill batch ledger conflict party=%s attempt=%s, retrying", request.party_code, attempt)
                continue
            except DuplicateRecordError:
                logger.warning(
                    "bill batch rejected as duplicate party=%s bill_date=%s bill_sequence=%s",
                    request.party_code,
                    bill_date.isoformat(),
                    request.bill_sequence,
                )
                raise

            logger.info(
                "created bill batch book=%s party_bill=%s broker_bill=%s contracts=%s party_total=%s broker_total=%s "
                "sub_broker_profit=%s",
                request.book.value,
                outcome.party_bill.bill_number,
                outcome.broker_bill.bill_number,
                len(outcome.contracts),
                outcome.party_bill.total_amount,
                outcome.broker_bill.total_amount,
                outcome.sub_broker_profit,
            )
            return outcome

        raise ConcurrencyConflictError("bill batch retries exhausted")

    def contract_update_status(self, contract_number: str, status: ContractStatus) -> Contract:
        """Move a contract from `active` to `completed` or `cancelled`.

        Raises:
            RecordNotFoundError: Raised when the contract is unknown.
            ValidationError: Raised when the transition is not allowed.
        """

        normalized_number = (contract_number or "").strip()
        if not normalized_number:
            raise ValidationError("contract_number must not be blank")
        if not isinstance(status, ContractStatus):
            raise ValidationError(f"unsupported status={status!r}")

        with self._bookkeeping_repository.db_transaction() as transaction:
            contract = transaction.db_contract_fetch_for_update(normalized_number)
            if contract is None:
                raise RecordNotFoundError(f"contract not found: {normalized_number}")
            if status not in CONTRACT_STATUS_TRANSITIONS[contract.status]:
                raise ValidationError(
                    f"contract status transition {contract.status.value} -> {status.value} is not allowed"
                )
            updated_contract = transaction.db_contract_update_status(normalized_number, status)

        logger.info("contract status updated contract=%s status=%s", normalized_number, status.value)
        return updated_contract

    def _bill_batch_write(
        self,
        transaction: BookkeepingTransactionPort,
        request: BillBatchRequest,
        common_fields: BillBatchCommonFields,
        instruments: dict[str, Instrument],
        bill_date: date,
    ) -> BillBatchOutcome:
        transaction.db_lock_key(f"bill-sequence:{bill_date.isoformat()}")
        bill_sequence = request.bill_sequence or transaction.db_bill_next_sequence(bill_date)

        result = bill_batch_build(
            book=request.book,
            common_fields=common_fields,
            rows=request.rows,
            instruments=instruments,
            bill_date=bill_date,
            bill_sequence=bill_sequence,
        )

        # Account locks are taken in a fixed order so concurrent batches cannot deadlock.
        for account_code in sorted({common_fields.party.party_code, MAIN_BROKER_ACCOUNT_CODE, SUB_BROKER_ACCOUNT_CODE}):
            transaction.db_lock_key(ledger_lock_name(request.book, account_code))

        party_bill = transaction.db_bill_insert(result.party_bill)
        broker_bill = transaction.db_bill_insert(result.broker_bill)
        contracts = tuple(transaction.db_contract_insert(contract) for contract in result.contracts)
        transaction.db_bill_items_insert(party_bill.bill_number, result.party_bill.items)
        transaction.db_bill_items_insert(broker_bill.bill_number, result.broker_bill.items)

        ledger_entries = tuple(
            ledger_post_in_transaction(transaction, posting)
            for posting in _bill_build_postings(
                book=request.book,
                common_fields=common_fields,
                party_bill=party_bill,
                broker_bill=broker_bill,
                sub_broker_profit=result.sub_broker_profit,
                bill_date=bill_date,
            )
        )

        position_outcomes: tuple[PositionTradeOutcome, ...] = ()
        if request.book == Book.FO:
            position_keys = sorted(
                {(contract.party_id, contract.instrument_id) for contract in contracts},
                key=lambda key: (str(key[0]), str(key[1])),
            )
            for party_id, instrument_id in position_keys:
                transaction.db_lock_key(position_lock_name(party_id, instrument_id))
            position_outcomes = tuple(
                position_apply_in_transaction(
                    transaction,
                    PositionTradeRequest(
                        trade_reference=contract.contract_number,
                        party_id=contract.party_id,
                        instrument_id=contract.instrument_id,
                        signed_delta_qty=contract.signed_quantity,
                        trade_rate=contract.rate,
                        trade_date=contract.trade_date,
                    ),
                )
                for contract in contracts
            )

        return BillBatchOutcome(
            contracts=contracts,
            party_bill=party_bill,
            broker_bill=broker_bill,
            sub_broker_profit=result.sub_broker_profit,
            ledger_entries=ledger_entries,
            position_outcomes=position_outcomes,
        )

    def _bill_resolve_common_fields(self, request: BillBatchRequest) -> BillBatchCommonFields:
        party_code = (request.party_code or "").strip()
        broker_code = (request.broker_code or "").strip()
        if not party_code:
            raise ValidationError("party_code must not be blank")
        if not broker_code:
            raise ValidationError("broker_code must not be blank")

        party = self._master_repository.db_party_get_by_code(party_code)
        if party is None:
            raise RecordNotFoundError(f"party not found: {party_code}")
        broker = self._master_repository.db_broker_get_by_code(broker_code)
        if broker is None:
            raise RecordNotFoundError(f"broker not found: {broker_code}")

        settlement = None
        settlement_number = (request.settlement_number or "").strip()
        if settlement_number:
            settlement = self._master_repository.db_settlement_get_by_number(settlement_number)
            if settlement is None:
                raise RecordNotFoundError(f"settlement not found: {settlement_number}")

        return BillBatchCommonFields(party=party, broker=broker, settlement=settlement)

    def _bill_resolve_instruments(self, rows: Sequence[TradeRow]) -> dict[str, Instrument]:
        instruments: dict[str, Instrument] = {}
        for row in rows or ():
            instrument_code = (row.instrument_code or "").strip()
            if not instrument_code or instrument_code in instruments:
                continue
            instrument = self._master_repository.db_instrument_get_by_code(instrument_code)
            if instrument is not None:
                instruments[instrument_code] = instrument
        return instruments


def _bill_build_postings(
    book: Book,
    common_fields: BillBatchCommonFields,
    party_bill: Bill,
    broker_bill: Bill,
    sub_broker_profit: Decimal,
    bill_date: date,
) -> list[LedgerPostingRequest]:
    """Return the party, main-broker and sub-broker postings for one batch."""

    party_debit, party_credit = ledger_posting_for_amount(party_bill.total_amount)
    broker_debit, broker_credit = ledger_posting_for_amount(broker_bill.total_amount)
    profit_debit, profit_credit = ledger_posting_for_amount(sub_broker_profit)
    contract_count = len(party_bill.items)

    return [
        LedgerPostingRequest(
            book=book,
            account_code=common_fields.party.party_code,
            entry_date=bill_date,
            particulars=f"Bill {party_bill.bill_number} ({contract_count} contracts)",
            debit_amount=party_debit,
            credit_amount=party_credit,
            entry_kind=LedgerEntryKind.PARTY_BILL,
            party_id=common_fields.party.party_id,
            broker_id=common_fields.broker.broker_id,
            bill_number=party_bill.bill_number,
        ),
        LedgerPostingRequest(
            book=book,
            account_code=MAIN_BROKER_ACCOUNT_CODE,
            entry_date=bill_date,
            particulars=f"Broker bill {broker_bill.bill_number} - {common_fields.broker.broker_code}",
            debit_amount=broker_debit,
            credit_amount=broker_credit,
            entry_kind=LedgerEntryKind.BROKER_BILL,
            broker_id=common_fields.broker.broker_id,
            bill_number=broker_bill.bill_number,
        ),
        LedgerPostingRequest(
            book=book,
            account_code=SUB_BROKER_ACCOUNT_CODE,
            entry_date=bill_date,
            particulars=f"Sub-broker profit on {party_bill.bill_number} - {common_fields.party.party_code}",
            debit_amount=profit_debit,
            credit_amount=profit_credit,
            entry_kind=LedgerEntryKind.SUB_BROKER_PROFIT,
            party_id=common_fields.party.party_id,
            broker_id=common_fields.broker.broker_id,
            bill_number=party_bill.bill_number,
        ),
    ]


__all__ = ["BillBatchOutcome", "BillBatchRequest", "BillBatchService"]
