"""Domain models and errors used across application layer boundaries."""

from .errors import (
    ConcurrencyConflictError,
    DuplicateRecordError,
    InvalidInputError,
    InvalidTradeTypeError,
    PersistenceError,
    PositionOrderingError,
    RecordNotFoundError,
    ValidationError,
)
from .models import (
    CONTRACT_STATUS_TRANSITIONS,
    HOUSE_ACCOUNT_NAMES,
    MAIN_BROKER_ACCOUNT_CODE,
    SUB_BROKER_ACCOUNT_CODE,
    Bill,
    BillItem,
    BillStatus,
    BillType,
    Book,
    Broker,
    Contract,
    ContractSide,
    ContractStatus,
    HealthStatus,
    Instrument,
    InstrumentType,
    LedgerEntry,
    LedgerEntryKind,
    Party,
    Payment,
    Position,
    Settlement,
    SettlementType,
    TradeType,
)

__all__ = [
    "CONTRACT_STATUS_TRANSITIONS",
    "HOUSE_ACCOUNT_NAMES",
    "MAIN_BROKER_ACCOUNT_CODE",
    "SUB_BROKER_ACCOUNT_CODE",
    "Bill",
    "BillItem",
    "BillStatus",
    "BillType",
    "Book",
    "Broker",
    "Contract",
    "ContractSide",
    "ContractStatus",
    "HealthStatus",
    "Instrument",
    "InstrumentType",
    "LedgerEntry",
    "LedgerEntryKind",
    "Party",
    "Payment",
    "Position",
    "Settlement",
    "SettlementType",
    "TradeType",
    "ConcurrencyConflictError",
    "DuplicateRecordError",
    "InvalidInputError",
    "InvalidTradeTypeError",
    "PersistenceError",
    "PositionOrderingError",
    "RecordNotFoundError",
    "ValidationError",
]
