"""Database layer package for all SQL and persistence boundaries."""

from .bookkeeping import SQLAlchemyBookkeepingService, SQLAlchemyBookkeepingTransaction, db_build_advisory_lock_keys
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	BookkeepingRepositoryPort,
	BookkeepingTransactionPort,
	BrokerCreateRequest,
	DatabaseHealthPort,
	InstrumentCreateRequest,
	MasterDataRepositoryPort,
	PartyCreateRequest,
	PositionTradeRecord,
	SettlementCreateRequest,
)
from .master_data import SQLAlchemyMasterDataService
from .session import db_create_engine

__all__ = [
	"BookkeepingRepositoryPort",
	"BookkeepingTransactionPort",
	"BrokerCreateRequest",
	"DatabaseHealthPort",
	"InstrumentCreateRequest",
	"MasterDataRepositoryPort",
	"PartyCreateRequest",
	"PositionTradeRecord",
	"SettlementCreateRequest",
	"SQLAlchemyBookkeepingService",
	"SQLAlchemyBookkeepingTransaction",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyMasterDataService",
	"db_build_advisory_lock_keys",
	"db_create_engine",
]
