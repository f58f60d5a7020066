"""Ledger layer package for brokerage, billing, posting and position engines."""

from .bill_batch_service import BillBatchOutcome, BillBatchRequest, BillBatchService
from .bill_builder import (
	BillBatchCommonFields,
	BillBatchResult,
	TradeRow,
	bill_batch_build,
	bill_build_number,
	bill_derive_status,
)
from .brokerage import brokerage_compute, brokerage_round_currency, brokerage_trade_amount
from .business_dates import business_resolve_today
from .holdings import (
	BrokerHoldingRow,
	HoldingBrokerShare,
	HoldingRow,
	holdings_aggregate,
	holdings_aggregate_by_broker,
)
from .interest import InterestComputationResult, InterestDay, interest_compute
from .ledger_poster import (
	LedgerContinuityBreak,
	LedgerPostingRequest,
	LedgerPostingService,
	ledger_build_entry,
	ledger_compute_balance,
	ledger_post_in_transaction,
	ledger_verify_balance_continuity,
)
from .payment_service import PaymentOutcome, PaymentService
from .position_engine import (
	PositionTradeOutcome,
	PositionTransition,
	PositionValuation,
	position_apply_trade,
	position_compute_unrealized,
)
from .position_service import (
	PositionReport,
	PositionService,
	PositionTradeRequest,
	PositionValuationReport,
	position_apply_in_transaction,
)
from .reporting_service import BrokerHoldingsReport, HoldingsReport, LedgerReportingService
from .slab_rates import slab_resolve_rate
from .summary import AccountSummaryRow, summary_aggregate

__all__ = [
	"AccountSummaryRow",
	"BillBatchCommonFields",
	"BillBatchOutcome",
	"BillBatchRequest",
	"BillBatchResult",
	"BillBatchService",
	"BrokerHoldingRow",
	"BrokerHoldingsReport",
	"HoldingBrokerShare",
	"HoldingRow",
	"HoldingsReport",
	"InterestComputationResult",
	"InterestDay",
	"LedgerContinuityBreak",
	"LedgerPostingRequest",
	"LedgerPostingService",
	"LedgerReportingService",
	"PaymentOutcome",
	"PaymentService",
	"PositionReport",
	"PositionService",
	"PositionTradeOutcome",
	"PositionTradeRequest",
	"PositionTransition",
	"PositionValuation",
	"PositionValuationReport",
	"TradeRow",
	"bill_batch_build",
	"bill_build_number",
	"bill_derive_status",
	"brokerage_compute",
	"brokerage_round_currency",
	"brokerage_trade_amount",
	"business_resolve_today",
	"holdings_aggregate",
	"holdings_aggregate_by_broker",
	"interest_compute",
	"ledger_build_entry",
	"ledger_compute_balance",
	"ledger_post_in_transaction",
	"ledger_verify_balance_continuity",
	"position_apply_in_transaction",
	"position_apply_trade",
	"position_compute_unrealized",
	"slab_resolve_rate",
	"summary_aggregate",
]
