"""API router package for endpoint composition."""

from .bills import api_create_bill_router
from .health import api_create_health_router
from .holdings import api_create_holdings_router
from .ledger import api_create_ledger_router
from .masters import api_create_master_data_router
from .positions import api_create_position_router

__all__ = [
	"api_create_bill_router",
	"api_create_health_router",
	"api_create_holdings_router",
	"api_create_ledger_router",
	"api_create_master_data_router",
	"api_create_position_router",
]
