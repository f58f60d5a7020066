"""Application bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI

from brokerbook.api import create_api_application
from brokerbook.config import AppSettings, config_load_settings
from brokerbook.db import (
    SQLAlchemyBookkeepingService,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyMasterDataService,
    db_create_engine,
)
from brokerbook.ledger import (
    BillBatchService,
    LedgerPostingService,
    LedgerReportingService,
    PaymentService,
    PositionService,
)


@dataclass(frozen=True)
class BootstrapServices:
    """Wired repositories and services sharing one engine.

    Attributes:
        settings: Validated runtime settings.
        db_health_service: Database health probe.
        master_repository: Master data repository.
        bookkeeping_repository: Bookkeeping repository.
        bill_batch_service: Bill batch service.
        payment_service: Payment service.
        ledger_posting_service: Ledger posting service.
        reporting_service: Summary and interest service.
        position_service: F&O position service.
    """

    settings: AppSettings
    db_health_service: SQLAlchemyDatabaseHealthService
    master_repository: SQLAlchemyMasterDataService
    bookkeeping_repository: SQLAlchemyBookkeepingService
    bill_batch_service: BillBatchService
    payment_service: PaymentService
    ledger_posting_service: LedgerPostingService
    reporting_service: LedgerReportingService
    position_service: PositionService


def bootstrap_create_services(settings: AppSettings | None = None) -> BootstrapServices:
    """Build every repository and service from validated settings.

    Args:
        settings: Optional preloaded settings; loaded from the environment when omitted.

    Returns:
        BootstrapServices: Wired services.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    master_repository = SQLAlchemyMasterDataService(engine=engine)
    bookkeeping_repository = SQLAlchemyBookkeepingService(engine=engine)
    retry_attempts = resolved_settings.ledger_post_retry_attempts
    return BootstrapServices(
        settings=resolved_settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        master_repository=master_repository,
        bookkeeping_repository=bookkeeping_repository,
        bill_batch_service=BillBatchService(
            master_repository=master_repository,
            bookkeeping_repository=bookkeeping_repository,
            business_timezone=resolved_settings.business_timezone,
            retry_attempts=retry_attempts,
        ),
        payment_service=PaymentService(
            repository=bookkeeping_repository,
            business_timezone=resolved_settings.business_timezone,
        ),
        ledger_posting_service=LedgerPostingService(
            repository=bookkeeping_repository,
            master_repository=master_repository,
            retry_attempts=retry_attempts,
        ),
        reporting_service=LedgerReportingService(
            master_repository=master_repository,
            bookkeeping_repository=bookkeeping_repository,
        ),
        position_service=PositionService(
            repository=bookkeeping_repository,
            master_repository=master_repository,
            retry_attempts=retry_attempts,
        ),
    )


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    services = bootstrap_create_services(settings)
    return create_api_application(
        settings=services.settings,
        db_health_service=services.db_health_service,
        master_repository=services.master_repository,
        bookkeeping_repository=services.bookkeeping_repository,
        bill_batch_service=services.bill_batch_service,
        payment_service=services.payment_service,
        ledger_posting_service=services.ledger_posting_service,
        reporting_service=services.reporting_service,
        position_service=services.position_service,
    )
