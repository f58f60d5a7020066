"""FastAPI application factory for the back-office service."""

from fastapi import FastAPI

from brokerbook.config import AppSettings
from brokerbook.db import BookkeepingRepositoryPort, DatabaseHealthPort, MasterDataRepositoryPort
from brokerbook.ledger import (
    BillBatchService,
    LedgerPostingService,
    LedgerReportingService,
    PaymentService,
    PositionService,
)

from .routers import (
    api_create_bill_router,
    api_create_health_router,
    api_create_holdings_router,
    api_create_ledger_router,
    api_create_master_data_router,
    api_create_position_router,
)


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    master_repository: MasterDataRepositoryPort,
    bookkeeping_repository: BookkeepingRepositoryPort,
    bill_batch_service: BillBatchService,
    payment_service: PaymentService,
    ledger_posting_service: LedgerPostingService,
    reporting_service: LedgerReportingService,
    position_service: PositionService,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        master_repository: Party, broker, instrument and settlement repository.
        bookkeeping_repository: Bill, contract, ledger and position reads.
        bill_batch_service: Bill batch creation service.
        payment_service: Bill payment service.
        ledger_posting_service: Manual posting and continuity service.
        reporting_service: Summary and interest service.
        position_service: F&O position service.

    Returns:
        FastAPI: Framework application instance with all routers mounted.
    """
    application = FastAPI(title="Brokerbook")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identity for bootstrap verification."""

        return {
            "service": "brokerbook",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(
        api_create_master_data_router(settings=settings, master_repository=master_repository)
    )
    application.include_router(
        api_create_bill_router(
            settings=settings,
            bill_batch_service=bill_batch_service,
            payment_service=payment_service,
            bookkeeping_repository=bookkeeping_repository,
        )
    )
    application.include_router(
        api_create_ledger_router(
            ledger_posting_service=ledger_posting_service,
            reporting_service=reporting_service,
        )
    )
    application.include_router(
        api_create_position_router(position_service=position_service, master_repository=master_repository)
    )
    application.include_router(api_create_holdings_router(reporting_service=reporting_service))

    return application
