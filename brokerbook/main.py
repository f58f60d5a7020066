"""Main module entrypoint for the API server and ledger maintenance commands."""

import argparse
import logging

import uvicorn

from brokerbook.bootstrap import bootstrap_create_application, bootstrap_create_services
from brokerbook.config import config_load_settings
from brokerbook.domain import Book


logger = logging.getLogger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with code 1 when `verify-ledger` finds continuity breaks.
    """

    argument_parser = argparse.ArgumentParser(description="Brokerbook back-office runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "summary", "verify-ledger"),
        help="Runtime command: `api` starts server, `summary` prints account balances, "
        "`verify-ledger` checks running-balance continuity",
        type=str,
    )
    argument_parser.add_argument(
        "--book",
        dest="book",
        default=Book.EQUITY.value,
        choices=[book.value for book in Book],
        help="Book for `summary` and `verify-ledger`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    book = Book(parsed_arguments.book)

    if parsed_arguments.command == "summary":
        services = bootstrap_create_services(settings)
        for row in services.reporting_service.ledger_summary(book):
            print(
                f"{row.account_code}\t{row.account_name}\t{row.entry_count}\t"
                f"{row.total_debit}\t{row.total_credit}\t{row.closing_balance}\t{row.balance_side}"
            )
        return

    if parsed_arguments.command == "verify-ledger":
        services = bootstrap_create_services(settings)
        breaks = services.ledger_posting_service.ledger_verify(book)
        for item in breaks:
            print(
                f"BALANCE_BREAK: {item.account_code} sequence={item.account_sequence} "
                f"expected={item.expected_balance} recorded={item.recorded_balance}"
            )
        if breaks:
            raise SystemExit(1)
        logger.info("ledger continuity verified book=%s", book.value)
        return

    application = bootstrap_create_application(settings)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


if __name__ == "__main__":
    main()
