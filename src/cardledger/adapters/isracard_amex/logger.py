"""Logging for Isracard/Amex scraping operations.

Keeps log formatting out of the fetch and login code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import loguru
from loguru import logger

if TYPE_CHECKING:
    from cardledger.core.dates import CalendarMonth


class IsracardAmexLogger:
    """Handles all logging for the Isracard/Amex pipeline."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def accounts_unavailable(self, month: CalendarMonth, reason: str) -> None:
        """Log a month whose dashboard returned no usable accounts."""
        self._logger.bind(
            year=month.year, month=month.month, reason=reason
        ).warning(
            "No accounts for {}-{}: {}", month.year, month.month_str, reason
        )

    def accounts_resolved(self, month: CalendarMonth, count: int) -> None:
        self._logger.bind(year=month.year, month=month.month, accounts=count).debug(
            "Resolved {} account(s) for {}-{}", count, month.year, month.month_str
        )

    def transactions_unavailable(self, month: CalendarMonth, reason: str) -> None:
        """Log a month whose transaction list could not be used."""
        self._logger.bind(
            year=month.year, month=month.month, reason=reason
        ).warning(
            "No transactions for {}-{}: {}", month.year, month.month_str, reason
        )

    def account_missing(self, month: CalendarMonth, account_number: str) -> None:
        self._logger.bind(
            year=month.year, month=month.month, account=account_number
        ).debug(
            "No transaction entry for account {} in {}-{}",
            account_number,
            month.year,
            month.month_str,
        )

    def month_fetched(
        self, month: CalendarMonth, account_number: str, txn_count: int
    ) -> None:
        self._logger.bind(
            year=month.year,
            month=month.month,
            account=account_number,
            txns=txn_count,
        ).debug(
            "Fetched {} transaction(s) for account {} in {}-{}",
            txn_count,
            account_number,
            month.year,
            month.month_str,
        )

    def aggregation_start(self, month_count: int, first: str, last: str) -> None:
        self._logger.bind(months=month_count).info(
            "Fetching {} month(s) of transactions ({} to {})",
            month_count,
            first,
            last,
        )

    def aggregation_complete(self, account_count: int, txn_count: int) -> None:
        self._logger.bind(accounts=account_count, txns=txn_count).info(
            "Aggregated {} transaction(s) across {} account(s)",
            txn_count,
            account_count,
        )

    def login_step(self, state: str) -> None:
        self._logger.bind(state=state).debug("Login state: {}", state)

    def login_transport_error(self, state: str, error: Exception) -> None:
        self._logger.bind(state=state).warning(
            "Transport failure during login ({}): {}", state, error
        )

    def login_finished(self, state: str) -> None:
        self._logger.bind(state=state).info("Login finished: {}", state)

    def scrape_failed(self, error: Exception) -> None:
        self._logger.exception("Scrape failed: {}", error)
