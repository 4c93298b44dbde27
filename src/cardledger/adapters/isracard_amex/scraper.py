from __future__ import annotations

import asyncio
from collections.abc import Callable
import concurrent.futures
from dataclasses import dataclass
from datetime import datetime

from cardledger.adapters.clients.transport import SessionTransport
from cardledger.adapters.isracard_amex.aggregator import fetch_all_transactions
from cardledger.adapters.isracard_amex.institution import InstitutionConfig
from cardledger.adapters.isracard_amex.logger import IsracardAmexLogger
from cardledger.adapters.isracard_amex.login import LoginFlow, ScraperCredentials
from cardledger.core.progress import ProgressCallback, ScrapeProgress, log_progress
from cardledger.errors import CardLedgerError
from cardledger.models.transaction import ScrapeErrorType, ScrapeResult


@dataclass(frozen=True, slots=True)
class ScraperOptions:
    """Caller options for one scrape run."""

    start_date: datetime | None = None
    combine_installments: bool = False


class IsracardAmexScraper:
    """
    Scraper for the Isracard / Amex family of card issuers.

    Both institutions share one API and differ only by host and company code,
    so a single implementation is parameterized by an InstitutionConfig.
    """

    def __init__(
        self,
        institution: InstitutionConfig,
        transport: SessionTransport,
        options: ScraperOptions | None = None,
        *,
        on_progress: ProgressCallback = log_progress,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize the scraper.

        Args:
            institution: Host and company code of the issuer
            transport: Session transport shared by login and every fetch
            options: Start date and installment handling
            on_progress: Observer notified of each scrape stage
            clock: Source of "now" for the lookback window
        """
        self._institution = institution
        self._transport = transport
        self._options = options or ScraperOptions()
        self._on_progress = on_progress
        self._clock = clock
        self._logger = IsracardAmexLogger()

    @property
    def institution(self) -> InstitutionConfig:
        return self._institution

    async def fetch_data(self) -> ScrapeResult:
        """Fetch the ledger; only valid after a successful login."""
        return await fetch_all_transactions(
            self._transport,
            self._institution.services_url,
            start=self._options.start_date,
            now=self._clock(),
            combine_installments=self._options.combine_installments,
        )

    async def scrape_async(self, credentials: ScraperCredentials) -> ScrapeResult:
        """Log in, then fetch every month in the window.

        Returns:
            ScrapeResult; failures are reported through error_type, never raised
        """
        self._on_progress(ScrapeProgress.START_SCRAPING)
        try:
            outcome = await LoginFlow(
                self._institution, self._transport, on_progress=self._on_progress
            ).login(credentials)
            if not outcome.success:
                result = ScrapeResult.failure(
                    outcome.error_type or ScrapeErrorType.GENERAL,
                    f"Login ended in state {outcome.state.value}",
                )
            else:
                result = await self.fetch_data()
        except CardLedgerError as e:
            self._logger.scrape_failed(e)
            result = ScrapeResult.failure(ScrapeErrorType.GENERAL, str(e))
        self._on_progress(ScrapeProgress.END_SCRAPING)
        return result

    def scrape(self, credentials: ScraperCredentials) -> ScrapeResult:
        """Synchronous entry point for scrape_async."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No event loop running, safe to use asyncio.run()
            return asyncio.run(self.scrape_async(credentials))
        # Already inside a loop: run in a new thread to avoid conflict
        with concurrent.futures.ThreadPoolExecutor() as executor:
            future = executor.submit(asyncio.run, self.scrape_async(credentials))
            return future.result()
