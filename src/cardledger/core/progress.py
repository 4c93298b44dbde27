from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from loguru import logger


class ScrapeProgress(Enum):
    START_SCRAPING = "START_SCRAPING"
    LOGGING_IN = "LOGGING_IN"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"
    END_SCRAPING = "END_SCRAPING"


ProgressCallback = Callable[[ScrapeProgress], None]


def log_progress(stage: ScrapeProgress) -> None:
    """Default progress observer: report each stage through loguru."""
    logger.bind(stage=stage.value).info("Scrape progress: {}", stage.value)
