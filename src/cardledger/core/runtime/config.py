from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import os

from cardledger.errors import ConfigError

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ScraperRuntimeConfig:
    """Scrape settings loaded at process startup."""

    institution: str
    user_id: str
    card6_digits: str
    password: str
    start_date: datetime | None = None
    combine_installments: bool = False
    timeout_seconds: float = 30.0
    log_level: str = "INFO"


def _require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _parse_start_date(raw: str) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise ConfigError(
            f"CARDLEDGER_START_DATE must be an ISO date, got {raw!r}"
        ) from e


def load_scraper_config_from_env() -> ScraperRuntimeConfig:
    """Load scrape config from env and validate startup requirements."""
    institution = os.environ.get("CARDLEDGER_INSTITUTION", "isracard").strip().lower()
    if institution not in {"isracard", "amex"}:
        raise ConfigError("CARDLEDGER_INSTITUTION must be one of: isracard, amex")

    timeout_raw = os.environ.get("CARDLEDGER_TIMEOUT_SECONDS", "30").strip()
    try:
        timeout_seconds = float(timeout_raw)
    except ValueError as e:
        raise ConfigError(
            f"CARDLEDGER_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}"
        ) from e

    combine_installments = (
        os.environ.get("CARDLEDGER_COMBINE_INSTALLMENTS", "false").strip().lower()
        in TRUTHY
    )

    return ScraperRuntimeConfig(
        institution=institution,
        user_id=_require_env("CARDLEDGER_ID"),
        card6_digits=_require_env("CARDLEDGER_CARD6_DIGITS"),
        password=_require_env("CARDLEDGER_PASSWORD"),
        start_date=_parse_start_date(
            os.environ.get("CARDLEDGER_START_DATE", "").strip()
        ),
        combine_installments=combine_installments,
        timeout_seconds=timeout_seconds,
        log_level=os.environ.get("CARDLEDGER_LOG_LEVEL", "INFO").strip().upper(),
    )
