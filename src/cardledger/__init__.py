"""cardledger: Isracard / Amex transaction history as a canonical ledger."""

from cardledger.adapters.isracard_amex import (
    AMEX,
    ISRACARD,
    InstitutionConfig,
    IsracardAmexScraper,
)
from cardledger.models.transaction import (
    CanonicalTransaction,
    ScrapeErrorType,
    ScrapeResult,
    ScraperAccount,
)

__all__ = [
    "AMEX",
    "ISRACARD",
    "CanonicalTransaction",
    "InstitutionConfig",
    "IsracardAmexScraper",
    "ScrapeErrorType",
    "ScrapeResult",
    "ScraperAccount",
]
