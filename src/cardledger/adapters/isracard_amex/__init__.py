from cardledger.adapters.isracard_amex.institution import (
    AMEX,
    INSTITUTIONS,
    ISRACARD,
    InstitutionConfig,
)
from cardledger.adapters.isracard_amex.login import (
    LoginFlow,
    LoginOutcome,
    LoginState,
    ScraperCredentials,
)
from cardledger.adapters.isracard_amex.scraper import (
    IsracardAmexScraper,
    ScraperOptions,
)

__all__ = [
    "AMEX",
    "INSTITUTIONS",
    "ISRACARD",
    "InstitutionConfig",
    "IsracardAmexScraper",
    "LoginFlow",
    "LoginOutcome",
    "LoginState",
    "ScraperCredentials",
    "ScraperOptions",
]
