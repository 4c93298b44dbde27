from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(Enum):
    NORMAL = "normal"
    INSTALLMENTS = "installments"


class TransactionStatus(Enum):
    COMPLETED = "completed"
    PENDING = "pending"


class ScrapeErrorType(Enum):
    """Typed failure reasons reported to the caller instead of exceptions."""

    INVALID_PASSWORD = "INVALID_PASSWORD"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"
    GENERAL = "GENERAL_ERROR"


class LedgerModel(BaseModel):
    """Shared immutable base for canonical ledger values."""

    model_config = ConfigDict(frozen=True)


class InstallmentInfo(LedgerModel):
    number: int
    total: int


class CanonicalTransaction(LedgerModel):
    """
    One normalized card transaction.

    Amounts follow the ledger sign convention: purchases are negative and
    original_amount always carries the same sign as charged_amount. A date of
    None means the institution sent a purchase date that could not be parsed.
    """

    type: TransactionType
    identifier: int | None
    date: datetime | None
    processed_date: datetime | None
    original_amount: float
    original_currency: str
    charged_amount: float
    description: str
    memo: str = ""
    installments: InstallmentInfo | None = None
    status: TransactionStatus = TransactionStatus.COMPLETED


class AccountMonthInfo(LedgerModel):
    """A card active in one calendar month, with that month's billing date."""

    index: int
    account_number: str
    processed_date: datetime


class ScraperAccount(LedgerModel):
    account_number: str
    txns: list[CanonicalTransaction] = Field(default_factory=list)


class ScrapeResult(LedgerModel):
    success: bool
    accounts: list[ScraperAccount] = Field(default_factory=list)
    error_type: ScrapeErrorType | None = None
    error_message: str | None = None

    @classmethod
    def failure(
        cls, error_type: ScrapeErrorType, message: str | None = None
    ) -> ScrapeResult:
        return cls(success=False, error_type=error_type, error_message=message)
