from __future__ import annotations

import asyncio
from datetime import datetime

from cardledger.adapters.clients.transport import SessionTransport
from cardledger.adapters.isracard_amex.fetcher import (
    MonthLedger,
    fetch_month_transactions,
)
from cardledger.adapters.isracard_amex.logger import IsracardAmexLogger
from cardledger.core.dates import add_months, month_sequence
from cardledger.core.installments import filter_old_transactions
from cardledger.models.transaction import (
    CanonicalTransaction,
    ScrapeResult,
    ScraperAccount,
)

MAX_LOOKBACK_MONTHS = 12

_log = IsracardAmexLogger()


def default_start(now: datetime) -> datetime:
    """Earliest instant the institution is asked about: one year before ``now``."""
    return add_months(now, -MAX_LOOKBACK_MONTHS)


def to_local_naive(value: datetime) -> datetime:
    """Express an aware datetime as naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def effective_start(start: datetime | None, now: datetime) -> datetime:
    lookback = default_start(to_local_naive(now))
    if start is None:
        return lookback
    return max(lookback, to_local_naive(start))


def merge_month_ledgers(
    month_ledgers: list[MonthLedger],
) -> dict[str, list[CanonicalTransaction]]:
    """Concatenate per-month ledgers in the order given, per account."""
    merged: dict[str, list[CanonicalTransaction]] = {}
    for month_ledger in month_ledgers:
        for account_number, txns in month_ledger.items():
            merged.setdefault(account_number, []).extend(txns)
    return merged


async def fetch_all_transactions(
    transport: SessionTransport,
    services_url: str,
    *,
    start: datetime | None,
    now: datetime,
    combine_installments: bool = False,
) -> ScrapeResult:
    """
    Fetch every month from the effective start through ``now`` concurrently.

    Months are requested in parallel but merged in chronological order, so the
    per-account sequence never depends on which request finished first.

    Args:
        transport: Authenticated session transport
        services_url: The institution's ProxyRequestHandler URL
        start: Caller's requested start; capped at one year before ``now``
        now: Reference instant for the lookback cap and the last month
        combine_installments: Keep installment legs separate instead of
            collapsing them into one purchase

    Returns:
        Successful ScrapeResult with one account per card number
    """
    now = to_local_naive(now)
    window_start = effective_start(start, now)
    months = month_sequence(window_start, now=now)
    if not months:
        return ScrapeResult(success=True)
    _log.aggregation_start(
        len(months), months[0].billing_date, months[-1].billing_date
    )

    month_ledgers = await asyncio.gather(
        *(
            fetch_month_transactions(
                transport,
                services_url,
                month,
                window_start,
                combine_installments=combine_installments,
            )
            for month in months
        )
    )

    merged = merge_month_ledgers(list(month_ledgers))
    accounts = [
        ScraperAccount(
            account_number=account_number,
            txns=filter_old_transactions(txns, window_start, combine_installments),
        )
        for account_number, txns in merged.items()
    ]
    _log.aggregation_complete(
        len(accounts), sum(len(account.txns) for account in accounts)
    )
    return ScrapeResult(success=True, accounts=accounts)
