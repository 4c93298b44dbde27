"""Per-month account resolution and transaction fetching.

Every failure here degrades to "nothing this month" so one bad month never
voids the rest of the window.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import ValidationError

from cardledger.adapters.clients.transport import SessionTransport, build_url
from cardledger.adapters.isracard_amex.logger import IsracardAmexLogger
from cardledger.core.dates import CalendarMonth, parse_date
from cardledger.core.installments import filter_old_transactions, fix_installments
from cardledger.core.normalizer import convert_transactions
from cardledger.errors import TransportError
from cardledger.models.transaction import AccountMonthInfo, CanonicalTransaction
from cardledger.models.wire import (
    CardsTransactionsListResponse,
    DashboardMonthResponse,
    is_success,
)

MonthLedger = dict[str, list[CanonicalTransaction]]

_log = IsracardAmexLogger()


def _parse_index(raw: str | int | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def accounts_url(services_url: str, month: CalendarMonth) -> str:
    return build_url(
        services_url,
        {
            "reqName": "DashboardMonth",
            "actionCode": "0",
            "billingDate": month.billing_date,
            "format": "Json",
        },
    )


def transactions_url(services_url: str, month: CalendarMonth) -> str:
    return build_url(
        services_url,
        {
            "reqName": "CardsTransactionsList",
            "month": month.month_str,
            "year": str(month.year),
            "requiredDate": "N",
        },
    )


async def fetch_accounts(
    transport: SessionTransport,
    services_url: str,
    month: CalendarMonth,
) -> list[AccountMonthInfo]:
    """Return the cards billed in ``month``; empty when the month has none."""
    try:
        data = await transport.get_json(accounts_url(services_url, month))
        response = DashboardMonthResponse.parse(data)
    except TransportError as e:
        _log.accounts_unavailable(month, str(e))
        return []
    except ValidationError as e:
        _log.accounts_unavailable(month, f"unexpected response shape: {e}")
        return []

    if not is_success(response.header):
        _log.accounts_unavailable(month, "header status is not success")
        return []
    bean = response.dashboard_month_bean
    if bean is None or not bean.cards_charges:
        _log.accounts_unavailable(month, "no card charges in response")
        return []

    accounts: list[AccountMonthInfo] = []
    for charge in bean.cards_charges:
        processed_date = parse_date(charge.billing_date)
        index = _parse_index(charge.card_index)
        if index is None or processed_date is None or not charge.card_number:
            _log.accounts_unavailable(
                month, f"malformed card charge for card {charge.card_number}"
            )
            continue
        accounts.append(
            AccountMonthInfo(
                index=index,
                account_number=charge.card_number,
                processed_date=processed_date,
            )
        )
    _log.accounts_resolved(month, len(accounts))
    return accounts


def _account_transactions(
    response: CardsTransactionsListResponse,
    account: AccountMonthInfo,
) -> list[CanonicalTransaction] | None:
    groups = response.card_groups(account.index)
    if groups is None:
        return None
    txns: list[CanonicalTransaction] = []
    for group in groups:
        if group.txn_israel:
            txns.extend(convert_transactions(group.txn_israel, account.processed_date))
        if group.txn_abroad:
            txns.extend(convert_transactions(group.txn_abroad, account.processed_date))
    return txns


async def fetch_month_transactions(
    transport: SessionTransport,
    services_url: str,
    month: CalendarMonth,
    start: datetime,
    *,
    combine_installments: bool = False,
) -> MonthLedger:
    """Fetch and normalize every account's transactions for one month."""
    accounts = await fetch_accounts(transport, services_url, month)
    if not accounts:
        return {}

    try:
        data = await transport.get_json(transactions_url(services_url, month))
        response = CardsTransactionsListResponse.parse(data)
    except TransportError as e:
        _log.transactions_unavailable(month, str(e))
        return {}
    except ValidationError as e:
        _log.transactions_unavailable(month, f"unexpected response shape: {e}")
        return {}

    if not is_success(response.header):
        _log.transactions_unavailable(month, "header status is not success")
        return {}
    if response.cards_transactions_list_bean is None:
        _log.transactions_unavailable(month, "no transaction list in response")
        return {}

    ledger: MonthLedger = {}
    for account in accounts:
        try:
            txns = _account_transactions(response, account)
        except ValidationError as e:
            _log.transactions_unavailable(
                month, f"malformed entry for {account.account_number}: {e}"
            )
            continue
        if txns is None:
            _log.account_missing(month, account.account_number)
            continue
        if not combine_installments:
            txns = fix_installments(txns)
        txns = filter_old_transactions(txns, start, combine_installments)
        _log.month_fetched(month, account.account_number, len(txns))
        ledger[account.account_number] = txns
    return ledger
