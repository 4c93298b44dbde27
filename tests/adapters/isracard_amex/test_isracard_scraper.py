from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import json
from typing import Any

from cardledger.adapters.isracard_amex import (
    ISRACARD,
    IsracardAmexScraper,
    ScraperCredentials,
    ScraperOptions,
)
from cardledger.core.progress import ScrapeProgress
from cardledger.errors import TransportError
from cardledger.models.transaction import ScrapeErrorType
from tests.fixtures.isracard_amex import (
    FakeTransport,
    card_charge,
    dashboard_response,
    raw_record,
    transactions_response,
)

CREDENTIALS = ScraperCredentials(
    id="012345678", card6_digits="123456", password="hunter2"  # noqa: S106
)
NOW = datetime(2025, 3, 20)

LOGIN_OK = {
    "ValidateIdData": {
        "Header": {"Status": "1"},
        "ValidateIdDataBean": {"returnCode": "1", "userName": "SRV-USER"},
    },
    "performLogonI": {"status": "1"},
}


def _scraper(
    transport: FakeTransport,
    events: list[ScrapeProgress],
    options: ScraperOptions | None = None,
) -> IsracardAmexScraper:
    return IsracardAmexScraper(
        ISRACARD,
        transport,
        options or ScraperOptions(start_date=datetime(2025, 3, 1)),
        on_progress=events.append,
        clock=lambda: NOW,
    )


class TestIsracardAmexScraper:
    def test_end_to_end_single_purchase(self) -> None:
        # setup
        transport = FakeTransport(
            posts=LOGIN_OK,
            dashboards={"2025-03-01": dashboard_response(card_charge(number="4580"))},
            transactions={
                (2025, 3): transactions_response(
                    {
                        0: [
                            {
                                "txnIsrael": [
                                    raw_record(
                                        voucher="000000000",
                                        voucher_outbound="000000000",
                                    ),
                                    raw_record(
                                        voucher="100200300",
                                        deal_sum=100.0,
                                        currency="שקל",
                                    ),
                                ]
                            }
                        ]
                    }
                )
            },
        )
        events: list[ScrapeProgress] = []

        # act
        result = _scraper(transport, events).scrape(CREDENTIALS)

        # assert
        assert result.success is True
        assert len(result.accounts) == 1
        account = result.accounts[0]
        assert account.account_number == "4580"
        assert len(account.txns) == 1
        assert account.txns[0].original_amount == -100.0
        assert account.txns[0].original_currency == "ILS"
        assert events == [
            ScrapeProgress.START_SCRAPING,
            ScrapeProgress.LOGGING_IN,
            ScrapeProgress.LOGIN_SUCCESS,
            ScrapeProgress.END_SCRAPING,
        ]

    def test_login_completes_before_any_month_fetch(self) -> None:
        transport = FakeTransport(posts=LOGIN_OK)

        _scraper(transport, []).scrape(CREDENTIALS)

        first_get = transport.calls.index("get")
        assert transport.calls[:first_get] == ["navigate", "post", "post"]
        assert "post" not in transport.calls[first_get:]

    def test_failed_login_returns_typed_error_without_fetching(self) -> None:
        # setup
        transport = FakeTransport(
            posts={**LOGIN_OK, "performLogonI": {"status": "0"}},
        )
        events: list[ScrapeProgress] = []

        # act
        result = _scraper(transport, events).scrape(CREDENTIALS)

        # assert
        assert result.success is False
        assert result.error_type == ScrapeErrorType.INVALID_PASSWORD
        assert result.accounts == []
        assert transport.gets == []
        assert events[-1] == ScrapeProgress.END_SCRAPING

    def test_change_password_error(self) -> None:
        transport = FakeTransport(
            posts={
                "ValidateIdData": {
                    "Header": {"Status": "1"},
                    "ValidateIdDataBean": {"returnCode": "4"},
                }
            }
        )

        result = _scraper(transport, []).scrape(CREDENTIALS)

        assert result.error_type == ScrapeErrorType.CHANGE_PASSWORD

    def test_unknown_login_error_is_general(self) -> None:
        transport = FakeTransport(posts={"ValidateIdData": TransportError("down")})

        result = _scraper(transport, []).scrape(CREDENTIALS)

        assert result.success is False
        assert result.error_type == ScrapeErrorType.GENERAL

    def test_timezone_aware_start_date(self) -> None:
        # setup
        transport = FakeTransport(
            posts=LOGIN_OK,
            dashboards={"2025-03-01": dashboard_response(card_charge(number="4580"))},
            transactions={
                (2025, 3): transactions_response({0: [{"txnIsrael": [raw_record()]}]})
            },
        )
        options = ScraperOptions(start_date=datetime(2025, 3, 10, tzinfo=timezone.utc))

        # act
        result = _scraper(transport, [], options).scrape(CREDENTIALS)

        # assert
        assert result.success is True
        assert [a.account_number for a in result.accounts] == ["4580"]

    def test_scrape_from_running_loop(self) -> None:
        transport = FakeTransport(posts=LOGIN_OK)

        async def call_sync_entry_point() -> Any:
            return _scraper(transport, []).scrape(CREDENTIALS)

        result = asyncio.run(call_sync_entry_point())

        assert result.success is True

    def test_result_serializes_to_json(self) -> None:
        transport = FakeTransport(
            posts=LOGIN_OK,
            dashboards={"2025-03-01": dashboard_response(card_charge(number="4580"))},
            transactions={
                (2025, 3): transactions_response(
                    {0: [{"txnIsrael": [raw_record(more_info="תשלום 1 מתוך 3")]}]}
                )
            },
        )

        result = _scraper(transport, []).scrape(CREDENTIALS)
        payload = json.loads(result.model_dump_json())

        txn = payload["accounts"][0]["txns"][0]
        assert txn["type"] == "installments"
        assert txn["status"] == "completed"
        assert txn["date"] == "2025-03-15T00:00:00"
        assert txn["installments"] is None
