from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from cardledger.models.transaction import (
    CanonicalTransaction,
    ScrapeErrorType,
    ScrapeResult,
    ScraperAccount,
    TransactionType,
)
from cardledger.ui.cli import app

runner = CliRunner()


@pytest.fixture
def scrape_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARDLEDGER_INSTITUTION", "isracard")
    monkeypatch.setenv("CARDLEDGER_ID", "012345678")
    monkeypatch.setenv("CARDLEDGER_CARD6_DIGITS", "123456")
    monkeypatch.setenv("CARDLEDGER_PASSWORD", "hunter2")
    monkeypatch.delenv("CARDLEDGER_START_DATE", raising=False)


def _result() -> ScrapeResult:
    txn = CanonicalTransaction(
        type=TransactionType.NORMAL,
        identifier=42,
        date=datetime(2025, 3, 15),
        processed_date=datetime(2025, 4, 2),
        original_amount=-100.0,
        original_currency="ILS",
        charged_amount=-100.0,
        description="SUPER-PHARM",
    )
    return ScrapeResult(
        success=True, accounts=[ScraperAccount(account_number="4580", txns=[txn])]
    )


class TestCli:
    def test_institutions_lists_presets(self) -> None:
        result = runner.invoke(app, ["institutions"])

        assert result.exit_code == 0
        assert "isracard" in result.output
        assert "amex" in result.output

    def test_scrape_writes_json(self, scrape_env: None, tmp_path: Path) -> None:
        # setup
        output = tmp_path / "ledger.json"

        with (
            patch("cardledger.ui.cli._configure_logging"),
            patch(
                "cardledger.ui.cli.IsracardAmexScraper.scrape", return_value=_result()
            ) as mock_scrape,
        ):
            # act
            result = runner.invoke(
                app, ["scrape", "--start-date", "2025-01-01", "--output", str(output)]
            )

        # assert
        assert result.exit_code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert payload["success"] is True
        assert payload["accounts"][0]["account_number"] == "4580"
        credentials = mock_scrape.call_args[0][0]
        assert credentials.id == "012345678"
        assert credentials.password.get_secret_value() == "hunter2"

    def test_failed_scrape_exits_non_zero(
        self, scrape_env: None, tmp_path: Path
    ) -> None:
        output = tmp_path / "ledger.json"
        failed = ScrapeResult.failure(ScrapeErrorType.INVALID_PASSWORD)

        with (
            patch("cardledger.ui.cli._configure_logging"),
            patch("cardledger.ui.cli.IsracardAmexScraper.scrape", return_value=failed),
        ):
            result = runner.invoke(app, ["scrape", "--output", str(output)])

        assert result.exit_code == 1
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert payload["error_type"] == "INVALID_PASSWORD"

    def test_missing_credentials_is_config_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("CARDLEDGER_PASSWORD", raising=False)
        monkeypatch.setenv("CARDLEDGER_ID", "012345678")
        monkeypatch.setenv("CARDLEDGER_CARD6_DIGITS", "123456")

        result = runner.invoke(app, ["scrape"])

        assert result.exit_code == 2

    def test_unknown_institution_override(self, scrape_env: None) -> None:
        result = runner.invoke(app, ["scrape", "--institution", "visa-cal"])

        assert result.exit_code == 2
