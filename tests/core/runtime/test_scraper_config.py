from __future__ import annotations

from datetime import datetime

import pytest

from cardledger.core.runtime.config import load_scraper_config_from_env
from cardledger.errors import ConfigError

_ENV_NAMES = [
    "CARDLEDGER_INSTITUTION",
    "CARDLEDGER_ID",
    "CARDLEDGER_CARD6_DIGITS",
    "CARDLEDGER_PASSWORD",
    "CARDLEDGER_START_DATE",
    "CARDLEDGER_COMBINE_INSTALLMENTS",
    "CARDLEDGER_TIMEOUT_SECONDS",
    "CARDLEDGER_LOG_LEVEL",
]


@pytest.fixture
def credentials_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CARDLEDGER_ID", "012345678")
    monkeypatch.setenv("CARDLEDGER_CARD6_DIGITS", "123456")
    monkeypatch.setenv("CARDLEDGER_PASSWORD", "hunter2")
    return monkeypatch


class TestLoadScraperConfig:
    def test_defaults(self, credentials_env: pytest.MonkeyPatch) -> None:
        config = load_scraper_config_from_env()

        assert config.institution == "isracard"
        assert config.user_id == "012345678"
        assert config.start_date is None
        assert config.combine_installments is False
        assert config.timeout_seconds == 30.0
        assert config.log_level == "INFO"

    def test_overrides(self, credentials_env: pytest.MonkeyPatch) -> None:
        credentials_env.setenv("CARDLEDGER_INSTITUTION", "AMEX")
        credentials_env.setenv("CARDLEDGER_START_DATE", "2025-01-15")
        credentials_env.setenv("CARDLEDGER_COMBINE_INSTALLMENTS", "yes")
        credentials_env.setenv("CARDLEDGER_TIMEOUT_SECONDS", "12.5")

        config = load_scraper_config_from_env()

        assert config.institution == "amex"
        assert config.start_date == datetime(2025, 1, 15)
        assert config.combine_installments is True
        assert config.timeout_seconds == 12.5

    def test_missing_password(self, credentials_env: pytest.MonkeyPatch) -> None:
        credentials_env.delenv("CARDLEDGER_PASSWORD")

        with pytest.raises(ConfigError, match="CARDLEDGER_PASSWORD"):
            load_scraper_config_from_env()

    def test_unknown_institution(self, credentials_env: pytest.MonkeyPatch) -> None:
        credentials_env.setenv("CARDLEDGER_INSTITUTION", "visa-cal")

        with pytest.raises(ConfigError):
            load_scraper_config_from_env()

    def test_bad_start_date(self, credentials_env: pytest.MonkeyPatch) -> None:
        credentials_env.setenv("CARDLEDGER_START_DATE", "15/01/2025")

        with pytest.raises(ConfigError):
            load_scraper_config_from_env()
