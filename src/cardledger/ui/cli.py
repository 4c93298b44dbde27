from __future__ import annotations

import dataclasses
from datetime import datetime
from pathlib import Path
import sys

from dotenv import load_dotenv
from loguru import logger
import typer

from cardledger.adapters.clients.transport import UrllibSessionTransport
from cardledger.adapters.isracard_amex import (
    INSTITUTIONS,
    IsracardAmexScraper,
    ScraperCredentials,
    ScraperOptions,
)
from cardledger.core.runtime.config import (
    ScraperRuntimeConfig,
    load_scraper_config_from_env,
)
from cardledger.errors import ConfigError

# Load environment variables from .env
load_dotenv()

app = typer.Typer(
    help="cardledger: Isracard / Amex transaction history as a canonical ledger.",
    no_args_is_help=True,
)


def _configure_logging(level: str) -> None:
    # stdout is reserved for the JSON result
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} [{level}] {name}: {message}",
        level=level,
    )


def _apply_overrides(
    config: ScraperRuntimeConfig,
    *,
    institution: str | None,
    start_date: datetime | None,
    combine_installments: bool | None,
) -> ScraperRuntimeConfig:
    overrides: dict[str, object] = {}
    if institution is not None:
        overrides["institution"] = institution.lower()
    if start_date is not None:
        overrides["start_date"] = start_date
    if combine_installments is not None:
        overrides["combine_installments"] = combine_installments
    return dataclasses.replace(config, **overrides)


@app.command("scrape")
def scrape(
    institution: str | None = typer.Option(
        None, help="Issuer to scrape: isracard or amex"
    ),
    start_date: datetime | None = typer.Option(  # noqa: B008
        None,
        formats=["%Y-%m-%d"],
        help="Earliest transaction date (capped at one year back)",
    ),
    combine_installments: bool | None = typer.Option(
        None,
        "--combine-installments/--split-installments",
        help="Keep installment legs as separate transactions",
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None, help="Write the JSON result to this file instead of stdout"
    ),
) -> None:
    """Log in and print the scraped ledger as JSON."""
    try:
        config = _apply_overrides(
            load_scraper_config_from_env(),
            institution=institution,
            start_date=start_date,
            combine_installments=combine_installments,
        )
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2) from e

    if config.institution not in INSTITUTIONS:
        typer.echo(f"Unknown institution: {config.institution}", err=True)
        raise typer.Exit(code=2)

    _configure_logging(config.log_level)

    scraper = IsracardAmexScraper(
        INSTITUTIONS[config.institution],
        UrllibSessionTransport(timeout_seconds=config.timeout_seconds),
        ScraperOptions(
            start_date=config.start_date,
            combine_installments=config.combine_installments,
        ),
    )
    result = scraper.scrape(
        ScraperCredentials(
            id=config.user_id,
            card6_digits=config.card6_digits,
            password=config.password,
        )
    )

    payload = result.model_dump_json(indent=2)
    if output is not None:
        output.write_text(payload, encoding="utf-8")
    else:
        typer.echo(payload)

    if not result.success:
        raise typer.Exit(code=1)


@app.command("institutions")
def institutions() -> None:
    """List the supported issuers."""
    for name, institution in INSTITUTIONS.items():
        typer.echo(
            f"{name}\t{institution.base_url}\tcompany code {institution.company_code}"
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
