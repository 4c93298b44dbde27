from __future__ import annotations


class CardLedgerError(Exception):
    """Base error for cardledger failures."""


class TransportError(CardLedgerError):
    """Raised when the session transport cannot deliver a JSON response."""


class ConfigError(CardLedgerError):
    """Raised when runtime configuration is missing or invalid."""
