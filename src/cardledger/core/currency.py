from __future__ import annotations

SHEKEL_CURRENCY = "ILS"
ALT_SHEKEL_CURRENCY = "NIS"
SHEKEL_CURRENCY_KEYWORDS = frozenset({'ש"ח', "שקל"})


def normalize_currency(code: str) -> str:
    """Map the institution's shekel spellings to ILS; pass anything else through."""
    if code in SHEKEL_CURRENCY_KEYWORDS or code == ALT_SHEKEL_CURRENCY:
        return SHEKEL_CURRENCY
    return code
