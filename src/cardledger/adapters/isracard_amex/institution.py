from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class InstitutionConfig:
    """One member of the Isracard/Amex family: same API, own host and company code."""

    name: str
    base_url: str
    company_code: str

    @property
    def services_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/services/ProxyRequestHandler.ashx"

    @property
    def login_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/personalarea/Login"


ISRACARD = InstitutionConfig(
    name="isracard",
    base_url="https://digital.isracard.co.il",
    company_code="11",
)

AMEX = InstitutionConfig(
    name="amex",
    base_url="https://he.americanexpress.co.il",
    company_code="77",
)

INSTITUTIONS: dict[str, InstitutionConfig] = {
    ISRACARD.name: ISRACARD,
    AMEX.name: AMEX,
}
