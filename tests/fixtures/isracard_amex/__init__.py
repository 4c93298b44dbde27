from tests.fixtures.isracard_amex.payloads import (
    card_charge,
    dashboard_response,
    raw_record,
    transactions_response,
)
from tests.fixtures.isracard_amex.transport import FakeTransport

__all__ = [
    "FakeTransport",
    "card_charge",
    "dashboard_response",
    "raw_record",
    "transactions_response",
]
