"""Response shapes of the Isracard/Amex ProxyRequestHandler endpoints.

Field names are the institution's; every field is optional because the
payloads are inconsistent month to month. Callers decide what "missing" means.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field

SUCCESS_STATUS = "1"


class WireModel(BaseModel):
    """Shared base for wire models with a short parse alias."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, data: Any) -> Self:
        return cls.model_validate(data)


class ResponseHeader(WireModel):
    status: str | None = Field(default=None, alias="Status")


class RawTransactionRecord(WireModel):
    deal_sum_type: str | None = Field(default=None, alias="dealSumType")
    voucher_number_ratz: str | None = Field(default=None, alias="voucherNumberRatz")
    voucher_number_ratz_outbound: str | None = Field(
        default=None, alias="voucherNumberRatzOutbound"
    )
    more_info: str | None = Field(default=None, alias="moreInfo")
    # Numeric outbound deal sum; non-zero marks the record as outbound.
    deal_sum_outbound: float | None = Field(default=None, alias="dealSumOutbound")
    currency_id: str | None = Field(default=None, alias="currencyId")
    deal_sum: float | None = Field(default=None, alias="dealSum")
    full_purchase_date: str | None = Field(default=None, alias="fullPurchaseDate")
    full_purchase_date_outbound: str | None = Field(
        default=None, alias="fullPurchaseDateOutbound"
    )
    full_supplier_name_heb: str | None = Field(
        default=None, alias="fullSupplierNameHeb"
    )
    full_supplier_name_outbound: str | None = Field(
        default=None, alias="fullSupplierNameOutbound"
    )
    payment_sum: float | None = Field(default=None, alias="paymentSum")
    payment_sum_outbound: float | None = Field(
        default=None, alias="paymentSumOutbound"
    )

    @property
    def is_outbound(self) -> bool:
        return bool(self.deal_sum_outbound)


class CardCharge(WireModel):
    card_index: str | int | None = Field(default=None, alias="cardIndex")
    card_number: str | None = Field(default=None, alias="cardNumber")
    billing_date: str | None = Field(default=None, alias="billingDate")


class DashboardMonthBean(WireModel):
    cards_charges: list[CardCharge] | None = Field(default=None, alias="cardsCharges")


class DashboardMonthResponse(WireModel):
    header: ResponseHeader | None = Field(default=None, alias="Header")
    dashboard_month_bean: DashboardMonthBean | None = Field(
        default=None, alias="DashboardMonthBean"
    )


class TransactionGroup(WireModel):
    # Records stay raw here and are validated one by one during conversion.
    txn_israel: list[Any] | None = Field(default=None, alias="txnIsrael")
    txn_abroad: list[Any] | None = Field(default=None, alias="txnAbroad")


class CardTransactions(WireModel):
    current_card_transactions: list[TransactionGroup] | None = Field(
        default=None, alias="CurrentCardTransactions"
    )


class CardsTransactionsListResponse(WireModel):
    header: ResponseHeader | None = Field(default=None, alias="Header")
    # Keyed by "Index<cardIndex>"; other keys in the bean are ignored.
    cards_transactions_list_bean: dict[str, Any] | None = Field(
        default=None, alias="CardsTransactionsListBean"
    )

    def card_groups(self, index: int) -> list[TransactionGroup] | None:
        if self.cards_transactions_list_bean is None:
            return None
        entry = self.cards_transactions_list_bean.get(f"Index{index}")
        if not isinstance(entry, dict):
            return None
        return CardTransactions.parse(entry).current_card_transactions


class ValidateIdDataBean(WireModel):
    return_code: str | None = Field(default=None, alias="returnCode")
    user_name: str | None = Field(default=None, alias="userName")


class ValidateIdDataResponse(WireModel):
    header: ResponseHeader | None = Field(default=None, alias="Header")
    validate_id_data_bean: ValidateIdDataBean | None = Field(
        default=None, alias="ValidateIdDataBean"
    )


class LogonResponse(WireModel):
    status: str | None = None


def is_success(header: ResponseHeader | None) -> bool:
    return header is not None and header.status == SUCCESS_STATUS
