"""Convert raw Isracard/Amex transaction records into canonical transactions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
import re
from typing import Any

import loguru
from loguru import logger
from pydantic import ValidationError

from cardledger.core.currency import normalize_currency
from cardledger.core.dates import parse_date
from cardledger.models.transaction import (
    CanonicalTransaction,
    InstallmentInfo,
    TransactionStatus,
    TransactionType,
)
from cardledger.models.wire import RawTransactionRecord

INSTALLMENTS_KEYWORD = "תשלום"
PLACEHOLDER_DEAL_SUM_TYPE = "1"
SENTINEL_VOUCHER_NUMBER = "000000000"

_RE_INTEGER = re.compile(r"\d+")


class NormalizerLogger:
    """Handles all logging for record normalization."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def record_skipped(self, voucher: str | None, reason: str) -> None:
        self._logger.bind(voucher=voucher, reason=reason).debug(
            "Skipping record {}: {}", voucher, reason
        )

    def unparseable_date(self, raw: str | None, voucher: str | None) -> None:
        self._logger.bind(raw_date=raw, voucher=voucher).warning(
            "Unparseable purchase date {!r} on voucher {}; keeping undated",
            raw,
            voucher,
        )

    def unparseable_identifier(self, voucher: str | None) -> None:
        self._logger.bind(voucher=voucher).warning(
            "Non-numeric voucher number {!r}; identifier left empty", voucher
        )


_log = NormalizerLogger()


def get_installments_info(memo: str | None) -> InstallmentInfo | None:
    """Read "payment N of M" out of a memo, or None when it is not an installment."""
    if not memo or INSTALLMENTS_KEYWORD not in memo:
        return None
    matches = _RE_INTEGER.findall(memo)
    if len(matches) < 2:
        return None
    return InstallmentInfo(number=int(matches[0]), total=int(matches[1]))


def _is_sentinel(voucher: str | None) -> bool:
    return voucher is None or voucher == SENTINEL_VOUCHER_NUMBER


def is_placeholder(record: RawTransactionRecord) -> bool:
    """True for records the institution sends for non-chargeable or incomplete rows."""
    if record.deal_sum_type == PLACEHOLDER_DEAL_SUM_TYPE:
        return True
    return _is_sentinel(record.voucher_number_ratz) and _is_sentinel(
        record.voucher_number_ratz_outbound
    )


def _parse_identifier(voucher: str | None) -> int | None:
    if voucher is None:
        return None
    try:
        return int(voucher)
    except ValueError:
        _log.unparseable_identifier(voucher)
        return None


def _negate(amount: float | None) -> float:
    # Avoid -0.0 so zero-sum rows compare and serialize cleanly.
    return -amount if amount else 0.0


def convert_transaction(
    record: RawTransactionRecord, processed_date: datetime | None
) -> CanonicalTransaction | None:
    if is_placeholder(record):
        _log.record_skipped(
            record.voucher_number_ratz or record.voucher_number_ratz_outbound,
            "placeholder",
        )
        return None

    if record.is_outbound:
        voucher = record.voucher_number_ratz_outbound
        raw_date = record.full_purchase_date_outbound
        description = record.full_supplier_name_outbound
        original_amount = record.deal_sum_outbound
        charged_amount = record.payment_sum_outbound
    else:
        voucher = record.voucher_number_ratz
        raw_date = record.full_purchase_date
        description = record.full_supplier_name_heb
        original_amount = record.deal_sum
        charged_amount = record.payment_sum

    txn_date = parse_date(raw_date)
    if txn_date is None:
        _log.unparseable_date(raw_date, voucher)

    installments = get_installments_info(record.more_info)
    return CanonicalTransaction(
        type=(
            TransactionType.INSTALLMENTS if installments else TransactionType.NORMAL
        ),
        identifier=_parse_identifier(voucher),
        date=txn_date,
        processed_date=processed_date,
        original_amount=_negate(original_amount),
        original_currency=normalize_currency(record.currency_id or ""),
        charged_amount=_negate(charged_amount),
        description=description or "",
        memo=record.more_info or "",
        installments=installments,
        status=TransactionStatus.COMPLETED,
    )


def _coerce_record(raw: Any) -> RawTransactionRecord | None:
    if isinstance(raw, RawTransactionRecord):
        return raw
    try:
        return RawTransactionRecord.parse(raw)
    except ValidationError as e:
        voucher = raw.get("voucherNumberRatz") if isinstance(raw, dict) else None
        _log.record_skipped(voucher, f"malformed record: {e.error_count()} errors")
        return None


def convert_transactions(
    records: Iterable[Any], processed_date: datetime | None
) -> list[CanonicalTransaction]:
    """Convert raw records in order; a malformed record is skipped on its own."""
    txns: list[CanonicalTransaction] = []
    for raw in records:
        record = _coerce_record(raw)
        if record is None:
            continue
        txn = convert_transaction(record, processed_date)
        if txn is not None:
            txns.append(txn)
    return txns
