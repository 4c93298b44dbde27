"""Installment reconciliation and time-window filtering of canonical transactions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from cardledger.core.dates import add_months
from cardledger.models.transaction import CanonicalTransaction, TransactionType

InstallmentKey = tuple[int, str]


def _is_installment(txn: CanonicalTransaction) -> bool:
    return txn.type == TransactionType.INSTALLMENTS


def _is_groupable(txn: CanonicalTransaction) -> bool:
    # Without a voucher number legs cannot be tied to one purchase.
    return _is_installment(txn) and txn.identifier is not None


def _purchase_key(txn: CanonicalTransaction) -> InstallmentKey:
    assert txn.identifier is not None
    return (txn.identifier, txn.description)


def _pick_representative(legs: list[CanonicalTransaction]) -> CanonicalTransaction:
    for leg in legs:
        if leg.installments is not None and leg.installments.number == 1:
            return leg
    # Mid-plan window: earliest dated leg wins, undated legs last, stable on ties.
    return min(
        legs,
        key=lambda leg: (leg.date is None, leg.date or datetime.min),
    )


def fix_installments(
    txns: Sequence[CanonicalTransaction],
) -> list[CanonicalTransaction]:
    """
    Collapse the visible legs of each installment purchase into one transaction.

    Legs are grouped by (identifier, description). The representative is the
    first installment when present, otherwise the earliest-dated leg. It
    carries the summed amounts of every leg in the group and no installment
    descriptor, and takes the position of the group's first leg. Normal
    transactions and installment legs without an identifier are returned
    unchanged.
    """
    groups: dict[InstallmentKey, list[CanonicalTransaction]] = {}
    for txn in txns:
        if _is_groupable(txn):
            groups.setdefault(_purchase_key(txn), []).append(txn)

    result: list[CanonicalTransaction] = []
    emitted: set[InstallmentKey] = set()
    for txn in txns:
        if not _is_groupable(txn):
            result.append(txn)
            continue
        key = _purchase_key(txn)
        if key in emitted:
            continue
        emitted.add(key)
        legs = groups[key]
        representative = _pick_representative(legs)
        result.append(
            representative.model_copy(
                update={
                    "original_amount": sum(leg.original_amount for leg in legs),
                    "charged_amount": sum(leg.charged_amount for leg in legs),
                    "installments": None,
                }
            )
        )
    return result


def _last_leg_date(txn: CanonicalTransaction) -> datetime | None:
    if txn.date is None or txn.installments is None:
        return txn.date
    remaining = max(txn.installments.total - txn.installments.number, 0)
    return add_months(txn.date, remaining)


def _in_window(
    txn: CanonicalTransaction, start: datetime, combine_installments: bool
) -> bool:
    if txn.date is None:
        return True
    if txn.date >= start:
        return True
    if combine_installments and _is_installment(txn):
        last_leg = _last_leg_date(txn)
        return last_leg is not None and last_leg >= start
    return False


def filter_old_transactions(
    txns: Sequence[CanonicalTransaction],
    start: datetime,
    combine_installments: bool,
) -> list[CanonicalTransaction]:
    """
    Drop transactions dated before ``start``.

    Undated transactions are kept. With ``combine_installments`` an installment
    leg also survives while its plan still has a leg due on or after ``start``.
    """
    return [txn for txn in txns if _in_window(txn, start, combine_installments)]
