# Overview: Bill totals and payment reconciliation as pure Decimal arithmetic.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..errors import PaymentMismatchError


PAYMENT_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class BillTotals:
    subtotal: Decimal
    items_discount: Decimal
    bill_discount: Decimal
    total_discount: Decimal
    tax_amount: Decimal
    total: Decimal


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def line_total(unit_price, quantity: int, discount_amount=None) -> Decimal:
    """unit_price * quantity - discount_amount, no rounding."""
    return _dec(unit_price) * int(quantity) - _dec(discount_amount)


def compute_totals(items: Iterable, bill_discount=None, tax_amount=None) -> BillTotals:
    """
    Totals for a list of line items.

    Each item exposes unit_price, quantity and discount_amount. Negative
    totals are returned as-is; rejecting them is the caller's job.
    """
    subtotal = ZERO
    items_discount = ZERO
    for item in items:
        subtotal += _dec(item.unit_price) * int(item.quantity)
        items_discount += _dec(item.discount_amount)

    bill_discount = _dec(bill_discount)
    tax_amount = _dec(tax_amount)
    total_discount = items_discount + bill_discount
    return BillTotals(
        subtotal=subtotal,
        items_discount=items_discount,
        bill_discount=bill_discount,
        total_discount=total_discount,
        tax_amount=tax_amount,
        total=subtotal - total_discount + tax_amount,
    )


def reconcile_payments(total, payments: Iterable, tolerance=PAYMENT_TOLERANCE) -> Decimal:
    """
    Sum tendered payments and require them to match `total` within `tolerance`.

    Returns the tendered sum; raises PaymentMismatchError naming both amounts.
    """
    total = _dec(total)
    paid = sum((_dec(p.amount) for p in payments), ZERO)
    if abs(paid - total) > _dec(tolerance):
        raise PaymentMismatchError(
            f"Payment amount ({paid}) does not match total ({total})",
            details={"payment_total": float(paid), "bill_total": float(total)},
        )
    return paid
