import unittest
from decimal import Decimal

from salon_pos.errors import PaymentMismatchError, ValidationError
from salon_pos.services.totals import compute_totals, line_total, reconcile_payments
from salon_pos.validation import BillItemInput, PaymentInput, parse_bill_items, parse_payments


def _item(unit_price, quantity=1, discount="0"):
    return BillItemInput(
        item_type="service",
        reference_id=1,
        quantity=quantity,
        unit_price=Decimal(str(unit_price)),
        discount_amount=Decimal(discount),
    )


class TotalsTests(unittest.TestCase):
    def test_bill_discount_reduces_total(self):
        totals = compute_totals([_item(300, quantity=2)], bill_discount=Decimal("50"))

        self.assertEqual(totals.subtotal, Decimal("600"))
        self.assertEqual(totals.total_discount, Decimal("50"))
        self.assertEqual(totals.total, Decimal("550"))

    def test_item_and_bill_discounts_are_combined(self):
        totals = compute_totals(
            [_item(500, discount="25"), _item(200, quantity=3, discount="10")],
            bill_discount=Decimal("15"),
        )

        self.assertEqual(totals.subtotal, Decimal("1100"))
        self.assertEqual(totals.items_discount, Decimal("35"))
        self.assertEqual(totals.total_discount, Decimal("50"))
        self.assertEqual(totals.total, Decimal("1050"))

    def test_negative_total_is_returned_unchanged(self):
        totals = compute_totals([_item(100)], bill_discount=Decimal("150"))
        self.assertEqual(totals.total, Decimal("-50"))

    def test_tax_is_added_after_discounts(self):
        totals = compute_totals([_item(1000)], bill_discount=Decimal("100"), tax_amount=Decimal("162"))
        self.assertEqual(totals.total, Decimal("1062"))

    def test_line_total_is_not_rounded(self):
        self.assertEqual(line_total(Decimal("33.335"), 3, Decimal("0.005")), Decimal("100.000"))


class ReconcilePaymentsTests(unittest.TestCase):
    def test_split_tender_matching_total(self):
        payments = [
            PaymentInput(payment_mode="cash", amount=Decimal("300")),
            PaymentInput(payment_mode="upi", amount=Decimal("250")),
        ]
        self.assertEqual(reconcile_payments(Decimal("550"), payments), Decimal("550"))

    def test_one_paisa_gap_is_tolerated(self):
        payments = [PaymentInput(payment_mode="card", amount=Decimal("549.99"))]
        self.assertEqual(reconcile_payments(Decimal("550"), payments), Decimal("549.99"))

    def test_short_payment_is_rejected(self):
        payments = [PaymentInput(payment_mode="cash", amount=Decimal("500"))]

        with self.assertRaises(PaymentMismatchError) as ctx:
            reconcile_payments(Decimal("550"), payments)

        self.assertEqual(ctx.exception.status_code, 422)
        self.assertEqual(ctx.exception.details, {"payment_total": 500.0, "bill_total": 550.0})
        self.assertIn("does not match total", ctx.exception.message)


class BillPayloadParsingTests(unittest.TestCase):
    def test_employee_ids_are_deduplicated_in_order(self):
        items = parse_bill_items([
            {"item_type": "service", "service_id": 4, "quantity": 1, "unit_price": 800, "employee_ids": [7, 3, 7]},
        ])
        self.assertEqual(items[0].employee_ids, (7, 3))
        self.assertEqual(items[0].primary_employee_id, 7)

    def test_missing_catalog_reference_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_bill_items([{"item_type": "product", "quantity": 1, "unit_price": 250}])
        self.assertEqual(ctx.exception.message, "Item ID is required for the specified item type")

    def test_unknown_item_status_defaults_to_completed(self):
        items = parse_bill_items([
            {"item_type": "package", "package_id": 2, "quantity": 1, "unit_price": 1500, "status": "done"},
        ])
        self.assertEqual(items[0].status, "completed")

    def test_discount_percentage_over_100_is_rejected(self):
        with self.assertRaises(ValidationError):
            parse_bill_items([
                {"item_type": "service", "service_id": 1, "quantity": 1, "unit_price": 100, "discount_percentage": 120},
            ])

    def test_zero_payment_is_rejected(self):
        with self.assertRaises(ValidationError):
            parse_payments([{"payment_mode": "cash", "amount": 0}])

    def test_unknown_payment_mode_is_rejected(self):
        with self.assertRaises(ValidationError):
            parse_payments([{"payment_mode": "cheque", "amount": 100}])
