from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import utcnow


class Bill(db.Model):
    """
    Checkout document for one customer at one branch.

    Created once, atomically, with all of its items, employee splits and
    payments. Afterwards only the status, notes and item statuses change;
    cancellation is a status flip and nothing is ever deleted.
    """
    __tablename__ = "bills"
    __table_args__ = (
        # Composite index for branch-scoped listing by status and date
        db.Index("ix_bills_branch_status_date", "branch_id", "status", "bill_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "MAIN-2026-000042")
    bill_number = db.Column(db.String(64), nullable=False, unique=True)

    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    bill_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    # Money (Numeric(12, 2), handled as Decimal)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount_reason = db.Column(db.String(255), nullable=True)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # Lifecycle status: draft, pending, completed, cancelled
    status = db.Column(db.String(16), nullable=False, default="completed", index=True)

    is_imported = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    branch = db.relationship("Branch", backref=db.backref("bills", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("bills", lazy=True))
    creator = db.relationship("User", foreign_keys=[created_by])
    items = db.relationship("BillItem", back_populates="bill", order_by="BillItem.id", lazy=True)
    payments = db.relationship("Payment", back_populates="bill", order_by="Payment.id", lazy=True)


class BillItem(db.Model):
    """
    One priced line of a bill.

    Exactly one of service_id / package_id / product_id is set, matching
    item_type. total_price is always recomputed server-side.
    """
    __tablename__ = "bill_items"

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)

    item_type = db.Column(db.String(16), nullable=False)  # service, package, product
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=True, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey("packages.id"), nullable=True, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)  # informational only
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    # Legacy single-assignee field; the junction rows are authoritative
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    chair_id = db.Column(db.Integer, db.ForeignKey("chairs.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="completed")  # pending, in_progress, completed, rejected
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    bill = db.relationship("Bill", back_populates="items")
    service = db.relationship("Service")
    package = db.relationship("Package")
    product = db.relationship("Product")
    employee = db.relationship("User", foreign_keys=[employee_id])
    chair = db.relationship("Chair")
    employees = db.relationship(
        "BillItemEmployee", back_populates="bill_item", order_by="BillItemEmployee.id", lazy=True
    )

    @property
    def item_name(self) -> str | None:
        if self.item_type == "service" and self.service:
            return self.service.service_name
        if self.item_type == "package" and self.package:
            return self.package.package_name
        if self.item_type == "product" and self.product:
            return self.product.product_name
        return None


class BillItemEmployee(db.Model):
    """
    Employee credited on a bill item.

    N rows for one item means its revenue and star points are split 1/N
    per employee. The split is derived on read, never stored.
    """
    __tablename__ = "bill_item_employees"
    __table_args__ = (
        db.UniqueConstraint("bill_item_id", "employee_id", name="uq_bill_item_employee"),
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_item_id = db.Column(db.Integer, db.ForeignKey("bill_items.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    bill_item = db.relationship("BillItem", back_populates="employees")
    employee = db.relationship("User")


class Payment(db.Model):
    """Tender applied to a bill. A bill may be split across several payments."""
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    payment_mode = db.Column(db.String(16), nullable=False, index=True)  # cash, card, upi, online, other
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    transaction_reference = db.Column(db.String(100), nullable=True)
    bank_name = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    transaction_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    bill = db.relationship("Bill", back_populates="payments")
