# Overview: Bill creation, listing, detail, update and cancellation.

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_

from ..errors import BusinessRuleViolation, NotFoundError, ValidationError
from ..models import (
    Bill,
    BillItem,
    BillItemEmployee,
    Branch,
    Customer,
    Package,
    Payment,
    Product,
    Service,
    User,
)
from ..time_utils import END_OF_DAY, parse_date, utcnow
from ..validation import (
    BILL_STATUSES,
    optional_datetime,
    optional_str,
    parse_bill_items,
    parse_bill_update,
    parse_payments,
    to_decimal,
    to_int,
)
from .access import ensure_branch_access, scoped_branch_id
from .concurrency import lock_for_update
from .document_service import next_bill_number
from .formatters import BillView, format_bill, format_bill_row
from .inventory_service import InventoryService
from .totals import PAYMENT_TOLERANCE, compute_totals, line_total, reconcile_payments
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

CATALOG_MODELS = {
    "service": (Service, "Service"),
    "package": (Package, "Package"),
    "product": (Product, "Product"),
}

SORT_COLUMNS = {
    "bill_date": Bill.bill_date,
    "billDate": Bill.bill_date,
    "created_at": Bill.created_at,
    "total_amount": Bill.total_amount,
}

EDITABLE_STATUSES = ("draft", "pending")


class BillService:
    """
    Bill writer and reader.

    create_bill runs as one unit of work: totals, payment check, numbering,
    the bill graph, employee splits, customer counters and stock effects are
    all committed together or not at all.
    """

    def __init__(self, session, *, payment_tolerance=PAYMENT_TOLERANCE, strict_inventory: bool = False):
        self.session = session
        self.payment_tolerance = Decimal(str(payment_tolerance))
        self.strict_inventory = strict_inventory
        self.inventory = InventoryService(session)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _require(self, model, obj_id: int, label: str):
        obj = self.session.get(model, obj_id)
        if obj is None:
            raise NotFoundError(f"{label} not found", details={"id": obj_id})
        return obj

    def _check_references(self, items) -> None:
        employee_ids: set[int] = set()
        for item in items:
            model, label = CATALOG_MODELS[item.item_type]
            self._require(model, item.reference_id, label)
            if item.employee_id is not None:
                employee_ids.add(item.employee_id)
            employee_ids.update(item.employee_ids)

        if employee_ids:
            found = {
                row[0]
                for row in self.session.query(User.id).filter(User.id.in_(employee_ids)).all()
            }
            missing = sorted(employee_ids - found)
            if missing:
                raise NotFoundError("Employee not found", details={"employee_ids": missing})

    def create_bill(self, payload: dict, actor=None) -> BillView:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")

        customer_id = to_int(payload.get("customer_id"), "customer_id")
        branch_id = to_int(payload.get("branch_id"), "branch_id")
        items = parse_bill_items(payload.get("items"))
        payments = parse_payments(payload.get("payments"))
        bill_discount = to_decimal(payload.get("discount_amount") or 0, "discount_amount")
        tax_amount = to_decimal(payload.get("tax_amount") or 0, "tax_amount")
        discount_reason = optional_str(payload.get("discount_reason"), "discount_reason", 255)
        notes = optional_str(payload.get("notes"), "notes", 1000)
        bill_date = optional_datetime(payload.get("bill_date"), "bill_date")
        actor_id = actor.user_id if actor else None

        if actor is not None:
            ensure_branch_access(actor, branch_id)

        with UnitOfWork(self.session):
            customer = lock_for_update(self.session.query(Customer).filter_by(id=customer_id)).first()
            if customer is None:
                raise NotFoundError("Customer not found")
            branch = self.session.get(Branch, branch_id)
            if branch is None:
                raise NotFoundError("Branch not found")
            self._check_references(items)

            totals = compute_totals(items, bill_discount, tax_amount)
            if totals.total < 0:
                raise ValidationError(
                    "Bill total cannot be negative",
                    details={"subtotal": float(totals.subtotal), "discount": float(totals.total_discount)},
                )
            reconcile_payments(totals.total, payments, self.payment_tolerance)

            now = utcnow()
            bill = Bill(
                bill_number=next_bill_number(self.session, branch.code, now),
                branch_id=branch.id,
                customer_id=customer.id,
                bill_date=bill_date or now,
                subtotal=totals.subtotal,
                discount_amount=totals.total_discount,
                discount_reason=discount_reason,
                tax_amount=totals.tax_amount,
                total_amount=totals.total,
                status="completed",
                notes=notes,
                created_by=actor_id,
                created_at=now,
                updated_at=now,
            )
            self.session.add(bill)
            self.session.flush()

            lines = []
            for item in items:
                line = BillItem(
                    bill_id=bill.id,
                    item_type=item.item_type,
                    service_id=item.reference_id if item.item_type == "service" else None,
                    package_id=item.reference_id if item.item_type == "package" else None,
                    product_id=item.reference_id if item.item_type == "product" else None,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount_amount=item.discount_amount,
                    discount_percent=item.discount_percent,
                    total_price=line_total(item.unit_price, item.quantity, item.discount_amount),
                    employee_id=item.primary_employee_id,
                    chair_id=item.chair_id,
                    status=item.status,
                    notes=item.notes,
                )
                self.session.add(line)
                lines.append((item, line))

            for p in payments:
                self.session.add(
                    Payment(
                        bill_id=bill.id,
                        payment_mode=p.payment_mode,
                        amount=p.amount,
                        transaction_reference=p.transaction_reference,
                        bank_name=p.bank_name,
                        notes=p.notes,
                        transaction_date=now,
                        created_by=actor_id,
                    )
                )
            self.session.flush()

            # Employee splits are written after the core graph.
            for item, line in lines:
                for employee_id in item.assignees:
                    self.session.add(BillItemEmployee(bill_item_id=line.id, employee_id=employee_id))
            self.session.flush()

            customer.total_visits = (customer.total_visits or 0) + 1
            customer.total_spent = (customer.total_spent or Decimal("0")) + totals.total
            customer.last_visit_date = now

            location = branch.active_location
            for item, line in lines:
                if item.item_type != "product":
                    continue
                self.inventory.decrement_for_sale(
                    bill_id=bill.id,
                    product_id=item.reference_id,
                    quantity=item.quantity,
                    location=location,
                    created_by=actor_id,
                    strict=self.strict_inventory,
                )

            self.session.flush()
            bill_id = bill.id

        logger.info(
            "Bill %s created at branch %s: total=%s payments=%d",
            bill.bill_number, branch_id, totals.total, len(payments),
        )
        return self.get_bill(bill_id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _load(self, bill_id: int) -> Bill:
        bill = self.session.get(Bill, bill_id)
        if bill is None:
            raise NotFoundError("Bill not found")
        return bill

    def get_bill(self, bill_id: int, actor=None) -> BillView:
        bill = self._load(bill_id)
        if actor is not None:
            ensure_branch_access(actor, bill.branch_id)
        return format_bill(bill)

    def get_bills(self, filters: dict | None = None, actor=None, *, page: int = 1, limit: int = 20) -> tuple[list, int]:
        filters = filters or {}
        query = self.session.query(Bill).join(Customer, Customer.id == Bill.customer_id)

        branch_id = scoped_branch_id(actor, filters.get("branch_id"))
        if branch_id is not None:
            query = query.filter(Bill.branch_id == branch_id)
        if filters.get("customer_id") is not None:
            query = query.filter(Bill.customer_id == filters["customer_id"])
        status = filters.get("status")
        if status:
            if status not in BILL_STATUSES:
                raise ValidationError(f"status must be one of {list(BILL_STATUSES)}")
            query = query.filter(Bill.status == status)

        try:
            start = parse_date(filters.get("start_date"))
            end = parse_date(filters.get("end_date"))
        except ValueError:
            raise ValidationError("start_date and end_date must be ISO dates")
        if start:
            query = query.filter(Bill.bill_date >= datetime.combine(start, datetime.min.time()))
        if end:
            query = query.filter(Bill.bill_date <= datetime.combine(end, END_OF_DAY))

        search = (filters.get("search") or "").strip()
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Bill.bill_number).like(pattern),
                    func.lower(Customer.customer_name).like(pattern),
                )
            )

        sort_column = SORT_COLUMNS.get(filters.get("sort_by") or "bill_date")
        if sort_column is None:
            raise ValidationError(f"sort_by must be one of {sorted(set(SORT_COLUMNS) - {'billDate'})}")
        sort_order = (filters.get("sort_order") or "desc").lower()
        if sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order must be asc or desc")
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()

        total = query.count()
        bills = query.order_by(ordering, Bill.id.desc()).offset((page - 1) * limit).limit(limit).all()

        counts = {}
        if bills:
            counts = dict(
                self.session.query(BillItem.bill_id, func.count(BillItem.id))
                .filter(BillItem.bill_id.in_([b.id for b in bills]))
                .group_by(BillItem.bill_id)
                .all()
            )
        return [format_bill_row(b, counts.get(b.id, 0)) for b in bills], total

    # ------------------------------------------------------------------
    # Update / cancel
    # ------------------------------------------------------------------

    def update_bill(self, bill_id: int, payload: dict, actor=None) -> BillView:
        """
        Status changes are allowed only while the bill is draft/pending.
        Notes are always editable; item statuses may change on any bill.
        """
        update = parse_bill_update(payload)

        with UnitOfWork(self.session):
            bill = lock_for_update(self.session.query(Bill).filter_by(id=bill_id)).first()
            if bill is None:
                raise NotFoundError("Bill not found")
            if actor is not None:
                ensure_branch_access(actor, bill.branch_id)

            if update.status and bill.status not in EDITABLE_STATUSES:
                raise BusinessRuleViolation(
                    "Cannot update status of completed or cancelled bill",
                    details={"current_status": bill.status, "requested_status": update.status},
                )
            if update.status:
                bill.status = update.status
            if update.notes_provided:
                bill.notes = update.notes

            items_by_id = {item.id: item for item in bill.items}
            for item_id, status in update.item_statuses:
                item = items_by_id.get(item_id)
                if item is not None:
                    item.status = status

            bill.updated_at = utcnow()

        return self.get_bill(bill_id)

    def cancel_bill(self, bill_id: int, actor=None) -> None:
        """
        Flip the bill to cancelled. Items, payments, stock and customer
        counters are left as they are. Cancelling twice is a no-op.
        """
        with UnitOfWork(self.session):
            bill = lock_for_update(self.session.query(Bill).filter_by(id=bill_id)).first()
            if bill is None:
                raise NotFoundError("Bill not found")
            if actor is not None:
                ensure_branch_access(actor, bill.branch_id)
            if bill.status == "cancelled":
                return
            bill.status = "cancelled"
            bill.updated_at = utcnow()

        logger.info("Bill %s cancelled", bill_id)
