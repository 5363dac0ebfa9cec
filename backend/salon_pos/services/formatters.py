# Overview: Response DTOs and the functions that build them from ORM rows.

"""
Every read or write operation returns one of these dataclasses instead of an
ORM object. Routes call `.to_dict()` on them; money is rendered as float and
datetimes as ISO-8601 with a trailing Z.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal

from ..time_utils import to_utc_z


def money(value) -> float:
    if value is None:
        return 0.0
    return float(value)


def money2(value) -> float:
    """Money rounded to 2 dp for aggregated figures."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.01")))


class _View:
    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CustomerRef(_View):
    customer_id: int
    customer_name: str
    phone: str | None = None
    phone_masked: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class BranchRef(_View):
    branch_id: int
    branch_name: str
    branch_code: str | None = None


@dataclass(frozen=True)
class EmployeeRef(_View):
    employee_id: int
    full_name: str


@dataclass(frozen=True)
class BillItemView(_View):
    item_id: int
    item_type: str
    item_name: str
    service: dict | None
    package: dict | None
    product: dict | None
    employee: EmployeeRef | None
    employees: list[EmployeeRef]
    chair: dict | None
    quantity: int
    unit_price: float
    discount_amount: float
    total_price: float
    status: str
    notes: str | None


@dataclass(frozen=True)
class PaymentView(_View):
    payment_id: int
    payment_mode: str
    amount: float
    transaction_reference: str | None
    bank_name: str | None
    transaction_date: str | None


@dataclass(frozen=True)
class BillView(_View):
    bill_id: int
    bill_number: str
    customer: CustomerRef
    branch: BranchRef
    bill_date: str | None
    items: list[BillItemView]
    subtotal: float
    discount_amount: float
    discount_reason: str | None
    tax_amount: float
    total_amount: float
    payments: list[PaymentView]
    status: str
    notes: str | None
    is_imported: bool
    created_by: dict | None
    created_at: str | None
    updated_at: str | None


@dataclass(frozen=True)
class BillRow(_View):
    bill_id: int
    bill_number: str
    customer: CustomerRef
    branch: BranchRef
    bill_date: str | None
    total_amount: float
    status: str
    items_count: int


@dataclass(frozen=True)
class TransferItemView(_View):
    product_id: int
    product_name: str
    quantity_requested: int
    quantity_sent: int | None
    quantity_received: int | None


@dataclass(frozen=True)
class TransferView(_View):
    transfer_id: int
    transfer_number: str
    from_location: dict
    to_location: dict
    status: str
    items: list[TransferItemView]
    notes: str | None
    requested_by: int | None
    requested_at: str | None
    approved_by: int | None
    approved_at: str | None
    completed_at: str | None
    cancelled_at: str | None


@dataclass(frozen=True)
class InventoryRow(_View):
    inventory_id: int
    product: dict
    location: dict
    batch_number: str | None
    quantity: int
    reserved_quantity: int
    available_quantity: int
    expiry_date: str | None
    is_low_stock: bool
    last_restocked_at: str | None


@dataclass(frozen=True)
class AdjustmentResult(_View):
    inventory_id: int
    product_id: int
    location_id: int
    adjustment_type: str
    previous_quantity: int
    new_quantity: int
    transaction_id: int


@dataclass(frozen=True)
class CashSummary(_View):
    date: str
    branch_id: int
    bills_count: int
    total_revenue: float
    payment_breakdown: dict
    cash_sources: float
    bank_deposits: float
    cash_expenses: float
    expected_cash: float
    cash_sources_detail: list[dict] = field(default_factory=list)
    bank_deposits_detail: list[dict] = field(default_factory=list)
    expenses_detail: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class CashCountResult(_View):
    date: str
    branch_id: int
    expected_cash: float
    actual_cash: float
    difference: float
    status: str  # balanced, surplus, shortage
    denominations: dict | None
    notes: str | None
    recorded_at: str | None


@dataclass(frozen=True)
class DayService(_View):
    service_name: str
    contribution_type: str
    contribution_percent: int


@dataclass(frozen=True)
class DayBreakdown(_View):
    date: str
    services_count: int
    services: list[DayService]
    stars: float
    earnings: float


@dataclass(frozen=True)
class EmployeePerformance(_View):
    employee_id: int
    employee_name: str
    services_completed: int
    revenue_generated: float
    star_points: float
    monthly_star_goal: int
    daily_avg_earnings: float
    daily_avg_stars: float
    daily_breakdown: list[DayBreakdown]


@dataclass(frozen=True)
class PerformanceReport(_View):
    start_date: str
    end_date: str
    days: int
    global_monthly_star_goal: int
    employees: list[EmployeePerformance]


def _customer_ref(customer, *, full: bool = True) -> CustomerRef:
    if full:
        return CustomerRef(
            customer_id=customer.id,
            customer_name=customer.customer_name,
            phone=customer.phone,
            phone_masked=customer.phone_masked,
            email=customer.email,
        )
    return CustomerRef(
        customer_id=customer.id,
        customer_name=customer.customer_name,
        phone_masked=customer.phone_masked,
    )


def _branch_ref(branch) -> BranchRef:
    return BranchRef(branch_id=branch.id, branch_name=branch.name, branch_code=branch.code)


def _item_name(item) -> str:
    name = item.item_name
    if name:
        return name
    fallback = {"service": "Unknown Service", "package": "Unknown Package", "product": "Unknown Product"}
    return item.notes or fallback.get(item.item_type, "Unknown Item")


def _ref_or_placeholder(obj, obj_id, id_key: str, name_key: str, name_attr: str, notes, unknown: str):
    if obj is not None:
        return {id_key: obj.id, name_key: getattr(obj, name_attr)}
    if obj_id is not None:
        return {id_key: obj_id, name_key: notes or unknown}
    return None


def format_bill_item(item) -> BillItemView:
    return BillItemView(
        item_id=item.id,
        item_type=item.item_type,
        item_name=_item_name(item),
        service=_ref_or_placeholder(
            item.service, item.service_id, "service_id", "service_name", "service_name", item.notes, "Unknown Service"
        ),
        package=_ref_or_placeholder(
            item.package, item.package_id, "package_id", "package_name", "package_name", item.notes, "Unknown Package"
        ),
        product=_ref_or_placeholder(
            item.product, item.product_id, "product_id", "product_name", "product_name", item.notes, "Unknown Product"
        ),
        employee=EmployeeRef(item.employee.id, item.employee.full_name) if item.employee else None,
        employees=[EmployeeRef(row.employee.id, row.employee.full_name) for row in item.employees],
        chair={"chair_id": item.chair.id, "chair_number": item.chair.chair_number} if item.chair else None,
        quantity=item.quantity,
        unit_price=money(item.unit_price),
        discount_amount=money(item.discount_amount),
        total_price=money(item.total_price),
        status=item.status,
        notes=item.notes,
    )


def format_payment(payment) -> PaymentView:
    return PaymentView(
        payment_id=payment.id,
        payment_mode=payment.payment_mode,
        amount=money(payment.amount),
        transaction_reference=payment.transaction_reference,
        bank_name=payment.bank_name,
        transaction_date=to_utc_z(payment.transaction_date),
    )


def format_bill(bill) -> BillView:
    return BillView(
        bill_id=bill.id,
        bill_number=bill.bill_number,
        customer=_customer_ref(bill.customer),
        branch=_branch_ref(bill.branch),
        bill_date=to_utc_z(bill.bill_date),
        items=[format_bill_item(item) for item in bill.items],
        subtotal=money(bill.subtotal),
        discount_amount=money(bill.discount_amount),
        discount_reason=bill.discount_reason,
        tax_amount=money(bill.tax_amount),
        total_amount=money(bill.total_amount),
        payments=[format_payment(p) for p in bill.payments],
        status=bill.status,
        notes=bill.notes,
        is_imported=bool(bill.is_imported),
        created_by={"user_id": bill.creator.id, "full_name": bill.creator.full_name} if bill.creator else None,
        created_at=to_utc_z(bill.created_at),
        updated_at=to_utc_z(bill.updated_at),
    )


def format_bill_row(bill, items_count: int) -> BillRow:
    return BillRow(
        bill_id=bill.id,
        bill_number=bill.bill_number,
        customer=_customer_ref(bill.customer, full=False),
        branch=BranchRef(branch_id=bill.branch.id, branch_name=bill.branch.name),
        bill_date=to_utc_z(bill.bill_date),
        total_amount=money(bill.total_amount),
        status=bill.status,
        items_count=int(items_count or 0),
    )


def _location_ref(location) -> dict:
    return {"location_id": location.id, "location_name": location.name}


def format_transfer(transfer) -> TransferView:
    return TransferView(
        transfer_id=transfer.id,
        transfer_number=transfer.transfer_number,
        from_location=_location_ref(transfer.from_location),
        to_location=_location_ref(transfer.to_location),
        status=transfer.status,
        items=[
            TransferItemView(
                product_id=item.product_id,
                product_name=item.product.product_name,
                quantity_requested=item.quantity_requested,
                quantity_sent=item.quantity_sent,
                quantity_received=item.quantity_received,
            )
            for item in transfer.items
        ],
        notes=transfer.notes,
        requested_by=transfer.requested_by,
        requested_at=to_utc_z(transfer.requested_at),
        approved_by=transfer.approved_by,
        approved_at=to_utc_z(transfer.approved_at),
        completed_at=to_utc_z(transfer.completed_at),
        cancelled_at=to_utc_z(transfer.cancelled_at),
    )


def format_inventory_row(row) -> InventoryRow:
    product = row.product
    return InventoryRow(
        inventory_id=row.id,
        product={
            "product_id": product.id,
            "product_name": product.product_name,
            "sku": product.sku,
            "category": product.category,
            "reorder_level": product.reorder_level,
        },
        location=_location_ref(row.location),
        batch_number=row.batch_number,
        quantity=row.quantity,
        reserved_quantity=row.reserved_quantity,
        available_quantity=row.available_quantity,
        expiry_date=row.expiry_date.isoformat() if row.expiry_date else None,
        is_low_stock=row.quantity <= (product.reorder_level or 0),
        last_restocked_at=to_utc_z(row.last_restocked_at),
    )
