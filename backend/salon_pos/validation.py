from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from salon_pos.errors import ValidationError
from salon_pos.time_utils import parse_date, parse_iso_datetime


# Maximum single money value: 9,999,999,999.99
# Matches Numeric(12, 2) storage
MAX_AMOUNT = Decimal("9999999999.99")

ITEM_TYPES = ("service", "package", "product")
ITEM_STATUSES = ("pending", "in_progress", "completed", "rejected")
BILL_STATUSES = ("draft", "pending", "completed", "cancelled")
PAYMENT_MODES = ("cash", "card", "upi", "online", "other")

ITEM_REFERENCE_FIELD = {
    "service": "service_id",
    "package": "package_id",
    "product": "product_id",
}


def to_int(value: Any, field_name: str) -> int:
    """Strict integer coercion; rejects floats, bools and scientific notation."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field_name} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field_name} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{field_name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field_name} must be an integer, not a decimal")
    raise ValidationError(f"{field_name} must be an integer")


def to_positive_int(value: Any, field_name: str) -> int:
    result = to_int(value, field_name)
    if result <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return result


def optional_int(value: Any, field_name: str) -> int | None:
    if value is None or value == "":
        return None
    return to_int(value, field_name)


def to_decimal(value: Any, field_name: str, *, allow_negative: bool = False) -> Decimal:
    """Money coercion. Floats go through str() so 0.1 stays 0.1."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            amount = Decimal(str(value))
        elif isinstance(value, str) and value.strip():
            amount = Decimal(value.strip())
        else:
            raise ValidationError(f"{field_name} must be a number")
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    if not allow_negative and amount < 0:
        raise ValidationError(f"{field_name} must be non-negative")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{field_name} exceeds maximum allowed amount")
    return amount


def optional_str(value: Any, field_name: str, max_length: int) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if len(s) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return s


def choice(value: Any, field_name: str, allowed: tuple[str, ...]) -> str:
    if not isinstance(value, str) or value not in allowed:
        raise ValidationError(f"{field_name} must be one of {list(allowed)}")
    return value


def optional_datetime(value: Any, field_name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime")


@dataclass(frozen=True)
class BillItemInput:
    """One validated line of a createBill payload."""
    item_type: str
    reference_id: int
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal = Decimal("0")
    discount_percent: Decimal = Decimal("0")
    employee_id: int | None = None
    employee_ids: tuple[int, ...] = ()
    chair_id: int | None = None
    status: str = "completed"
    notes: str | None = None

    @property
    def assignees(self) -> tuple[int, ...]:
        """Employees credited with this line, in the order they were given."""
        return self.employee_ids

    @property
    def primary_employee_id(self) -> int | None:
        if self.employee_id is not None:
            return self.employee_id
        return self.employee_ids[0] if self.employee_ids else None


@dataclass(frozen=True)
class PaymentInput:
    payment_mode: str
    amount: Decimal
    transaction_reference: str | None = None
    bank_name: str | None = None
    notes: str | None = None


@dataclass
class BillUpdateInput:
    status: str | None = None
    notes: str | None = None
    notes_provided: bool = False
    item_statuses: list[tuple[int, str]] = field(default_factory=list)


def _employee_ids(raw: Any, index: int) -> tuple[int, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(f"items[{index}].employee_ids must be a list")
    seen: list[int] = []
    for value in raw:
        if value is None or value == "":
            continue
        emp_id = to_int(value, f"items[{index}].employee_ids")
        if emp_id not in seen:
            seen.append(emp_id)
    return tuple(seen)


def parse_bill_items(items: Any) -> list[BillItemInput]:
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required")

    parsed = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        prefix = f"items[{index}]"

        item_type = choice(raw.get("item_type"), f"{prefix}.item_type", ITEM_TYPES)
        ref_field = ITEM_REFERENCE_FIELD[item_type]
        if raw.get(ref_field) in (None, ""):
            raise ValidationError(
                "Item ID is required for the specified item type",
                details={"item": index, "field": ref_field},
            )

        discount_percent = to_decimal(raw.get("discount_percentage") or 0, f"{prefix}.discount_percentage")
        if discount_percent > 100:
            raise ValidationError(f"{prefix}.discount_percentage must be between 0 and 100")

        status = raw.get("status") or "completed"
        if status not in ITEM_STATUSES:
            status = "completed"

        parsed.append(
            BillItemInput(
                item_type=item_type,
                reference_id=to_int(raw[ref_field], f"{prefix}.{ref_field}"),
                quantity=to_positive_int(raw.get("quantity"), f"{prefix}.quantity"),
                unit_price=to_decimal(raw.get("unit_price"), f"{prefix}.unit_price"),
                discount_amount=to_decimal(raw.get("discount_amount") or 0, f"{prefix}.discount_amount"),
                discount_percent=discount_percent,
                employee_id=optional_int(raw.get("employee_id"), f"{prefix}.employee_id"),
                employee_ids=_employee_ids(raw.get("employee_ids"), index),
                chair_id=optional_int(raw.get("chair_id"), f"{prefix}.chair_id"),
                status=status,
                notes=optional_str(raw.get("notes"), f"{prefix}.notes", 500),
            )
        )
    return parsed


def parse_payments(payments: Any) -> list[PaymentInput]:
    if not isinstance(payments, list) or not payments:
        raise ValidationError("At least one payment is required")

    parsed = []
    for index, raw in enumerate(payments):
        if not isinstance(raw, dict):
            raise ValidationError(f"payments[{index}] must be an object")
        prefix = f"payments[{index}]"
        amount = to_decimal(raw.get("amount"), f"{prefix}.amount")
        if amount <= 0:
            raise ValidationError(f"{prefix}.amount must be positive")
        parsed.append(
            PaymentInput(
                payment_mode=choice(raw.get("payment_mode"), f"{prefix}.payment_mode", PAYMENT_MODES),
                amount=amount,
                transaction_reference=optional_str(raw.get("transaction_reference"), f"{prefix}.transaction_reference", 100),
                bank_name=optional_str(raw.get("bank_name"), f"{prefix}.bank_name", 100),
                notes=optional_str(raw.get("notes"), f"{prefix}.notes", 500),
            )
        )
    return parsed


def parse_bill_update(payload: Any) -> BillUpdateInput:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be an object")

    update = BillUpdateInput()
    if payload.get("status") is not None:
        update.status = choice(payload["status"], "status", BILL_STATUSES)
    if "notes" in payload:
        update.notes_provided = True
        update.notes = optional_str(payload.get("notes"), "notes", 1000)

    items = payload.get("items")
    if items:
        if not isinstance(items, list):
            raise ValidationError("items must be a list")
        for index, raw in enumerate(items):
            if not isinstance(raw, dict):
                raise ValidationError(f"items[{index}] must be an object")
            update.item_statuses.append((
                to_int(raw.get("item_id"), f"items[{index}].item_id"),
                choice(raw.get("status"), f"items[{index}].status", ITEM_STATUSES),
            ))
    return update


# Query-string helpers (request.args is a MultiDict of strings)

def arg_int(args, name: str) -> int | None:
    return optional_int(args.get(name), name)


def arg_date(args, name: str):
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return parse_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date")


def arg_bool(args, name: str) -> bool:
    return (args.get(name) or "").strip().lower() in {"1", "true", "yes", "on"}


def page_params(args, *, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    page = arg_int(args, "page") or 1
    limit = arg_int(args, "limit") or default_limit
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1:
        raise ValidationError("limit must be at least 1")
    return page, min(limit, max_limit)
