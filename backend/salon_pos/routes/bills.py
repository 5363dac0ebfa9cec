# backend/salon_pos/routes/bills.py
"""
Bill API routes: create, list, detail, update, cancel.
"""
from flask import Blueprint, current_app, g, request

from salon_pos.decorators import require_auth, require_role
from salon_pos.errors import BillingError
from salon_pos.extensions import db
from salon_pos.responses import error, internal_error, paginated, success
from salon_pos.services.bill_service import BillService
from salon_pos.validation import arg_int, page_params


bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")

BILLING_ROLES = ("owner", "developer", "manager", "cashier")


def _service() -> BillService:
    return BillService(
        db.session,
        payment_tolerance=current_app.config["PAYMENT_TOLERANCE"],
        strict_inventory=current_app.config["STRICT_SALE_INVENTORY"],
    )


@bills_bp.route("", methods=["POST"])
@require_auth
@require_role(*BILLING_ROLES)
def create_bill():
    """
    Create a completed bill with its items, employee splits and payments.

    Request body:
    {
        "customer_id": int,
        "branch_id": int,
        "items": [{"item_type": "service|package|product", "service_id": int, ...,
                   "quantity": int, "unit_price": number, "discount_amount": number,
                   "employee_id": int, "employee_ids": [int], "chair_id": int}],
        "payments": [{"payment_mode": "cash|card|upi|online|other", "amount": number}],
        "discount_amount": number (optional),
        "tax_amount": number (optional),
        "bill_date": ISO-8601 (optional),
        "notes": str (optional)
    }

    Returns:
        201: Bill created
        400: Invalid request
        404: Customer, branch, catalog item or employee not found
        422: Payment mismatch / insufficient stock
    """
    try:
        bill = _service().create_bill(request.get_json(silent=True), g.actor)
        return success(bill, status=201)
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Bill creation failed")
        return internal_error()


@bills_bp.route("", methods=["GET"])
@require_auth
def list_bills():
    """
    Query params: branch_id, customer_id, status, start_date, end_date, search,
    sort_by (bill_date|created_at|total_amount), sort_order, page, limit.
    Non-owner roles only ever see their own branch.
    """
    try:
        args = request.args
        page, limit = page_params(
            args,
            default_limit=current_app.config["DEFAULT_PAGE_SIZE"],
            max_limit=current_app.config["MAX_PAGE_SIZE"],
        )
        filters = {
            "branch_id": arg_int(args, "branch_id"),
            "customer_id": arg_int(args, "customer_id"),
            "status": args.get("status"),
            "start_date": args.get("start_date"),
            "end_date": args.get("end_date"),
            "search": args.get("search"),
            "sort_by": args.get("sort_by"),
            "sort_order": args.get("sort_order"),
        }
        rows, total = _service().get_bills(filters, g.actor, page=page, limit=limit)
        return paginated(rows, page=page, limit=limit, total=total)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Bill listing failed")
        return internal_error()


@bills_bp.route("/<int:bill_id>", methods=["GET"])
@require_auth
def get_bill(bill_id: int):
    try:
        return success(_service().get_bill(bill_id, g.actor))
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Bill lookup failed")
        return internal_error()


@bills_bp.route("/<int:bill_id>", methods=["PATCH"])
@require_auth
@require_role(*BILLING_ROLES)
def update_bill(bill_id: int):
    """
    Request body: {"status"?: str, "notes"?: str, "items"?: [{"item_id": int, "status": str}]}

    Returns:
        200: Updated bill
        422: Status change on a completed or cancelled bill
    """
    try:
        bill = _service().update_bill(bill_id, request.get_json(silent=True), g.actor)
        return success(bill)
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Bill update failed")
        return internal_error()


@bills_bp.route("/<int:bill_id>", methods=["DELETE"])
@require_auth
@require_role("owner", "developer", "manager")
def cancel_bill(bill_id: int):
    """Cancel (never delete) a bill. Returns 204."""
    try:
        _service().cancel_bill(bill_id, g.actor)
        return "", 204
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Bill cancellation failed")
        return internal_error()
