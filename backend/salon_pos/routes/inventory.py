# backend/salon_pos/routes/inventory.py
"""
Inventory API routes: stock levels, adjustments, locations, movement log and transfers.
"""
from flask import Blueprint, current_app, g, request

from salon_pos.decorators import require_auth, require_role
from salon_pos.errors import BillingError
from salon_pos.extensions import db
from salon_pos.responses import error, internal_error, paginated, success
from salon_pos.services.inventory_service import InventoryService
from salon_pos.services.transfer_service import TransferService
from salon_pos.validation import arg_bool, arg_int, page_params


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

STOCK_ROLES = ("owner", "developer", "manager")


def _pages():
    return page_params(
        request.args,
        default_limit=current_app.config["DEFAULT_PAGE_SIZE"],
        max_limit=current_app.config["MAX_PAGE_SIZE"],
    )


@inventory_bp.route("", methods=["GET"])
@require_auth
def list_inventory():
    """Query params: location_id, product_id, branch_id, low_stock, expiring_soon, search, page, limit."""
    try:
        args = request.args
        page, limit = _pages()
        rows, total = InventoryService(db.session).get_inventory(
            actor=g.actor,
            location_id=arg_int(args, "location_id"),
            product_id=arg_int(args, "product_id"),
            branch_id=arg_int(args, "branch_id"),
            low_stock=arg_bool(args, "low_stock"),
            expiring_soon=arg_bool(args, "expiring_soon"),
            search=args.get("search"),
            page=page,
            limit=limit,
        )
        return paginated(rows, page=page, limit=limit, total=total)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Inventory listing failed")
        return internal_error()


@inventory_bp.route("/adjust", methods=["POST"])
@require_auth
@require_role(*STOCK_ROLES)
def adjust_stock():
    """
    Request body:
    {
        "product_id": int,
        "location_id": int,
        "quantity": int,
        "adjustment_type": "add" | "subtract" | "set",
        "reason": str (optional),
        "batch_number": str (optional),
        "expiry_date": "YYYY-MM-DD" (optional)
    }
    """
    try:
        result = InventoryService(db.session).adjust_stock(request.get_json(silent=True), g.actor)
        return success(result, message="Stock adjusted successfully")
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Stock adjustment failed")
        return internal_error()


@inventory_bp.route("/locations", methods=["GET"])
@require_auth
def list_locations():
    try:
        locations = InventoryService(db.session).get_locations(g.actor, arg_int(request.args, "branch_id"))
        return success(locations)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Location listing failed")
        return internal_error()


@inventory_bp.route("/transactions", methods=["GET"])
@require_auth
@require_role(*STOCK_ROLES)
def list_transactions():
    """Query params: product_id, location_id, transaction_type, reference_type, reference_id, page, limit."""
    try:
        args = request.args
        page, limit = _pages()
        rows, total = InventoryService(db.session).list_transactions(
            product_id=arg_int(args, "product_id"),
            location_id=arg_int(args, "location_id"),
            transaction_type=args.get("transaction_type"),
            reference_type=args.get("reference_type"),
            reference_id=arg_int(args, "reference_id"),
            page=page,
            limit=limit,
        )
        return paginated(rows, page=page, limit=limit, total=total)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Transaction listing failed")
        return internal_error()


@inventory_bp.route("/transfers", methods=["GET"])
@require_auth
def list_transfers():
    try:
        args = request.args
        page, limit = _pages()
        rows, total = TransferService(db.session).list_transfers(
            actor=g.actor,
            status=args.get("status"),
            location_id=arg_int(args, "location_id"),
            page=page,
            limit=limit,
        )
        return paginated(rows, page=page, limit=limit, total=total)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Transfer listing failed")
        return internal_error()


@inventory_bp.route("/transfers", methods=["POST"])
@require_auth
@require_role(*STOCK_ROLES)
def create_transfer():
    """
    Request body:
    {
        "from_location_id": int,
        "to_location_id": int,
        "items": [{"product_id": int, "quantity": int}],
        "notes": str (optional)
    }

    Returns:
        201: Transfer created (pending)
        422: Insufficient stock at the source
    """
    try:
        transfer = TransferService(db.session).create_transfer(request.get_json(silent=True), g.actor)
        return success(transfer, status=201)
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Transfer creation failed")
        return internal_error()


@inventory_bp.route("/transfers/<int:transfer_id>/approve", methods=["POST"])
@require_auth
@require_role(*STOCK_ROLES)
def approve_transfer(transfer_id: int):
    try:
        transfer = TransferService(db.session).approve_transfer(transfer_id, g.actor)
        return success(transfer, message="Transfer approved and completed")
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Transfer approval failed")
        return internal_error()


@inventory_bp.route("/transfers/<int:transfer_id>/cancel", methods=["POST"])
@require_auth
@require_role(*STOCK_ROLES)
def cancel_transfer(transfer_id: int):
    try:
        transfer = TransferService(db.session).cancel_transfer(transfer_id, g.actor)
        return success(transfer, message="Transfer cancelled")
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Transfer cancellation failed")
        return internal_error()
