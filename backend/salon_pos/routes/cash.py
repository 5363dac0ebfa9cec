# backend/salon_pos/routes/cash.py
"""
Cash drawer API routes: daily summary, end-of-day count, cash in/out and history.
"""
from flask import Blueprint, current_app, g, request

from salon_pos.decorators import require_auth, require_role
from salon_pos.errors import BillingError, ValidationError
from salon_pos.extensions import db
from salon_pos.responses import error, internal_error, success
from salon_pos.services.cash_service import CashService
from salon_pos.validation import arg_int


cash_bp = Blueprint("cash", __name__, url_prefix="/api/cash")

CASH_ROLES = ("owner", "developer", "manager", "cashier")


def _service() -> CashService:
    return CashService(db.session, tolerance=current_app.config["PAYMENT_TOLERANCE"])


def _branch_arg() -> int:
    """branch_id query param; branch-scoped roles default to their own branch."""
    branch_id = arg_int(request.args, "branch_id") or g.actor.branch_id
    if branch_id is None:
        raise ValidationError("branch_id is required")
    return branch_id


@cash_bp.route("/summary", methods=["GET"])
@require_auth
@require_role(*CASH_ROLES)
def cash_summary():
    """Query params: branch_id, date (YYYY-MM-DD, default today)."""
    try:
        summary = _service().get_daily_cash_summary(_branch_arg(), request.args.get("date"), g.actor)
        return success(summary)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Cash summary failed")
        return internal_error()


@cash_bp.route("/reconcile", methods=["POST"])
@require_auth
@require_role(*CASH_ROLES)
def reconcile():
    """
    Request body:
    {
        "branch_id": int,
        "date": "YYYY-MM-DD",
        "actual_cash": number,
        "denominations": {"500": 3, ...} (optional),
        "notes": str (optional)
    }
    """
    try:
        result = _service().record_cash_count(request.get_json(silent=True), g.actor)
        return success(result, status=201)
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Cash reconciliation failed")
        return internal_error()


@cash_bp.route("/sources", methods=["POST"])
@require_auth
@require_role(*CASH_ROLES)
def add_cash_source():
    try:
        result = _service().add_cash_source(request.get_json(silent=True), g.actor)
        return success(result, status=201)
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Cash source recording failed")
        return internal_error()


@cash_bp.route("/deposits", methods=["POST"])
@require_auth
@require_role(*CASH_ROLES)
def record_deposit():
    try:
        result = _service().record_bank_deposit(request.get_json(silent=True), g.actor)
        return success(result, status=201)
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Bank deposit recording failed")
        return internal_error()


@cash_bp.route("/expenses", methods=["POST"])
@require_auth
@require_role(*CASH_ROLES)
def record_expense():
    try:
        result = _service().record_expense(request.get_json(silent=True), g.actor)
        return success(result, status=201)
    except BillingError as e:
        return error(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Expense recording failed")
        return internal_error()


@cash_bp.route("/history", methods=["GET"])
@require_auth
@require_role(*CASH_ROLES)
def cash_history():
    """Query params: branch_id, start_date, end_date."""
    try:
        history = _service().get_cash_history(
            _branch_arg(),
            request.args.get("start_date"),
            request.args.get("end_date"),
            g.actor,
        )
        return success(history)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Cash history failed")
        return internal_error()


@cash_bp.route("/denominations", methods=["POST"])
@require_auth
def denominations():
    try:
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")
        return success(CashService.calculate_denominations(payload.get("denominations")))
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Denomination count failed")
        return internal_error()
