# backend/salon_pos/routes/users.py
from flask import Blueprint, current_app, g, request

from salon_pos.decorators import require_auth
from salon_pos.errors import AccessDeniedError, BillingError
from salon_pos.extensions import db
from salon_pos.responses import error, internal_error, success
from salon_pos.services.reporting_service import ReportingService
from salon_pos.validation import arg_int


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.route("/<int:user_id>/performance", methods=["GET"])
@require_auth
def user_performance(user_id: int):
    """
    Split-aware totals for one employee over the last `period` days.
    Employees may only read their own numbers.
    """
    try:
        if g.actor.role in ("employee", "cashier") and g.actor.user_id != user_id:
            raise AccessDeniedError("Cannot view another user's performance")
        stats = ReportingService(db.session).staff_performance(
            user_id, period=arg_int(request.args, "period"), actor=g.actor
        )
        return success(stats)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("User performance lookup failed")
        return internal_error()
