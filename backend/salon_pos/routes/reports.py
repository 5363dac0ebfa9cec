# backend/salon_pos/routes/reports.py
"""
Reporting API routes.

Every report reads completed bills only. Branch-scoped roles are pinned to
their own branch regardless of the branch_id query param.
"""
from flask import Blueprint, current_app, g, request

from salon_pos.decorators import require_auth, require_role
from salon_pos.errors import BillingError
from salon_pos.extensions import db
from salon_pos.responses import error, internal_error, success
from salon_pos.services.reporting_service import ReportingService
from salon_pos.validation import arg_date, arg_int


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

REPORT_ROLES = ("owner", "developer", "manager")


@reports_bp.route("/employee-performance", methods=["GET"])
@require_auth
@require_role(*REPORT_ROLES)
def employee_performance():
    """
    Query params: start_date + end_date (YYYY-MM-DD), or period (days, default 30);
    branch_id, employee_id.
    """
    try:
        args = request.args
        report = ReportingService(db.session).employee_performance(
            actor=g.actor,
            period=arg_int(args, "period"),
            start_date=arg_date(args, "start_date"),
            end_date=arg_date(args, "end_date"),
            branch_id=arg_int(args, "branch_id"),
            employee_id=arg_int(args, "employee_id"),
        )
        return success(report)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Employee performance report failed")
        return internal_error()


@reports_bp.route("/daily-sales", methods=["GET"])
@require_auth
@require_role(*REPORT_ROLES)
def daily_sales():
    try:
        report = ReportingService(db.session).daily_sales(
            actor=g.actor,
            day=arg_date(request.args, "date"),
            branch_id=arg_int(request.args, "branch_id"),
        )
        return success(report)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Daily sales report failed")
        return internal_error()


@reports_bp.route("/monthly-revenue", methods=["GET"])
@require_auth
@require_role(*REPORT_ROLES)
def monthly_revenue():
    try:
        args = request.args
        report = ReportingService(db.session).monthly_revenue(
            actor=g.actor,
            year=arg_int(args, "year"),
            month=arg_int(args, "month"),
            branch_id=arg_int(args, "branch_id"),
        )
        return success(report)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Monthly revenue report failed")
        return internal_error()


@reports_bp.route("/customers", methods=["GET"])
@require_auth
@require_role(*REPORT_ROLES)
def customer_analytics():
    try:
        report = ReportingService(db.session).customer_analytics(
            actor=g.actor,
            period=arg_int(request.args, "period"),
            branch_id=arg_int(request.args, "branch_id"),
        )
        return success(report)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Customer analytics failed")
        return internal_error()


@reports_bp.route("/services", methods=["GET"])
@require_auth
@require_role(*REPORT_ROLES)
def service_analytics():
    try:
        report = ReportingService(db.session).service_analytics(
            actor=g.actor,
            period=arg_int(request.args, "period"),
            branch_id=arg_int(request.args, "branch_id"),
        )
        return success(report)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Service analytics failed")
        return internal_error()


@reports_bp.route("/inventory", methods=["GET"])
@require_auth
@require_role(*REPORT_ROLES)
def inventory_report():
    try:
        report = ReportingService(db.session).inventory_report(
            actor=g.actor,
            location_id=arg_int(request.args, "location_id"),
        )
        return success(report)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Inventory report failed")
        return internal_error()


@reports_bp.route("/dashboard", methods=["GET"])
@require_auth
def dashboard():
    try:
        stats = ReportingService(db.session).dashboard_stats(
            actor=g.actor,
            branch_id=arg_int(request.args, "branch_id"),
        )
        return success(stats)
    except BillingError as e:
        return error(e)
    except Exception:
        current_app.logger.exception("Dashboard stats failed")
        return internal_error()
