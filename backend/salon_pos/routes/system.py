# backend/salon_pos/routes/system.py
from flask import Blueprint, current_app
from sqlalchemy import text

from salon_pos.extensions import db
from salon_pos.responses import error_response, success


system_bp = Blueprint("system", __name__, url_prefix="/api/system")


@system_bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        current_app.logger.exception("Health check failed")
        return error_response("UNAVAILABLE", "Database unreachable", 503)
    return success({"status": "ok"})
