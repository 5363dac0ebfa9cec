# Overview: JSON envelope shared by every endpoint.

from __future__ import annotations

import math

from flask import jsonify

from .time_utils import to_utc_z, utcnow


def _meta() -> dict:
    return {"timestamp": to_utc_z(utcnow())}


def _plain(data):
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, list):
        return [_plain(item) for item in data]
    return data


def success(data=None, status: int = 200, message: str | None = None):
    body = {"success": True, "data": _plain(data), "meta": _meta()}
    if message:
        body["message"] = message
    return jsonify(body), status


def paginated(items, *, page: int, limit: int, total: int):
    total_pages = math.ceil(total / limit) if limit else 0
    body = {
        "success": True,
        "data": _plain(items),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNext": page * limit < total,
            "hasPrev": page > 1,
        },
        "meta": _meta(),
    }
    return jsonify(body), 200


def error(exc):
    """Render an operational BillingError."""
    body = {"success": False, "error": exc.to_dict(), "meta": _meta()}
    return jsonify(body), exc.status_code


def error_response(code: str, message: str, status: int):
    body = {"success": False, "error": {"code": code, "message": message}, "meta": _meta()}
    return jsonify(body), status


def internal_error():
    return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)
