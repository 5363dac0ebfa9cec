# Overview: Request decorators that establish the acting user and enforce roles.

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import g, request

from .models.auth import ROLES
from .responses import error_response


@dataclass(frozen=True)
class Actor:
    """The authenticated user a request runs on behalf of."""
    user_id: int
    role: str
    branch_id: int | None = None


def _header_int(name: str) -> int | None:
    raw = (request.headers.get(name) or "").strip()
    if not raw:
        return None
    if not raw.isdigit():
        raise ValueError(name)
    return int(raw)


def require_auth(f):
    """
    Require an authenticated actor.

    Authentication happens upstream; the gateway forwards the verified user
    in X-User-Id / X-User-Role / X-Branch-Id. Sets g.actor.

    Returns 401 when the user id or role is missing or malformed.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        role = (request.headers.get("X-User-Role") or "").strip().lower()
        try:
            user_id = _header_int("X-User-Id")
            branch_id = _header_int("X-Branch-Id")
        except ValueError:
            return error_response("UNAUTHORIZED", "Invalid authentication headers", 401)

        if user_id is None or role not in ROLES:
            return error_response("UNAUTHORIZED", "Authentication required", 401)

        g.actor = Actor(user_id=user_id, role=role, branch_id=branch_id)
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the actor to hold one of `roles`.

    Must be stacked under @require_auth. Returns 403 otherwise.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return error_response("UNAUTHORIZED", "Authentication required", 401)
            if actor.role not in roles:
                return error_response("FORBIDDEN", "Insufficient role", 403)
            return f(*args, **kwargs)

        return decorated_function

    return decorator
