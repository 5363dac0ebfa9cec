# backend/salon_pos/config.py
from __future__ import annotations
import os
from decimal import Decimal


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/salon_pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///salon_pos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Allowed gap between tendered payments and the computed bill total,
    # also the threshold for recording a cash-count discrepancy.
    PAYMENT_TOLERANCE = Decimal(os.environ.get("PAYMENT_TOLERANCE", "0.01"))

    # When False a product sale at a branch without stock rows skips the
    # decrement; when True the whole bill is rejected.
    STRICT_SALE_INVENTORY = _env_bool("STRICT_SALE_INVENTORY", False)

    DEFAULT_MONTHLY_STAR_GOAL = _env_int("DEFAULT_MONTHLY_STAR_GOAL", 100)

    DEFAULT_PAGE_SIZE = _env_int("DEFAULT_PAGE_SIZE", 20)
    MAX_PAGE_SIZE = _env_int("MAX_PAGE_SIZE", 100)
