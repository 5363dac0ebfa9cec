# Overview: Read access to key/value system settings.

from __future__ import annotations

from flask import current_app, has_app_context

from ..models import SystemSetting


DEFAULT_MONTHLY_STAR_GOAL_KEY = "default_monthly_star_goal"
FALLBACK_MONTHLY_STAR_GOAL = 100


def get_setting(session, key: str, default: str | None = None) -> str | None:
    row = session.query(SystemSetting).filter_by(setting_key=key).first()
    if row is None or row.setting_value is None:
        return default
    return row.setting_value


def set_setting(session, key: str, value: str, description: str | None = None) -> SystemSetting:
    row = session.query(SystemSetting).filter_by(setting_key=key).first()
    if row is None:
        row = SystemSetting(setting_key=key, description=description)
        session.add(row)
    row.setting_value = value
    return row


def default_monthly_star_goal(session) -> int:
    """System-wide star goal: setting row, then app config, then 100."""
    fallback = FALLBACK_MONTHLY_STAR_GOAL
    if has_app_context():
        fallback = current_app.config.get("DEFAULT_MONTHLY_STAR_GOAL", fallback)

    raw = get_setting(session, DEFAULT_MONTHLY_STAR_GOAL_KEY)
    if raw is None:
        return fallback
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return fallback
    return value if value > 0 else fallback
