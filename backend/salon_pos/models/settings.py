from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import utcnow


class SystemSetting(db.Model):
    """Key/value system setting (e.g., default_monthly_star_goal)."""
    __tablename__ = "system_settings"

    id = db.Column(db.Integer, primary_key=True)
    setting_key = db.Column(db.String(64), nullable=False, unique=True)
    setting_value = db.Column(db.Text, nullable=True)
    description = db.Column(db.String(255), nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
