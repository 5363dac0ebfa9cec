from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """
    Customer with running visit/spend counters.

    total_visits / total_spent / last_visit_date are bumped by every completed
    bill and never recomputed from history.
    """
    __tablename__ = "customers"

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=True, index=True)
    email = db.Column(db.String(255), nullable=True)
    gender = db.Column(db.String(16), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    total_visits = db.Column(db.Integer, nullable=False, default=0)
    total_spent = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    last_visit_date = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    @property
    def phone_masked(self) -> str | None:
        if not self.phone:
            return None
        if len(self.phone) <= 4:
            return self.phone
        return "*" * (len(self.phone) - 4) + self.phone[-4:]

    def to_dict(self) -> dict:
        return {
            "customer_id": self.id,
            "customer_name": self.customer_name,
            "phone": self.phone,
            "phone_masked": self.phone_masked,
            "email": self.email,
            "is_active": self.is_active,
            "total_visits": self.total_visits,
            "total_spent": float(self.total_spent or 0),
            "last_visit_date": to_utc_z(self.last_visit_date),
            "created_at": to_utc_z(self.created_at),
        }
