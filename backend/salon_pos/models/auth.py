from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import to_utc_z, utcnow


ROLES = ("owner", "developer", "manager", "cashier", "employee")


class User(db.Model):
    """
    Staff member. Employees are users with any role who can be credited on a
    bill line; authentication itself happens outside this service.
    """
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True)
    full_name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    role = db.Column(db.String(16), nullable=False, default="employee")  # owner, developer, manager, cashier, employee
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Per-employee override; falls back to the system setting when NULL
    monthly_star_goal = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    branch = db.relationship("Branch", backref=db.backref("users", lazy=True))

    def to_dict(self) -> dict:
        return {
            "user_id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "branch_id": self.branch_id,
            "is_active": self.is_active,
            "monthly_star_goal": self.monthly_star_goal,
            "created_at": to_utc_z(self.created_at),
        }
