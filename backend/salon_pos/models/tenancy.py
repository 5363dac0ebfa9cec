from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import to_utc_z, utcnow


class Branch(db.Model):
    """
    A physical salon branch.

    The branch code is the prefix of every bill number issued there, and the
    timezone decides where a business day starts and ends for cash counts.
    """
    __tablename__ = "branches"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True)
    name = db.Column(db.String(128), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    # IANA timezone name (e.g., "Asia/Kolkata")
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def active_location(self) -> "InventoryLocation | None":
        for location in self.locations:
            if location.is_active:
                return location
        return None

    @property
    def active_location_id(self) -> int | None:
        location = self.active_location
        return location.id if location else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "timezone": self.timezone,
            "is_active": self.is_active,
            "active_location_id": self.active_location_id,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryLocation(db.Model):
    """Stock-holding place (shop floor, back room, warehouse) owned by a branch."""
    __tablename__ = "inventory_locations"

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    location_type = db.Column(db.String(32), nullable=False, default="store")  # store, warehouse
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    branch = db.relationship(
        "Branch",
        backref=db.backref("locations", lazy=True, order_by="InventoryLocation.id"),
    )

    def to_dict(self) -> dict:
        return {
            "location_id": self.id,
            "location_name": self.name,
            "location_type": self.location_type,
            "is_active": self.is_active,
            "branch": {
                "branch_id": self.branch.id,
                "branch_name": self.branch.name,
                "branch_code": self.branch.code,
            } if self.branch else None,
        }


class Chair(db.Model):
    __tablename__ = "chairs"

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    chair_number = db.Column(db.String(16), nullable=False)
    chair_name = db.Column(db.String(64), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    branch = db.relationship("Branch", backref=db.backref("chairs", lazy=True))
