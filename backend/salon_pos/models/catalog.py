from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import utcnow


class ServiceCategory(db.Model):
    __tablename__ = "service_categories"

    id = db.Column(db.Integer, primary_key=True)
    category_name = db.Column(db.String(128), nullable=False, unique=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class Service(db.Model):
    """Bookable salon service. star_points feed the employee incentive goal."""
    __tablename__ = "services"

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("service_categories.id"), nullable=True, index=True)
    service_name = db.Column(db.String(128), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    duration_minutes = db.Column(db.Integer, nullable=True)
    star_points = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    category = db.relationship("ServiceCategory", backref=db.backref("services", lazy=True))


class Package(db.Model):
    """Bundle of services sold at a single price."""
    __tablename__ = "packages"

    id = db.Column(db.Integer, primary_key=True)
    package_name = db.Column(db.String(128), nullable=False)
    package_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class Product(db.Model):
    """Retail or consumable product tracked in inventory."""
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    product_name = db.Column(db.String(128), nullable=False)
    sku = db.Column(db.String(64), nullable=True, unique=True)
    category = db.Column(db.String(64), nullable=True)
    cost_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
