from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import to_utc_z, utcnow


class Inventory(db.Model):
    """
    Stock on hand for one product at one location (optionally per batch).

    Mutated only through InventoryService increment/decrement so every change
    has a matching InventoryTransaction row.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("product_id", "location_id", "batch_number", name="uq_inventory_product_location_batch"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("inventory_locations.id"), nullable=False, index=True)
    batch_number = db.Column(db.String(64), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    reserved_quantity = db.Column(db.Integer, nullable=False, default=0)
    expiry_date = db.Column(db.Date, nullable=True)
    last_restocked_at = db.Column(db.DateTime, nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", backref=db.backref("inventory_rows", lazy=True))
    location = db.relationship("InventoryLocation", backref=db.backref("inventory_rows", lazy=True))

    @property
    def available_quantity(self) -> int:
        return (self.quantity or 0) - (self.reserved_quantity or 0)


class InventoryTransaction(db.Model):
    """
    Append-only stock movement log (the audit trail).

    quantity is always the absolute amount moved; direction follows from
    transaction_type and the from/to locations.
    """
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        db.Index("ix_inventory_transactions_reference", "reference_type", "reference_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # sale, purchase, adjustment, transfer_in, transfer_out
    transaction_type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    from_location_id = db.Column(db.Integer, db.ForeignKey("inventory_locations.id"), nullable=True, index=True)
    to_location_id = db.Column(db.Integer, db.ForeignKey("inventory_locations.id"), nullable=True, index=True)

    # Causing document (bill, transfer, adjustment)
    reference_type = db.Column(db.String(32), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)

    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    transaction_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    product = db.relationship("Product")
    from_location = db.relationship("InventoryLocation", foreign_keys=[from_location_id])
    to_location = db.relationship("InventoryLocation", foreign_keys=[to_location_id])

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.product_name if self.product else None,
            "transaction_type": self.transaction_type,
            "quantity": self.quantity,
            "from_location_id": self.from_location_id,
            "to_location_id": self.to_location_id,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "notes": self.notes,
            "created_by": self.created_by,
            "transaction_date": to_utc_z(self.transaction_date),
        }


class StockTransfer(db.Model):
    """
    Inter-location transfer request.

    LIFECYCLE: pending -> completed | cancelled (both terminal).
    Approval moves the stock and writes the ledger rows in one transaction.
    """
    __tablename__ = "stock_transfers"

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "TRF-202603-0007")
    transfer_number = db.Column(db.String(32), nullable=False, unique=True)

    from_location_id = db.Column(db.Integer, db.ForeignKey("inventory_locations.id"), nullable=False, index=True)
    to_location_id = db.Column(db.Integer, db.ForeignKey("inventory_locations.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    notes = db.Column(db.Text, nullable=True)

    requested_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    requested_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    cancelled_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    from_location = db.relationship("InventoryLocation", foreign_keys=[from_location_id])
    to_location = db.relationship("InventoryLocation", foreign_keys=[to_location_id])
    items = db.relationship("StockTransferItem", back_populates="transfer", order_by="StockTransferItem.id", lazy=True)


class StockTransferItem(db.Model):
    __tablename__ = "stock_transfer_items"

    id = db.Column(db.Integer, primary_key=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey("stock_transfers.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity_requested = db.Column(db.Integer, nullable=False)
    quantity_sent = db.Column(db.Integer, nullable=True)
    quantity_received = db.Column(db.Integer, nullable=True)

    transfer = db.relationship("StockTransfer", back_populates="items")
    product = db.relationship("Product")
