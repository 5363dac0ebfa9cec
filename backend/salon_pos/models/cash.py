from __future__ import annotations

from ..extensions import db
from salon_pos.time_utils import to_utc_z, utcnow


CASH_SOURCE_TYPES = ("counter", "owner", "petty_cash", "other")


class CashSource(db.Model):
    """
    Cash that entered the drawer outside of bill payments.

    Count discrepancies found during reconciliation are also stored here
    (surplus as "other", shortage as "counter").
    """
    __tablename__ = "cash_sources"

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    source_type = db.Column(db.String(16), nullable=False)  # counter, owner, petty_cash, other
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    transaction_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    def to_dict(self) -> dict:
        return {
            "source_id": self.id,
            "branch_id": self.branch_id,
            "source_type": self.source_type,
            "amount": float(self.amount),
            "description": self.description,
            "transaction_date": to_utc_z(self.transaction_date),
            "recorded_by": self.recorded_by,
        }


class BankDeposit(db.Model):
    """Cash taken out of the drawer and deposited at the bank."""
    __tablename__ = "bank_deposits"

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    bank_name = db.Column(db.String(100), nullable=True)
    account_number = db.Column(db.String(64), nullable=True)
    reference_number = db.Column(db.String(100), nullable=True)
    deposit_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    notes = db.Column(db.Text, nullable=True)
    deposited_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    def to_dict(self) -> dict:
        return {
            "deposit_id": self.id,
            "branch_id": self.branch_id,
            "amount": float(self.amount),
            "bank_name": self.bank_name,
            "account_number": self.account_number,
            "reference_number": self.reference_number,
            "deposit_date": to_utc_z(self.deposit_date),
            "notes": self.notes,
            "deposited_by": self.deposited_by,
        }


class Expense(db.Model):
    """Branch expense. Only cash expenses reduce expected drawer cash."""
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    category = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_mode = db.Column(db.String(16), nullable=False, default="cash")
    expense_date = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    def to_dict(self) -> dict:
        return {
            "expense_id": self.id,
            "branch_id": self.branch_id,
            "category": self.category,
            "description": self.description,
            "amount": float(self.amount),
            "payment_mode": self.payment_mode,
            "expense_date": to_utc_z(self.expense_date),
            "recorded_by": self.recorded_by,
        }
