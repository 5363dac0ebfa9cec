from __future__ import annotations

from ..extensions import db


class DocumentSequence(db.Model):
    """
    Atomic counter behind human-readable document numbers.

    One row per (scope, document_type, period); scope is a branch code for
    bills and "TRF" for transfers, period is the year or year+month.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("scope", "document_type", "period", name="uq_document_sequences_scope_type_period"),
    )

    id = db.Column(db.Integer, primary_key=True)
    scope = db.Column(db.String(32), nullable=False)
    document_type = db.Column(db.String(16), nullable=False)  # BILL, TRANSFER
    period = db.Column(db.String(8), nullable=False)  # "2026" or "202603"
    next_number = db.Column(db.Integer, nullable=False, default=1)
