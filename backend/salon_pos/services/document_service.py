# Overview: Atomic allocation of human-readable bill and transfer numbers.

from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..models import Bill, DocumentSequence, StockTransfer
from ..time_utils import utcnow


BILL_DOCUMENT = "BILL"
TRANSFER_DOCUMENT = "TRANSFER"
TRANSFER_SCOPE = "TRF"

_TRAILING_NUMBER = re.compile(r"(\d+)$")


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _highest_existing(session, column, prefix: str) -> int:
    """
    Numeric suffix of the greatest existing document number with this prefix.

    Lexicographic max is used, so numbers must be zero-padded to compare
    correctly. Unparsable suffixes count as 0.
    """
    latest = (
        session.query(column)
        .filter(column.like(f"{prefix}-%"))
        .order_by(column.desc())
        .limit(1)
        .scalar()
    )
    if not latest:
        return 0
    match = _TRAILING_NUMBER.search(latest)
    return int(match.group(1)) if match else 0


def _bump(session, scope: str, document_type: str, period: str) -> int | None:
    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.scope == scope,
            DocumentSequence.document_type == document_type,
            DocumentSequence.period == period,
        )
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    if not result.rowcount:
        return None
    current = (
        session.query(DocumentSequence.next_number)
        .filter_by(scope=scope, document_type=document_type, period=period)
        .scalar()
    )
    return current - 1


def next_document_number(
    session,
    *,
    scope: str,
    document_type: str,
    period: str,
    prefix: str,
    pad: int,
    existing_column,
) -> str:
    """
    Atomically allocate the next number for (scope, document_type, period).

    The counter row is bumped with a single UPDATE so concurrent writers
    serialize on it. On first use the row is created, seeded from the
    highest number already stored under `prefix`; if another writer creates
    it first the unique constraint fires and we bump theirs instead.
    Runs inside the caller's transaction.
    """
    if not scope:
        raise DocumentSequenceError("scope is required")
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    next_num = _bump(session, scope, document_type, period)
    if next_num is None:
        seed = _highest_existing(session, existing_column, prefix) + 1
        try:
            with session.begin_nested():
                session.add(
                    DocumentSequence(
                        scope=scope,
                        document_type=document_type,
                        period=period,
                        next_number=seed + 1,
                    )
                )
            next_num = seed
        except IntegrityError:
            next_num = _bump(session, scope, document_type, period)
            if next_num is None:
                raise

    return f"{prefix}-{next_num:0{pad}d}"


def next_bill_number(session, branch_code: str, when: datetime | None = None) -> str:
    """CODE-YYYY-NNNNNN, counted per branch per calendar year."""
    year = str((when or utcnow()).year)
    return next_document_number(
        session,
        scope=branch_code,
        document_type=BILL_DOCUMENT,
        period=year,
        prefix=f"{branch_code}-{year}",
        pad=6,
        existing_column=Bill.bill_number,
    )


def next_transfer_number(session, when: datetime | None = None) -> str:
    """TRF-YYYYMM-NNNN, counted per calendar month."""
    period = (when or utcnow()).strftime("%Y%m")
    return next_document_number(
        session,
        scope=TRANSFER_SCOPE,
        document_type=TRANSFER_DOCUMENT,
        period=period,
        prefix=f"{TRANSFER_SCOPE}-{period}",
        pad=4,
        existing_column=StockTransfer.transfer_number,
    )
