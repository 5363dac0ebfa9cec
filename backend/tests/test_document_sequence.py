from datetime import datetime
from decimal import Decimal

from salon_pos.models import Bill, DocumentSequence
from salon_pos.services.document_service import next_bill_number, next_transfer_number


WHEN = datetime(2026, 3, 14, 9, 30)


def test_bill_numbers_increase_by_one_per_branch_and_year(db_session, branch):
    first = next_bill_number(db_session, "MAIN", WHEN)
    second = next_bill_number(db_session, "MAIN", WHEN)
    third = next_bill_number(db_session, "MAIN", WHEN)
    db_session.commit()

    assert [first, second, third] == ["MAIN-2026-000001", "MAIN-2026-000002", "MAIN-2026-000003"]


def test_each_branch_and_year_has_its_own_counter(db_session, branch, other_branch):
    assert next_bill_number(db_session, "MAIN", WHEN) == "MAIN-2026-000001"
    assert next_bill_number(db_session, "NORTH", WHEN) == "NORTH-2026-000001"
    assert next_bill_number(db_session, "MAIN", datetime(2027, 1, 1)) == "MAIN-2027-000001"
    assert next_bill_number(db_session, "MAIN", WHEN) == "MAIN-2026-000002"
    db_session.commit()

    assert db_session.query(DocumentSequence).count() == 3


def test_new_counter_continues_after_existing_bills(db_session, branch, customer):
    db_session.add(
        Bill(
            bill_number="MAIN-2026-000041",
            branch_id=branch.id,
            customer_id=customer.id,
            bill_date=WHEN,
            subtotal=Decimal("100"),
            discount_amount=Decimal("0"),
            total_amount=Decimal("100"),
            status="completed",
            is_imported=True,
        )
    )
    db_session.commit()

    assert next_bill_number(db_session, "MAIN", WHEN) == "MAIN-2026-000042"
    assert next_bill_number(db_session, "MAIN", WHEN) == "MAIN-2026-000043"


def test_transfer_numbers_are_monthly(db_session):
    assert next_transfer_number(db_session, WHEN) == "TRF-202603-0001"
    assert next_transfer_number(db_session, WHEN) == "TRF-202603-0002"
    assert next_transfer_number(db_session, datetime(2026, 4, 1)) == "TRF-202604-0001"
    db_session.commit()
