from datetime import datetime
from decimal import Decimal

import pytest

from salon_pos import time_utils
from salon_pos.decorators import Actor
from salon_pos.errors import AccessDeniedError, NotFoundError, ValidationError
from salon_pos.models import Bill, CashSource
from salon_pos.services.bill_service import BillService
from salon_pos.services.cash_service import CashService

DAY = "2026-03-10"


@pytest.fixture
def busy_day(db_session, branch, haircut, owner_actor, bill_payload):
    """One 1000 cash bill, 200 cash in, 300 banked, 100 cash and 80 card expenses."""
    BillService(db_session).create_bill(
        bill_payload(
            items=[
                {"item_type": "service", "service_id": haircut.id, "quantity": 2, "unit_price": 300},
                {"item_type": "service", "service_id": haircut.id, "quantity": 1, "unit_price": 400},
            ],
            payments=[{"payment_mode": "cash", "amount": 1000}],
            bill_date=f"{DAY}T11:30:00",
        ),
        owner_actor,
    )
    service = CashService(db_session)
    service.add_cash_source(
        {"branch_id": branch.id, "source_type": "owner", "amount": 200, "date": DAY}, owner_actor
    )
    service.record_bank_deposit(
        {"branch_id": branch.id, "amount": 300, "bank_name": "State Bank", "date": DAY}, owner_actor
    )
    service.record_expense(
        {"branch_id": branch.id, "amount": 100, "category": "supplies", "date": DAY}, owner_actor
    )
    service.record_expense(
        {"branch_id": branch.id, "amount": 80, "category": "laundry", "payment_mode": "card", "date": DAY},
        owner_actor,
    )
    return service


def test_expected_cash_formula(busy_day, branch):
    summary = busy_day.get_daily_cash_summary(branch.id, DAY)

    assert summary.bills_count == 1
    assert summary.total_revenue == 1000.0
    assert summary.payment_breakdown["cash"] == 1000.0
    assert summary.payment_breakdown["upi"] == 0.0
    assert summary.cash_sources == 200.0
    assert summary.bank_deposits == 300.0
    assert summary.cash_expenses == 100.0
    assert summary.expected_cash == 800.0
    assert [e["category"] for e in summary.expenses_detail] == ["supplies"]


def test_other_days_are_excluded(busy_day, branch):
    summary = busy_day.get_daily_cash_summary(branch.id, "2026-03-11")

    assert summary.bills_count == 0
    assert summary.expected_cash == 0.0


def test_cancelled_bills_do_not_count(db_session, busy_day, branch):
    bill = db_session.query(Bill).one()
    BillService(db_session).cancel_bill(bill.id)

    summary = busy_day.get_daily_cash_summary(branch.id, DAY)
    assert summary.bills_count == 0
    assert summary.expected_cash == -200.0


def test_balanced_count_writes_nothing(db_session, busy_day, branch, owner_actor):
    before = db_session.query(CashSource).count()

    result = busy_day.record_cash_count(
        {"branch_id": branch.id, "date": DAY, "actual_cash": 800, "denominations": {"500": 1, "100": 3}},
        owner_actor,
    )

    assert result.status == "balanced"
    assert result.difference == 0.0
    assert result.denominations == {"500": 1, "100": 3}
    assert db_session.query(CashSource).count() == before


def test_shortage_is_booked_as_counter_source(db_session, busy_day, branch, owner_actor):
    result = busy_day.record_cash_count({"branch_id": branch.id, "date": DAY, "actual_cash": 750}, owner_actor)

    assert result.status == "shortage"
    assert result.expected_cash == 800.0
    assert result.difference == -50.0
    booked = db_session.query(CashSource).filter_by(source_type="counter").one()
    assert booked.amount == Decimal("50")
    assert booked.description.startswith("Cash reconciliation shortage")


def test_surplus_is_booked_as_other_source(db_session, busy_day, branch):
    result = busy_day.record_cash_count({"branch_id": branch.id, "date": DAY, "actual_cash": 900})

    assert result.status == "surplus"
    assert result.difference == 100.0
    booked = db_session.query(CashSource).filter_by(source_type="other").one()
    assert booked.amount == Decimal("100")


@pytest.fixture
def late_night_bills(db_session, kolkata_branch, customer, haircut, owner_actor):
    """Cash bills around local midnight of 2 March in Asia/Kolkata (UTC+05:30)."""
    service = BillService(db_session)
    for amount, billed_at in (
        (200, "2026-03-01T18:29:00Z"),  # 23:59 local, 1 March
        (500, "2026-03-01T18:30:00Z"),  # 00:00 local, 2 March
        (100, "2026-03-02T18:29:00Z"),  # 23:59 local, 2 March
        (50, "2026-03-02T18:30:00Z"),   # 00:00 local, 3 March
    ):
        service.create_bill(
            {
                "customer_id": customer.id,
                "branch_id": kolkata_branch.id,
                "items": [{"item_type": "service", "service_id": haircut.id, "quantity": 1, "unit_price": amount}],
                "payments": [{"payment_mode": "cash", "amount": amount}],
                "bill_date": billed_at,
            },
            owner_actor,
        )
    return CashService(db_session)


def test_cash_day_follows_branch_timezone(late_night_bills, kolkata_branch):
    summary = late_night_bills.get_daily_cash_summary(kolkata_branch.id, "2026-03-02")

    assert summary.bills_count == 2
    assert summary.expected_cash == 600.0
    assert late_night_bills.get_daily_cash_summary(kolkata_branch.id, "2026-03-01").expected_cash == 200.0
    assert late_night_bills.get_daily_cash_summary(kolkata_branch.id, "2026-03-03").expected_cash == 50.0


def test_default_day_is_today_on_branch_clock(monkeypatch, late_night_bills, kolkata_branch):
    # 20:00 UTC on 1 March is 01:30 on 2 March in Kolkata
    monkeypatch.setattr(time_utils, "utcnow", lambda: datetime(2026, 3, 1, 20, 0))

    summary = late_night_bills.get_daily_cash_summary(kolkata_branch.id)

    assert summary.date == "2026-03-02"
    assert summary.bills_count == 2
    assert summary.expected_cash == 600.0


def test_count_without_date_reconciles_branch_today(monkeypatch, db_session, late_night_bills, kolkata_branch):
    monkeypatch.setattr(time_utils, "utcnow", lambda: datetime(2026, 3, 1, 20, 0))

    result = late_night_bills.record_cash_count({"branch_id": kolkata_branch.id, "actual_cash": 550})

    assert result.date == "2026-03-02"
    assert result.expected_cash == 600.0
    assert result.status == "shortage"
    booked = db_session.query(CashSource).filter_by(source_type="counter").one()
    assert booked.amount == Decimal("50")


def test_unknown_source_type(db_session, branch):
    with pytest.raises(ValidationError):
        CashService(db_session).add_cash_source({"branch_id": branch.id, "source_type": "lottery", "amount": 10})


def test_amounts_must_be_positive(db_session, branch):
    with pytest.raises(ValidationError):
        CashService(db_session).record_bank_deposit({"branch_id": branch.id, "amount": 0})


def test_unknown_branch(db_session):
    with pytest.raises(NotFoundError):
        CashService(db_session).get_daily_cash_summary(999, DAY)


def test_other_branch_is_denied(db_session, branch, other_branch):
    cashier = Actor(user_id=7, role="cashier", branch_id=other_branch.id)

    with pytest.raises(AccessDeniedError):
        CashService(db_session).get_daily_cash_summary(branch.id, DAY, cashier)


def test_history_lists_movements(busy_day, branch):
    history = busy_day.get_cash_history(branch.id, "2026-03-01", "2026-03-31")

    assert [s["source_type"] for s in history["cash_sources"]] == ["owner"]
    assert [d["bank_name"] for d in history["bank_deposits"]] == ["State Bank"]
    assert sorted(e["payment_mode"] for e in history["expenses"]) == ["card", "cash"]


def test_history_range_must_be_ordered(db_session, branch):
    with pytest.raises(ValidationError):
        CashService(db_session).get_cash_history(branch.id, "2026-03-31", "2026-03-01")


def test_denomination_total():
    result = CashService.calculate_denominations({"500": 3, "10": 4, "3": 9, "20": 0})

    assert result["total"] == 1540
    assert result["breakdown"] == {
        "500": {"count": 3, "value": 1500},
        "10": {"count": 4, "value": 40},
    }
