# Overview: Daily cash-drawer summary, end-of-day counts and cash movements per branch.

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal

from ..errors import NotFoundError, ValidationError
from ..models import BankDeposit, Bill, Branch, CashSource, Expense, Payment
from ..models.cash import CASH_SOURCE_TYPES
from ..time_utils import day_bounds, local_today, parse_date, parse_iso_datetime, range_bounds, to_utc_z, utcnow
from ..validation import PAYMENT_MODES, choice, optional_str, to_decimal, to_int
from .access import ensure_branch_access
from .formatters import CashCountResult, CashSummary, money2
from .totals import PAYMENT_TOLERANCE
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Indian currency notes and coins, largest first
DENOMINATIONS = (2000, 500, 200, 100, 50, 20, 10, 5, 2, 1)


def _positive_amount(value, field_name: str) -> Decimal:
    amount = to_decimal(value, field_name)
    if amount <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return amount


def _business_day(value, branch: Branch, field_name: str = "date") -> date:
    """Parse a drawer day; missing means today on the branch clock."""
    if value is None or value == "":
        return local_today(branch.timezone)
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date")


class CashService:
    """
    Expected drawer cash for a branch/day:

        cash payments + cash sources - bank deposits - cash expenses

    The day runs from local midnight to 23:59:59.999 in the branch timezone.
    The same summary backs both the read endpoint and the count endpoint.
    """

    def __init__(self, session, *, tolerance=PAYMENT_TOLERANCE):
        self.session = session
        self.tolerance = Decimal(str(tolerance))

    def _branch(self, branch_id: int, actor=None) -> Branch:
        branch = self.session.get(Branch, branch_id)
        if branch is None:
            raise NotFoundError("Branch not found")
        if actor is not None:
            ensure_branch_access(actor, branch_id)
        return branch

    def _occurred_at(self, value, branch: Branch) -> datetime:
        """Bare dates are pinned to the start of that day in the branch timezone."""
        if value is None or value == "":
            return utcnow()
        if isinstance(value, datetime):
            return value
        text = str(value).strip()
        try:
            if len(text) == 10:
                start, _ = day_bounds(date.fromisoformat(text), branch.timezone)
                return start
            return parse_iso_datetime(text)
        except ValueError:
            raise ValidationError("date must be an ISO date or datetime")

    # ------------------------------------------------------------------
    # Summary / reconciliation
    # ------------------------------------------------------------------

    def _summary(self, branch: Branch, day: date) -> tuple[CashSummary, Decimal]:
        start, end = day_bounds(day, branch.timezone)

        bills = (
            self.session.query(Bill)
            .filter(
                Bill.branch_id == branch.id,
                Bill.status == "completed",
                Bill.bill_date >= start,
                Bill.bill_date <= end,
            )
            .all()
        )
        breakdown = {mode: ZERO for mode in PAYMENT_MODES}
        if bills:
            payments = (
                self.session.query(Payment)
                .filter(Payment.bill_id.in_([b.id for b in bills]))
                .all()
            )
            for payment in payments:
                mode = (payment.payment_mode or "").lower()
                if mode not in breakdown:
                    mode = "other"
                breakdown[mode] += payment.amount or ZERO

        sources = (
            self.session.query(CashSource)
            .filter(
                CashSource.branch_id == branch.id,
                CashSource.transaction_date >= start,
                CashSource.transaction_date <= end,
            )
            .order_by(CashSource.id.asc())
            .all()
        )
        deposits = (
            self.session.query(BankDeposit)
            .filter(
                BankDeposit.branch_id == branch.id,
                BankDeposit.deposit_date >= start,
                BankDeposit.deposit_date <= end,
            )
            .order_by(BankDeposit.id.asc())
            .all()
        )
        expenses = (
            self.session.query(Expense)
            .filter(
                Expense.branch_id == branch.id,
                Expense.payment_mode == "cash",
                Expense.expense_date >= start,
                Expense.expense_date <= end,
            )
            .order_by(Expense.id.asc())
            .all()
        )

        cash_in = sum((s.amount for s in sources), ZERO)
        deposited = sum((d.amount for d in deposits), ZERO)
        spent = sum((e.amount for e in expenses), ZERO)
        expected = breakdown["cash"] + cash_in - deposited - spent

        summary = CashSummary(
            date=day.isoformat(),
            branch_id=branch.id,
            bills_count=len(bills),
            total_revenue=money2(sum(breakdown.values(), ZERO)),
            payment_breakdown={mode: money2(amount) for mode, amount in breakdown.items()},
            cash_sources=money2(cash_in),
            bank_deposits=money2(deposited),
            cash_expenses=money2(spent),
            expected_cash=money2(expected),
            cash_sources_detail=[
                {"id": s.id, "type": s.source_type, "amount": money2(s.amount), "description": s.description}
                for s in sources
            ],
            bank_deposits_detail=[
                {"id": d.id, "bank_name": d.bank_name, "amount": money2(d.amount), "reference": d.reference_number}
                for d in deposits
            ],
            expenses_detail=[
                {"id": e.id, "category": e.category, "amount": money2(e.amount), "description": e.description}
                for e in expenses
            ],
        )
        return summary, expected

    def get_daily_cash_summary(self, branch_id: int, day=None, actor=None) -> CashSummary:
        branch = self._branch(branch_id, actor)
        summary, _ = self._summary(branch, _business_day(day, branch))
        return summary

    def record_cash_count(self, payload: dict, actor=None) -> CashCountResult:
        """
        Compare a physical count with expected cash for the day.

        A difference beyond the tolerance is stored as a cash source (surplus
        as "other", shortage as "counter"). Expected cash is computed before
        that record is written.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")
        branch_id = to_int(payload.get("branch_id"), "branch_id")
        actual = to_decimal(payload.get("actual_cash"), "actual_cash")
        notes = optional_str(payload.get("notes"), "notes", 500)
        denominations = payload.get("denominations")
        if denominations is not None and not isinstance(denominations, dict):
            raise ValidationError("denominations must be an object")

        with UnitOfWork(self.session):
            branch = self._branch(branch_id, actor)
            day = _business_day(payload.get("date"), branch)
            _, expected = self._summary(branch, day)
            difference = actual - expected

            if abs(difference) <= self.tolerance:
                status = "balanced"
            elif difference > 0:
                status = "surplus"
            else:
                status = "shortage"

            if status != "balanced":
                start, _ = day_bounds(day, branch.timezone)
                self.session.add(
                    CashSource(
                        branch_id=branch.id,
                        source_type="other" if difference > 0 else "counter",
                        amount=abs(difference),
                        transaction_date=start,
                        description=f"Cash reconciliation {status}: {notes or 'End of day count'}",
                        recorded_by=actor.user_id if actor else None,
                    )
                )

        if status != "balanced":
            logger.warning(
                "Cash %s at branch %s on %s: expected=%s actual=%s",
                status, branch_id, day.isoformat(), expected, actual,
            )

        return CashCountResult(
            date=day.isoformat(),
            branch_id=branch_id,
            expected_cash=money2(expected),
            actual_cash=money2(actual),
            difference=money2(difference),
            status=status,
            denominations=denominations,
            notes=notes,
            recorded_at=to_utc_z(utcnow()),
        )

    # ------------------------------------------------------------------
    # Cash movements
    # ------------------------------------------------------------------

    def add_cash_source(self, payload: dict, actor=None) -> dict:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")
        branch_id = to_int(payload.get("branch_id"), "branch_id")
        source_type = choice(payload.get("source_type"), "source_type", CASH_SOURCE_TYPES)
        amount = _positive_amount(payload.get("amount"), "amount")
        description = optional_str(payload.get("description"), "description", 500)

        with UnitOfWork(self.session):
            branch = self._branch(branch_id, actor)
            source = CashSource(
                branch_id=branch.id,
                source_type=source_type,
                amount=amount,
                transaction_date=self._occurred_at(payload.get("date"), branch),
                description=description,
                recorded_by=actor.user_id if actor else None,
            )
            self.session.add(source)
            self.session.flush()
            result = {
                "id": source.id,
                "source_type": source.source_type,
                "amount": money2(source.amount),
                "date": to_utc_z(source.transaction_date),
                "description": source.description,
            }
        return result

    def record_bank_deposit(self, payload: dict, actor=None) -> dict:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")
        branch_id = to_int(payload.get("branch_id"), "branch_id")
        amount = _positive_amount(payload.get("amount"), "amount")

        with UnitOfWork(self.session):
            branch = self._branch(branch_id, actor)
            deposit = BankDeposit(
                branch_id=branch.id,
                amount=amount,
                bank_name=optional_str(payload.get("bank_name"), "bank_name", 100),
                account_number=optional_str(payload.get("account_number"), "account_number", 64),
                reference_number=optional_str(payload.get("reference_number"), "reference_number", 100),
                deposit_date=self._occurred_at(payload.get("date"), branch),
                notes=optional_str(payload.get("notes"), "notes", 500),
                deposited_by=actor.user_id if actor else None,
            )
            self.session.add(deposit)
            self.session.flush()
            result = {
                "id": deposit.id,
                "bank_name": deposit.bank_name,
                "amount": money2(deposit.amount),
                "date": to_utc_z(deposit.deposit_date),
                "reference_number": deposit.reference_number,
            }
        return result

    def record_expense(self, payload: dict, actor=None) -> dict:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")
        branch_id = to_int(payload.get("branch_id"), "branch_id")
        amount = _positive_amount(payload.get("amount"), "amount")
        payment_mode = choice(payload.get("payment_mode") or "cash", "payment_mode", PAYMENT_MODES)

        with UnitOfWork(self.session):
            branch = self._branch(branch_id, actor)
            expense = Expense(
                branch_id=branch.id,
                category=optional_str(payload.get("category"), "category", 64),
                description=optional_str(payload.get("description"), "description", 500),
                amount=amount,
                payment_mode=payment_mode,
                expense_date=self._occurred_at(payload.get("date"), branch),
                recorded_by=actor.user_id if actor else None,
            )
            self.session.add(expense)
            self.session.flush()
            result = expense.to_dict()
        return result

    def get_cash_history(self, branch_id: int, start_date, end_date, actor=None) -> dict:
        branch = self._branch(branch_id, actor)
        start_day = _business_day(start_date, branch, "start_date")
        end_day = _business_day(end_date, branch, "end_date")
        if end_day < start_day:
            raise ValidationError("end_date must not be before start_date")
        start, end = range_bounds(start_day, end_day, branch.timezone)

        sources = (
            self.session.query(CashSource)
            .filter(
                CashSource.branch_id == branch.id,
                CashSource.transaction_date >= start,
                CashSource.transaction_date <= end,
            )
            .order_by(CashSource.transaction_date.desc(), CashSource.id.desc())
            .all()
        )
        deposits = (
            self.session.query(BankDeposit)
            .filter(
                BankDeposit.branch_id == branch.id,
                BankDeposit.deposit_date >= start,
                BankDeposit.deposit_date <= end,
            )
            .order_by(BankDeposit.deposit_date.desc(), BankDeposit.id.desc())
            .all()
        )
        expenses = (
            self.session.query(Expense)
            .filter(
                Expense.branch_id == branch.id,
                Expense.expense_date >= start,
                Expense.expense_date <= end,
            )
            .order_by(Expense.expense_date.desc(), Expense.id.desc())
            .all()
        )

        return {
            "branch_id": branch.id,
            "start_date": start_day.isoformat(),
            "end_date": end_day.isoformat(),
            "cash_sources": [
                {
                    "id": s.id,
                    "type": "cash_in",
                    "source_type": s.source_type,
                    "amount": money2(s.amount),
                    "date": to_utc_z(s.transaction_date),
                    "description": s.description,
                    "recorded_by": s.recorded_by,
                }
                for s in sources
            ],
            "bank_deposits": [
                {
                    "id": d.id,
                    "type": "deposit",
                    "bank_name": d.bank_name,
                    "amount": money2(d.amount),
                    "date": to_utc_z(d.deposit_date),
                    "reference": d.reference_number,
                    "recorded_by": d.deposited_by,
                }
                for d in deposits
            ],
            "expenses": [
                {
                    "id": e.id,
                    "type": "expense",
                    "category": e.category,
                    "payment_mode": e.payment_mode,
                    "amount": money2(e.amount),
                    "date": to_utc_z(e.expense_date),
                    "description": e.description,
                    "recorded_by": e.recorded_by,
                }
                for e in expenses
            ],
        }

    @staticmethod
    def calculate_denominations(denominations) -> dict:
        """Value of a note/coin count map, e.g. {"500": 3, "10": 4} -> total 1540."""
        if denominations is None:
            denominations = {}
        if not isinstance(denominations, dict):
            raise ValidationError("denominations must be an object")

        breakdown = {}
        total = 0
        for key, raw_count in denominations.items():
            try:
                face = int(key)
            except (TypeError, ValueError):
                continue
            if face not in DENOMINATIONS:
                continue
            count = to_int(raw_count, f"denominations[{key}]")
            if count <= 0:
                continue
            value = face * count
            breakdown[str(face)] = {"count": count, "value": value}
            total += value
        return {"breakdown": breakdown, "total": total}
