# Overview: Read-side reports: employee attribution, sales, revenue, customers, services, stock and dashboard KPIs.

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func

from ..errors import NotFoundError, ValidationError
from ..models import (
    Bill,
    BillItem,
    BillItemEmployee,
    Branch,
    Customer,
    Inventory,
    InventoryLocation,
    Payment,
    Product,
    Service,
    User,
)
from ..time_utils import END_OF_DAY, calendar_days, month_start, previous_month_bounds, utcnow
from .access import ensure_branch_access, is_global, scoped_branch_id
from .attribution import item_contributions, star_points_for
from .formatters import (
    DayBreakdown,
    DayService,
    EmployeePerformance,
    PerformanceReport,
    money2,
)
from .settings_service import default_monthly_star_goal

# All report windows are UTC calendar days; a bill belongs to the day of its
# bill_date. Only completed bills are counted. Reads are independent queries,
# not a snapshot, so a report taken during heavy writes may be slightly torn.

ZERO = Decimal("0")
DEFAULT_PERIOD_DAYS = 30
EXPIRING_WINDOW_DAYS = 30


def _round2(value) -> float:
    return money2(value)


def _pct_change(current, previous) -> float:
    """Percent change rounded to one decimal; 0 when there is no baseline."""
    current = Decimal(str(current or 0))
    previous = Decimal(str(previous or 0))
    if previous <= 0:
        return 0.0
    change = (current - previous) / previous * 100
    return float(change.quantize(Decimal("0.1")))


def _day_start(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


def _day_end(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY)


class _EmployeeBucket:
    __slots__ = ("services", "revenue", "stars", "days")

    def __init__(self):
        self.services = 0
        self.revenue = ZERO
        self.stars = ZERO
        self.days: dict[str, dict] = {}


class ReportingService:
    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _completed_bills(self, start: datetime | None, end: datetime | None, branch_id: int | None):
        query = self.session.query(Bill).filter(Bill.status == "completed")
        if start is not None:
            query = query.filter(Bill.bill_date >= start)
        if end is not None:
            query = query.filter(Bill.bill_date <= end)
        if branch_id is not None:
            query = query.filter(Bill.branch_id == branch_id)
        return query

    def _items_in_range(self, start: datetime, end: datetime, branch_id: int | None):
        query = (
            self.session.query(BillItem)
            .join(Bill, Bill.id == BillItem.bill_id)
            .filter(Bill.status == "completed", Bill.bill_date >= start, Bill.bill_date <= end)
        )
        if branch_id is not None:
            query = query.filter(Bill.branch_id == branch_id)
        return query

    @staticmethod
    def resolve_range(
        *,
        period: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        now: datetime | None = None,
    ) -> tuple[date, date, datetime, datetime, int]:
        """
        (start_day, end_day, start_dt, end_dt, days) for a report window.

        An explicit start/end pair covers whole calendar days. Otherwise the
        window is the last `period` days up to `now`.
        """
        if start_date is not None and end_date is not None:
            if end_date < start_date:
                raise ValidationError("end_date must not be before start_date")
            return (
                start_date,
                end_date,
                _day_start(start_date),
                _day_end(end_date),
                calendar_days(start_date, end_date),
            )
        period = DEFAULT_PERIOD_DAYS if period is None else period
        if period <= 0:
            raise ValidationError("period must be positive")
        now = now or utcnow()
        start_dt = now - timedelta(days=period)
        return start_dt.date(), now.date(), start_dt, now, period

    # ------------------------------------------------------------------
    # Attribution reports
    # ------------------------------------------------------------------

    def employee_performance(
        self,
        *,
        actor=None,
        period: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        branch_id: int | None = None,
        employee_id: int | None = None,
        now: datetime | None = None,
    ) -> PerformanceReport:
        """
        Replay the employee split of every completed bill item in the window.

        Each assignee of an N-way item gets total_price/N and star_points/N.
        Items with no split rows fall back to the legacy single employee as a
        full share. Daily averages divide by calendar days in the window.
        """
        start_day, end_day, start_dt, end_dt, days = self.resolve_range(
            period=period, start_date=start_date, end_date=end_date, now=now
        )
        branch_id = scoped_branch_id(actor, branch_id)

        items = (
            self._items_in_range(start_dt, end_dt, branch_id)
            .order_by(Bill.bill_date.asc(), Bill.id.asc(), BillItem.id.asc())
            .all()
        )

        buckets: dict[int, _EmployeeBucket] = OrderedDict()
        for item in items:
            day_key = item.bill.bill_date.date().isoformat()
            name = item.item_name or "Unknown"
            for share in item_contributions(item):
                if employee_id is not None and share.employee_id != employee_id:
                    continue
                bucket = buckets.setdefault(share.employee_id, _EmployeeBucket())
                bucket.services += 1
                bucket.revenue += share.revenue
                bucket.stars += share.stars

                day = bucket.days.setdefault(
                    day_key, {"services_count": 0, "services": [], "stars": ZERO, "earnings": ZERO}
                )
                day["services_count"] += 1
                day["services"].append(
                    DayService(
                        service_name=name,
                        contribution_type=share.contribution_type,
                        contribution_percent=share.contribution_percent,
                    )
                )
                day["stars"] += share.stars
                day["earnings"] += share.revenue

        global_goal = default_monthly_star_goal(self.session)
        users = {}
        if buckets:
            users = {
                u.id: u
                for u in self.session.query(User).filter(User.id.in_(list(buckets.keys()))).all()
            }

        employees = []
        for emp_id, bucket in buckets.items():
            user = users.get(emp_id)
            employees.append(
                EmployeePerformance(
                    employee_id=emp_id,
                    employee_name=user.full_name if user else "Unknown",
                    services_completed=bucket.services,
                    revenue_generated=_round2(bucket.revenue),
                    star_points=_round2(bucket.stars),
                    monthly_star_goal=(user.monthly_star_goal if user and user.monthly_star_goal else global_goal),
                    daily_avg_earnings=_round2(bucket.revenue / days),
                    daily_avg_stars=_round2(bucket.stars / days),
                    daily_breakdown=[
                        DayBreakdown(
                            date=day_key,
                            services_count=day["services_count"],
                            services=day["services"],
                            stars=_round2(day["stars"]),
                            earnings=_round2(day["earnings"]),
                        )
                        for day_key, day in sorted(bucket.days.items())
                    ],
                )
            )
        employees.sort(key=lambda e: e.revenue_generated, reverse=True)

        return PerformanceReport(
            start_date=start_day.isoformat(),
            end_date=end_day.isoformat(),
            days=days,
            global_monthly_star_goal=global_goal,
            employees=employees,
        )

    def staff_performance(
        self, user_id: int, *, period: int | None = None, now: datetime | None = None, actor=None
    ) -> dict:
        """Totals for one employee from their split rows over the last `period` days."""
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if actor is not None and actor.user_id != user_id:
            ensure_branch_access(actor, user.branch_id)
        _, _, start_dt, end_dt, days = self.resolve_range(period=period, now=now)

        rows = (
            self.session.query(BillItemEmployee)
            .join(BillItem, BillItem.id == BillItemEmployee.bill_item_id)
            .join(Bill, Bill.id == BillItem.bill_id)
            .filter(
                BillItemEmployee.employee_id == user_id,
                Bill.status == "completed",
                Bill.bill_date >= start_dt,
                Bill.bill_date <= end_dt,
            )
            .all()
        )

        stars = ZERO
        revenue = ZERO
        for row in rows:
            item = row.bill_item
            share_count = len(item.employees) or 1
            stars += Decimal(star_points_for(item)) / share_count
            revenue += Decimal(str(item.total_price)) / share_count

        return {
            "user_id": user.id,
            "full_name": user.full_name,
            "period_days": days,
            "total_services": len(rows),
            "total_star_points": _round2(stars),
            "total_revenue": _round2(revenue),
        }

    # ------------------------------------------------------------------
    # Sales reports
    # ------------------------------------------------------------------

    def service_analytics(
        self, *, actor=None, period: int | None = None, branch_id: int | None = None, now: datetime | None = None
    ) -> dict:
        _, _, start_dt, end_dt, days = self.resolve_range(period=period, now=now)
        branch_id = scoped_branch_id(actor, branch_id)

        query = (
            self.session.query(
                BillItem.service_id,
                func.coalesce(func.sum(BillItem.total_price), 0).label("revenue"),
                func.coalesce(func.sum(BillItem.quantity), 0).label("quantity"),
                func.count(BillItem.id).label("times_ordered"),
            )
            .join(Bill, Bill.id == BillItem.bill_id)
            .filter(
                Bill.status == "completed",
                Bill.bill_date >= start_dt,
                Bill.bill_date <= end_dt,
                BillItem.item_type == "service",
                BillItem.service_id.isnot(None),
            )
        )
        if branch_id is not None:
            query = query.filter(Bill.branch_id == branch_id)
        stats = query.group_by(BillItem.service_id).all()

        services = {}
        if stats:
            services = {
                s.id: s
                for s in self.session.query(Service).filter(Service.id.in_([row.service_id for row in stats])).all()
            }

        top_services = []
        by_category: dict[str, dict] = {}
        for row in stats:
            service = services.get(row.service_id)
            category = service.category.category_name if service and service.category else "Other"
            revenue = Decimal(str(row.revenue or 0))
            top_services.append({
                "service_id": row.service_id,
                "service_name": service.service_name if service else "Unknown",
                "category": category,
                "quantity_sold": int(row.quantity or 0),
                "revenue": _round2(revenue),
                "times_ordered": int(row.times_ordered or 0),
            })
            bucket = by_category.setdefault(category, {"revenue": ZERO, "count": 0})
            bucket["revenue"] += revenue
            bucket["count"] += int(row.times_ordered or 0)

        top_services.sort(key=lambda s: s["revenue"], reverse=True)
        categories = [
            {"category": name, "revenue": _round2(data["revenue"]), "count": data["count"]}
            for name, data in by_category.items()
        ]
        categories.sort(key=lambda c: c["revenue"], reverse=True)

        return {"period_days": days, "top_services": top_services, "by_category": categories}

    def daily_sales(
        self, *, actor=None, day: date | None = None, branch_id: int | None = None, now: datetime | None = None
    ) -> dict:
        day = day or (now or utcnow()).date()
        branch_id = scoped_branch_id(actor, branch_id)
        start, end = _day_start(day), _day_end(day)

        bills = self._completed_bills(start, end, branch_id).all()
        bill_ids = [b.id for b in bills]
        revenue = sum((b.total_amount for b in bills), ZERO)
        discount = sum((b.discount_amount for b in bills), ZERO)

        by_mode = []
        top_services = []
        if bill_ids:
            mode_rows = (
                self.session.query(
                    Payment.payment_mode,
                    func.coalesce(func.sum(Payment.amount), 0).label("amount"),
                    func.count(Payment.id).label("count"),
                )
                .filter(Payment.bill_id.in_(bill_ids))
                .group_by(Payment.payment_mode)
                .order_by(Payment.payment_mode.asc())
                .all()
            )
            by_mode = [
                {"payment_mode": row.payment_mode, "amount": _round2(row.amount), "count": int(row.count)}
                for row in mode_rows
            ]

            service_rows = (
                self.session.query(
                    Service.service_name,
                    func.coalesce(func.sum(BillItem.total_price), 0).label("revenue"),
                    func.count(BillItem.id).label("count"),
                )
                .join(Service, Service.id == BillItem.service_id)
                .filter(BillItem.bill_id.in_(bill_ids), BillItem.item_type == "service")
                .group_by(Service.id, Service.service_name)
                .all()
            )
            top_services = sorted(
                (
                    {"service_name": row.service_name, "revenue": _round2(row.revenue), "count": int(row.count)}
                    for row in service_rows
                ),
                key=lambda s: s["revenue"],
                reverse=True,
            )[:10]

        return {
            "date": day.isoformat(),
            "summary": {
                "total_bills": len(bills),
                "total_revenue": _round2(revenue),
                "total_discount": _round2(discount),
                "average_bill": _round2(revenue / len(bills)) if bills else 0.0,
            },
            "by_payment_mode": by_mode,
            "top_services": top_services,
        }

    def monthly_revenue(
        self,
        *,
        actor=None,
        year: int | None = None,
        month: int | None = None,
        branch_id: int | None = None,
        now: datetime | None = None,
    ) -> dict:
        now = now or utcnow()
        year = year or now.year
        month = month or now.month
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")

        start = datetime(year, month, 1)
        next_month = datetime(year + (month // 12), month % 12 + 1, 1)
        end = _day_end((next_month - timedelta(days=1)).date())
        scoped = scoped_branch_id(actor, branch_id)

        bills = self._completed_bills(start, end, scoped).order_by(Bill.bill_date.asc()).all()

        daily: dict[str, dict] = {}
        for bill in bills:
            key = bill.bill_date.date().isoformat()
            bucket = daily.setdefault(key, {"revenue": ZERO, "discount": ZERO, "count": 0})
            bucket["revenue"] += bill.total_amount
            bucket["discount"] += bill.discount_amount
            bucket["count"] += 1

        branch_breakdown = []
        if is_global(actor):
            rows = (
                self.session.query(
                    Bill.branch_id,
                    Branch.name,
                    func.coalesce(func.sum(Bill.total_amount), 0).label("revenue"),
                    func.count(Bill.id).label("bills_count"),
                )
                .join(Branch, Branch.id == Bill.branch_id)
                .filter(Bill.status == "completed", Bill.bill_date >= start, Bill.bill_date <= end)
                .group_by(Bill.branch_id, Branch.name)
                .all()
            )
            branch_breakdown = sorted(
                (
                    {
                        "branch_id": row.branch_id,
                        "branch_name": row.name,
                        "revenue": _round2(row.revenue),
                        "bills_count": int(row.bills_count),
                    }
                    for row in rows
                ),
                key=lambda b: b["revenue"],
                reverse=True,
            )

        total_revenue = sum((b.total_amount for b in bills), ZERO)
        total_discount = sum((b.discount_amount for b in bills), ZERO)
        return {
            "year": year,
            "month": month,
            "summary": {
                "total_revenue": _round2(total_revenue),
                "total_discount": _round2(total_discount),
                "total_bills": len(bills),
                "average_daily_revenue": _round2(total_revenue / len(daily)) if daily else 0.0,
            },
            "daily_breakdown": [
                {
                    "date": key,
                    "revenue": _round2(data["revenue"]),
                    "discount": _round2(data["discount"]),
                    "count": data["count"],
                }
                for key, data in sorted(daily.items())
            ],
            "branch_breakdown": branch_breakdown,
        }

    def customer_analytics(
        self, *, actor=None, period: int | None = None, branch_id: int | None = None, now: datetime | None = None
    ) -> dict:
        _, _, start_dt, end_dt, days = self.resolve_range(period=period, now=now)
        branch_id = scoped_branch_id(actor, branch_id)

        query = (
            self.session.query(
                Bill.customer_id,
                func.coalesce(func.sum(Bill.total_amount), 0).label("spent"),
                func.count(Bill.id).label("visits"),
            )
            .filter(Bill.status == "completed", Bill.bill_date >= start_dt, Bill.bill_date <= end_dt)
        )
        if branch_id is not None:
            query = query.filter(Bill.branch_id == branch_id)
        rows = query.group_by(Bill.customer_id).all()

        customers = {}
        if rows:
            customers = {
                c.id: c
                for c in self.session.query(Customer).filter(Customer.id.in_([r.customer_id for r in rows])).all()
            }

        top = []
        for row in rows:
            customer = customers.get(row.customer_id)
            top.append({
                "customer_id": row.customer_id,
                "customer_name": customer.customer_name if customer else "Unknown",
                "phone_masked": customer.phone_masked if customer else None,
                "total_spent": _round2(row.spent),
                "visits_in_period": int(row.visits),
                "total_visits": customer.total_visits if customer else 0,
            })
        top.sort(key=lambda c: c["total_spent"], reverse=True)

        new_customers = (
            self.session.query(func.count(Customer.id))
            .filter(Customer.created_at >= start_dt, Customer.created_at <= end_dt)
            .scalar()
        )
        gender_rows = (
            self.session.query(Customer.gender, func.count(Customer.id))
            .group_by(Customer.gender)
            .all()
        )

        return {
            "period_days": days,
            "top_customers": top[:20],
            "new_customers": int(new_customers or 0),
            "demographics": {
                "by_gender": [
                    {"gender": gender or "unknown", "count": int(count)} for gender, count in gender_rows
                ],
            },
        }

    # ------------------------------------------------------------------
    # Inventory / dashboard
    # ------------------------------------------------------------------

    def inventory_report(
        self, *, actor=None, location_id: int | None = None, today: date | None = None
    ) -> dict:
        today = today or utcnow().date()
        horizon = today + timedelta(days=EXPIRING_WINDOW_DAYS)

        query = (
            self.session.query(Inventory)
            .join(Product, Product.id == Inventory.product_id)
            .join(InventoryLocation, InventoryLocation.id == Inventory.location_id)
        )
        if location_id is not None:
            query = query.filter(Inventory.location_id == location_id)
        branch_id = scoped_branch_id(actor, None)
        if branch_id is not None:
            query = query.filter(InventoryLocation.branch_id == branch_id)

        items = []
        total_value = ZERO
        for row in query.all():
            product = row.product
            cost = product.cost_price or ZERO
            value = cost * (row.quantity or 0)
            total_value += value
            items.append({
                "product_id": product.id,
                "product_name": product.product_name,
                "category": product.category or "Other",
                "location": row.location.name,
                "quantity": row.quantity,
                "reorder_level": product.reorder_level,
                "is_low_stock": row.quantity <= (product.reorder_level or 0),
                "cost_price": _round2(cost),
                "stock_value": _round2(value),
                "expiry_date": row.expiry_date.isoformat() if row.expiry_date else None,
                "is_expiring_soon": bool(row.expiry_date and row.expiry_date <= horizon),
            })

        by_category: dict[str, dict] = {}
        for item in items:
            bucket = by_category.setdefault(item["category"], {"value": ZERO, "items": 0})
            bucket["value"] += Decimal(str(item["stock_value"]))
            bucket["items"] += 1

        items.sort(key=lambda i: i["stock_value"], reverse=True)
        low_stock = [i for i in items if i["is_low_stock"]]
        expiring = [i for i in items if i["is_expiring_soon"]]
        categories = sorted(
            ({"category": name, "value": _round2(data["value"]), "items": data["items"]} for name, data in by_category.items()),
            key=lambda c: c["value"],
            reverse=True,
        )

        return {
            "summary": {
                "total_items": len(items),
                "total_value": _round2(total_value),
                "low_stock_count": len(low_stock),
                "expiring_soon_count": len(expiring),
            },
            "by_category": categories,
            "items": items,
            "low_stock_items": low_stock,
            "expiring_items": expiring,
        }

    def _window_stats(self, start: datetime, end: datetime | None, branch_id: int | None) -> tuple[Decimal, int, int]:
        query = self.session.query(
            func.coalesce(func.sum(Bill.total_amount), 0),
            func.count(Bill.id),
            func.count(func.distinct(Bill.customer_id)),
        ).filter(Bill.status == "completed", Bill.bill_date >= start)
        if end is not None:
            query = query.filter(Bill.bill_date <= end)
        if branch_id is not None:
            query = query.filter(Bill.branch_id == branch_id)
        revenue, count, customers = query.one()
        return Decimal(str(revenue or 0)), int(count or 0), int(customers or 0)

    def _branch_revenue(self, start: datetime, end: datetime | None) -> dict[int, tuple[Decimal, int]]:
        query = self.session.query(
            Bill.branch_id,
            func.coalesce(func.sum(Bill.total_amount), 0),
            func.count(Bill.id),
        ).filter(Bill.status == "completed", Bill.bill_date >= start)
        if end is not None:
            query = query.filter(Bill.bill_date <= end)
        return {
            branch_id: (Decimal(str(revenue or 0)), int(count or 0))
            for branch_id, revenue, count in query.group_by(Bill.branch_id).all()
        }

    def dashboard_stats(self, *, actor=None, branch_id: int | None = None, now: datetime | None = None) -> dict:
        """
        This month vs last month, branch leaderboard (owners only) and today.

        Percentage deltas are rounded to one decimal and are 0 when last
        month had nothing to compare against.
        """
        now = now or utcnow()
        branch_id = scoped_branch_id(actor, branch_id)
        this_month = month_start(now)
        last_start, last_end = previous_month_bounds(now)
        today_start, today_end = _day_start(now.date()), _day_end(now.date())

        month_revenue, month_bills, month_customers = self._window_stats(this_month, None, branch_id)
        last_revenue, last_bills, last_customers = self._window_stats(last_start, last_end, branch_id)

        avg_bill = month_revenue / month_bills if month_bills else ZERO
        last_avg_bill = last_revenue / last_bills if last_bills else ZERO

        branch_performance = []
        if is_global(actor):
            current = self._branch_revenue(this_month, None)
            previous = self._branch_revenue(last_start, last_end)
            names = {b.id: b.name for b in self.session.query(Branch).all()}
            for bid, (revenue, count) in current.items():
                branch_performance.append({
                    "id": bid,
                    "name": names.get(bid, "Unknown Branch"),
                    "revenue": _round2(revenue),
                    "billCount": count,
                    "growth": _pct_change(revenue, previous.get(bid, (ZERO, 0))[0]),
                })
            branch_performance.sort(key=lambda b: b["revenue"], reverse=True)

        today_revenue, today_bills, _ = self._window_stats(today_start, today_end, branch_id)
        new_customers = (
            self.session.query(func.count(Customer.id))
            .filter(Customer.created_at >= today_start, Customer.created_at <= today_end)
            .scalar()
        )
        services_query = (
            self.session.query(func.count(BillItem.id))
            .join(Bill, Bill.id == BillItem.bill_id)
            .filter(
                Bill.status == "completed",
                Bill.bill_date >= today_start,
                Bill.bill_date <= today_end,
                BillItem.item_type == "service",
            )
        )
        if branch_id is not None:
            services_query = services_query.filter(Bill.branch_id == branch_id)

        return {
            "monthlyRevenue": _round2(month_revenue),
            "revenueChange": _pct_change(month_revenue, last_revenue),
            "monthlyBills": month_bills,
            "billsChange": _pct_change(month_bills, last_bills),
            "activeCustomers": month_customers,
            "customersChange": _pct_change(month_customers, last_customers),
            "averageBillValue": int(avg_bill.quantize(Decimal("1"))),
            "avgBillChange": _pct_change(avg_bill, last_avg_bill),
            "branchPerformance": branch_performance,
            "todaySummary": {
                "revenue": _round2(today_revenue),
                "billCount": today_bills,
                "newCustomers": int(new_customers or 0),
                "servicesProvided": int(services_query.scalar() or 0),
            },
        }
