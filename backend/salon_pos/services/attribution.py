# Overview: Equal-share split of a bill item's revenue and star points across its employees.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Contribution:
    """One employee's share of one bill item."""
    employee_id: int
    revenue: Decimal
    stars: Decimal
    contribution_type: str  # full, partial
    contribution_percent: int
    share_count: int


def star_points_for(item) -> int:
    """Star points earned by the whole line (service items only)."""
    if item.item_type != "service" or item.service is None:
        return 0
    return int(item.service.star_points or 0) * int(item.quantity or 0)


def split_item(total_price, star_points, employee_ids) -> list[Contribution]:
    """
    Divide a line's revenue and star points 1/N across `employee_ids`.

    Shares are exact Decimal quotients; rounding happens only at display time.
    """
    count = len(employee_ids)
    if count == 0:
        return []

    revenue = Decimal(str(total_price)) / count
    stars = Decimal(str(star_points)) / count
    contribution_type = "full" if count == 1 else "partial"
    percent = int((Decimal(100) / count).to_integral_value())

    return [
        Contribution(
            employee_id=employee_id,
            revenue=revenue,
            stars=stars,
            contribution_type=contribution_type,
            contribution_percent=percent,
            share_count=count,
        )
        for employee_id in employee_ids
    ]


def item_contributions(item) -> list[Contribution]:
    """
    Contributions for a persisted BillItem.

    N is taken from the junction rows stored on the item. An item with no
    junction rows but a legacy single employee counts as one full share.
    """
    employee_ids = [row.employee_id for row in item.employees]
    if not employee_ids and item.employee_id is not None:
        employee_ids = [item.employee_id]
    return split_item(item.total_price, star_points_for(item), employee_ids)
