from decimal import Decimal

from salon_pos.services.attribution import split_item


def test_two_way_split_halves_revenue_and_stars():
    shares = split_item(Decimal("1000"), 10, [11, 12])

    assert [s.employee_id for s in shares] == [11, 12]
    assert all(s.revenue == Decimal("500") for s in shares)
    assert all(s.stars == Decimal("5") for s in shares)
    assert all(s.contribution_type == "partial" for s in shares)
    assert all(s.contribution_percent == 50 for s in shares)


def test_single_employee_gets_full_credit():
    [share] = split_item(Decimal("750"), 8, [5])

    assert share.revenue == Decimal("750")
    assert share.stars == Decimal("8")
    assert share.contribution_type == "full"
    assert share.contribution_percent == 100
    assert share.share_count == 1


def test_three_way_split_sums_back_to_item_total():
    shares = split_item(Decimal("1000"), 10, [1, 2, 3])

    assert shares[0].contribution_percent == 33
    assert abs(sum(s.revenue for s in shares) - Decimal("1000")) < Decimal("0.0000001")
    assert abs(sum(s.stars for s in shares) - Decimal("10")) < Decimal("0.0000001")


def test_no_employees_means_no_contributions():
    assert split_item(Decimal("400"), 4, []) == []
