from datetime import date

import pytest

from salon_pos.decorators import Actor
from salon_pos.errors import InsufficientStockError, InvalidAdjustmentTypeError, NotFoundError
from salon_pos.models import Inventory, InventoryTransaction, Product
from salon_pos.services.inventory_service import InventoryService


def _adjust(db_session, product, location, quantity, adjustment_type, actor=None, **extra):
    payload = {
        "product_id": product.id,
        "location_id": location.id,
        "quantity": quantity,
        "adjustment_type": adjustment_type,
    }
    payload.update(extra)
    return InventoryService(db_session).adjust_stock(payload, actor)


def test_add_creates_row_and_logs_purchase(db_session, shampoo, store_location, owner_actor):
    result = _adjust(db_session, shampoo, store_location, 12, "add", owner_actor, reason="Weekly delivery")

    assert (result.previous_quantity, result.new_quantity) == (0, 12)
    [entry] = db_session.query(InventoryTransaction).all()
    assert entry.id == result.transaction_id
    assert entry.transaction_type == "purchase"
    assert entry.quantity == 12
    assert entry.to_location_id == store_location.id
    assert entry.notes == "Weekly delivery"


def test_subtract_more_than_on_hand_leaves_stock_unchanged(db_session, shampoo, store_location, add_stock):
    row = add_stock(shampoo, store_location, 3)

    with pytest.raises(InsufficientStockError):
        _adjust(db_session, shampoo, store_location, 5, "subtract")

    assert db_session.get(Inventory, row.id).quantity == 3
    assert db_session.query(InventoryTransaction).count() == 0


def test_subtract_logs_adjustment(db_session, shampoo, store_location, add_stock):
    add_stock(shampoo, store_location, 8)

    result = _adjust(db_session, shampoo, store_location, 5, "subtract")

    assert result.new_quantity == 3
    [entry] = db_session.query(InventoryTransaction).all()
    assert entry.transaction_type == "adjustment"
    assert entry.quantity == 5
    assert entry.from_location_id == store_location.id


def test_set_records_absolute_delta(db_session, shampoo, store_location, add_stock):
    add_stock(shampoo, store_location, 3)

    result = _adjust(db_session, shampoo, store_location, 7, "set")

    assert (result.previous_quantity, result.new_quantity) == (3, 7)
    [entry] = db_session.query(InventoryTransaction).all()
    assert entry.transaction_type == "adjustment"
    assert entry.quantity == 4


def test_unknown_adjustment_type(db_session, shampoo, store_location):
    with pytest.raises(InvalidAdjustmentTypeError) as exc:
        _adjust(db_session, shampoo, store_location, 1, "multiply")
    assert exc.value.status_code == 422


def test_adjusting_unknown_product(db_session, store_location):
    payload = {"product_id": 4040, "location_id": store_location.id, "quantity": 1, "adjustment_type": "add"}
    with pytest.raises(NotFoundError):
        InventoryService(db_session).adjust_stock(payload)


def test_batches_are_tracked_separately(db_session, shampoo, store_location):
    _adjust(db_session, shampoo, store_location, 4, "add", batch_number="B-01", expiry_date="2026-05-01")
    _adjust(db_session, shampoo, store_location, 6, "add", batch_number="B-02")

    rows = db_session.query(Inventory).order_by(Inventory.batch_number).all()
    assert [(r.batch_number, r.quantity) for r in rows] == [("B-01", 4), ("B-02", 6)]
    assert rows[0].expiry_date == date(2026, 5, 1)
    assert InventoryService(db_session).available_quantity(shampoo.id, store_location.id) == 10


def test_inventory_listing_filters(db_session, shampoo, store_location, add_stock):
    conditioner = Product(product_name="Silk Conditioner", sku="CN-001", reorder_level=1)
    db_session.add(conditioner)
    db_session.commit()
    add_stock(shampoo, store_location, 2, batch_number="OLD", expiry_date=date(2026, 3, 20))
    add_stock(conditioner, store_location, 10)
    service = InventoryService(db_session)

    rows, total = service.get_inventory()
    assert total == 2

    rows, total = service.get_inventory(low_stock=True)
    assert [r.product["product_name"] for r in rows] == ["Argan Shampoo"]
    assert rows[0].is_low_stock is True

    rows, total = service.get_inventory(expiring_soon=True, today=date(2026, 3, 1))
    assert [r.batch_number for r in rows] == ["OLD"]

    rows, total = service.get_inventory(search="silk")
    assert [r.product["sku"] for r in rows] == ["CN-001"]


def test_transactions_are_filterable(db_session, shampoo, store_location):
    _adjust(db_session, shampoo, store_location, 5, "add")
    _adjust(db_session, shampoo, store_location, 2, "subtract")

    rows, total = InventoryService(db_session).list_transactions(transaction_type="adjustment")
    assert total == 1
    assert rows[0]["quantity"] == 2
    assert rows[0]["product_name"] == "Argan Shampoo"


def test_locations_are_scoped_for_branch_staff(db_session, branch, other_branch):
    manager = Actor(user_id=5, role="manager", branch_id=other_branch.id)
    locations = InventoryService(db_session).get_locations(manager)

    assert [loc["location_name"] for loc in locations] == ["North Store"]
    assert len(InventoryService(db_session).get_locations()) == 2
