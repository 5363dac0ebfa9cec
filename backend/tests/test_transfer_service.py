import re

import pytest

from salon_pos.errors import InsufficientStockError, InvalidStatusError, NotFoundError, ValidationError
from salon_pos.models import Inventory, InventoryTransaction
from salon_pos.services.bill_service import BillService
from salon_pos.services.transfer_service import TransferService


def _quantity(db_session, product, location):
    return sum(
        row.quantity
        for row in db_session.query(Inventory).filter_by(product_id=product.id, location_id=location.id).all()
    )


def _request(db_session, product, source, destination, quantity, actor=None):
    return TransferService(db_session).create_transfer(
        {
            "from_location_id": source.id,
            "to_location_id": destination.id,
            "items": [{"product_id": product.id, "quantity": quantity}],
            "notes": "Restock front shelf",
        },
        actor,
    )


def test_create_transfer_is_pending(db_session, shampoo, warehouse, store_location, add_stock, owner_actor):
    add_stock(shampoo, warehouse, 10)

    transfer = _request(db_session, shampoo, warehouse, store_location, 4, owner_actor)

    assert transfer.status == "pending"
    assert re.fullmatch(r"TRF-\d{6}-0001", transfer.transfer_number)
    assert transfer.items[0].quantity_requested == 4
    assert transfer.items[0].quantity_sent is None
    assert _quantity(db_session, shampoo, warehouse) == 10


def test_approve_moves_stock_and_logs_both_sides(
    db_session, shampoo, warehouse, store_location, add_stock, owner_actor
):
    add_stock(shampoo, warehouse, 10)
    transfer = _request(db_session, shampoo, warehouse, store_location, 4, owner_actor)

    approved = TransferService(db_session).approve_transfer(transfer.transfer_id, owner_actor)

    assert approved.status == "completed"
    assert approved.items[0].quantity_sent == 4
    assert approved.items[0].quantity_received == 4
    assert approved.completed_at is not None
    assert _quantity(db_session, shampoo, warehouse) == 6
    assert _quantity(db_session, shampoo, store_location) == 4

    entries = db_session.query(InventoryTransaction).order_by(InventoryTransaction.id).all()
    assert [(e.transaction_type, e.quantity) for e in entries] == [("transfer_out", 4), ("transfer_in", 4)]
    assert all(e.reference_type == "transfer" and e.reference_id == transfer.transfer_id for e in entries)
    assert entries[0].to_location_id == store_location.id
    assert entries[1].from_location_id == warehouse.id


def test_duplicate_lines_are_merged(db_session, shampoo, warehouse, store_location, add_stock):
    add_stock(shampoo, warehouse, 10)

    transfer = TransferService(db_session).create_transfer({
        "from_location_id": warehouse.id,
        "to_location_id": store_location.id,
        "items": [{"product_id": shampoo.id, "quantity": 2}, {"product_id": shampoo.id, "quantity": 3}],
    })

    assert [(i.product_id, i.quantity_requested) for i in transfer.items] == [(shampoo.id, 5)]


def test_request_beyond_available_names_the_product(db_session, shampoo, warehouse, store_location, add_stock):
    add_stock(shampoo, warehouse, 3)

    with pytest.raises(InsufficientStockError) as exc:
        _request(db_session, shampoo, warehouse, store_location, 5)

    assert "Argan Shampoo" in exc.value.message
    assert exc.value.details["available"] == 3


def test_same_location_is_rejected(db_session, shampoo, warehouse):
    with pytest.raises(ValidationError):
        _request(db_session, shampoo, warehouse, warehouse, 1)


def test_unknown_location(db_session, shampoo, warehouse, add_stock):
    add_stock(shampoo, warehouse, 3)
    with pytest.raises(NotFoundError):
        TransferService(db_session).create_transfer({
            "from_location_id": warehouse.id,
            "to_location_id": 9999,
            "items": [{"product_id": shampoo.id, "quantity": 1}],
        })


def test_completed_transfer_cannot_be_approved_again(
    db_session, shampoo, warehouse, store_location, add_stock
):
    add_stock(shampoo, warehouse, 10)
    transfer = _request(db_session, shampoo, warehouse, store_location, 2)
    service = TransferService(db_session)
    service.approve_transfer(transfer.transfer_id)

    with pytest.raises(InvalidStatusError):
        service.approve_transfer(transfer.transfer_id)
    with pytest.raises(InvalidStatusError):
        service.cancel_transfer(transfer.transfer_id)
    assert _quantity(db_session, shampoo, warehouse) == 8


def test_cancelled_transfer_is_terminal(db_session, shampoo, warehouse, store_location, add_stock, owner_actor):
    add_stock(shampoo, warehouse, 10)
    transfer = _request(db_session, shampoo, warehouse, store_location, 2)
    service = TransferService(db_session)

    cancelled = service.cancel_transfer(transfer.transfer_id, owner_actor)
    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_at is not None

    with pytest.raises(InvalidStatusError):
        service.approve_transfer(transfer.transfer_id)
    assert _quantity(db_session, shampoo, warehouse) == 10
    assert db_session.query(InventoryTransaction).count() == 0


def test_approval_rechecks_stock(db_session, shampoo, warehouse, store_location, add_stock):
    row = add_stock(shampoo, warehouse, 5)
    transfer = _request(db_session, shampoo, warehouse, store_location, 5)
    row = db_session.get(Inventory, row.id)
    row.quantity = 1
    db_session.commit()

    with pytest.raises(InsufficientStockError):
        TransferService(db_session).approve_transfer(transfer.transfer_id)

    assert TransferService(db_session).get_transfer(transfer.transfer_id).status == "pending"
    assert _quantity(db_session, shampoo, store_location) == 0


def test_sale_then_reverse_transfer_restores_stock(
    db_session, shampoo, warehouse, store_location, add_stock, owner_actor, bill_payload
):
    add_stock(shampoo, store_location, 10)
    add_stock(shampoo, warehouse, 5)

    BillService(db_session).create_bill(
        bill_payload(
            items=[{"item_type": "product", "product_id": shampoo.id, "quantity": 3, "unit_price": 250}],
            payments=[{"payment_mode": "cash", "amount": 750}],
        ),
        owner_actor,
    )
    assert _quantity(db_session, shampoo, store_location) == 7

    transfer = _request(db_session, shampoo, warehouse, store_location, 3, owner_actor)
    TransferService(db_session).approve_transfer(transfer.transfer_id, owner_actor)

    assert _quantity(db_session, shampoo, store_location) == 10


def test_transfer_listing(db_session, shampoo, warehouse, store_location, add_stock):
    add_stock(shampoo, warehouse, 10)
    service = TransferService(db_session)
    first = _request(db_session, shampoo, warehouse, store_location, 1)
    _request(db_session, shampoo, warehouse, store_location, 2)
    service.cancel_transfer(first.transfer_id)

    rows, total = service.list_transfers(status="pending")
    assert total == 1
    assert rows[0].items[0].quantity_requested == 2

    rows, total = service.list_transfers(location_id=store_location.id)
    assert total == 2
