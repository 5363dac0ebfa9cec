# backend/salon_pos/services/transfer_service.py
"""
Stock transfers between inventory locations.

LIFECYCLE:
1. pending: transfer requested, availability checked at the source
2. completed: approved; stock moved and logged at both ends
3. cancelled: withdrawn before approval

completed and cancelled are terminal.
"""
from __future__ import annotations

import logging

from ..errors import InsufficientStockError, InvalidStatusError, NotFoundError, ValidationError
from ..models import InventoryLocation, Product, StockTransfer, StockTransferItem
from ..time_utils import utcnow
from ..validation import optional_str, to_int, to_positive_int
from .access import is_global
from .concurrency import lock_for_update, run_with_retry
from .document_service import next_transfer_number
from .formatters import TransferView, format_transfer
from .inventory_service import InventoryService
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

# Transfer status constants
TRANSFER_STATUS_PENDING = "pending"
TRANSFER_STATUS_COMPLETED = "completed"
TRANSFER_STATUS_CANCELLED = "cancelled"
TRANSFER_STATUSES = (TRANSFER_STATUS_PENDING, TRANSFER_STATUS_COMPLETED, TRANSFER_STATUS_CANCELLED)


def _parse_lines(raw_items) -> list[tuple[int, int]]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")
    merged: dict[int, int] = {}
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = to_int(raw.get("product_id"), f"items[{index}].product_id")
        quantity = to_positive_int(raw.get("quantity"), f"items[{index}].quantity")
        merged[product_id] = merged.get(product_id, 0) + quantity
    return list(merged.items())


class TransferService:
    def __init__(self, session):
        self.session = session
        self.inventory = InventoryService(session)

    def _check_availability(self, location_id: int, lines) -> None:
        for product_id, quantity in lines:
            available = self.inventory.available_quantity(product_id, location_id)
            if available < quantity:
                product = self.session.get(Product, product_id)
                name = product.product_name if product else str(product_id)
                raise InsufficientStockError(
                    f"Insufficient stock for product {name}",
                    details={"product_id": product_id, "available": available, "requested": quantity},
                )

    def create_transfer(self, payload: dict, actor=None) -> TransferView:
        """
        Request a transfer (status: pending).

        Both locations must exist and differ, every product must exist, and
        the source must hold enough unreserved stock for every line.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")
        from_location_id = to_int(payload.get("from_location_id"), "from_location_id")
        to_location_id = to_int(payload.get("to_location_id"), "to_location_id")
        lines = _parse_lines(payload.get("items"))
        notes = optional_str(payload.get("notes"), "notes", 1000)

        if from_location_id == to_location_id:
            raise ValidationError("Cannot transfer to the same location")

        with UnitOfWork(self.session):
            if self.session.get(InventoryLocation, from_location_id) is None:
                raise NotFoundError("Source location not found")
            if self.session.get(InventoryLocation, to_location_id) is None:
                raise NotFoundError("Destination location not found")
            for product_id, _ in lines:
                if self.session.get(Product, product_id) is None:
                    raise NotFoundError("Product not found", details={"product_id": product_id})

            self._check_availability(from_location_id, lines)

            transfer = StockTransfer(
                transfer_number=next_transfer_number(self.session),
                from_location_id=from_location_id,
                to_location_id=to_location_id,
                status=TRANSFER_STATUS_PENDING,
                notes=notes,
                requested_by=actor.user_id if actor else None,
                requested_at=utcnow(),
            )
            self.session.add(transfer)
            self.session.flush()

            for product_id, quantity in lines:
                self.session.add(
                    StockTransferItem(
                        transfer_id=transfer.id,
                        product_id=product_id,
                        quantity_requested=quantity,
                    )
                )
            self.session.flush()
            transfer_id = transfer.id

        return self.get_transfer(transfer_id)

    def get_transfer(self, transfer_id: int) -> TransferView:
        transfer = self.session.get(StockTransfer, transfer_id)
        if transfer is None:
            raise NotFoundError("Transfer not found")
        return format_transfer(transfer)

    def _pending_for_update(self, transfer_id: int) -> StockTransfer:
        transfer = lock_for_update(self.session.query(StockTransfer).filter_by(id=transfer_id)).first()
        if transfer is None:
            raise NotFoundError("Transfer not found")
        if transfer.status != TRANSFER_STATUS_PENDING:
            raise InvalidStatusError(
                "Transfer is not pending approval",
                details={"status": transfer.status},
            )
        return transfer

    def approve_transfer(self, transfer_id: int, actor=None) -> TransferView:
        """
        Complete a pending transfer in one transaction.

        Availability is checked again; each line then moves out of the source,
        into the destination (creating the row if needed) and writes exactly
        one transfer_out and one transfer_in entry.
        """
        actor_id = actor.user_id if actor else None

        def _op() -> None:
            with UnitOfWork(self.session):
                transfer = self._pending_for_update(transfer_id)
                lines = [(item.product_id, item.quantity_requested) for item in transfer.items]
                self._check_availability(transfer.from_location_id, lines)

                for item in transfer.items:
                    self.inventory.transfer_out(
                        product_id=item.product_id,
                        location_id=transfer.from_location_id,
                        quantity=item.quantity_requested,
                        to_location_id=transfer.to_location_id,
                        reference_id=transfer.id,
                        created_by=actor_id,
                    )
                    self.inventory.increment(
                        product_id=item.product_id,
                        location_id=transfer.to_location_id,
                        quantity=item.quantity_requested,
                        transaction_type="transfer_in",
                        from_location_id=transfer.from_location_id,
                        reference_type="transfer",
                        reference_id=transfer.id,
                        created_by=actor_id,
                    )
                    item.quantity_sent = item.quantity_requested
                    item.quantity_received = item.quantity_requested

                now = utcnow()
                transfer.status = TRANSFER_STATUS_COMPLETED
                transfer.approved_by = actor_id
                transfer.approved_at = now
                transfer.completed_at = now

        run_with_retry(_op, session=self.session)
        logger.info("Transfer %s approved", transfer_id)
        return self.get_transfer(transfer_id)

    def cancel_transfer(self, transfer_id: int, actor=None) -> TransferView:
        with UnitOfWork(self.session):
            transfer = self._pending_for_update(transfer_id)
            transfer.status = TRANSFER_STATUS_CANCELLED
            transfer.cancelled_by = actor.user_id if actor else None
            transfer.cancelled_at = utcnow()
        logger.info("Transfer %s cancelled", transfer_id)
        return self.get_transfer(transfer_id)

    def list_transfers(
        self,
        *,
        actor=None,
        status: str | None = None,
        location_id: int | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list, int]:
        query = self.session.query(StockTransfer)
        if status:
            if status not in TRANSFER_STATUSES:
                raise ValidationError(f"status must be one of {list(TRANSFER_STATUSES)}")
            query = query.filter(StockTransfer.status == status)
        if location_id is not None:
            query = query.filter(
                (StockTransfer.from_location_id == location_id) | (StockTransfer.to_location_id == location_id)
            )
        if not is_global(actor) and actor.branch_id is not None:
            branch_locations = [
                row[0]
                for row in self.session.query(InventoryLocation.id)
                .filter(InventoryLocation.branch_id == actor.branch_id)
                .all()
            ]
            query = query.filter(
                StockTransfer.from_location_id.in_(branch_locations)
                | StockTransfer.to_location_id.in_(branch_locations)
            )

        total = query.count()
        transfers = (
            query.order_by(StockTransfer.requested_at.desc(), StockTransfer.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [format_transfer(t) for t in transfers], total
