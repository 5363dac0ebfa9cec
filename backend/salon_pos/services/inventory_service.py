# Overview: Per-location stock quantities and the append-only movement log behind them.

from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import func, or_

from ..errors import InsufficientStockError, InvalidAdjustmentTypeError, NotFoundError, ValidationError
from ..models import Inventory, InventoryLocation, InventoryTransaction, Product
from ..time_utils import parse_date, utcnow
from ..validation import optional_str, to_int, to_positive_int
from .access import scoped_branch_id
from .concurrency import lock_for_update, run_with_retry
from .formatters import AdjustmentResult, format_inventory_row
from .unit_of_work import UnitOfWork

# Inventory invariants:
# - Inventory.quantity is only changed by increment()/decrement() below, and
#   every call appends exactly one InventoryTransaction in the same transaction.
# - InventoryTransaction.quantity is the absolute amount moved.
# - quantity never goes below zero through a decrement.
# - increment()/decrement() never commit; the caller owns the unit of work.

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("sale", "purchase", "adjustment", "transfer_in", "transfer_out")
ADJUSTMENT_TYPES = ("add", "subtract", "set")
EXPIRING_WINDOW_DAYS = 30


class InventoryService:
    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------
    # Ledger primitives
    # ------------------------------------------------------------------

    def _stock_row(self, product_id: int, location_id: int, batch_number: str | None = None) -> Inventory | None:
        query = self.session.query(Inventory).filter(
            Inventory.product_id == product_id,
            Inventory.location_id == location_id,
        )
        if batch_number is None:
            query = query.filter(Inventory.batch_number.is_(None))
        else:
            query = query.filter(Inventory.batch_number == batch_number)
        return lock_for_update(query).first()

    def _sellable_row(self, product_id: int, location_id: int) -> Inventory | None:
        """Unbatched row first, then the batch expiring soonest."""
        row = self._stock_row(product_id, location_id)
        if row is not None:
            return row
        query = (
            self.session.query(Inventory)
            .filter(Inventory.product_id == product_id, Inventory.location_id == location_id)
            .order_by(Inventory.expiry_date.is_(None), Inventory.expiry_date.asc(), Inventory.id.asc())
        )
        return lock_for_update(query).first()

    def available_quantity(self, product_id: int, location_id: int) -> int:
        """quantity - reserved, summed over every batch at the location."""
        total = (
            self.session.query(
                func.coalesce(func.sum(Inventory.quantity - Inventory.reserved_quantity), 0)
            )
            .filter(Inventory.product_id == product_id, Inventory.location_id == location_id)
            .scalar()
        )
        return int(total or 0)

    def _log(
        self,
        *,
        product_id: int,
        transaction_type: str,
        quantity: int,
        from_location_id: int | None = None,
        to_location_id: int | None = None,
        reference_type: str | None = None,
        reference_id: int | None = None,
        notes: str | None = None,
        created_by: int | None = None,
    ) -> InventoryTransaction:
        if transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"unknown transaction_type {transaction_type!r}")
        entry = InventoryTransaction(
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=abs(int(quantity)),
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
            created_by=created_by,
            transaction_date=utcnow(),
        )
        self.session.add(entry)
        return entry

    def increment(
        self,
        *,
        product_id: int,
        location_id: int,
        quantity: int,
        transaction_type: str,
        from_location_id: int | None = None,
        reference_type: str | None = None,
        reference_id: int | None = None,
        notes: str | None = None,
        created_by: int | None = None,
        batch_number: str | None = None,
        expiry_date: date | None = None,
    ) -> tuple[Inventory, InventoryTransaction]:
        """Add stock, creating the row on first receipt."""
        if quantity <= 0:
            raise ValidationError("quantity must be positive")

        row = self._stock_row(product_id, location_id, batch_number)
        if row is None:
            row = Inventory(
                product_id=product_id,
                location_id=location_id,
                batch_number=batch_number,
                quantity=0,
                reserved_quantity=0,
            )
            self.session.add(row)

        row.quantity = (row.quantity or 0) + quantity
        row.last_restocked_at = utcnow()
        if expiry_date is not None:
            row.expiry_date = expiry_date

        entry = self._log(
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=quantity,
            from_location_id=from_location_id,
            to_location_id=location_id,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
            created_by=created_by,
        )
        self.session.flush()
        return row, entry

    def decrement(
        self,
        *,
        product_id: int,
        location_id: int,
        quantity: int,
        transaction_type: str,
        to_location_id: int | None = None,
        reference_type: str | None = None,
        reference_id: int | None = None,
        notes: str | None = None,
        created_by: int | None = None,
        row: Inventory | None = None,
    ) -> tuple[Inventory, InventoryTransaction]:
        """Remove stock from one row; fails rather than going negative."""
        if quantity <= 0:
            raise ValidationError("quantity must be positive")

        if row is None:
            row = self._sellable_row(product_id, location_id)
        if row is None or (row.quantity or 0) < quantity:
            raise InsufficientStockError(
                "Insufficient stock",
                details={
                    "product_id": product_id,
                    "location_id": location_id,
                    "available": row.quantity if row is not None else 0,
                    "requested": quantity,
                },
            )

        row.quantity = row.quantity - quantity
        entry = self._log(
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=quantity,
            from_location_id=location_id,
            to_location_id=to_location_id,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
            created_by=created_by,
        )
        self.session.flush()
        return row, entry

    def _rows_in_pick_order(self, product_id: int, location_id: int) -> list[Inventory]:
        """Every row at the location: unbatched first, then earliest expiry."""
        return lock_for_update(
            self.session.query(Inventory)
            .filter(Inventory.product_id == product_id, Inventory.location_id == location_id)
            .order_by(
                Inventory.batch_number.isnot(None),
                Inventory.expiry_date.is_(None),
                Inventory.expiry_date.asc(),
                Inventory.id.asc(),
            )
        ).all()

    @staticmethod
    def _draw_down(rows: list[Inventory], quantity: int, *, keep_reserved: bool) -> int:
        """Take up to `quantity` from rows in order; returns what could not be taken."""
        remaining = quantity
        for row in rows:
            if remaining == 0:
                break
            free = (row.quantity or 0)
            if keep_reserved:
                free -= (row.reserved_quantity or 0)
            if free <= 0:
                continue
            take = min(free, remaining)
            row.quantity = row.quantity - take
            remaining -= take
        return remaining

    def transfer_out(
        self,
        *,
        product_id: int,
        location_id: int,
        quantity: int,
        to_location_id: int,
        reference_id: int,
        created_by: int | None,
    ) -> InventoryTransaction:
        """
        Take `quantity` of unreserved stock out of a location for a transfer.

        The amount may be spread over several batch rows (unbatched first,
        then earliest expiry) but is logged as a single transfer_out entry.
        """
        rows = self._rows_in_pick_order(product_id, location_id)
        if self._draw_down(rows, quantity, keep_reserved=True):
            raise InsufficientStockError(
                "Insufficient stock",
                details={"product_id": product_id, "location_id": location_id, "requested": quantity},
            )

        entry = self._log(
            product_id=product_id,
            transaction_type="transfer_out",
            quantity=quantity,
            from_location_id=location_id,
            to_location_id=to_location_id,
            reference_type="transfer",
            reference_id=reference_id,
            created_by=created_by,
        )
        self.session.flush()
        return entry

    def decrement_for_sale(
        self,
        *,
        bill_id: int,
        product_id: int,
        quantity: int,
        location: InventoryLocation | None,
        created_by: int | None,
        strict: bool,
    ) -> InventoryTransaction | None:
        """
        Stock effect of a product line on a completed bill.

        The sold quantity is spread over the location's rows (unbatched
        first, then earliest expiry) and logged as one sale entry. Lenient
        mode skips (and logs) when the branch has no active location or the
        location as a whole holds too little. Strict mode raises instead so
        the whole bill is rolled back.
        """
        if location is None:
            if strict:
                raise InsufficientStockError(
                    "Branch has no active inventory location",
                    details={"product_id": product_id},
                )
            logger.warning("Bill %s: no active inventory location; skipped decrement of product %s", bill_id, product_id)
            return None

        rows = self._rows_in_pick_order(product_id, location.id)
        on_hand = sum(row.quantity or 0 for row in rows)
        if on_hand < quantity:
            if strict:
                raise InsufficientStockError(
                    "Insufficient stock",
                    details={
                        "product_id": product_id,
                        "location_id": location.id,
                        "available": on_hand,
                        "requested": quantity,
                    },
                )
            logger.warning(
                "Bill %s: not enough stock of product %s at location %s; skipped decrement",
                bill_id, product_id, location.id,
            )
            return None

        self._draw_down(rows, quantity, keep_reserved=False)
        entry = self._log(
            product_id=product_id,
            transaction_type="sale",
            quantity=quantity,
            from_location_id=location.id,
            reference_type="bill",
            reference_id=bill_id,
            created_by=created_by,
        )
        self.session.flush()
        return entry

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def adjust_stock(self, payload: dict, actor=None) -> AdjustmentResult:
        """
        Manual stock correction at one location.

        add -> 'purchase' entry; subtract / set -> 'adjustment' entry.
        Exactly one transaction row per call.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")

        adjustment_type = payload.get("adjustment_type")
        if adjustment_type not in ADJUSTMENT_TYPES:
            raise InvalidAdjustmentTypeError("Invalid adjustment type")

        product_id = to_int(payload.get("product_id"), "product_id")
        location_id = to_int(payload.get("location_id"), "location_id")
        if adjustment_type == "set":
            quantity = to_int(payload.get("quantity"), "quantity")
            if quantity < 0:
                raise ValidationError("quantity must be non-negative")
        else:
            quantity = to_positive_int(payload.get("quantity"), "quantity")
        reason = optional_str(payload.get("reason"), "reason", 500)
        batch_number = optional_str(payload.get("batch_number"), "batch_number", 64)
        try:
            expiry_date = parse_date(payload.get("expiry_date"))
        except ValueError:
            raise ValidationError("expiry_date must be an ISO date")
        actor_id = actor.user_id if actor else None

        def _op() -> AdjustmentResult:
            with UnitOfWork(self.session):
                if self.session.get(Product, product_id) is None:
                    raise NotFoundError("Product not found")
                if self.session.get(InventoryLocation, location_id) is None:
                    raise NotFoundError("Location not found")

                row = self._stock_row(product_id, location_id, batch_number)
                previous = row.quantity if row is not None else 0

                if adjustment_type == "add":
                    row, entry = self.increment(
                        product_id=product_id,
                        location_id=location_id,
                        quantity=quantity,
                        transaction_type="purchase",
                        reference_type="adjustment",
                        notes=reason,
                        created_by=actor_id,
                        batch_number=batch_number,
                        expiry_date=expiry_date,
                    )
                elif adjustment_type == "subtract":
                    if row is None or row.quantity < quantity:
                        raise InsufficientStockError(
                            "Insufficient stock",
                            details={"available": previous, "requested": quantity},
                        )
                    row, entry = self.decrement(
                        product_id=product_id,
                        location_id=location_id,
                        quantity=quantity,
                        transaction_type="adjustment",
                        reference_type="adjustment",
                        notes=reason,
                        created_by=actor_id,
                        row=row,
                    )
                else:
                    if row is None:
                        row = Inventory(
                            product_id=product_id,
                            location_id=location_id,
                            batch_number=batch_number,
                            quantity=0,
                            reserved_quantity=0,
                            last_restocked_at=utcnow(),
                        )
                        self.session.add(row)
                    delta = quantity - previous
                    row.quantity = quantity
                    if expiry_date is not None:
                        row.expiry_date = expiry_date
                    entry = self._log(
                        product_id=product_id,
                        transaction_type="adjustment",
                        quantity=delta,
                        from_location_id=location_id if delta < 0 else None,
                        to_location_id=location_id if delta >= 0 else None,
                        reference_type="adjustment",
                        notes=reason,
                        created_by=actor_id,
                    )
                    self.session.flush()

                result = AdjustmentResult(
                    inventory_id=row.id,
                    product_id=product_id,
                    location_id=location_id,
                    adjustment_type=adjustment_type,
                    previous_quantity=previous,
                    new_quantity=row.quantity,
                    transaction_id=entry.id,
                )
            logger.info(
                "Stock %s: product %s at location %s %s -> %s",
                adjustment_type, product_id, location_id, previous, result.new_quantity,
            )
            return result

        return run_with_retry(_op, session=self.session)

    def get_inventory(
        self,
        *,
        actor=None,
        location_id: int | None = None,
        product_id: int | None = None,
        branch_id: int | None = None,
        low_stock: bool = False,
        expiring_soon: bool = False,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
        today: date | None = None,
    ) -> tuple[list, int]:
        query = (
            self.session.query(Inventory)
            .join(Product, Product.id == Inventory.product_id)
            .join(InventoryLocation, InventoryLocation.id == Inventory.location_id)
        )

        branch_id = scoped_branch_id(actor, branch_id)
        if branch_id is not None:
            query = query.filter(InventoryLocation.branch_id == branch_id)
        if location_id is not None:
            query = query.filter(Inventory.location_id == location_id)
        if product_id is not None:
            query = query.filter(Inventory.product_id == product_id)
        if low_stock:
            query = query.filter(Inventory.quantity <= Product.reorder_level)
        if expiring_soon:
            horizon = (today or utcnow().date()) + timedelta(days=EXPIRING_WINDOW_DAYS)
            query = query.filter(Inventory.expiry_date.isnot(None), Inventory.expiry_date <= horizon)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(func.lower(Product.product_name).like(pattern), func.lower(Product.sku).like(pattern))
            )

        total = query.count()
        rows = (
            query.order_by(Inventory.updated_at.desc(), Inventory.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [format_inventory_row(row) for row in rows], total

    def get_locations(self, actor=None, branch_id: int | None = None) -> list[dict]:
        query = self.session.query(InventoryLocation).filter(InventoryLocation.is_active.is_(True))
        branch_id = scoped_branch_id(actor, branch_id)
        if branch_id is not None:
            query = query.filter(InventoryLocation.branch_id == branch_id)
        return [location.to_dict() for location in query.order_by(InventoryLocation.name.asc()).all()]

    def list_transactions(
        self,
        *,
        product_id: int | None = None,
        location_id: int | None = None,
        transaction_type: str | None = None,
        reference_type: str | None = None,
        reference_id: int | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[dict], int]:
        query = self.session.query(InventoryTransaction)
        if product_id is not None:
            query = query.filter(InventoryTransaction.product_id == product_id)
        if location_id is not None:
            query = query.filter(
                or_(
                    InventoryTransaction.from_location_id == location_id,
                    InventoryTransaction.to_location_id == location_id,
                )
            )
        if transaction_type:
            if transaction_type not in TRANSACTION_TYPES:
                raise ValidationError(f"transaction_type must be one of {list(TRANSACTION_TYPES)}")
            query = query.filter(InventoryTransaction.transaction_type == transaction_type)
        if reference_type:
            query = query.filter(InventoryTransaction.reference_type == reference_type)
        if reference_id is not None:
            query = query.filter(InventoryTransaction.reference_id == reference_id)

        total = query.count()
        rows = (
            query.order_by(InventoryTransaction.transaction_date.desc(), InventoryTransaction.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [row.to_dict() for row in rows], total
