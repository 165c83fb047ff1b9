# Overview: Stock ledger; per-(product, warehouse) quantities and the movement log.

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..models import StockLocation, StockMovement
from .errors import InsufficientStockError, LedgerError
"""
Stock Ledger Invariants (authoritative)

Inventory model:
- Stock on hand is a mutable quantity per (product_id, warehouse_id) row.
- At most one row per pair; rows are created lazily by the first
  non-negative delta and never deleted.
- Total stock for a product is the sum over its rows.

Business invariants:
- quantity >= 0 always. apply_delta refuses any delta that would break it,
  independently of whatever availability check the caller already did.
- Only the validation engine calls apply_delta.

Audit:
- Movements are append-only (no updates/deletes).
- Every movement satisfies new_stock - previous_stock == quantity.
"""

logger = logging.getLogger(__name__)

_REQUIRED_MOVEMENT_FIELDS = (
    "id",
    "product_id",
    "warehouse_id",
    "document_id",
    "document_number",
    "timestamp",
)


class StockLedger:
    def __init__(
        self,
        locations: Iterable[StockLocation] = (),
        movements: Iterable[StockMovement] = (),
    ):
        self._locations: dict[tuple[str, str], StockLocation] = {}
        for location in locations:
            if location.key in self._locations:
                raise LedgerError(
                    f"Duplicate stock location for product {location.product_id} "
                    f"in warehouse {location.warehouse_id}"
                )
            self._locations[location.key] = location
        self._movements: list[StockMovement] = list(movements)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def locations(self) -> list[StockLocation]:
        return list(self._locations.values())

    @property
    def movements(self) -> list[StockMovement]:
        return list(self._movements)

    def quantity_at(self, product_id: str, warehouse_id: str) -> int:
        location = self._locations.get((product_id, warehouse_id))
        return location.quantity if location else 0

    def total_quantity(self, product_id: str) -> int:
        return sum(
            location.quantity
            for location in self._locations.values()
            if location.product_id == product_id
        )

    def stock_for_product(self, product_id: str) -> list[StockLocation]:
        return [loc for loc in self._locations.values() if loc.product_id == product_id]

    def stock_for_warehouse(self, warehouse_id: str) -> list[StockLocation]:
        return [loc for loc in self._locations.values() if loc.warehouse_id == warehouse_id]

    def check_availability(self, product_id: str, warehouse_id: str, quantity: int) -> bool:
        return self.quantity_at(product_id, warehouse_id) >= quantity

    def find_movements(
        self,
        *,
        product_id: Optional[str] = None,
        warehouse_id: Optional[str] = None,
        document_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[StockMovement]:
        """Movements matching every given filter, newest first."""
        matches = [
            m for m in reversed(self._movements)
            if (product_id is None or m.product_id == product_id)
            and (warehouse_id is None or m.warehouse_id == warehouse_id)
            and (document_id is None or m.document_id == document_id)
        ]
        if limit is not None:
            matches = matches[:limit]
        return matches

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def apply_delta(self, product_id: str, warehouse_id: str, delta: int) -> tuple[int, int]:
        """
        Apply a signed quantity change; return (previous_stock, new_stock).

        Raises InsufficientStockError if the result would be negative. A new
        row is only created for delta >= 0.
        """
        location = self._locations.get((product_id, warehouse_id))
        previous = location.quantity if location else 0
        new = previous + delta

        if new < 0:
            raise InsufficientStockError(
                product_id=product_id,
                warehouse_id=warehouse_id,
                available=previous,
                requested=abs(delta),
            )

        if location is None:
            location = StockLocation(product_id=product_id, warehouse_id=warehouse_id, quantity=new)
            self._locations[location.key] = location
        else:
            location.quantity = new

        logger.debug(
            "stock delta applied product=%s warehouse=%s delta=%s %s->%s",
            product_id, warehouse_id, delta, previous, new,
        )
        return previous, new

    def record_movement(self, movement: StockMovement) -> StockMovement:
        """Append-only; no domain logic beyond structural completeness."""
        for name in _REQUIRED_MOVEMENT_FIELDS:
            if getattr(movement, name) in (None, ""):
                raise LedgerError(f"Movement is missing {name}")
        if movement.new_stock - movement.previous_stock != movement.quantity:
            raise LedgerError(
                f"Movement {movement.id} is inconsistent: "
                f"{movement.previous_stock} + {movement.quantity} != {movement.new_stock}"
            )
        if movement.new_stock < 0:
            raise LedgerError(f"Movement {movement.id} records negative stock")

        self._movements.append(movement)
        return movement

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple[dict, int]:
        """Capture quantities and movement count so a failed document can be undone."""
        quantities = {key: loc.quantity for key, loc in self._locations.items()}
        return quantities, len(self._movements)

    def restore(self, snapshot: tuple[dict, int]) -> None:
        quantities, movement_count = snapshot
        for key in list(self._locations):
            if key not in quantities:
                del self._locations[key]
            else:
                self._locations[key].quantity = quantities[key]
        del self._movements[movement_count:]
