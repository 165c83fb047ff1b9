# Overview: Domain errors raised by the inventory core.

"""
Inventory error taxonomy.

Every error is raised synchronously to the immediate caller. The core never
retries and never leaves a document half-applied; a raised error means
nothing changed.

    InventoryError
    ├── InsufficientStockError   availability pre-check or ledger floor
    ├── InvalidTransitionError   lifecycle rule violated (e.g. cancel on Done)
    ├── NotFoundError            unknown product/warehouse/document id
    ├── LedgerError              structurally invalid movement record
    ├── DuplicateCodeError       warehouse code collision (also a ConflictError)
    └── DuplicateSkuError        product SKU collision, opt-in (also a ConflictError)
"""
from __future__ import annotations

from ..validation import ConflictError


class InventoryError(ValueError):
    """Base class for inventory domain errors."""
    pass


class InsufficientStockError(InventoryError):
    """Raised when a decrease would take a stock location below zero."""

    def __init__(
        self,
        *,
        product_id: str,
        warehouse_id: str,
        available: int,
        requested: int,
        context: str | None = None,
    ):
        self.product_id = product_id
        self.warehouse_id = warehouse_id
        self.available = available
        self.requested = requested
        prefix = f"Insufficient stock {context}" if context else "Insufficient stock"
        super().__init__(f"{prefix}. Available: {available}, Requested: {requested}")

    @property
    def shortfall(self) -> int:
        return self.requested - self.available

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
            "available": self.available,
            "requested": self.requested,
            "shortfall": self.shortfall,
        }


class InvalidTransitionError(InventoryError):
    """Raised when a document lifecycle transition is not allowed."""
    pass


class NotFoundError(InventoryError):
    """Raised when an entity id does not exist in the current scope."""
    pass


class LedgerError(InventoryError):
    """Raised when a movement record is structurally incomplete or inconsistent."""
    pass


class DuplicateCodeError(InventoryError, ConflictError):
    """Raised when a warehouse code already exists (case-insensitive, trimmed)."""
    pass


class DuplicateSkuError(InventoryError, ConflictError):
    """Raised when SKU uniqueness is enforced and the SKU already exists."""
    pass
