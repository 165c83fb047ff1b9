from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from stockledger.time_utils import to_utc_z, coerce_datetime
from stockledger.validation import ValidationError, parse_int
from .documents import DocumentType


class MovementType(str, Enum):
    DELIVERY = "Delivery"
    TRANSFER_OUT = "Transfer Out"
    TRANSFER_IN = "Transfer In"
    ADJUSTMENT = "Adjustment"


UNKNOWN_USER_ID = "unknown"


@dataclass
class StockLocation:
    """
    Stock on hand for one (product, warehouse) pair.

    INVARIANT: quantity >= 0. Only the stock ledger writes quantity.
    """
    product_id: str
    warehouse_id: str
    quantity: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.warehouse_id)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StockLocation":
        quantity = parse_int("quantity", data["quantity"])
        if quantity < 0:
            raise ValidationError(f"quantity must be >= 0 (got {quantity})")
        return cls(
            product_id=data["product_id"],
            warehouse_id=data["warehouse_id"],
            quantity=quantity,
        )


@dataclass(frozen=True)
class StockMovement:
    """
    Immutable audit record of one applied stock delta.

    INVARIANT: new_stock - previous_stock == quantity.
    """
    id: str
    product_id: str
    warehouse_id: str
    movement_type: MovementType
    document_type: DocumentType
    document_id: str
    document_number: str
    quantity: int
    previous_stock: int
    new_stock: int
    timestamp: datetime
    user_id: str = UNKNOWN_USER_ID

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
            "movement_type": self.movement_type.value,
            "document_type": self.document_type.value,
            "document_id": self.document_id,
            "document_number": self.document_number,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "timestamp": to_utc_z(self.timestamp),
            "user_id": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StockMovement":
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            warehouse_id=data["warehouse_id"],
            movement_type=MovementType(data["movement_type"]),
            document_type=DocumentType(data["document_type"]),
            document_id=data["document_id"],
            document_number=data["document_number"],
            quantity=int(data["quantity"]),
            previous_stock=int(data["previous_stock"]),
            new_stock=int(data["new_stock"]),
            timestamp=coerce_datetime(data["timestamp"]),
            user_id=data.get("user_id") or UNKNOWN_USER_ID,
        )
