from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar

from stockledger.time_utils import to_utc_z, coerce_datetime
from stockledger.validation import FieldSpec, parse_int


class DocumentStatus(str, Enum):
    """
    Document lifecycle.

        DRAFT / WAITING / READY -> DONE      (validate)
        DRAFT / WAITING / READY -> CANCELED  (cancel)

    DONE and CANCELED are terminal: lines are frozen and no further
    transition is accepted.
    """
    DRAFT = "Draft"
    WAITING = "Waiting"
    READY = "Ready"
    DONE = "Done"
    CANCELED = "Canceled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({DocumentStatus.DONE, DocumentStatus.CANCELED})
OPEN_STATUSES = frozenset(set(DocumentStatus) - TERMINAL_STATUSES)


class DocumentType(str, Enum):
    RECEIPT = "Receipt"
    DELIVERY = "Delivery"
    INTERNAL = "Internal"
    ADJUSTMENT = "Adjustment"


@dataclass(frozen=True)
class DocumentLine:
    product_id: str
    quantity: int

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentLine":
        return cls(product_id=data["product_id"], quantity=parse_int("quantity", data["quantity"]))


@dataclass(frozen=True)
class AdjustmentLine:
    """difference is signed: positive increases stock, negative decreases it."""
    product_id: str
    difference: int

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "difference": self.difference}

    @classmethod
    def from_dict(cls, data: dict) -> "AdjustmentLine":
        return cls(product_id=data["product_id"], difference=parse_int("difference", data["difference"]))


@dataclass
class Document:
    """Common shape shared by the four document kinds."""
    document_type: ClassVar[DocumentType]
    line_class: ClassVar[type] = DocumentLine
    line_quantity_key: ClassVar[str] = "quantity"

    id: str
    document_number: str
    status: DocumentStatus = DocumentStatus.DRAFT
    created_at: datetime | None = None
    validated_at: datetime | None = None
    lines: list = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def warehouse_ids(self) -> list[str]:
        raise NotImplementedError

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "document_type": self.document_type.value,
            "document_number": self.document_number,
            "status": self.status.value,
            "created_at": to_utc_z(self.created_at),
            "validated_at": to_utc_z(self.validated_at) if self.validated_at else None,
            "lines": [line.to_dict() for line in self.lines],
        }

    @classmethod
    def _base_kwargs(cls, data: dict) -> dict:
        return {
            "id": data["id"],
            "document_number": data["document_number"],
            "status": DocumentStatus(data.get("status", DocumentStatus.DRAFT.value)),
            "created_at": coerce_datetime(data.get("created_at")),
            "validated_at": coerce_datetime(data.get("validated_at")),
            "lines": [cls.line_class.from_dict(line) for line in data.get("lines") or []],
        }


@dataclass
class Receipt(Document):
    """Incoming goods record. Validation does not change stock levels."""
    document_type: ClassVar[DocumentType] = DocumentType.RECEIPT

    warehouse_id: str = ""
    vendor_name: str = ""
    vendor_contact: str | None = None

    def warehouse_ids(self) -> list[str]:
        return [self.warehouse_id]

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "warehouse_id": self.warehouse_id,
            "vendor_name": self.vendor_name,
            "vendor_contact": self.vendor_contact,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Receipt":
        return cls(
            **cls._base_kwargs(data),
            warehouse_id=data["warehouse_id"],
            vendor_name=data.get("vendor_name") or "",
            vendor_contact=data.get("vendor_contact"),
        )


@dataclass
class Delivery(Document):
    document_type: ClassVar[DocumentType] = DocumentType.DELIVERY

    warehouse_id: str = ""
    customer_name: str = ""
    customer_contact: str | None = None

    def warehouse_ids(self) -> list[str]:
        return [self.warehouse_id]

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "warehouse_id": self.warehouse_id,
            "customer_name": self.customer_name,
            "customer_contact": self.customer_contact,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Delivery":
        return cls(
            **cls._base_kwargs(data),
            warehouse_id=data["warehouse_id"],
            customer_name=data.get("customer_name") or "",
            customer_contact=data.get("customer_contact"),
        )


@dataclass
class InternalTransfer(Document):
    document_type: ClassVar[DocumentType] = DocumentType.INTERNAL

    source_warehouse_id: str = ""
    destination_warehouse_id: str = ""

    def warehouse_ids(self) -> list[str]:
        return [self.source_warehouse_id, self.destination_warehouse_id]

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "source_warehouse_id": self.source_warehouse_id,
            "destination_warehouse_id": self.destination_warehouse_id,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "InternalTransfer":
        return cls(
            **cls._base_kwargs(data),
            source_warehouse_id=data["source_warehouse_id"],
            destination_warehouse_id=data["destination_warehouse_id"],
        )


@dataclass
class StockAdjustment(Document):
    document_type: ClassVar[DocumentType] = DocumentType.ADJUSTMENT
    line_class: ClassVar[type] = AdjustmentLine
    line_quantity_key: ClassVar[str] = "difference"

    warehouse_id: str = ""
    adjustment_type: str = "Correction"

    def warehouse_ids(self) -> list[str]:
        return [self.warehouse_id]

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "warehouse_id": self.warehouse_id,
            "adjustment_type": self.adjustment_type,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "StockAdjustment":
        return cls(
            **cls._base_kwargs(data),
            warehouse_id=data["warehouse_id"],
            adjustment_type=data.get("adjustment_type") or "Correction",
        )


DOCUMENT_FIELDS = {
    "document_number": FieldSpec(str, nullable=True, max_length=64),
    "status": FieldSpec(DocumentStatus),
    "lines": FieldSpec(list),
    "warehouse_id": FieldSpec(str),
    "vendor_name": FieldSpec(str, nullable=True, max_length=255),
    "vendor_contact": FieldSpec(str, nullable=True, max_length=255),
    "customer_name": FieldSpec(str, nullable=True, max_length=255),
    "customer_contact": FieldSpec(str, nullable=True, max_length=255),
    "source_warehouse_id": FieldSpec(str),
    "destination_warehouse_id": FieldSpec(str),
    "adjustment_type": FieldSpec(str, max_length=64),
}
