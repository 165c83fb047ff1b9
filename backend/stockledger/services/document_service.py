# Overview: Document store for receipts, deliveries, internal transfers and adjustments.

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from ..models import (
    DocumentStatus,
    DocumentType,
    DocumentLine,
    AdjustmentLine,
    Document,
    Receipt,
    Delivery,
    InternalTransfer,
    StockAdjustment,
)
from ..validation import ValidationError, enforce_rules_line, parse_int
from stockledger.time_utils import utcnow
from .catalog_service import Catalog
from .errors import InvalidTransitionError, NotFoundError
from .identifiers import new_id, next_document_number

logger = logging.getLogger(__name__)

DOCUMENT_CLASSES: dict[DocumentType, type[Document]] = {
    DocumentType.RECEIPT: Receipt,
    DocumentType.DELIVERY: Delivery,
    DocumentType.INTERNAL: InternalTransfer,
    DocumentType.ADJUSTMENT: StockAdjustment,
}

_ID_ENTITY = {
    DocumentType.RECEIPT: "receipt",
    DocumentType.DELIVERY: "delivery",
    DocumentType.INTERNAL: "transfer",
    DocumentType.ADJUSTMENT: "adjustment",
}


class DocumentStore:
    """
    Storage and lookup for the four document kinds.

    Holds no stock logic. Status changes into Done/Canceled go through the
    validation engine, which calls set_status().
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        receipts: Iterable[Receipt] = (),
        deliveries: Iterable[Delivery] = (),
        transfers: Iterable[InternalTransfer] = (),
        adjustments: Iterable[StockAdjustment] = (),
    ):
        self.catalog = catalog
        self._documents: dict[DocumentType, dict[str, Document]] = {
            DocumentType.RECEIPT: {d.id: d for d in receipts},
            DocumentType.DELIVERY: {d.id: d for d in deliveries},
            DocumentType.INTERNAL: {d.id: d for d in transfers},
            DocumentType.ADJUSTMENT: {d.id: d for d in adjustments},
        }

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def all(self, document_type: DocumentType) -> list[Document]:
        return list(self._documents[document_type].values())

    @property
    def receipts(self) -> list[Receipt]:
        return self.all(DocumentType.RECEIPT)

    @property
    def deliveries(self) -> list[Delivery]:
        return self.all(DocumentType.DELIVERY)

    @property
    def transfers(self) -> list[InternalTransfer]:
        return self.all(DocumentType.INTERNAL)

    @property
    def adjustments(self) -> list[StockAdjustment]:
        return self.all(DocumentType.ADJUSTMENT)

    def get(self, document_type: DocumentType, document_id: str) -> Document:
        document = self._documents[document_type].get(document_id)
        if document is None:
            raise NotFoundError(f"{document_type.value} {document_id} not found")
        return document

    def list_documents(
        self,
        document_type: DocumentType,
        *,
        status: Optional[DocumentStatus] = None,
        warehouse_id: Optional[str] = None,
    ) -> list[Document]:
        """Documents of one kind, oldest first; warehouse_id matches either side of a transfer."""
        documents = self.all(document_type)
        if status is not None:
            documents = [d for d in documents if d.status == status]
        if warehouse_id is not None:
            documents = [d for d in documents if warehouse_id in d.warehouse_ids()]
        return documents

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _build_lines(self, document_type: DocumentType, lines: Iterable) -> list:
        line_class = DOCUMENT_CLASSES[document_type].line_class
        quantity_key = DOCUMENT_CLASSES[document_type].line_quantity_key

        built = []
        for index, line in enumerate(lines):
            if isinstance(line, dict):
                if "product_id" not in line or quantity_key not in line:
                    raise ValidationError(
                        f"lines[{index}] must have product_id and an integer {quantity_key}"
                    )
                product_id, amount = line["product_id"], line[quantity_key]
            elif isinstance(line, (DocumentLine, AdjustmentLine)) and isinstance(line, line_class):
                product_id, amount = line.product_id, getattr(line, quantity_key)
            else:
                raise ValidationError(f"lines[{index}] has the wrong line type")

            # floats and bools are rejected, never truncated
            amount = parse_int(f"lines[{index}].{quantity_key}", amount)
            enforce_rules_line(amount, quantity_key=quantity_key, index=index)
            if not self.catalog.has_product(product_id):
                raise NotFoundError(f"Product {product_id} not found")
            built.append(line_class(product_id=product_id, **{quantity_key: amount}))
        return built

    def _require_warehouse(self, warehouse_id: str, field_name: str) -> str:
        if not warehouse_id:
            raise ValidationError(f"{field_name} is required")
        if not self.catalog.has_warehouse(warehouse_id):
            raise NotFoundError(f"Warehouse {warehouse_id} not found")
        return warehouse_id

    def _allocate_number(self, document_type: DocumentType, document_number: Optional[str]) -> str:
        if document_number:
            return document_number.strip()
        existing = {d.document_number for d in self._documents[document_type].values()}
        return next_document_number(document_type=document_type, existing_numbers=existing)

    def _initial_status(self, status: DocumentStatus | str | None) -> DocumentStatus:
        if status is None:
            return DocumentStatus.DRAFT
        try:
            status = DocumentStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid status '{status}'")
        if status.is_terminal:
            raise ValidationError(
                f"Documents cannot be created as {status.value}; validate or cancel them instead"
            )
        return status

    def _add(self, document_type: DocumentType, fields: dict, *, lines, status, document_number) -> Document:
        document_class = DOCUMENT_CLASSES[document_type]
        document = document_class(
            id=new_id(_ID_ENTITY[document_type]),
            document_number=self._allocate_number(document_type, document_number),
            status=self._initial_status(status),
            created_at=utcnow(),
            lines=self._build_lines(document_type, lines),
            **fields,
        )
        self._documents[document_type][document.id] = document
        logger.info(
            "%s created id=%s number=%s status=%s",
            document_type.value, document.id, document.document_number, document.status.value,
        )
        return document

    def create_receipt(
        self,
        *,
        warehouse_id: str,
        lines: Iterable = (),
        vendor_name: str = "",
        vendor_contact: str | None = None,
        status: DocumentStatus | str | None = None,
        document_number: str | None = None,
    ) -> Receipt:
        fields = {
            "warehouse_id": self._require_warehouse(warehouse_id, "warehouse_id"),
            "vendor_name": vendor_name or "",
            "vendor_contact": vendor_contact,
        }
        return self._add(DocumentType.RECEIPT, fields, lines=lines, status=status, document_number=document_number)

    def create_delivery(
        self,
        *,
        warehouse_id: str,
        lines: Iterable = (),
        customer_name: str = "",
        customer_contact: str | None = None,
        status: DocumentStatus | str | None = None,
        document_number: str | None = None,
    ) -> Delivery:
        fields = {
            "warehouse_id": self._require_warehouse(warehouse_id, "warehouse_id"),
            "customer_name": customer_name or "",
            "customer_contact": customer_contact,
        }
        return self._add(DocumentType.DELIVERY, fields, lines=lines, status=status, document_number=document_number)

    def create_transfer(
        self,
        *,
        source_warehouse_id: str,
        destination_warehouse_id: str,
        lines: Iterable = (),
        status: DocumentStatus | str | None = None,
        document_number: str | None = None,
    ) -> InternalTransfer:
        source = self._require_warehouse(source_warehouse_id, "source_warehouse_id")
        destination = self._require_warehouse(destination_warehouse_id, "destination_warehouse_id")
        if source == destination:
            raise ValidationError("Cannot transfer to the same warehouse")
        fields = {
            "source_warehouse_id": source,
            "destination_warehouse_id": destination,
        }
        return self._add(DocumentType.INTERNAL, fields, lines=lines, status=status, document_number=document_number)

    def create_adjustment(
        self,
        *,
        warehouse_id: str,
        lines: Iterable = (),
        adjustment_type: str = "Correction",
        status: DocumentStatus | str | None = None,
        document_number: str | None = None,
    ) -> StockAdjustment:
        fields = {
            "warehouse_id": self._require_warehouse(warehouse_id, "warehouse_id"),
            "adjustment_type": (adjustment_type or "Correction").strip(),
        }
        return self._add(DocumentType.ADJUSTMENT, fields, lines=lines, status=status, document_number=document_number)

    # ------------------------------------------------------------------
    # Mutate
    # ------------------------------------------------------------------

    def replace_lines(self, document_type: DocumentType, document_id: str, lines: Iterable) -> Document:
        document = self.get(document_type, document_id)
        if document.is_terminal:
            raise InvalidTransitionError(
                f"Cannot edit lines of {document_type.value.lower()} {document.document_number} "
                f"in {document.status.value} status"
            )
        document.lines = self._build_lines(document_type, lines)
        return document

    def set_status(self, document: Document, status: DocumentStatus, *, at: Optional[datetime] = None) -> Document:
        """Engine-only: stamp status and validated_at."""
        document.status = status
        document.validated_at = at or utcnow()
        return document
