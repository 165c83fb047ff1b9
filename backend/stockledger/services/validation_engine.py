# Overview: Document validation engine; moves documents to Done/Canceled and commits stock.

"""
Document Validation Engine

================================================================================
PURPOSE: Turn open documents into committed stock mutations, exactly once
================================================================================

STATE MACHINE (per document):
    DRAFT / WAITING / READY --validate--> DONE
    DRAFT / WAITING / READY --cancel----> CANCELED

    DONE and CANCELED are terminal. validate() is the only way into DONE,
    cancel() the only way into CANCELED. WAITING/READY are set by the caller
    (update_delivery_status); the engine does not require READY before
    validating.

RULES (NON-NEGOTIABLE):
1. Availability is checked for EVERY decreasing line before ANY delta is
   applied. Lines for the same product are summed first.
2. A failed validate leaves the document and the ledger exactly as before.
3. Each applied delta produces exactly one movement; a transfer line
   produces two (Transfer Out at source, Transfer In at destination).
4. Receipts are record-keeping only: validate marks them Done and touches
   neither stock nor movements.
5. Cancel never touches the ledger.

================================================================================
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from ..models import (
    DocumentStatus,
    DocumentType,
    Document,
    Receipt,
    Delivery,
    InternalTransfer,
    StockAdjustment,
    StockMovement,
    MovementType,
)
from ..models.documents import OPEN_STATUSES
from ..models.stock import UNKNOWN_USER_ID
from ..validation import ValidationError
from stockledger.time_utils import utcnow
from .document_service import DocumentStore
from .errors import InsufficientStockError, InvalidTransitionError
from .identifiers import new_id
from .ledger_service import StockLedger

logger = logging.getLogger(__name__)

_DOCUMENT_NOUNS = {
    DocumentType.RECEIPT: "receipt",
    DocumentType.DELIVERY: "delivery",
    DocumentType.INTERNAL: "transfer",
    DocumentType.ADJUSTMENT: "adjustment",
}

_SHORTAGE_CONTEXT = {
    DocumentType.DELIVERY: "for product",
    DocumentType.INTERNAL: "in source warehouse",
    DocumentType.ADJUSTMENT: "for adjustment",
}


class ValidationEngine:
    def __init__(
        self,
        documents: DocumentStore,
        ledger: StockLedger,
        *,
        user_id: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.documents = documents
        self.ledger = ledger
        self.user_id = user_id or UNKNOWN_USER_ID
        self.clock = clock

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def validate_receipt(self, document_id: str) -> Receipt:
        return self._validate(DocumentType.RECEIPT, document_id)

    def validate_delivery(self, document_id: str) -> Delivery:
        return self._validate(DocumentType.DELIVERY, document_id)

    def validate_transfer(self, document_id: str) -> InternalTransfer:
        return self._validate(DocumentType.INTERNAL, document_id)

    def validate_adjustment(self, document_id: str) -> StockAdjustment:
        return self._validate(DocumentType.ADJUSTMENT, document_id)

    def cancel_receipt(self, document_id: str) -> Receipt:
        return self._cancel(DocumentType.RECEIPT, document_id)

    def cancel_delivery(self, document_id: str) -> Delivery:
        return self._cancel(DocumentType.DELIVERY, document_id)

    def cancel_transfer(self, document_id: str) -> InternalTransfer:
        return self._cancel(DocumentType.INTERNAL, document_id)

    def cancel_adjustment(self, document_id: str) -> StockAdjustment:
        return self._cancel(DocumentType.ADJUSTMENT, document_id)

    def validate(self, document_type: DocumentType, document_id: str) -> Document:
        return self._validate(document_type, document_id)

    def cancel(self, document_type: DocumentType, document_id: str) -> Document:
        return self._cancel(document_type, document_id)

    def update_delivery_status(self, document_id: str, status: DocumentStatus | str) -> Delivery:
        """
        Move an open delivery between Draft, Waiting and Ready.

        Done and Canceled are only reachable through validate/cancel.
        """
        try:
            status = DocumentStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid status '{status}'")

        delivery = self.documents.get(DocumentType.DELIVERY, document_id)
        if delivery.is_terminal:
            raise InvalidTransitionError(
                f"Cannot change status of delivery {delivery.document_number}: "
                f"current status is '{delivery.status.value}'"
            )
        if status not in OPEN_STATUSES:
            raise InvalidTransitionError(
                f"Cannot set delivery status to '{status.value}' directly; "
                f"use validate or cancel"
            )

        self.documents.set_status(delivery, status, at=self.clock())
        return delivery

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    def _require_open(self, document: Document, action: str) -> None:
        noun = _DOCUMENT_NOUNS[document.document_type]
        if document.status == DocumentStatus.DONE:
            raise InvalidTransitionError(f"Cannot {action} a completed {noun}")
        if document.status == DocumentStatus.CANCELED:
            raise InvalidTransitionError(f"Cannot {action} a canceled {noun}")

    def _cancel(self, document_type: DocumentType, document_id: str) -> Document:
        document = self.documents.get(document_type, document_id)
        self._require_open(document, "cancel")

        self.documents.set_status(document, DocumentStatus.CANCELED, at=self.clock())
        logger.info(
            "%s canceled id=%s number=%s user=%s",
            document_type.value, document.id, document.document_number, self.user_id,
        )
        return document

    def _validate(self, document_type: DocumentType, document_id: str) -> Document:
        document = self.documents.get(document_type, document_id)
        self._require_open(document, "validate")

        deltas = self._planned_deltas(document)
        self._check_availability(document, deltas)

        now = self.clock()
        snapshot = self.ledger.snapshot()
        try:
            for product_id, warehouse_id, delta, movement_type in deltas:
                self._apply(document, product_id, warehouse_id, delta, movement_type, now)
        except Exception:
            self.ledger.restore(snapshot)
            raise

        self.documents.set_status(document, DocumentStatus.DONE, at=now)
        logger.info(
            "%s validated id=%s number=%s movements=%d user=%s",
            document_type.value, document.id, document.document_number, len(deltas), self.user_id,
        )
        return document

    def _planned_deltas(self, document: Document) -> list[tuple[str, str, int, MovementType]]:
        """
        Signed deltas in application order as (product_id, warehouse_id, delta, movement_type).

        Receipts plan nothing.
        """
        document_type = document.document_type
        if document_type == DocumentType.RECEIPT:
            return []
        if document_type == DocumentType.DELIVERY:
            return [
                (line.product_id, document.warehouse_id, -line.quantity, MovementType.DELIVERY)
                for line in document.lines
            ]
        if document_type == DocumentType.INTERNAL:
            if document.source_warehouse_id == document.destination_warehouse_id:
                raise ValidationError("Cannot transfer to the same warehouse")
            deltas = []
            for line in document.lines:
                deltas.append((line.product_id, document.source_warehouse_id, -line.quantity, MovementType.TRANSFER_OUT))
                deltas.append((line.product_id, document.destination_warehouse_id, line.quantity, MovementType.TRANSFER_IN))
            return deltas
        if document_type == DocumentType.ADJUSTMENT:
            return [
                (line.product_id, document.warehouse_id, line.difference, MovementType.ADJUSTMENT)
                for line in document.lines
            ]
        raise ValueError(f"Unhandled document type {document_type!r}")

    def _check_availability(self, document: Document, deltas: list) -> None:
        """Every decrease, summed per (product, warehouse), must be covered by current stock."""
        requested: dict[tuple[str, str], int] = defaultdict(int)
        for product_id, warehouse_id, delta, _ in deltas:
            if delta < 0:
                requested[(product_id, warehouse_id)] += -delta

        for (product_id, warehouse_id), quantity in requested.items():
            available = self.ledger.quantity_at(product_id, warehouse_id)
            if available < quantity:
                raise InsufficientStockError(
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    available=available,
                    requested=quantity,
                    context=_SHORTAGE_CONTEXT[document.document_type],
                )

    def _apply(
        self,
        document: Document,
        product_id: str,
        warehouse_id: str,
        delta: int,
        movement_type: MovementType,
        now: datetime,
    ) -> StockMovement:
        previous_stock, new_stock = self.ledger.apply_delta(product_id, warehouse_id, delta)
        movement = StockMovement(
            id=new_id("movement"),
            product_id=product_id,
            warehouse_id=warehouse_id,
            movement_type=movement_type,
            document_type=document.document_type,
            document_id=document.id,
            document_number=document.document_number,
            quantity=delta,
            previous_stock=previous_stock,
            new_stock=new_stock,
            timestamp=now,
            user_id=self.user_id,
        )
        return self.ledger.record_movement(movement)
