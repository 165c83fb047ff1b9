# Overview: Inventory facade for one user scope; binds catalog, documents, ledger and engine to storage.

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..models import (
    DocumentStatus,
    DocumentType,
    Document,
    Product,
    Warehouse,
    Receipt,
    Delivery,
    InternalTransfer,
    StockAdjustment,
    StockLocation,
    StockMovement,
    ProductCategory,
)
from .catalog_service import Catalog
from .document_service import DocumentStore
from .key_value_store import KeyValueStore
from .ledger_service import StockLedger
from .persistence_service import (
    PersistenceGateway,
    InventoryState,
    PRODUCTS,
    WAREHOUSES,
    STOCK_LOCATIONS,
    RECEIPTS,
    DELIVERIES,
    TRANSFERS,
    ADJUSTMENTS,
    MOVEMENTS,
)
from .validation_engine import ValidationEngine
"""
Inventory Invariants & Persistence Checkpoints (authoritative)

- One InventoryService per user scope. State is loaded once at construction
  (load-on-start) and the namespaces a mutation touched are written back
  right after it succeeds (save-on-mutation).
- A mutation that raises writes nothing.
- Stock quantities change only through validate_*; there is no public
  "set quantity" operation.
- No write-ahead log: if the store fails mid-save, durable state may lag the
  in-memory state by one operation.
"""

logger = logging.getLogger(__name__)

DOCUMENT_NAMESPACES = {
    DocumentType.RECEIPT: RECEIPTS,
    DocumentType.DELIVERY: DELIVERIES,
    DocumentType.INTERNAL: TRANSFERS,
    DocumentType.ADJUSTMENT: ADJUSTMENTS,
}


class InventoryService:
    def __init__(
        self,
        store: KeyValueStore,
        user_id: Optional[str],
        *,
        enforce_unique_sku: bool = False,
        seed_defaults: bool = True,
        auto_initialize: bool = True,
    ):
        self.user_id = user_id
        self.enforce_unique_sku = enforce_unique_sku
        self.gateway = PersistenceGateway(store, user_id)
        if auto_initialize:
            self.gateway.ensure_initialized(seed_defaults=seed_defaults)
        self._bind(self.gateway.load())

    def _bind(self, state: InventoryState) -> None:
        self.catalog = Catalog(
            state.products,
            state.warehouses,
            enforce_unique_sku=self.enforce_unique_sku,
        )
        self.documents = DocumentStore(
            self.catalog,
            receipts=state.receipts,
            deliveries=state.deliveries,
            transfers=state.transfers,
            adjustments=state.adjustments,
        )
        self.ledger = StockLedger(state.stock_locations, state.movements)
        self.engine = ValidationEngine(self.documents, self.ledger, user_id=self.user_id)

    def state(self) -> InventoryState:
        return InventoryState(
            products=self.catalog.products,
            warehouses=self.catalog.warehouses,
            stock_locations=self.ledger.locations,
            receipts=self.documents.receipts,
            deliveries=self.documents.deliveries,
            transfers=self.documents.transfers,
            adjustments=self.documents.adjustments,
            movements=self.ledger.movements,
        )

    def _persist(self, *namespaces: str) -> None:
        self.gateway.save(self.state(), namespaces)
        logger.debug("saved %s for user %s", ", ".join(namespaces), self.user_id)

    def reload(self) -> None:
        self._bind(self.gateway.load())

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @property
    def products(self) -> list[Product]:
        return self.catalog.products

    def add_product(self, **fields) -> Product:
        product = self.catalog.create_product(**fields)
        self._persist(PRODUCTS)
        return product

    def update_product(self, product_id: str, patch: dict) -> Product:
        product = self.catalog.update_product(product_id, patch)
        self._persist(PRODUCTS)
        return product

    def get_product(self, product_id: str) -> Product:
        return self.catalog.get_product(product_id)

    def list_products(self, *, category: ProductCategory | str | None = None) -> list[Product]:
        return self.catalog.list_products(category=category)

    # ------------------------------------------------------------------
    # Warehouses
    # ------------------------------------------------------------------

    @property
    def warehouses(self) -> list[Warehouse]:
        return self.catalog.warehouses

    def add_warehouse(self, **fields) -> Warehouse:
        warehouse = self.catalog.create_warehouse(**fields)
        self._persist(WAREHOUSES)
        return warehouse

    def update_warehouse(self, warehouse_id: str, patch: dict) -> Warehouse:
        warehouse = self.catalog.update_warehouse(warehouse_id, patch)
        self._persist(WAREHOUSES)
        return warehouse

    def get_warehouse(self, warehouse_id: str) -> Warehouse:
        return self.catalog.get_warehouse(warehouse_id)

    # ------------------------------------------------------------------
    # Stock (read-only)
    # ------------------------------------------------------------------

    def quantity_at(self, product_id: str, warehouse_id: str) -> int:
        return self.ledger.quantity_at(product_id, warehouse_id)

    def total_quantity(self, product_id: str) -> int:
        return self.ledger.total_quantity(product_id)

    def list_stock_for_product(self, product_id: str) -> list[StockLocation]:
        self.catalog.get_product(product_id)
        return self.ledger.stock_for_product(product_id)

    def check_availability(self, product_id: str, warehouse_id: str, quantity: int) -> bool:
        return self.ledger.check_availability(product_id, warehouse_id, quantity)

    def list_movements(
        self,
        *,
        product_id: Optional[str] = None,
        warehouse_id: Optional[str] = None,
        document_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[StockMovement]:
        return self.ledger.find_movements(
            product_id=product_id,
            warehouse_id=warehouse_id,
            document_id=document_id,
            limit=limit,
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_receipt(self, **fields) -> Receipt:
        receipt = self.documents.create_receipt(**fields)
        self._persist(RECEIPTS)
        return receipt

    def add_delivery(self, **fields) -> Delivery:
        delivery = self.documents.create_delivery(**fields)
        self._persist(DELIVERIES)
        return delivery

    def add_transfer(self, **fields) -> InternalTransfer:
        transfer = self.documents.create_transfer(**fields)
        self._persist(TRANSFERS)
        return transfer

    def add_adjustment(self, **fields) -> StockAdjustment:
        adjustment = self.documents.create_adjustment(**fields)
        self._persist(ADJUSTMENTS)
        return adjustment

    def get_document(self, document_type: DocumentType, document_id: str) -> Document:
        return self.documents.get(document_type, document_id)

    def list_documents(
        self,
        document_type: DocumentType,
        *,
        status: Optional[DocumentStatus] = None,
        warehouse_id: Optional[str] = None,
    ) -> list[Document]:
        return self.documents.list_documents(document_type, status=status, warehouse_id=warehouse_id)

    def replace_lines(self, document_type: DocumentType, document_id: str, lines: Iterable) -> Document:
        document = self.documents.replace_lines(document_type, document_id, lines)
        self._persist(DOCUMENT_NAMESPACES[document_type])
        return document

    def validate_document(self, document_type: DocumentType, document_id: str) -> Document:
        document = self.engine.validate(document_type, document_id)
        if document_type == DocumentType.RECEIPT:
            self._persist(RECEIPTS)
        else:
            self._persist(DOCUMENT_NAMESPACES[document_type], STOCK_LOCATIONS, MOVEMENTS)
        return document

    def cancel_document(self, document_type: DocumentType, document_id: str) -> Document:
        document = self.engine.cancel(document_type, document_id)
        self._persist(DOCUMENT_NAMESPACES[document_type])
        return document

    def validate_receipt(self, document_id: str) -> Receipt:
        return self.validate_document(DocumentType.RECEIPT, document_id)

    def validate_delivery(self, document_id: str) -> Delivery:
        return self.validate_document(DocumentType.DELIVERY, document_id)

    def validate_transfer(self, document_id: str) -> InternalTransfer:
        return self.validate_document(DocumentType.INTERNAL, document_id)

    def validate_adjustment(self, document_id: str) -> StockAdjustment:
        return self.validate_document(DocumentType.ADJUSTMENT, document_id)

    def cancel_receipt(self, document_id: str) -> Receipt:
        return self.cancel_document(DocumentType.RECEIPT, document_id)

    def cancel_delivery(self, document_id: str) -> Delivery:
        return self.cancel_document(DocumentType.DELIVERY, document_id)

    def cancel_transfer(self, document_id: str) -> InternalTransfer:
        return self.cancel_document(DocumentType.INTERNAL, document_id)

    def cancel_adjustment(self, document_id: str) -> StockAdjustment:
        return self.cancel_document(DocumentType.ADJUSTMENT, document_id)

    def update_delivery_status(self, document_id: str, status: DocumentStatus | str) -> Delivery:
        delivery = self.engine.update_delivery_status(document_id, status)
        self._persist(DELIVERIES)
        return delivery

    # ------------------------------------------------------------------
    # Data management
    # ------------------------------------------------------------------

    def export_data(self) -> dict:
        return self.gateway.export_bundle()

    def import_data(self, bundle: dict) -> list[str]:
        written = self.gateway.import_bundle(bundle)
        self.reload()
        return written

    def clear_data(self) -> None:
        self.gateway.clear()
        self.reload()

    def storage_stats(self) -> dict:
        return self.gateway.storage_stats()
