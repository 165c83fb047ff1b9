# Overview: Read-only inventory reports (stock status, dashboard KPIs, category totals).

from __future__ import annotations

from collections import Counter
from typing import Optional

from ..models import DocumentStatus, DocumentType, ProductCategory, Product
from .inventory_service import InventoryService

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
IN_STOCK = "in_stock"

PENDING_RECEIPT_STATUSES = {DocumentStatus.DRAFT, DocumentStatus.WAITING}
PENDING_DELIVERY_STATUSES = {DocumentStatus.DRAFT, DocumentStatus.WAITING, DocumentStatus.READY}
SCHEDULED_TRANSFER_STATUSES = {DocumentStatus.DRAFT, DocumentStatus.WAITING}


def stock_status(total: int, reorder_level: int) -> str:
    if total == 0:
        return OUT_OF_STOCK
    if total < reorder_level:
        return LOW_STOCK
    return IN_STOCK


def _filtered_products(service: InventoryService, category: ProductCategory | str | None) -> list[Product]:
    return service.list_products(category=category)


def _product_total(service: InventoryService, product_id: str, warehouse_id: Optional[str]) -> int:
    if warehouse_id:
        return service.quantity_at(product_id, warehouse_id)
    return service.total_quantity(product_id)


def product_stock_rows(
    service: InventoryService,
    *,
    warehouse_id: Optional[str] = None,
    category: ProductCategory | str | None = None,
) -> list[dict]:
    rows = []
    for product in _filtered_products(service, category):
        total = _product_total(service, product.id, warehouse_id)
        rows.append({
            "product_id": product.id,
            "sku": product.sku,
            "name": product.name,
            "category": product.category.value,
            "reorder_level": product.reorder_level,
            "quantity": total,
            "status": stock_status(total, product.reorder_level),
        })
    return rows


def dashboard_kpis(
    service: InventoryService,
    *,
    warehouse_id: Optional[str] = None,
    category: ProductCategory | str | None = None,
) -> dict:
    """
    Headline counts for the dashboard.

    warehouse_id narrows stock totals to that warehouse and documents to the
    ones touching it (either side for transfers). category narrows products.
    """
    if warehouse_id:
        service.get_warehouse(warehouse_id)

    rows = product_stock_rows(service, warehouse_id=warehouse_id, category=category)
    statuses = Counter(row["status"] for row in rows)

    def _count(document_type: DocumentType, wanted: set) -> int:
        documents = service.list_documents(document_type, warehouse_id=warehouse_id)
        return sum(1 for d in documents if d.status in wanted)

    return {
        "total_products": len(rows),
        "low_stock_count": statuses[LOW_STOCK],
        "out_of_stock_count": statuses[OUT_OF_STOCK],
        "pending_receipts": _count(DocumentType.RECEIPT, PENDING_RECEIPT_STATUSES),
        "pending_deliveries": _count(DocumentType.DELIVERY, PENDING_DELIVERY_STATUSES),
        "scheduled_transfers": _count(DocumentType.INTERNAL, SCHEDULED_TRANSFER_STATUSES),
    }


def stock_by_category(
    service: InventoryService,
    *,
    warehouse_id: Optional[str] = None,
    category: ProductCategory | str | None = None,
) -> list[dict]:
    totals: dict[str, int] = {}
    for row in product_stock_rows(service, warehouse_id=warehouse_id, category=category):
        totals[row["category"]] = totals.get(row["category"], 0) + row["quantity"]
    return [{"category": name, "value": value} for name, value in totals.items()]


def document_status_distribution(
    service: InventoryService,
    *,
    warehouse_id: Optional[str] = None,
) -> dict[str, dict[str, int]]:
    """Per document type, a count of documents in each status (all statuses present, zeros included)."""
    distribution = {}
    for document_type in DocumentType:
        counts = Counter(
            d.status for d in service.list_documents(document_type, warehouse_id=warehouse_id)
        )
        distribution[document_type.value] = {status.value: counts[status] for status in DocumentStatus}
    return distribution


def low_stock_products(
    service: InventoryService,
    *,
    warehouse_id: Optional[str] = None,
    category: ProductCategory | str | None = None,
    include_out_of_stock: bool = True,
) -> list[dict]:
    wanted = {LOW_STOCK, OUT_OF_STOCK} if include_out_of_stock else {LOW_STOCK}
    rows = product_stock_rows(service, warehouse_id=warehouse_id, category=category)
    return [row for row in rows if row["status"] in wanted]


def dashboard(
    service: InventoryService,
    *,
    warehouse_id: Optional[str] = None,
    category: ProductCategory | str | None = None,
) -> dict:
    return {
        "kpis": dashboard_kpis(service, warehouse_id=warehouse_id, category=category),
        "stock_by_category": stock_by_category(service, warehouse_id=warehouse_id, category=category),
        "document_status": document_status_distribution(service, warehouse_id=warehouse_id),
        "recent_movements": [
            m.to_dict() for m in service.list_movements(warehouse_id=warehouse_id, limit=10)
        ],
    }
