# Overview: Per-user persistence gateway; (de)serializes inventory namespaces over a key-value store.

"""
Persisted layout (per user scope)

    inventory_products_<user>          Product[]
    inventory_warehouses_<user>        Warehouse[]
    inventory_stock_locations_<user>   StockLocation[]
    inventory_receipts_<user>          Receipt[]
    inventory_deliveries_<user>        Delivery[]
    inventory_transfers_<user>         InternalTransfer[]
    inventory_adjustments_<user>       StockAdjustment[]
    inventory_movements_<user>         StockMovement[]
    inventory_data_initialized_<user>  b"true" once the scope was set up

Values are UTF-8 JSON arrays of each entity's to_dict(); datetimes are
ISO-8601 'Z' strings and are parsed back to UTC-naive datetimes on load.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..models import (
    Product,
    Warehouse,
    StockLocation,
    Receipt,
    Delivery,
    InternalTransfer,
    StockAdjustment,
    StockMovement,
    ProductCategory,
    UnitOfMeasure,
)
from ..validation import ValidationError
from stockledger.time_utils import utcnow
from .identifiers import new_id
from .errors import LedgerError
from .key_value_store import KeyValueStore
from .ledger_service import StockLedger

logger = logging.getLogger(__name__)

PRODUCTS = "inventory_products"
WAREHOUSES = "inventory_warehouses"
STOCK_LOCATIONS = "inventory_stock_locations"
RECEIPTS = "inventory_receipts"
DELIVERIES = "inventory_deliveries"
TRANSFERS = "inventory_transfers"
ADJUSTMENTS = "inventory_adjustments"
MOVEMENTS = "inventory_movements"
DATA_INITIALIZED = "inventory_data_initialized"

NAMESPACE_TYPES: dict[str, type] = {
    PRODUCTS: Product,
    WAREHOUSES: Warehouse,
    STOCK_LOCATIONS: StockLocation,
    RECEIPTS: Receipt,
    DELIVERIES: Delivery,
    TRANSFERS: InternalTransfer,
    ADJUSTMENTS: StockAdjustment,
    MOVEMENTS: StockMovement,
}
NAMESPACES = tuple(NAMESPACE_TYPES)

_INITIALIZED_FLAG = b"true"


@dataclass
class InventoryState:
    """Everything stored for one user scope, as domain objects."""
    products: list = field(default_factory=list)
    warehouses: list = field(default_factory=list)
    stock_locations: list = field(default_factory=list)
    receipts: list = field(default_factory=list)
    deliveries: list = field(default_factory=list)
    transfers: list = field(default_factory=list)
    adjustments: list = field(default_factory=list)
    movements: list = field(default_factory=list)

    _ATTRS = {
        PRODUCTS: "products",
        WAREHOUSES: "warehouses",
        STOCK_LOCATIONS: "stock_locations",
        RECEIPTS: "receipts",
        DELIVERIES: "deliveries",
        TRANSFERS: "transfers",
        ADJUSTMENTS: "adjustments",
        MOVEMENTS: "movements",
    }

    def get(self, namespace: str) -> list:
        return getattr(self, self._ATTRS[namespace])

    def set(self, namespace: str, items: list) -> None:
        setattr(self, self._ATTRS[namespace], list(items))


def default_warehouses() -> list[Warehouse]:
    return [
        Warehouse(
            id=new_id("warehouse"),
            name="Main Warehouse",
            code="WH-001",
            address="123 Industrial Blvd, City, State 12345",
            racks=[],
        ),
    ]


def default_products() -> list[Product]:
    now = utcnow()
    return [
        Product(
            id=new_id("product"),
            sku="SAMPLE-001",
            name="Sample Product",
            category=ProductCategory.OTHER,
            uom=UnitOfMeasure.PCS,
            reorder_level=10,
            description="This is a sample product. You can edit it.",
            created_at=now,
            updated_at=now,
        ),
    ]


def encode_items(items: list) -> bytes:
    return json.dumps([item.to_dict() for item in items], separators=(",", ":")).encode("utf-8")


def decode_items(namespace: str, raw: Any) -> list:
    """
    Parse a namespace payload (bytes, str or an already-decoded list).

    Raises ValidationError naming the namespace and index on malformed data.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{namespace} is not valid JSON: {e}")
    if not isinstance(raw, list):
        raise ValidationError(f"{namespace} must be a list")

    entity_class = NAMESPACE_TYPES[namespace]
    items = []
    for index, data in enumerate(raw):
        if not isinstance(data, dict):
            raise ValidationError(f"{namespace}[{index}] must be an object")
        try:
            items.append(entity_class.from_dict(data))
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"{namespace}[{index}] is invalid: {e}")
    return items


class PersistenceGateway:
    """
    Reads and writes one user's inventory namespaces.

    The store is injected; nothing here is process-global, so any number of
    gateways over separate stores can coexist (one per test, one per request).
    """

    def __init__(self, store: KeyValueStore, user_id: Optional[str]):
        self.store = store
        self.user_id = user_id

    def storage_key(self, namespace: str) -> str:
        return f"{namespace}_{self.user_id}" if self.user_id else namespace

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def load_namespace(self, namespace: str) -> list:
        raw = self.store.get(self.storage_key(namespace))
        if raw is None:
            return []
        return decode_items(namespace, raw)

    def save_namespace(self, namespace: str, items: list) -> None:
        self.store.set(self.storage_key(namespace), encode_items(items))

    def load(self) -> InventoryState:
        state = InventoryState()
        for namespace in NAMESPACES:
            state.set(namespace, self.load_namespace(namespace))
        return state

    def save(self, state: InventoryState, namespaces: Optional[tuple[str, ...]] = None) -> None:
        for namespace in namespaces or NAMESPACES:
            self.save_namespace(namespace, state.get(namespace))

    # ------------------------------------------------------------------
    # Scope lifecycle
    # ------------------------------------------------------------------

    def is_initialized(self) -> bool:
        return self.store.get(self.storage_key(DATA_INITIALIZED)) == _INITIALIZED_FLAG

    def mark_initialized(self) -> None:
        self.store.set(self.storage_key(DATA_INITIALIZED), _INITIALIZED_FLAG)

    def initialize(self, *, seed_defaults: bool = True) -> bool:
        """
        Set up an untouched scope. Returns False if it was already initialized.

        seed_defaults writes a starter warehouse (WH-001) and sample product.
        """
        if self.is_initialized():
            return False

        state = InventoryState()
        if seed_defaults:
            state.warehouses = default_warehouses()
            state.products = default_products()
        self.save(state)
        self.mark_initialized()
        logger.info("Initialized data for user %s (seed_defaults=%s)", self.user_id, seed_defaults)
        return True

    def migrate_legacy(self) -> bool:
        """
        Move un-scoped keys (written before per-user scoping) into this user's scope.

        Only runs for a scope that is not initialized yet. Returns True if
        anything moved.
        """
        if not self.user_id or self.is_initialized():
            return False

        migrated = False
        for namespace in NAMESPACES:
            old = self.store.get(namespace)
            if old is None:
                continue
            decode_items(namespace, old)
            self.store.set(self.storage_key(namespace), old)
            self.store.delete(namespace)
            migrated = True

        if migrated:
            self.store.delete(DATA_INITIALIZED)
            self.mark_initialized()
            logger.info("Migrated existing data for user %s", self.user_id)
        return migrated

    def ensure_initialized(self, *, seed_defaults: bool = True) -> None:
        if not self.is_initialized():
            self.migrate_legacy()
        if not self.is_initialized():
            self.initialize(seed_defaults=seed_defaults)

    def clear(self) -> None:
        for namespace in NAMESPACES + (DATA_INITIALIZED,):
            self.store.delete(self.storage_key(namespace))
        logger.info("Cleared data for user %s", self.user_id)

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------

    def export_bundle(self) -> dict[str, list]:
        """All eight namespaces as JSON-ready lists, keyed by namespace."""
        bundle: dict[str, list] = {}
        for namespace in NAMESPACES:
            raw = self.store.get(self.storage_key(namespace))
            bundle[namespace] = json.loads(raw.decode("utf-8")) if raw is not None else []
        return bundle

    def import_bundle(self, bundle: dict) -> list[str]:
        """
        Overwrite every namespace present in the bundle, then mark initialized.

        All namespaces are parsed, and stock rows checked for one row per
        (product, warehouse) pair, before anything is written, so a malformed
        bundle changes nothing. Returns the namespaces written.
        """
        if not isinstance(bundle, dict):
            raise ValidationError("Import bundle must be an object")

        parsed = {
            namespace: decode_items(namespace, bundle[namespace])
            for namespace in NAMESPACES
            if bundle.get(namespace) is not None
        }
        if STOCK_LOCATIONS in parsed:
            try:
                StockLedger(parsed[STOCK_LOCATIONS])
            except LedgerError as e:
                raise ValidationError(f"{STOCK_LOCATIONS}: {e}")
        for namespace, items in parsed.items():
            self.save_namespace(namespace, items)
        self.mark_initialized()
        logger.info("Imported data for user %s namespaces=%s", self.user_id, sorted(parsed))
        return list(parsed)

    def storage_stats(self) -> dict:
        total_size = 0
        item_count = 0
        breakdown: dict[str, int] = {}
        for namespace in NAMESPACES + (DATA_INITIALIZED,):
            raw = self.store.get(self.storage_key(namespace))
            if raw is None:
                continue
            size = len(raw)
            total_size += size
            item_count += 1
            breakdown[namespace] = size
        return {"total_size": total_size, "item_count": item_count, "breakdown": breakdown}
