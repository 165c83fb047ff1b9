"""
Persistence tests: per-user scoping, reload, initialization, import/export.
"""

import json

import pytest

from stockledger.models import DocumentStatus, DocumentType
from stockledger.services.inventory_service import InventoryService
from stockledger.services.key_value_store import MemoryKeyValueStore
from stockledger.services.persistence_service import (
    DATA_INITIALIZED,
    MOVEMENTS,
    NAMESPACES,
    PRODUCTS,
    STOCK_LOCATIONS,
    WAREHOUSES,
    PersistenceGateway,
)
from stockledger.time_utils import to_utc_z
from stockledger.validation import ValidationError


class TestRoundTrip:
    def test_state_survives_reload(self, kv_store, service, wh_main, product, stocked):
        reloaded = InventoryService(kv_store, "tester")

        assert reloaded.quantity_at(product.id, wh_main.id) == 20
        assert reloaded.get_product(product.id).sku == "SKU1"
        adjustment = reloaded.get_document(DocumentType.ADJUSTMENT, stocked.id)
        assert adjustment.status == DocumentStatus.DONE
        assert to_utc_z(adjustment.validated_at) == to_utc_z(stocked.validated_at)
        assert len(reloaded.list_movements()) == 1

    def test_failed_validation_persists_nothing(self, kv_store, service, wh_main, product, stocked):
        before = kv_store.get("inventory_stock_locations_tester")
        delivery = service.add_delivery(warehouse_id=wh_main.id, lines=[{"product_id": product.id, "quantity": 99}])
        with pytest.raises(ValueError):
            service.validate_delivery(delivery.id)

        assert kv_store.get("inventory_stock_locations_tester") == before
        reloaded = InventoryService(kv_store, "tester")
        assert reloaded.get_document(DocumentType.DELIVERY, delivery.id).status == DocumentStatus.DRAFT

    def test_values_are_json_arrays(self, kv_store, service, product):
        data = json.loads(kv_store.get("inventory_products_tester").decode("utf-8"))
        assert isinstance(data, list)
        assert data[0]["sku"] == "SKU1"
        assert data[0]["created_at"].endswith("Z")


class TestScoping:
    def test_users_do_not_see_each_other(self, kv_store):
        alice = InventoryService(kv_store, "alice", seed_defaults=False)
        bob = InventoryService(kv_store, "bob", seed_defaults=False)
        alice.add_warehouse(name="A", code="WH-A")

        assert InventoryService(kv_store, "bob").warehouses == []
        assert bob.add_warehouse(name="B", code="WH-A").code == "WH-A"
        assert len(InventoryService(kv_store, "alice").warehouses) == 1

    def test_keys_are_suffixed_with_user(self, kv_store):
        InventoryService(kv_store, "alice", seed_defaults=False)
        assert set(kv_store.keys()) == {f"{ns}_alice" for ns in NAMESPACES} | {f"{DATA_INITIALIZED}_alice"}


class TestInitialization:
    def test_seed_defaults(self, kv_store):
        service = InventoryService(kv_store, "fresh")

        assert [w.code for w in service.warehouses] == ["WH-001"]
        assert service.warehouses[0].name == "Main Warehouse"
        assert [p.sku for p in service.products] == ["SAMPLE-001"]
        assert service.products[0].reorder_level == 10

    def test_initialize_runs_once(self, kv_store):
        gateway = PersistenceGateway(kv_store, "once")
        assert gateway.initialize() is True
        assert gateway.initialize() is False
        assert len(gateway.load().warehouses) == 1

    def test_cleared_scope_is_reseeded_on_next_start(self, kv_store):
        service = InventoryService(kv_store, "u1")
        service.add_warehouse(name="Extra", code="WH-002")
        service.clear_data()

        assert service.warehouses == []
        assert kv_store.get(f"{PRODUCTS}_u1") is None
        assert [w.code for w in InventoryService(kv_store, "u1").warehouses] == ["WH-001"]

    def test_legacy_unscoped_data_is_migrated(self):
        legacy = json.dumps([{"id": "wh-old", "name": "Legacy", "code": "OLD"}]).encode("utf-8")
        store = MemoryKeyValueStore({WAREHOUSES: legacy})

        service = InventoryService(store, "carol")

        assert [w.code for w in service.warehouses] == ["OLD"]
        assert store.get(WAREHOUSES) is None
        assert PersistenceGateway(store, "carol").is_initialized()


class TestBundles:
    def test_export_import_between_users(self, kv_store, service, wh_main, product, stocked):
        bundle = service.export_data()
        assert set(bundle) == set(NAMESPACES)

        target = InventoryService(kv_store, "copy", auto_initialize=False)
        written = target.import_data(bundle)

        assert set(written) == set(NAMESPACES)
        assert target.quantity_at(product.id, wh_main.id) == 20
        assert len(target.list_movements()) == 1

    def test_partial_bundle_keeps_other_namespaces(self, kv_store, service, wh_main, product):
        service.import_data({PRODUCTS: []})

        assert service.products == []
        assert [w.id for w in service.warehouses] == [wh_main.id]

    def test_malformed_bundle_writes_nothing(self, kv_store, service, product):
        before = kv_store.get(f"{PRODUCTS}_tester")
        bad = {PRODUCTS: [], MOVEMENTS: [{"id": "mov-x"}]}

        with pytest.raises(ValidationError, match=MOVEMENTS):
            service.import_data(bad)
        assert kv_store.get(f"{PRODUCTS}_tester") == before

    def test_negative_stock_row_rejected(self, kv_store, service, wh_main, product, stocked):
        before = kv_store.get(f"{STOCK_LOCATIONS}_tester")
        bundle = {STOCK_LOCATIONS: [{"product_id": product.id, "warehouse_id": wh_main.id, "quantity": -7}]}

        with pytest.raises(ValidationError, match=">= 0"):
            service.import_data(bundle)

        assert kv_store.get(f"{STOCK_LOCATIONS}_tester") == before
        assert service.quantity_at(product.id, wh_main.id) == 20

    def test_fractional_stock_row_rejected(self, service, wh_main, product):
        bundle = {STOCK_LOCATIONS: [{"product_id": product.id, "warehouse_id": wh_main.id, "quantity": 2.5}]}

        with pytest.raises(ValidationError, match=STOCK_LOCATIONS):
            service.import_data(bundle)

    def test_duplicate_stock_rows_rejected_and_scope_stays_loadable(self, kv_store, service, wh_main, product, stocked):
        row = {"product_id": product.id, "warehouse_id": wh_main.id, "quantity": 3}
        bundle = {PRODUCTS: [], STOCK_LOCATIONS: [row, dict(row)]}

        with pytest.raises(ValidationError, match="Duplicate stock location"):
            service.import_data(bundle)

        reloaded = InventoryService(kv_store, "tester")
        assert reloaded.quantity_at(product.id, wh_main.id) == 20
        assert [p.id for p in reloaded.products] == [product.id]

    def test_non_object_bundle_rejected(self, service):
        with pytest.raises(ValidationError):
            service.import_data([1, 2, 3])

    def test_storage_stats(self, kv_store, service, product):
        stats = service.storage_stats()

        assert stats["item_count"] == len(NAMESPACES) + 1
        assert stats["breakdown"][PRODUCTS] == len(kv_store.get(f"{PRODUCTS}_tester"))
        assert stats["total_size"] == sum(stats["breakdown"].values())
        assert STOCK_LOCATIONS in stats["breakdown"]
