"""
Catalog tests: products, warehouses, code and SKU uniqueness.
"""

import pytest

from stockledger.models import ProductCategory, UnitOfMeasure
from stockledger.services.catalog_service import Catalog
from stockledger.services.errors import DuplicateCodeError, DuplicateSkuError, InventoryError, NotFoundError
from stockledger.validation import ConflictError, ValidationError


class TestWarehouses:
    def test_duplicate_code_is_case_insensitive(self, service, wh_main):
        with pytest.raises(DuplicateCodeError, match='Warehouse code "wh-001" already exists'):
            service.add_warehouse(name="Other", code="wh-001")

    def test_duplicate_code_ignores_whitespace(self, service, wh_main):
        with pytest.raises(ConflictError):
            service.add_warehouse(name="Other", code="  WH-001 ")
        assert len(service.warehouses) == 1

    def test_code_is_immutable(self, service, wh_main):
        with pytest.raises(ValidationError):
            service.update_warehouse(wh_main.id, {"code": "WH-999"})

        updated = service.update_warehouse(wh_main.id, {"name": "Renamed", "address": None, "code": "wh-001"})
        assert updated.name == "Renamed"
        assert updated.address is None
        assert updated.code == "WH-001"

    def test_blank_name_rejected(self, service):
        with pytest.raises(ValidationError):
            service.add_warehouse(name="  ", code="WH-X")

    def test_unknown_warehouse(self, service):
        with pytest.raises(NotFoundError):
            service.get_warehouse("wh-missing")


class TestProducts:
    def test_create_normalizes_sku_and_defaults(self, service):
        product = service.add_product(sku="  abc-1 ", name="Thing")

        assert product.sku == "ABC-1"
        assert product.category == ProductCategory.OTHER
        assert product.uom == UnitOfMeasure.PCS
        assert product.reorder_level == 0
        assert product.id.startswith("prod-")
        assert product.created_at == product.updated_at

    def test_duplicate_sku_allowed_by_default(self, service, product):
        twin = service.add_product(sku="sku1", name="Widget copy")
        assert twin.id != product.id
        assert len(service.catalog.find_products_by_sku("SKU1")) == 2

    def test_duplicate_sku_rejected_when_enforced(self):
        catalog = Catalog(enforce_unique_sku=True)
        catalog.create_product(sku="SKU1", name="Widget")

        with pytest.raises(DuplicateSkuError):
            catalog.create_product(sku="sku1", name="Widget again")

    def test_sku_collision_is_not_a_warehouse_code_error(self):
        catalog = Catalog(enforce_unique_sku=True)
        catalog.create_product(sku="SKU1", name="Widget")

        with pytest.raises(ConflictError) as excinfo:
            catalog.create_product(sku="SKU1", name="Widget again")

        assert not isinstance(excinfo.value, DuplicateCodeError)
        assert isinstance(excinfo.value, InventoryError)

    def test_update_ignores_unknown_keys_and_refreshes_timestamp(self, service, product):
        before = product.updated_at
        updated = service.update_product(product.id, {"name": "Widget Pro", "id": "hijack", "bogus": 1})

        assert updated.name == "Widget Pro"
        assert updated.id == product.id
        assert updated.updated_at >= before

    def test_invalid_category_and_reorder_level(self, service, product):
        with pytest.raises(ValidationError, match="category must be one of"):
            service.update_product(product.id, {"category": "Vehicles"})
        with pytest.raises(ValidationError):
            service.update_product(product.id, {"reorder_level": -1})
        with pytest.raises(ValidationError):
            service.add_product(sku="X", name="Y", reorder_level="ten")

    def test_list_by_category(self, service, product):
        service.add_product(sku="BOOK-1", name="Novel", category=ProductCategory.BOOKS)

        assert [p.sku for p in service.list_products(category="Tools")] == ["SKU1"]
        assert len(service.list_products()) == 2

    def test_unknown_product(self, service):
        with pytest.raises(NotFoundError):
            service.get_product("prod-missing")
