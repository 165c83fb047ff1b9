# backend/stockledger/services/catalog_service.py
"""
Catalog service: products and warehouses.

Simple CRUD with two structural rules:
- Warehouse codes are unique per scope, compared trimmed and case-insensitive.
  The code is fixed at creation; updates may only touch name and address.
- Product SKUs are normalized (trimmed, upper-cased) but uniqueness is only
  enforced when the catalog is built with enforce_unique_sku=True.

Products and warehouses are never deleted; documents and stock rows keep
referencing them by id.
"""
from __future__ import annotations

import logging
from typing import Iterable

from ..models import Product, Warehouse, ProductCategory, UnitOfMeasure
from ..models.catalog import normalize_sku, normalize_code
from ..validation import ValidationError, enforce_rules_product
from stockledger.time_utils import utcnow
from .errors import DuplicateCodeError, DuplicateSkuError, NotFoundError
from .identifiers import new_id

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"sku", "name", "category", "uom", "reorder_level", "description"}
WAREHOUSE_MUTABLE_FIELDS = {"name", "address"}


def _require_text(value, field_name: str) -> str:
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{field_name} cannot be blank")
    return str(value).strip()


def _coerce_enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


class Catalog:
    def __init__(
        self,
        products: Iterable[Product] = (),
        warehouses: Iterable[Warehouse] = (),
        *,
        enforce_unique_sku: bool = False,
    ):
        self._products: dict[str, Product] = {p.id: p for p in products}
        self._warehouses: dict[str, Warehouse] = {w.id: w for w in warehouses}
        self.enforce_unique_sku = enforce_unique_sku

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @property
    def products(self) -> list[Product]:
        return list(self._products.values())

    def get_product(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def has_product(self, product_id: str) -> bool:
        return product_id in self._products

    def list_products(self, *, category: ProductCategory | str | None = None) -> list[Product]:
        if category is None:
            return self.products
        category = _coerce_enum(ProductCategory, category, "category")
        return [p for p in self._products.values() if p.category == category]

    def find_products_by_sku(self, sku: str) -> list[Product]:
        wanted = normalize_sku(sku)
        return [p for p in self._products.values() if p.sku == wanted]

    def _check_sku_available(self, sku: str, *, exclude_id: str | None = None) -> None:
        if not self.enforce_unique_sku:
            return
        for product in self._products.values():
            if product.id != exclude_id and product.sku == sku:
                raise DuplicateSkuError(f'Product SKU "{sku}" already exists')

    def create_product(
        self,
        *,
        sku: str,
        name: str,
        category: ProductCategory | str = ProductCategory.OTHER,
        uom: UnitOfMeasure | str = UnitOfMeasure.PCS,
        reorder_level: int = 0,
        description: str | None = None,
    ) -> Product:
        sku = normalize_sku(_require_text(sku, "sku"))
        name = _require_text(name, "name")
        enforce_rules_product({"reorder_level": reorder_level})
        self._check_sku_available(sku)

        now = utcnow()
        product = Product(
            id=new_id("product"),
            sku=sku,
            name=name,
            category=_coerce_enum(ProductCategory, category, "category"),
            uom=_coerce_enum(UnitOfMeasure, uom, "uom"),
            reorder_level=reorder_level,
            description=description,
            created_at=now,
            updated_at=now,
        )
        self._products[product.id] = product
        logger.info("product created id=%s sku=%s", product.id, product.sku)
        return product

    def update_product(self, product_id: str, patch: dict) -> Product:
        """Partial update; unknown keys are ignored, updated_at always refreshed."""
        product = self.get_product(product_id)
        changes: dict = {}
        for key, value in patch.items():
            if key not in PRODUCT_MUTABLE_FIELDS:
                continue
            if key == "sku":
                value = normalize_sku(_require_text(value, "sku"))
                self._check_sku_available(value, exclude_id=product.id)
            elif key == "name":
                value = _require_text(value, "name")
            elif key == "category":
                value = _coerce_enum(ProductCategory, value, "category")
            elif key == "uom":
                value = _coerce_enum(UnitOfMeasure, value, "uom")
            elif key == "reorder_level":
                enforce_rules_product({"reorder_level": value})
            changes[key] = value

        for key, value in changes.items():
            setattr(product, key, value)
        product.updated_at = utcnow()
        return product

    # ------------------------------------------------------------------
    # Warehouses
    # ------------------------------------------------------------------

    @property
    def warehouses(self) -> list[Warehouse]:
        return list(self._warehouses.values())

    def get_warehouse(self, warehouse_id: str) -> Warehouse:
        warehouse = self._warehouses.get(warehouse_id)
        if warehouse is None:
            raise NotFoundError(f"Warehouse {warehouse_id} not found")
        return warehouse

    def has_warehouse(self, warehouse_id: str) -> bool:
        return warehouse_id in self._warehouses

    def find_warehouse_by_code(self, code: str) -> Warehouse | None:
        wanted = normalize_code(code)
        for warehouse in self._warehouses.values():
            if normalize_code(warehouse.code) == wanted:
                return warehouse
        return None

    def create_warehouse(self, *, name: str, code: str, address: str | None = None) -> Warehouse:
        name = _require_text(name, "name")
        code = _require_text(code, "code")

        if self.find_warehouse_by_code(code) is not None:
            raise DuplicateCodeError(f'Warehouse code "{code}" already exists')

        warehouse = Warehouse(
            id=new_id("warehouse"),
            name=name,
            code=code,
            address=address,
            racks=[],
        )
        self._warehouses[warehouse.id] = warehouse
        logger.info("warehouse created id=%s code=%s", warehouse.id, warehouse.code)
        return warehouse

    def update_warehouse(self, warehouse_id: str, patch: dict) -> Warehouse:
        """Only name and address are writable; code is immutable after creation."""
        warehouse = self.get_warehouse(warehouse_id)
        if "code" in patch and normalize_code(str(patch["code"])) != normalize_code(warehouse.code):
            raise ValidationError("Warehouse code cannot be changed")
        if "name" in patch:
            warehouse.name = _require_text(patch["name"], "name")
        if "address" in patch:
            warehouse.address = patch["address"]
        return warehouse
