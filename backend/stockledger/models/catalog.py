from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from stockledger.time_utils import to_utc_z, coerce_datetime
from stockledger.validation import FieldSpec


class ProductCategory(str, Enum):
    ELECTRONICS = "Electronics"
    FURNITURE = "Furniture"
    CLOTHING = "Clothing"
    FOOD = "Food"
    BOOKS = "Books"
    TOOLS = "Tools"
    OTHER = "Other"


class UnitOfMeasure(str, Enum):
    PCS = "pcs"
    KG = "kg"
    LBS = "lbs"
    BOX = "box"
    CARTON = "carton"
    DOZEN = "dozen"


def normalize_sku(sku: str) -> str:
    return sku.strip().upper()


def normalize_code(code: str) -> str:
    """Comparison key for warehouse codes (case-insensitive, trimmed)."""
    return code.strip().upper()


PRODUCT_FIELDS = {
    "sku": FieldSpec(str, max_length=64),
    "name": FieldSpec(str, max_length=255),
    "category": FieldSpec(ProductCategory),
    "uom": FieldSpec(UnitOfMeasure),
    "reorder_level": FieldSpec(int),
    "description": FieldSpec(str, nullable=True),
}

WAREHOUSE_FIELDS = {
    "name": FieldSpec(str, max_length=255),
    "code": FieldSpec(str, max_length=32),
    "address": FieldSpec(str, nullable=True),
}


@dataclass
class Product:
    """
    Product master data.

    SKU DESIGN DECISION:
    sku is stored trimmed and upper-cased so lookups are case-insensitive.
    Uniqueness is NOT enforced unless the catalog is built with
    enforce_unique_sku=True; imported data may legitimately carry duplicates.

    reorder_level is the threshold below which the product counts as low stock.
    """
    id: str
    sku: str
    name: str
    category: ProductCategory = ProductCategory.OTHER
    uom: UnitOfMeasure = UnitOfMeasure.PCS
    reorder_level: int = 0
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category.value,
            "uom": self.uom.value,
            "reorder_level": self.reorder_level,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=data["id"],
            sku=data["sku"],
            name=data["name"],
            category=ProductCategory(data.get("category", ProductCategory.OTHER.value)),
            uom=UnitOfMeasure(data.get("uom", UnitOfMeasure.PCS.value)),
            reorder_level=int(data.get("reorder_level", 0)),
            description=data.get("description"),
            created_at=coerce_datetime(data.get("created_at")),
            updated_at=coerce_datetime(data.get("updated_at")),
        )


@dataclass
class Warehouse:
    """
    A stock-holding site.

    code is unique within a user scope (compared with normalize_code) and is
    immutable after creation. racks are carried for the presentation layer
    and never read by the ledger.
    """
    id: str
    name: str
    code: str
    address: str | None = None
    racks: list[dict] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"<Warehouse id={self.id} code={self.code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "address": self.address,
            "racks": list(self.racks),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Warehouse":
        return cls(
            id=data["id"],
            name=data["name"],
            code=data["code"],
            address=data.get("address"),
            racks=list(data.get("racks") or []),
        )
