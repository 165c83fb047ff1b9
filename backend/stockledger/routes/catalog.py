# backend/stockledger/routes/catalog.py
"""
Product and warehouse API routes.

Products and warehouses are never deleted; there is no DELETE route.
"""
from flask import Blueprint, jsonify, request

from stockledger.decorators import require_user
from stockledger.models.catalog import PRODUCT_FIELDS, WAREHOUSE_FIELDS
from stockledger.validation import ModelValidationPolicy, validate_payload
from .common import get_inventory, inventory_route, json_body


products_bp = Blueprint("products", __name__, url_prefix="/api/products")
warehouses_bp = Blueprint("warehouses", __name__, url_prefix="/api/warehouses")

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(PRODUCT_FIELDS),
    required_on_create={"sku", "name"},
)

WAREHOUSE_POLICY = ModelValidationPolicy(
    writable_fields=set(WAREHOUSE_FIELDS),
    required_on_create={"name", "code"},
)


@products_bp.get("")
@require_user
@inventory_route
def list_products():
    category = request.args.get("category") or None
    products = get_inventory().list_products(category=category)
    return jsonify([p.to_dict() for p in products]), 200


@products_bp.post("")
@require_user
@inventory_route
def create_product():
    """
    Create a product.

    Request body:
    {
        "sku": str,
        "name": str,
        "category": str (optional, default "Other"),
        "uom": str (optional, default "pcs"),
        "reorder_level": int (optional, default 0),
        "description": str (optional)
    }

    Returns:
        201: Product created
        400: Invalid payload
        409: SKU already exists (only when ENFORCE_UNIQUE_SKU is on)
    """
    patch = validate_payload(
        fields=PRODUCT_FIELDS,
        payload=json_body(),
        policy=PRODUCT_POLICY,
        partial=False,
    )
    product = get_inventory().add_product(**patch)
    return jsonify(product.to_dict()), 201


@products_bp.get("/<product_id>")
@require_user
@inventory_route
def get_product(product_id: str):
    return jsonify(get_inventory().get_product(product_id).to_dict()), 200


@products_bp.patch("/<product_id>")
@require_user
@inventory_route
def update_product(product_id: str):
    patch = validate_payload(
        fields=PRODUCT_FIELDS,
        payload=json_body(),
        policy=PRODUCT_POLICY,
        partial=True,
    )
    product = get_inventory().update_product(product_id, patch)
    return jsonify(product.to_dict()), 200


@warehouses_bp.get("")
@require_user
@inventory_route
def list_warehouses():
    return jsonify([w.to_dict() for w in get_inventory().warehouses]), 200


@warehouses_bp.post("")
@require_user
@inventory_route
def create_warehouse():
    """
    Create a warehouse.

    Request body:
    {
        "name": str,
        "code": str (unique per user, case-insensitive),
        "address": str (optional)
    }

    Returns:
        201: Warehouse created
        400: Invalid payload
        409: Code already exists
    """
    patch = validate_payload(
        fields=WAREHOUSE_FIELDS,
        payload=json_body(),
        policy=WAREHOUSE_POLICY,
        partial=False,
    )
    warehouse = get_inventory().add_warehouse(**patch)
    return jsonify(warehouse.to_dict()), 201


@warehouses_bp.get("/<warehouse_id>")
@require_user
@inventory_route
def get_warehouse(warehouse_id: str):
    return jsonify(get_inventory().get_warehouse(warehouse_id).to_dict()), 200


@warehouses_bp.patch("/<warehouse_id>")
@require_user
@inventory_route
def update_warehouse(warehouse_id: str):
    patch = validate_payload(
        fields=WAREHOUSE_FIELDS,
        payload=json_body(),
        policy=WAREHOUSE_POLICY,
        partial=True,
    )
    warehouse = get_inventory().update_warehouse(warehouse_id, patch)
    return jsonify(warehouse.to_dict()), 200
