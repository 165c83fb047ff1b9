# backend/stockledger/routes/stock.py
"""
Read-only stock and movement routes.

Quantities only change through document validation; nothing here writes
to the ledger.
"""
from flask import Blueprint, jsonify, request

from stockledger.decorators import require_user
from stockledger.validation import ValidationError, parse_int
from .common import get_inventory, inventory_route


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")
movements_bp = Blueprint("movements", __name__, url_prefix="/api/movements")


def _required_arg(name: str) -> str:
    value = (request.args.get(name) or "").strip()
    if not value:
        raise ValidationError(f"{name} is required")
    return value


@stock_bp.get("/availability")
@require_user
@inventory_route
def check_availability():
    product_id = _required_arg("product_id")
    warehouse_id = _required_arg("warehouse_id")
    quantity = parse_int("quantity", _required_arg("quantity"))

    service = get_inventory()
    return jsonify({
        "product_id": product_id,
        "warehouse_id": warehouse_id,
        "requested": quantity,
        "available": service.quantity_at(product_id, warehouse_id),
        "is_available": service.check_availability(product_id, warehouse_id, quantity),
    }), 200


@stock_bp.get("/<product_id>")
@require_user
@inventory_route
def product_stock(product_id: str):
    service = get_inventory()
    locations = service.list_stock_for_product(product_id)
    return jsonify({
        "product_id": product_id,
        "total": service.total_quantity(product_id),
        "locations": [loc.to_dict() for loc in locations],
    }), 200


@stock_bp.get("/<product_id>/<warehouse_id>")
@require_user
@inventory_route
def quantity_at(product_id: str, warehouse_id: str):
    return jsonify({
        "product_id": product_id,
        "warehouse_id": warehouse_id,
        "quantity": get_inventory().quantity_at(product_id, warehouse_id),
    }), 200


@movements_bp.get("")
@require_user
@inventory_route
def list_movements():
    """Movements newest first; optional product_id, warehouse_id, document_id, limit."""
    limit = request.args.get("limit")
    if limit is not None:
        limit = parse_int("limit", limit)
        if limit <= 0:
            raise ValidationError("limit must be > 0")

    movements = get_inventory().list_movements(
        product_id=request.args.get("product_id") or None,
        warehouse_id=request.args.get("warehouse_id") or None,
        document_id=request.args.get("document_id") or None,
        limit=limit,
    )
    return jsonify([m.to_dict() for m in movements]), 200
