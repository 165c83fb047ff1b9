# backend/stockledger/routes/data.py
"""
Data management routes: export, import, storage statistics and clear.

All of them act on the caller's scope only (X-User-Id).
"""
from flask import Blueprint, current_app, g, jsonify

from stockledger.decorators import require_user
from stockledger.services.inventory_service import InventoryService
from stockledger.services.key_value_store import SqlKeyValueStore
from .common import get_inventory, inventory_route, json_body


data_bp = Blueprint("data", __name__, url_prefix="/api/data")


def _raw_inventory() -> InventoryService:
    """Scope handle that does not seed defaults first (import and clear replace everything)."""
    return InventoryService(
        SqlKeyValueStore(autocommit=False),
        g.user_id,
        enforce_unique_sku=current_app.config.get("ENFORCE_UNIQUE_SKU", False),
        auto_initialize=False,
    )


@data_bp.get("/export")
@require_user
@inventory_route
def export_data():
    return jsonify(get_inventory().export_data()), 200


@data_bp.post("/import")
@require_user
@inventory_route
def import_data():
    """
    Overwrite the namespaces present in the body.

    Request body: the object returned by GET /api/data/export; missing
    namespaces are left untouched.

    Returns:
        200: {"imported": [namespace, ...]}
        400: Malformed bundle (nothing written)
    """
    written = _raw_inventory().import_data(json_body())
    return jsonify({"imported": sorted(written)}), 200


@data_bp.get("/stats")
@require_user
@inventory_route
def storage_stats():
    return jsonify(get_inventory().storage_stats()), 200


@data_bp.delete("")
@require_user
@inventory_route
def clear_data():
    _raw_inventory().clear_data()
    return jsonify({"cleared": True}), 200
