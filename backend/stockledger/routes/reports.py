from flask import Blueprint, jsonify, request

from stockledger.decorators import require_user
from stockledger.services import reporting_service
from .common import get_inventory, inventory_route


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_user
@inventory_route
def dashboard():
    report = reporting_service.dashboard(
        get_inventory(),
        warehouse_id=request.args.get("warehouse_id") or None,
        category=request.args.get("category") or None,
    )
    return jsonify(report), 200


@reports_bp.get("/low-stock")
@require_user
@inventory_route
def low_stock():
    include_out = request.args.get("include_out_of_stock", "true").lower() == "true"
    rows = reporting_service.low_stock_products(
        get_inventory(),
        warehouse_id=request.args.get("warehouse_id") or None,
        category=request.args.get("category") or None,
        include_out_of_stock=include_out,
    )
    return jsonify(rows), 200
