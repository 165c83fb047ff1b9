# backend/stockledger/routes/documents.py
"""
Document API routes for receipts, deliveries, internal transfers and adjustments.

One set of routes serves all four kinds; <kind> is the plural URL name.
Validate commits stock movements; cancel never touches stock.
"""
from flask import Blueprint, jsonify, request

from stockledger.decorators import require_user
from stockledger.models import DocumentStatus, DocumentType
from stockledger.models.documents import DOCUMENT_FIELDS
from stockledger.services.document_service import DOCUMENT_CLASSES
from stockledger.services.errors import NotFoundError
from stockledger.validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_transfer,
    validate_lines,
    validate_payload,
)
from .common import get_inventory, inventory_route, json_body


documents_bp = Blueprint("documents", __name__, url_prefix="/api/documents")

DOCUMENT_KINDS = {
    "receipts": DocumentType.RECEIPT,
    "deliveries": DocumentType.DELIVERY,
    "transfers": DocumentType.INTERNAL,
    "adjustments": DocumentType.ADJUSTMENT,
}

_COMMON_FIELDS = {"document_number", "status", "lines"}

CREATE_POLICIES = {
    DocumentType.RECEIPT: ModelValidationPolicy(
        writable_fields=_COMMON_FIELDS | {"warehouse_id", "vendor_name", "vendor_contact"},
        required_on_create={"warehouse_id"},
    ),
    DocumentType.DELIVERY: ModelValidationPolicy(
        writable_fields=_COMMON_FIELDS | {"warehouse_id", "customer_name", "customer_contact"},
        required_on_create={"warehouse_id"},
    ),
    DocumentType.INTERNAL: ModelValidationPolicy(
        writable_fields=_COMMON_FIELDS | {"source_warehouse_id", "destination_warehouse_id"},
        required_on_create={"source_warehouse_id", "destination_warehouse_id"},
    ),
    DocumentType.ADJUSTMENT: ModelValidationPolicy(
        writable_fields=_COMMON_FIELDS | {"warehouse_id", "adjustment_type"},
        required_on_create={"warehouse_id"},
    ),
}

_CREATORS = {
    DocumentType.RECEIPT: "add_receipt",
    DocumentType.DELIVERY: "add_delivery",
    DocumentType.INTERNAL: "add_transfer",
    DocumentType.ADJUSTMENT: "add_adjustment",
}


def _document_type(kind: str) -> DocumentType:
    document_type = DOCUMENT_KINDS.get(kind)
    if document_type is None:
        raise NotFoundError(f"Unknown document kind '{kind}'")
    return document_type


def _quantity_key(document_type: DocumentType) -> str:
    return DOCUMENT_CLASSES[document_type].line_quantity_key


@documents_bp.get("/<kind>")
@require_user
@inventory_route
def list_documents(kind: str):
    document_type = _document_type(kind)

    status = request.args.get("status") or None
    if status is not None:
        try:
            status = DocumentStatus(status)
        except ValueError:
            raise ValidationError(f"Invalid status '{status}'")

    documents = get_inventory().list_documents(
        document_type,
        status=status,
        warehouse_id=request.args.get("warehouse_id") or None,
    )
    return jsonify([d.to_dict() for d in documents]), 200


@documents_bp.post("/<kind>")
@require_user
@inventory_route
def create_document(kind: str):
    """
    Create a document in Draft (or the given open status).

    Request body (receipt shown; other kinds swap the party/warehouse fields):
    {
        "warehouse_id": str,
        "vendor_name": str (optional),
        "vendor_contact": str (optional),
        "document_number": str (optional, auto REC-001 style when omitted),
        "status": "Draft" | "Waiting" | "Ready" (optional),
        "lines": [{"product_id": str, "quantity": int}, ...]
    }

    Adjustment lines carry a signed, non-zero "difference" instead of "quantity".

    Returns:
        201: Document created
        400: Invalid payload
        404: Unknown warehouse or product
    """
    document_type = _document_type(kind)
    patch = validate_payload(
        fields=DOCUMENT_FIELDS,
        payload=json_body(),
        policy=CREATE_POLICIES[document_type],
        partial=False,
    )
    if document_type == DocumentType.INTERNAL:
        enforce_rules_transfer(patch)
    if "lines" in patch:
        patch["lines"] = validate_lines(patch["lines"] or [], quantity_key=_quantity_key(document_type))

    service = get_inventory()
    document = getattr(service, _CREATORS[document_type])(**patch)
    return jsonify(document.to_dict()), 201


@documents_bp.get("/<kind>/<document_id>")
@require_user
@inventory_route
def get_document(kind: str, document_id: str):
    document = get_inventory().get_document(_document_type(kind), document_id)
    return jsonify(document.to_dict()), 200


@documents_bp.put("/<kind>/<document_id>/lines")
@require_user
@inventory_route
def replace_lines(kind: str, document_id: str):
    """Replace all lines of an open document. Body: {"lines": [...]}."""
    document_type = _document_type(kind)
    data = json_body()
    if not isinstance(data, dict) or "lines" not in data:
        raise ValidationError("Missing required fields: lines")

    lines = validate_lines(data["lines"], quantity_key=_quantity_key(document_type))
    document = get_inventory().replace_lines(document_type, document_id, lines)
    return jsonify(document.to_dict()), 200


@documents_bp.post("/<kind>/<document_id>/validate")
@require_user
@inventory_route
def validate_document(kind: str, document_id: str):
    """
    Validate a document: apply its stock deltas and mark it Done.

    Returns:
        200: Document validated
        404: Unknown document
        409: Insufficient stock, or the document is already Done/Canceled
    """
    document = get_inventory().validate_document(_document_type(kind), document_id)
    return jsonify(document.to_dict()), 200


@documents_bp.post("/<kind>/<document_id>/cancel")
@require_user
@inventory_route
def cancel_document(kind: str, document_id: str):
    document = get_inventory().cancel_document(_document_type(kind), document_id)
    return jsonify(document.to_dict()), 200


@documents_bp.post("/deliveries/<document_id>/status")
@require_user
@inventory_route
def update_delivery_status(document_id: str):
    """Move an open delivery between Draft, Waiting and Ready. Body: {"status": str}."""
    data = json_body()
    if not isinstance(data, dict) or not data.get("status"):
        raise ValidationError("Missing required fields: status")

    delivery = get_inventory().update_delivery_status(document_id, data["status"])
    return jsonify(delivery.to_dict()), 200
