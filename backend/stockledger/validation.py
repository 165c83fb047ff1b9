from __future__ import annotations
from datetime import datetime
from enum import Enum
from stockledger.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any


# Largest quantity accepted on a single document line or reorder level.
# Keeps JSON payloads within safe integer range for browser clients.
MAX_LINE_QUANTITY = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate warehouse code)."""


@dataclass(frozen=True)
class FieldSpec:
    """
    Type metadata for one payload field.

    kind: int | str | datetime | list | an Enum subclass
    """
    kind: Any
    nullable: bool = False
    max_length: int | None = None


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def parse_int(key: str, value: Any) -> int:
    """Integer from a JSON value or query-string argument; same rules as payload fields."""
    return _coerce_int(key, value)


def _coerce_value(key: str, spec: FieldSpec, value: Any):
    kind = spec.kind

    if value is None:
        return None

    if kind is int:
        return _coerce_int(key, value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if kind is datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{key} must be a datetime")

    if isinstance(kind, type) and issubclass(kind, Enum):
        try:
            return kind(value)
        except ValueError:
            allowed = ", ".join(member.value for member in kind)
            raise ValidationError(f"{key} must be one of: {allowed}")

    if kind is list:
        if not isinstance(value, list):
            raise ValidationError(f"{key} must be a list")
        return value

    # Strings
    if kind is str:
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    fields: dict[str, FieldSpec],
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - field type metadata (nullable, type, max length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in fields:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        spec = fields[k]

        # NULL handling
        if raw is None:
            if not spec.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(k, spec, raw)

        # Blank string check for non-nullable text fields
        if spec.kind is str and not spec.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if spec.max_length and isinstance(val, str):
            if len(val) > spec.max_length:
                raise ValidationError(f"{k} exceeds max length {spec.max_length}")

        patch[k] = val

    return patch


def validate_lines(raw_lines: Any, *, quantity_key: str = "quantity") -> list[dict]:
    """
    Normalize a list of document line payloads.

    quantity_key="quantity": receipt/delivery/transfer lines, must be > 0
    quantity_key="difference": adjustment lines, signed and non-zero
    """
    if not isinstance(raw_lines, list):
        raise ValidationError("lines must be a list")

    lines: list[dict] = []
    for index, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(f"lines[{index}] must be an object")
        product_id = raw.get("product_id")
        if product_id is None or str(product_id).strip() == "":
            raise ValidationError(f"lines[{index}].product_id is required")
        if quantity_key not in raw:
            raise ValidationError(f"lines[{index}].{quantity_key} is required")

        amount = _coerce_int(f"lines[{index}].{quantity_key}", raw[quantity_key])
        enforce_rules_line(amount, quantity_key=quantity_key, index=index)

        lines.append({"product_id": str(product_id).strip(), quantity_key: amount})
    return lines


def enforce_rules_line(amount: int, *, quantity_key: str = "quantity", index: int | None = None) -> None:
    label = f"lines[{index}].{quantity_key}" if index is not None else quantity_key
    if quantity_key == "difference":
        if amount == 0:
            raise ValidationError(f"{label} must be non-zero")
    elif amount <= 0:
        raise ValidationError(f"{label} must be > 0")
    if abs(amount) > MAX_LINE_QUANTITY:
        raise ValidationError(f"{label} cannot exceed {MAX_LINE_QUANTITY}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by field metadata alone.
    Keep these small and centralized.
    """
    if "reorder_level" in patch and patch["reorder_level"] is not None:
        level = patch["reorder_level"]
        if not isinstance(level, int) or isinstance(level, bool):
            raise ValidationError("reorder_level must be an integer")
        if level < 0:
            raise ValidationError("reorder_level must be >= 0")
        if level > MAX_LINE_QUANTITY:
            raise ValidationError(f"reorder_level cannot exceed {MAX_LINE_QUANTITY}")


def enforce_rules_transfer(patch: dict) -> None:
    source = patch.get("source_warehouse_id")
    destination = patch.get("destination_warehouse_id")
    if source and destination and source == destination:
        raise ValidationError("Cannot transfer to the same warehouse")
