# Overview: Request payload validation against model column metadata and per-model write policies.

from __future__ import annotations
from datetime import datetime
from promostock.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import InvalidQuantity
from .models import Brand, Employee, Item, Promoter, TRANSACTION_TYPES


# Upper bound for a single movement or starting size quantity
MAX_MOVEMENT_QUANTITY = 1_000_000


class ValidationError(InvalidQuantity):
    """400-level input problem."""
    code = "VALIDATION_ERROR"


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


BRAND_POLICY = ModelValidationPolicy(
    writable_fields={"name", "logo_url", "is_pinned", "is_active"},
    required_on_create={"name"},
)

PROMOTER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "photo_url", "address", "clothing_size", "phone_number", "notes", "is_active"},
    required_on_create={"name"},
)

# brand_id and is_shared change only through the sharing service
ITEM_PATCH_POLICY = ModelValidationPolicy(
    writable_fields={"name", "product_code", "image_url", "is_active"},
)

EMPLOYEE_PATCH_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "initials", "is_active"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
            return value.strip().lower() in ("true", "1")
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
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
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={"missing": missing})

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}", details={"field": k})
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}", details={"field": k})

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", details={"field": k})
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank", details={"field": k})

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}", details={"field": k})

        patch[k] = val

    return patch


def validate_brand(payload: dict, *, partial: bool = False) -> dict:
    return validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=partial)


def validate_promoter(payload: dict, *, partial: bool = False) -> dict:
    return validate_payload(model=Promoter, payload=payload, policy=PROMOTER_POLICY, partial=partial)


def validate_item_patch(payload: dict) -> dict:
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_PATCH_POLICY, partial=True)
    if not patch:
        raise ValidationError("Nothing to update")
    return patch


def validate_employee_patch(payload: dict) -> dict:
    patch = validate_payload(model=Employee, payload=payload, policy=EMPLOYEE_PATCH_POLICY, partial=True)
    if not patch:
        raise ValidationError("Nothing to update")
    if "initials" in patch:
        patch["initials"] = patch["initials"].upper()
    return patch


def enforce_rules_quantity(quantity, *, allow_zero: bool = False) -> int:
    """
    Movement quantities are whole, positive and bounded.
    Starting size quantities may be zero.
    """
    if quantity is None:
        raise ValidationError("quantity is required")
    qty = _coerce_int("quantity", quantity)
    if qty < 0 or (qty == 0 and not allow_zero):
        raise InvalidQuantity(
            "Quantity must be a positive integer" if not allow_zero else "Quantity cannot be negative",
            details={"quantity": qty},
        )
    if qty > MAX_MOVEMENT_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_MOVEMENT_QUANTITY}", details={"quantity": qty})
    return qty


def _optional_id(payload: dict, key: str):
    raw = payload.get(key)
    if raw is None:
        return None
    return _coerce_int(key, raw)


def _required_id(payload: dict, key: str) -> int:
    if payload.get(key) is None:
        raise ValidationError(f"{key} is required", details={"field": key})
    return _coerce_int(key, payload[key])


def parse_transaction_payload(payload: dict) -> dict:
    """
    Normalize a single movement request body.

    Returns kwargs for transaction_service.record (minus employee_id).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    kind = payload.get("transaction_type")
    if kind not in TRANSACTION_TYPES:
        raise ValidationError(
            f"transaction_type must be one of: {', '.join(TRANSACTION_TYPES)}",
            details={"transaction_type": kind},
        )

    note = payload.get("note")
    return {
        "kind": kind,
        "item_id": _required_id(payload, "item_id"),
        "item_size_id": _required_id(payload, "item_size_id"),
        "quantity": enforce_rules_quantity(payload.get("quantity")),
        "promoter_id": _optional_id(payload, "promoter_id"),
        "note": str(note) if note is not None else None,
    }


def parse_batch_payload(payload: dict) -> dict:
    """
    Normalize a batch request body: one kind and promoter, many lines.

    Lines are only shape-checked here; per-line business failures are left
    to the batch coordinator so they surface as failed entries.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    kind = payload.get("transaction_type")
    if kind not in TRANSACTION_TYPES:
        raise ValidationError(
            f"transaction_type must be one of: {', '.join(TRANSACTION_TYPES)}",
            details={"transaction_type": kind},
        )

    lines = payload.get("lines")
    if not isinstance(lines, list) or not lines:
        raise ValidationError("lines must be a non-empty list")

    parsed = []
    for index, line in enumerate(lines):
        if not isinstance(line, dict):
            raise ValidationError(f"lines[{index}] must be an object", details={"index": index})
        parsed.append({
            "item_id": _required_id(line, "item_id"),
            "item_size_id": _required_id(line, "item_size_id"),
            "quantity": _coerce_int("quantity", line.get("quantity", 0)),
        })

    note = payload.get("note")
    return {
        "kind": kind,
        "promoter_id": _optional_id(payload, "promoter_id"),
        "lines": parsed,
        "note": str(note) if note is not None else None,
    }
