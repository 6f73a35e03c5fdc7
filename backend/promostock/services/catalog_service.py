# Overview: Service-layer operations for catalog master data; employees, brands, promoters, items and sizes.

from __future__ import annotations

from flask import current_app

from ..errors import InvalidQuantity, NotFound
from ..extensions import db
from ..models import Brand, Employee, Item, ItemSize, Promoter
from ..validation import (
    ValidationError,
    enforce_rules_quantity,
    validate_brand,
    validate_employee_patch,
    validate_item_patch,
    validate_promoter,
)
from .concurrency import lock_for_update, run_with_retry
from .identity_service import resolve_active_employee
from .quantity_mutator import initialize_size_counters
from .sharing_service import on_change
"""
Catalog Invariants (authoritative)

- Every catalog mutation except bootstrapping the first employee names an
  active acting employee, recorded as created_by_employee_id.
- An item always has at least one size. Creating an item without sizes gives
  it a single "ONE SIZE" bucket with zero stock.
- Size labels are unique per item. A new size starts with
  original = available = quantity and nothing in circulation.
- Nothing here is ever hard-deleted. Items, brands, promoters and employees
  are deactivated through their update operations.
- Item edits fire the change notification like any committed movement.
"""


DEFAULT_SIZE_LABEL = "ONE SIZE"
MAX_SIZE_LABEL_LENGTH = 32


# =============================================================================
# EMPLOYEES
# =============================================================================

def create_employee(full_name: str, initials: str) -> Employee:
    full_name = (full_name or "").strip()
    initials = (initials or "").strip().upper()
    if not full_name:
        raise ValidationError("full_name is required")
    if not initials or len(initials) > 8:
        raise ValidationError("initials must be 1 to 8 characters", details={"initials": initials})

    def _op():
        employee = Employee(full_name=full_name, initials=initials, is_active=True)
        db.session.add(employee)
        db.session.commit()
        return employee

    employee = run_with_retry(_op)
    current_app.logger.info("Created employee #%s (%s)", employee.id, employee.initials)
    return employee


def set_employee_active(employee_id: int, is_active: bool) -> Employee:
    """Activate or deactivate an employee. Past transactions keep referencing them."""
    def _op():
        employee = db.session.get(Employee, employee_id)
        if employee is None:
            raise NotFound(f"Employee {employee_id} not found", details={"employee_id": employee_id})
        employee.is_active = bool(is_active)
        db.session.commit()
        return employee

    employee = run_with_retry(_op)
    current_app.logger.info("Employee #%s active=%s", employee.id, employee.is_active)
    return employee


def update_employee(employee_id: int, patch: dict, acting_employee_id: int) -> Employee:
    """Edit full_name, initials or is_active. Same normalization as create_employee."""
    fields = validate_employee_patch(patch)

    def _op():
        resolve_active_employee(acting_employee_id)
        employee = db.session.get(Employee, employee_id)
        if employee is None:
            raise NotFound(f"Employee {employee_id} not found", details={"employee_id": employee_id})
        for key, value in fields.items():
            setattr(employee, key, value)
        db.session.commit()
        return employee

    employee = run_with_retry(_op)
    current_app.logger.info("Updated employee #%s fields %s", employee.id, sorted(fields))
    return employee


def list_employees(*, active_only: bool = False) -> list[Employee]:
    q = db.session.query(Employee)
    if active_only:
        q = q.filter(Employee.is_active.is_(True))
    return q.order_by(Employee.full_name.asc(), Employee.id.asc()).all()


# =============================================================================
# BRANDS
# =============================================================================

def create_brand(payload: dict, employee_id: int) -> Brand:
    fields = validate_brand(payload)

    def _op():
        employee = resolve_active_employee(employee_id)
        brand = Brand(**fields, created_by_employee_id=employee.id)
        db.session.add(brand)
        db.session.commit()
        return brand

    brand = run_with_retry(_op)
    current_app.logger.info("Created brand #%s %r", brand.id, brand.name)
    return brand


def update_brand(brand_id: int, patch: dict, employee_id: int) -> Brand:
    """Rename, re-logo, pin/unpin or deactivate a brand."""
    fields = validate_brand(patch, partial=True)
    if not fields:
        raise ValidationError("Nothing to update")

    def _op():
        resolve_active_employee(employee_id)
        brand = db.session.get(Brand, brand_id)
        if brand is None:
            raise NotFound(f"Brand {brand_id} not found", details={"brand_id": brand_id})
        for key, value in fields.items():
            setattr(brand, key, value)
        db.session.commit()
        return brand

    brand = run_with_retry(_op)
    current_app.logger.info("Updated brand #%s fields %s", brand.id, sorted(fields))
    return brand


def list_brands(*, active_only: bool = True) -> list[Brand]:
    """Pinned brands first, then alphabetical."""
    q = db.session.query(Brand)
    if active_only:
        q = q.filter(Brand.is_active.is_(True))
    return q.order_by(Brand.is_pinned.desc(), Brand.name.asc(), Brand.id.asc()).all()


# =============================================================================
# PROMOTERS
# =============================================================================

def create_promoter(payload: dict, employee_id: int) -> Promoter:
    fields = validate_promoter(payload)

    def _op():
        employee = resolve_active_employee(employee_id)
        promoter = Promoter(**fields, created_by_employee_id=employee.id)
        db.session.add(promoter)
        db.session.commit()
        return promoter

    promoter = run_with_retry(_op)
    current_app.logger.info("Created promoter #%s %r", promoter.id, promoter.name)
    return promoter


def update_promoter(promoter_id: int, patch: dict, employee_id: int) -> Promoter:
    """Edit contact details or deactivate. Holdings are derived and unaffected."""
    fields = validate_promoter(patch, partial=True)
    if not fields:
        raise ValidationError("Nothing to update")

    def _op():
        resolve_active_employee(employee_id)
        promoter = db.session.get(Promoter, promoter_id)
        if promoter is None:
            raise NotFound(f"Promoter {promoter_id} not found", details={"promoter_id": promoter_id})
        for key, value in fields.items():
            setattr(promoter, key, value)
        db.session.commit()
        return promoter

    promoter = run_with_retry(_op)
    current_app.logger.info("Updated promoter #%s fields %s", promoter.id, sorted(fields))
    return promoter


def list_promoters(*, active_only: bool = True, search: str | None = None) -> list[Promoter]:
    q = db.session.query(Promoter)
    if active_only:
        q = q.filter(Promoter.is_active.is_(True))
    if search:
        q = q.filter(Promoter.name.ilike(f"%{search.strip()}%"))
    return q.order_by(Promoter.name.asc(), Promoter.id.asc()).all()


# =============================================================================
# ITEMS & SIZES
# =============================================================================

def _normalize_size_label(label) -> str:
    label = str(label or "").strip()
    if not label:
        raise InvalidQuantity("Size label is required")
    if len(label) > MAX_SIZE_LABEL_LENGTH:
        raise InvalidQuantity(
            f"Size label exceeds max length {MAX_SIZE_LABEL_LENGTH}",
            details={"size": label},
        )
    return label


def _normalize_sizes(sizes) -> list[tuple[str, int]]:
    normalized = []
    seen = set()
    for entry in sizes or []:
        if isinstance(entry, dict):
            label, quantity = entry.get("size"), entry.get("quantity", 0)
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            label, quantity = entry
        else:
            raise InvalidQuantity("Each size needs a label and a quantity", details={"size": str(entry)})
        label = _normalize_size_label(label)
        if label in seen:
            raise InvalidQuantity(f"Duplicate size {label!r}", details={"size": label})
        seen.add(label)
        normalized.append((label, enforce_rules_quantity(quantity, allow_zero=True)))

    if not normalized:
        normalized.append((DEFAULT_SIZE_LABEL, 0))
    return normalized


def _new_size(item: Item, label: str, quantity: int) -> ItemSize:
    size = ItemSize(item=item, size=label)
    initialize_size_counters(size, quantity)
    return size


def create_item(
    brand_id: int,
    name: str,
    product_code: str,
    sizes,
    employee_id: int,
    image_url: str | None = None,
) -> Item:
    """
    Create an item under its primary brand together with its sizes.

    sizes: list of (label, quantity) pairs or {"size", "quantity"} dicts.
    """
    name = (name or "").strip()
    product_code = (product_code or "").strip()
    if not name:
        raise ValidationError("name is required")
    if not product_code:
        raise ValidationError("product_code is required")
    normalized = _normalize_sizes(sizes)

    def _op():
        employee = resolve_active_employee(employee_id)
        brand = db.session.get(Brand, brand_id)
        if brand is None:
            raise NotFound(f"Brand {brand_id} not found", details={"brand_id": brand_id})

        item = Item(
            brand_id=brand.id,
            name=name,
            product_code=product_code,
            image_url=image_url,
            created_by_employee_id=employee.id,
        )
        db.session.add(item)
        for label, quantity in normalized:
            db.session.add(_new_size(item, label, quantity))
        db.session.commit()
        return item

    item = run_with_retry(_op)
    current_app.logger.info(
        "Created item #%s %r under brand %s with %s size(s)", item.id, item.name, item.brand_id, len(normalized)
    )
    return item


def add_item_size(item_id: int, size: str, quantity: int, employee_id: int) -> ItemSize:
    label = _normalize_size_label(size)
    quantity = enforce_rules_quantity(quantity, allow_zero=True)

    def _op():
        resolve_active_employee(employee_id)
        item = lock_for_update(db.session.query(Item).filter_by(id=item_id)).first()
        if item is None:
            raise NotFound(f"Item {item_id} not found", details={"item_id": item_id})

        exists = db.session.query(ItemSize.id).filter_by(item_id=item.id, size=label).first()
        if exists is not None:
            raise InvalidQuantity(
                f"Item {item_id} already has size {label!r}",
                details={"item_id": item_id, "size": label},
            )

        item_size = _new_size(item, label, quantity)
        db.session.add(item_size)
        db.session.commit()
        return item_size

    item_size = run_with_retry(_op)
    current_app.logger.info("Added size %r (qty %s) to item %s", label, quantity, item_id)
    on_change(item_id)
    return item_size


def update_item(item_id: int, patch: dict, employee_id: int) -> Item:
    """Edit name, product_code, image_url or is_active. Quantities are not editable here."""
    fields = validate_item_patch(patch)

    def _op():
        resolve_active_employee(employee_id)
        item = db.session.get(Item, item_id)
        if item is None:
            raise NotFound(f"Item {item_id} not found", details={"item_id": item_id})
        for key, value in fields.items():
            setattr(item, key, value)
        db.session.commit()
        return item

    item = run_with_retry(_op)
    current_app.logger.info("Updated item #%s fields %s", item.id, sorted(fields))
    on_change(item_id)
    return item


def get_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if item is None:
        raise NotFound(f"Item {item_id} not found", details={"item_id": item_id})
    return item
