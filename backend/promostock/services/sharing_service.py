# backend/promostock/services/sharing_service.py
"""
Shared item service.

WHY: One physical item can be carried by several brands. It keeps exactly one
set of ItemSize counters no matter how many brands display it, so every brand
sees identical quantities, and anyone watching the item hears about changes.

LINK RULES:
1. Sharing an item that is not yet shared flips is_shared and links BOTH the
   primary brand and the new brand, so the primary view keeps the item.
2. Sharing an already shared item only adds the new brand's link.
3. Unlinking removes one link; when none remain, is_shared is cleared.
4. The primary brand always shows its own item, so its link can only be
   removed last. Removing it then unshares the item.

NOTIFICATIONS:
on_change(item_id) is fired after every committed movement, metadata edit,
link and unlink. Observers receive the current projection, stamped with a
per-item sequence number (see promostock.notifications).
"""
from __future__ import annotations

from flask import current_app

from ..errors import InvalidQuantity, NotFound
from ..extensions import db, notifier
from ..models import Brand, Item, SharedItemLink
from .concurrency import lock_for_update, run_with_retry
from .identity_service import resolve_active_employee
from .quantity_service import project, project_many


def _get_item_locked(item_id: int) -> Item:
    item = lock_for_update(db.session.query(Item).filter_by(id=item_id)).first()
    if item is None:
        raise NotFound(f"Item {item_id} not found", details={"item_id": item_id})
    return item


def _require_brand(brand_id: int) -> Brand:
    brand = db.session.get(Brand, brand_id)
    if brand is None:
        raise NotFound(f"Brand {brand_id} not found", details={"brand_id": brand_id})
    return brand


def shared_brand_ids(item_id: int) -> list[int]:
    """Brands holding a shared link to the item (primary brand included once shared)."""
    rows = (
        db.session.query(SharedItemLink.brand_id)
        .filter(SharedItemLink.item_id == item_id)
        .order_by(SharedItemLink.brand_id.asc())
        .all()
    )
    return [r.brand_id for r in rows]


def visible_brand_ids(item: Item) -> list[int]:
    brand_ids = set(shared_brand_ids(item.id)) if item.is_shared else set()
    brand_ids.add(item.brand_id)
    return sorted(brand_ids)


def is_visible_from(item_id: int, brand_id: int) -> bool:
    item = db.session.get(Item, item_id)
    if item is None:
        return False
    if item.brand_id == brand_id:
        return True
    return db.session.query(SharedItemLink.id).filter_by(item_id=item_id, brand_id=brand_id).first() is not None


def _change_payload(item_id: int) -> dict:
    item = db.session.get(Item, item_id)
    if item is None:
        return {"deleted": True}
    return {
        "item": item.to_dict(),
        "quantities": project(item_id),
        "brand_ids": visible_brand_ids(item),
    }


def on_change(item_id: int):
    """
    Deliver the item's current state to every observer of that item.

    Must be called after the change is committed so observers never see
    uncommitted counters.
    """
    change = notifier.publish(item_id, lambda: _change_payload(item_id))
    if change is not None:
        current_app.logger.debug("Published change #%s for item %s", change.sequence, item_id)
    return change


def watch_item(item_id: int, callback, brand_id: int | None = None):
    """
    Subscribe callback to changes of item_id.

    brand_id names the brand view the observer is displaying; it must be a
    brand the item is visible from, but it never filters delivery.
    """
    if db.session.get(Item, item_id) is None:
        raise NotFound(f"Item {item_id} not found", details={"item_id": item_id})
    if brand_id is not None and not is_visible_from(item_id, brand_id):
        raise NotFound(
            f"Item {item_id} is not visible from brand {brand_id}",
            details={"item_id": item_id, "brand_id": brand_id},
        )
    return notifier.subscribe(item_id, callback, brand_id=brand_id)


def link_existing_shared_item(item_id: int, brand_id: int, *, employee_id: int) -> list[int]:
    """
    Make item_id visible from brand_id.

    Returns the brand ids linked to the item afterwards.

    Raises:
        Unauthenticated: no active employee
        NotFound: item or brand missing
        InvalidQuantity: sharing an unshared item with its own primary brand
    """
    def _op():
        resolve_active_employee(employee_id)
        item = _get_item_locked(item_id)
        _require_brand(brand_id)

        existing = set(shared_brand_ids(item.id))

        if item.is_shared:
            if brand_id not in existing:
                db.session.add(SharedItemLink(item_id=item.id, brand_id=brand_id))
        else:
            if brand_id == item.brand_id:
                raise InvalidQuantity(
                    "Item already belongs to this brand",
                    details={"item_id": item.id, "brand_id": brand_id},
                )
            item.is_shared = True
            for linked_brand_id in (item.brand_id, brand_id):
                if linked_brand_id not in existing:
                    db.session.add(SharedItemLink(item_id=item.id, brand_id=linked_brand_id))

        db.session.commit()
        return shared_brand_ids(item_id)

    brand_ids = run_with_retry(_op)
    current_app.logger.info("Item %s shared with brand %s (links: %s)", item_id, brand_id, brand_ids)
    on_change(item_id)
    return brand_ids


def unlink(item_id: int, brand_id: int, *, employee_id: int) -> list[int]:
    """
    Stop showing item_id under brand_id.

    Returns the remaining linked brand ids; is_shared is cleared when empty.
    """
    def _op():
        resolve_active_employee(employee_id)
        item = _get_item_locked(item_id)

        link = db.session.query(SharedItemLink).filter_by(item_id=item.id, brand_id=brand_id).first()
        if link is None:
            raise NotFound(
                f"Item {item_id} is not linked to brand {brand_id}",
                details={"item_id": item_id, "brand_id": brand_id},
            )
        if brand_id == item.brand_id and len(shared_brand_ids(item.id)) > 1:
            raise InvalidQuantity(
                "The primary brand link is removed last; unlink the other brands first",
                details={"item_id": item_id, "brand_id": brand_id},
            )
        db.session.delete(link)
        db.session.flush()

        remaining = shared_brand_ids(item.id)
        if not remaining:
            item.is_shared = False

        db.session.commit()
        return remaining

    remaining = run_with_retry(_op)
    current_app.logger.info("Item %s unlinked from brand %s (remaining: %s)", item_id, brand_id, remaining)
    on_change(item_id)
    return remaining


def brand_items(brand_id: int, *, active_only: bool = False) -> list[dict]:
    """
    Items displayed under a brand: its own items plus items shared into it.

    Each entry carries the item's projection, so a shared item shows the same
    numbers under every brand it is linked to.
    """
    _require_brand(brand_id)

    direct_q = db.session.query(Item).filter(Item.brand_id == brand_id)
    shared_q = (
        db.session.query(Item)
        .join(SharedItemLink, SharedItemLink.item_id == Item.id)
        .filter(SharedItemLink.brand_id == brand_id)
    )
    if active_only:
        direct_q = direct_q.filter(Item.is_active.is_(True))
        shared_q = shared_q.filter(Item.is_active.is_(True))

    items: dict[int, Item] = {}
    for item in direct_q.all() + shared_q.all():
        items.setdefault(item.id, item)

    ordered = sorted(items.values(), key=lambda i: (i.name.lower(), i.id))
    quantities = project_many(i.id for i in ordered)

    result = []
    for item in ordered:
        data = item.to_dict()
        data["quantities"] = quantities[item.id]
        data["is_primary_brand"] = item.brand_id == brand_id
        result.append(data)
    return result
