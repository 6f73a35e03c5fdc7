# Overview: Service-layer read operations for item quantities; projects sizes into item totals.

from __future__ import annotations

from sqlalchemy import func

from ..errors import NotFound
from ..extensions import db
from ..models import Item, ItemSize
"""
Item quantity projection (authoritative)

- An item's quantities are the SUM of its item_sizes counters; they are never
  stored on the item itself.
- total = available + in_circulation (stock that still physically exists).
- Computed with ONE aggregate statement so every size is read from the same
  statement snapshot. A movement touches exactly one size, so a reader sees
  either the whole pre-state or the whole post-state of that movement.
- Pure read: no caching, no side effects, safe to call at any time.
"""


def _empty_projection() -> dict:
    return {"original": 0, "available": 0, "in_circulation": 0, "total": 0}


def _projection_from_sums(original, available, in_circulation) -> dict:
    original = int(original or 0)
    available = int(available or 0)
    in_circulation = int(in_circulation or 0)
    return {
        "original": original,
        "available": available,
        "in_circulation": in_circulation,
        "total": available + in_circulation,
    }


def _ensure_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if item is None:
        raise NotFound(f"Item {item_id} not found", details={"item_id": item_id})
    return item


def project(item_id: int) -> dict:
    """
    Aggregate quantities for one item across all of its sizes.

    Returns {original, available, in_circulation, total}. An item without
    sizes projects to zeros.
    """
    _ensure_item(item_id)

    row = db.session.query(
        func.sum(ItemSize.original_quantity).label("original"),
        func.sum(ItemSize.available_quantity).label("available"),
        func.sum(ItemSize.in_circulation).label("in_circulation"),
    ).filter(ItemSize.item_id == item_id).one()

    return _projection_from_sums(row.original, row.available, row.in_circulation)


def project_many(item_ids) -> dict[int, dict]:
    """Projections for several items in one grouped query, keyed by item id."""
    item_ids = list(item_ids)
    if not item_ids:
        return {}

    rows = db.session.query(
        ItemSize.item_id,
        func.sum(ItemSize.original_quantity).label("original"),
        func.sum(ItemSize.available_quantity).label("available"),
        func.sum(ItemSize.in_circulation).label("in_circulation"),
    ).filter(ItemSize.item_id.in_(item_ids)).group_by(ItemSize.item_id).all()

    result = {item_id: _empty_projection() for item_id in item_ids}
    for row in rows:
        result[row.item_id] = _projection_from_sums(row.original, row.available, row.in_circulation)
    return result


def size_quantities(item_id: int) -> list[dict]:
    """Per-size counters for one item, including the destroyed-to-date figure."""
    _ensure_item(item_id)
    sizes = (
        db.session.query(ItemSize)
        .filter(ItemSize.item_id == item_id)
        .order_by(ItemSize.size.asc(), ItemSize.id.asc())
        .all()
    )
    return [s.to_dict() for s in sizes]
