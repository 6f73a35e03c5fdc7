# Overview: Service-layer read operations for promoter holdings; replays the stock transaction log.

from __future__ import annotations

from sqlalchemy import func

from ..errors import NotFound
from ..extensions import db
from ..models import Item, ItemSize, Promoter, StockTransaction, TAKE_OUT, RETURN, BURN
"""
Promoter Holdings Invariants (authoritative)

- Holdings are DERIVED, never stored. There is no running balance table that
  could drift from the ledger.
- For one promoter, per (item_id, item_size_id):
      net = SUM(take_out.quantity) - SUM(return.quantity + burn.quantity)
  Only net > 0 is reported.
- Full replay on every read. Read-only, idempotent, and monotonic: a later
  call sees every committed event an earlier call saw.
"""


def _sum_by_size(promoter_id: int, kinds) -> dict[tuple[int, int], int]:
    rows = (
        db.session.query(
            StockTransaction.item_id,
            StockTransaction.item_size_id,
            func.sum(StockTransaction.quantity).label("qty"),
        )
        .filter(
            StockTransaction.promoter_id == promoter_id,
            StockTransaction.transaction_type.in_(list(kinds)),
        )
        .group_by(StockTransaction.item_id, StockTransaction.item_size_id)
        .all()
    )
    return {(r.item_id, r.item_size_id): int(r.qty or 0) for r in rows}


def _ensure_promoter(promoter_id: int) -> Promoter:
    promoter = db.session.get(Promoter, promoter_id)
    if promoter is None:
        raise NotFound(f"Promoter {promoter_id} not found", details={"promoter_id": promoter_id})
    return promoter


def holdings(promoter_id: int) -> list[dict]:
    """
    Current per-(item, size) stock held by a promoter.

    Returns a list of {item_id, item_size_id, quantity} with quantity > 0,
    sorted by item id then size id.
    """
    _ensure_promoter(promoter_id)

    taken = _sum_by_size(promoter_id, [TAKE_OUT])
    settled = _sum_by_size(promoter_id, [RETURN, BURN])

    result = []
    for key in sorted(set(taken) | set(settled)):
        net = taken.get(key, 0) - settled.get(key, 0)
        if net > 0:
            item_id, item_size_id = key
            result.append({"item_id": item_id, "item_size_id": item_size_id, "quantity": net})
    return result


def holdings_detailed(promoter_id: int) -> list[dict]:
    """Holdings joined with item name, product code and size label for display."""
    entries = holdings(promoter_id)
    if not entries:
        return []

    size_ids = [e["item_size_id"] for e in entries]
    labels = {
        row.size_id: row
        for row in db.session.query(
            ItemSize.id.label("size_id"),
            ItemSize.size,
            Item.name,
            Item.product_code,
            Item.brand_id,
        )
        .join(Item, Item.id == ItemSize.item_id)
        .filter(ItemSize.id.in_(size_ids))
        .all()
    }

    detailed = []
    for entry in entries:
        row = labels.get(entry["item_size_id"])
        detailed.append({
            **entry,
            "item_name": row.name if row else None,
            "product_code": row.product_code if row else None,
            "brand_id": row.brand_id if row else None,
            "size": row.size if row else None,
        })
    return detailed


def promoter_stats(promoter_id: int) -> dict:
    """Movement counts for a promoter, the item they move most, and current holdings size."""
    _ensure_promoter(promoter_id)

    counts = dict(
        db.session.query(StockTransaction.transaction_type, func.count(StockTransaction.id))
        .filter(StockTransaction.promoter_id == promoter_id)
        .group_by(StockTransaction.transaction_type)
        .all()
    )

    top = (
        db.session.query(Item.id, Item.name, func.count(StockTransaction.id).label("n"))
        .join(StockTransaction, StockTransaction.item_id == Item.id)
        .filter(StockTransaction.promoter_id == promoter_id)
        .group_by(Item.id, Item.name)
        .order_by(func.count(StockTransaction.id).desc(), Item.id.asc())
        .first()
    )

    return {
        "promoter_id": promoter_id,
        "total_take_outs": int(counts.get(TAKE_OUT, 0)),
        "total_returns": int(counts.get(RETURN, 0)),
        "total_burns": int(counts.get(BURN, 0)),
        "most_frequent_item": {"id": top.id, "name": top.name, "count": int(top.n)} if top else None,
        "current_inventory_count": sum(e["quantity"] for e in holdings(promoter_id)),
    }
