# Overview: Service-layer operations for stock movements; records take-outs, returns, burns and restocks.

# backend/promostock/services/transaction_service.py

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from ..errors import InvalidQuantity, LedgerError, NotFound
from ..extensions import db
from ..models import (
    Item,
    ItemSize,
    Promoter,
    StockTransaction,
    TRANSACTION_TYPES,
    PROMOTER_TRANSACTION_TYPES,
    TAKE_OUT,
    RETURN,
    BURN,
    RESTOCK,
)
from ..time_utils import parse_iso_datetime, utcnow
from .concurrency import run_with_retry
from .identity_service import resolve_active_employee
from .quantity_mutator import apply_movement
from .sharing_service import on_change
"""
Stock Movement Invariants (authoritative)

Atomic unit:
- One call to record() is ONE database transaction containing:
    1. the conditional counter UPDATE (services.quantity_mutator), and
    2. the StockTransaction INSERT.
  They commit together or not at all. A failed precondition or a failed
  insert rolls both back, so no event exists without its counter effect and
  no counter moves without its event.

Preconditions (checked inside the unit, against current counters):
- An active acting employee (Unauthenticated otherwise).
- quantity is a positive integer (InvalidQuantity).
- take_out/return/burn require an active promoter; restock forbids one.
- take_out: quantity <= available       (InsufficientAvailable)
- return/burn: quantity <= in_circulation (InsufficientCirculation)

After commit:
- The Shared-Item Propagator is fired for the item (observers see only
  committed state).

Retries:
- Lost lock races rerun the whole unit a bounded number of times
  (services.concurrency.run_with_retry). Insufficient-stock results are never
  retried; the caller may re-read and try again.
"""


MAX_NOTE_LENGTH = 500


def _is_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_request(kind: str, item_id, item_size_id, quantity, promoter_id) -> None:
    if kind not in TRANSACTION_TYPES:
        raise InvalidQuantity(
            f"Unknown transaction type: {kind}",
            details={"transaction_type": kind, "allowed": list(TRANSACTION_TYPES)},
        )
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity("Quantity must be a positive integer", details={"quantity": quantity})
    if not _is_id(item_id) or not _is_id(item_size_id):
        raise InvalidQuantity(
            "An item and a size must be chosen",
            details={"item_id": item_id, "item_size_id": item_size_id},
        )
    if kind in PROMOTER_TRANSACTION_TYPES and promoter_id is None:
        raise InvalidQuantity(f"A promoter is required for {kind}", details={"transaction_type": kind})
    if kind == RESTOCK and promoter_id is not None:
        raise InvalidQuantity("Restock does not take a promoter", details={"promoter_id": promoter_id})


def _ensure_size_of_item(item_id: int, item_size_id: int) -> ItemSize:
    size = db.session.get(ItemSize, item_size_id)
    if size is None:
        raise NotFound(f"Item size {item_size_id} not found", details={"item_size_id": item_size_id})
    if size.item_id != item_id:
        raise NotFound(
            f"Item size {item_size_id} does not belong to item {item_id}",
            details={"item_id": item_id, "item_size_id": item_size_id},
        )
    return size


def _ensure_active_promoter(promoter_id: int) -> Promoter:
    promoter = db.session.get(Promoter, promoter_id)
    if promoter is None or not promoter.is_active:
        raise NotFound(f"Active promoter {promoter_id} not found", details={"promoter_id": promoter_id})
    return promoter


def record(
    kind: str,
    item_id: int,
    item_size_id: int,
    quantity: int,
    employee_id: int,
    promoter_id: int | None = None,
    note: str | None = None,
) -> StockTransaction:
    """
    Record one stock movement and apply its counter effect atomically.

    Returns:
        StockTransaction: the persisted, committed event

    Raises:
        Unauthenticated, InvalidQuantity, NotFound, InsufficientAvailable,
        InsufficientCirculation, ConflictRetryable, StoreUnavailable
    """
    if note is not None:
        note = str(note).strip()[:MAX_NOTE_LENGTH] or None

    def _op():
        employee = resolve_active_employee(employee_id)
        _validate_request(kind, item_id, item_size_id, quantity, promoter_id)
        _ensure_size_of_item(item_id, item_size_id)
        if promoter_id is not None:
            _ensure_active_promoter(promoter_id)

        apply_movement(kind=kind, item_size_id=item_size_id, quantity=quantity)

        tx = StockTransaction(
            transaction_type=kind,
            item_id=item_id,
            item_size_id=item_size_id,
            quantity=quantity,
            employee_id=employee.id,
            promoter_id=promoter_id,
            note=note,
            occurred_at=utcnow(),
        )
        db.session.add(tx)
        db.session.flush()
        db.session.commit()
        return tx

    try:
        tx = run_with_retry(_op)
    except LedgerError as e:
        current_app.logger.info(
            "Rejected %s of %s on item %s size %s: %s", kind, quantity, item_id, item_size_id, e.code
        )
        raise

    current_app.logger.info(
        "Recorded %s #%s: item %s size %s qty %s promoter %s by employee %s",
        tx.transaction_type, tx.id, tx.item_id, tx.item_size_id, tx.quantity, tx.promoter_id, tx.employee_id,
    )
    on_change(item_id)
    return tx


def record_take_out(*, item_id: int, item_size_id: int, quantity: int, promoter_id: int, employee_id: int, note: str | None = None) -> StockTransaction:
    """Item handed to a promoter: available -> in circulation."""
    return record(TAKE_OUT, item_id, item_size_id, quantity, employee_id, promoter_id=promoter_id, note=note)


def record_return(*, item_id: int, item_size_id: int, quantity: int, promoter_id: int, employee_id: int, note: str | None = None) -> StockTransaction:
    """Promoter brings stock back: in circulation -> available."""
    return record(RETURN, item_id, item_size_id, quantity, employee_id, promoter_id=promoter_id, note=note)


def record_burn(*, item_id: int, item_size_id: int, quantity: int, promoter_id: int, employee_id: int, note: str | None = None) -> StockTransaction:
    """Stock lost or damaged while with a promoter; never returns to available."""
    return record(BURN, item_id, item_size_id, quantity, employee_id, promoter_id=promoter_id, note=note)


def record_restock(*, item_id: int, item_size_id: int, quantity: int, employee_id: int, note: str | None = None) -> StockTransaction:
    """New stock arrives: increases available and original together."""
    return record(RESTOCK, item_id, item_size_id, quantity, employee_id, note=note)


def _coerce_dt(value):
    if value is None or isinstance(value, datetime):
        return value
    return parse_iso_datetime(value)


def list_transactions(filters: dict | None = None, page: int = 1, per_page: int = 20) -> dict:
    """
    Paginated transaction history, newest first.

    Supported filters: transaction_type (str or list), item_id, promoter_id,
    employee_id, start_date (inclusive), end_date (the whole end day is
    included when only a date is given).
    """
    filters = filters or {}
    q = db.session.query(StockTransaction)

    kinds = filters.get("transaction_type")
    if kinds:
        if isinstance(kinds, str):
            kinds = [kinds]
        unknown = [k for k in kinds if k not in TRANSACTION_TYPES]
        if unknown:
            raise InvalidQuantity(f"Unknown transaction type: {', '.join(unknown)}", details={"transaction_type": unknown})
        q = q.filter(StockTransaction.transaction_type.in_(kinds))

    for key, column in (
        ("item_id", StockTransaction.item_id),
        ("promoter_id", StockTransaction.promoter_id),
        ("employee_id", StockTransaction.employee_id),
    ):
        if filters.get(key) is not None:
            q = q.filter(column == filters[key])

    start_dt = _coerce_dt(filters.get("start_date"))
    if start_dt is not None:
        q = q.filter(StockTransaction.occurred_at >= start_dt)

    end_raw = filters.get("end_date")
    end_dt = _coerce_dt(end_raw)
    if end_dt is not None:
        if isinstance(end_raw, str) and "T" not in end_raw:
            q = q.filter(StockTransaction.occurred_at < end_dt + timedelta(days=1))
        else:
            q = q.filter(StockTransaction.occurred_at <= end_dt)

    per_page = max(1, min(per_page or 20, 100))  # Default 20, within 1..100
    page = max(page or 1, 1)

    total = q.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = (
        q.order_by(StockTransaction.occurred_at.desc(), StockTransaction.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return {
        "items": [r.to_dict() for r in rows],
        "count": total,
        "page": page,
        "per_page": per_page,
        "total_pages": total_pages,
    }


def get_transaction_details(transaction_id: int) -> dict:
    tx = db.session.get(StockTransaction, transaction_id)
    if tx is None:
        raise NotFound(f"Transaction {transaction_id} not found", details={"transaction_id": transaction_id})

    data = tx.to_dict()
    data["item"] = {"id": tx.item.id, "name": tx.item.name, "product_code": tx.item.product_code}
    data["item_size"] = {"id": tx.item_size.id, "size": tx.item_size.size}
    data["employee"] = {"id": tx.employee.id, "full_name": tx.employee.full_name, "initials": tx.employee.initials}
    data["promoter"] = {"id": tx.promoter.id, "name": tx.promoter.name} if tx.promoter else None
    return data


def item_transaction_stats(item_id: int) -> dict:
    """Movement counts per kind for an item, plus the promoter it moves with most."""
    if db.session.get(Item, item_id) is None:
        raise NotFound(f"Item {item_id} not found", details={"item_id": item_id})

    counts = dict(
        db.session.query(StockTransaction.transaction_type, func.count(StockTransaction.id))
        .filter(StockTransaction.item_id == item_id)
        .group_by(StockTransaction.transaction_type)
        .all()
    )

    top = (
        db.session.query(Promoter.id, Promoter.name, func.count(StockTransaction.id).label("n"))
        .join(StockTransaction, StockTransaction.promoter_id == Promoter.id)
        .filter(StockTransaction.item_id == item_id)
        .group_by(Promoter.id, Promoter.name)
        .order_by(func.count(StockTransaction.id).desc(), Promoter.id.asc())
        .first()
    )

    return {
        "item_id": item_id,
        "total_take_outs": int(counts.get(TAKE_OUT, 0)),
        "total_returns": int(counts.get(RETURN, 0)),
        "total_burns": int(counts.get(BURN, 0)),
        "total_restocks": int(counts.get(RESTOCK, 0)),
        "most_frequent_promoter": {"id": top.id, "name": top.name, "count": int(top.n)} if top else None,
    }
