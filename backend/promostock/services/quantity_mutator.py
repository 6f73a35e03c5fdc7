# Overview: Service-layer operations for item size counters; the only writer of ItemSize quantities.

from __future__ import annotations

from sqlalchemy import select, update

from ..errors import (
    ConflictRetryable,
    InsufficientAvailable,
    InsufficientCirculation,
    InvalidQuantity,
    NotFound,
)
from ..extensions import db
from ..models import ItemSize, TAKE_OUT, RETURN, BURN, RESTOCK
"""
Quantity mutation rules (authoritative)

| kind     | available | in_circulation | original |
|----------|-----------|----------------|----------|
| take_out | -qty      | +qty           | -        |
| return   | +qty      | -qty           | -        |
| burn     | -         | -qty           | -        |
| restock  | +qty      | -              | +qty     |

- Each movement is ONE conditional UPDATE. The bound check lives in the WHERE
  clause, so the check and the write are the same atomic statement and two
  concurrent take-outs can never both pass against a stale read.
- Zero affected rows means the guard failed (or the row is gone); only then is
  the row re-read, to report which limit was hit.
- Runs inside the caller's transaction and never commits.
"""


def _guard_and_values(kind: str, quantity: int):
    c = ItemSize.__table__.c
    if kind == TAKE_OUT:
        return (
            c.available_quantity >= quantity,
            {
                "available_quantity": c.available_quantity - quantity,
                "in_circulation": c.in_circulation + quantity,
            },
        )
    if kind == RETURN:
        return (
            c.in_circulation >= quantity,
            {
                "available_quantity": c.available_quantity + quantity,
                "in_circulation": c.in_circulation - quantity,
            },
        )
    if kind == BURN:
        return (
            c.in_circulation >= quantity,
            {"in_circulation": c.in_circulation - quantity},
        )
    if kind == RESTOCK:
        return (
            None,
            {
                "available_quantity": c.available_quantity + quantity,
                "original_quantity": c.original_quantity + quantity,
            },
        )
    raise InvalidQuantity(f"Unknown transaction type: {kind}", details={"transaction_type": kind})


def apply_movement(*, kind: str, item_size_id: int, quantity: int) -> None:
    """
    Apply one movement's counter effect to an item size.

    Raises:
        InvalidQuantity: quantity is not a positive integer, or unknown kind
        NotFound: the item size does not exist
        InsufficientAvailable: take_out larger than available
        InsufficientCirculation: return/burn larger than in_circulation
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity("Quantity must be a positive integer", details={"quantity": quantity})

    guard, values = _guard_and_values(kind, quantity)

    table = ItemSize.__table__
    stmt = update(table).where(table.c.id == item_size_id)
    if guard is not None:
        stmt = stmt.where(guard)
    result = db.session.execute(stmt.values(**values))

    if result.rowcount == 1:
        return

    # Guard failed or row missing: read current state to report why
    row = db.session.execute(
        select(table.c.available_quantity, table.c.in_circulation).where(table.c.id == item_size_id)
    ).first()
    if row is None:
        raise NotFound(f"Item size {item_size_id} not found", details={"item_size_id": item_size_id})

    current = row.available_quantity if kind == TAKE_OUT else row.in_circulation
    if current >= quantity:
        # A concurrent writer committed between the UPDATE and this read
        raise ConflictRetryable(attempts=1)
    if kind == TAKE_OUT:
        raise InsufficientAvailable(requested=quantity, available=current)
    raise InsufficientCirculation(requested=quantity, in_circulation=current)


def initialize_size_counters(size: ItemSize, quantity: int) -> None:
    """Set the starting counters of a freshly created, not yet flushed size."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise InvalidQuantity("Initial quantity must be a non-negative integer", details={"quantity": quantity})
    size.original_quantity = quantity
    size.available_quantity = quantity
    size.in_circulation = 0
