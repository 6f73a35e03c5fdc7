# backend/promostock/services/batch_service.py
"""
Batch stock movements.

WHY: Staff hand a promoter several items at once (or take several back). The
batch applies one action/promoter pair to many (item, size, quantity) lines.

SEMANTICS:
- Each line is an independent record() call, committed on its own.
- Lines run sequentially, in the order given, never in parallel.
- A failing line does NOT roll back lines that already committed. Partial
  success is an expected outcome, reported in BatchResult, not an error.
- Lines are coerced before anything is recorded. A malformed line rejects
  the whole batch with InvalidQuantity and nothing commits.
- Only ledger errors become failed entries; anything else propagates.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from flask import current_app

from ..errors import InvalidQuantity, LedgerError
from .transaction_service import record


@dataclass(frozen=True)
class BatchLine:
    item_id: int
    item_size_id: int
    quantity: int

    @classmethod
    def coerce(cls, value) -> "BatchLine":
        if isinstance(value, BatchLine):
            return value
        if isinstance(value, dict):
            return cls(
                item_id=value.get("item_id"),
                item_size_id=value.get("item_size_id"),
                quantity=value.get("quantity"),
            )
        if isinstance(value, (list, tuple)) and len(value) == 3:
            item_id, item_size_id, quantity = value
            return cls(item_id=item_id, item_size_id=item_size_id, quantity=quantity)
        raise InvalidQuantity(
            "Each batch line needs item_id, item_size_id and quantity",
            details={"line": repr(value)},
        )

    def to_dict(self) -> dict:
        return {"item_id": self.item_id, "item_size_id": self.item_size_id, "quantity": self.quantity}


@dataclass
class BatchResult:
    succeeded: list = field(default_factory=list)
    failed: list = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "succeeded": [
                {"line": line.to_dict(), "transaction": tx.to_dict()}
                for line, tx in self.succeeded
            ],
            "failed": [
                {"line": entry["line"].to_dict(), "reason": entry["reason"], "error": entry["error"]}
                for entry in self.failed
            ],
        }


def apply_batch(
    kind: str,
    promoter_id: int | None,
    employee_id: int,
    lines: Iterable,
    note: str | None = None,
) -> BatchResult:
    """
    Apply one movement kind for one promoter across many lines.

    Args:
        kind: take_out, return, burn or restock
        promoter_id: promoter for every line (None for restock)
        employee_id: acting employee
        lines: BatchLine, (item_id, item_size_id, quantity) tuples or dicts

    Returns:
        BatchResult: succeeded holds (line, StockTransaction) pairs; failed
        holds {line, reason, error} dicts, in input order.
    """
    coerced = [BatchLine.coerce(raw) for raw in lines]
    result = BatchResult()

    for line in coerced:
        try:
            tx = record(
                kind,
                line.item_id,
                line.item_size_id,
                line.quantity,
                employee_id,
                promoter_id=promoter_id,
                note=note,
            )
        except LedgerError as e:
            result.failed.append({"line": line, "reason": e.message, "error": e.to_dict()})
            continue
        result.succeeded.append((line, tx))

    current_app.logger.info(
        "Batch %s for promoter %s: %s succeeded, %s failed",
        kind, promoter_id, len(result.succeeded), len(result.failed),
    )
    return result
