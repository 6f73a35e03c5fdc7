from __future__ import annotations

from ..extensions import db
from promostock.time_utils import to_utc_z, utcnow


TAKE_OUT = "take_out"
RETURN = "return"
BURN = "burn"
RESTOCK = "restock"

TRANSACTION_TYPES = (TAKE_OUT, RETURN, BURN, RESTOCK)
PROMOTER_TRANSACTION_TYPES = frozenset({TAKE_OUT, RETURN, BURN})


class StockTransaction(db.Model):
    """
    One recorded stock movement. Append-only.

    - Written only by services.transaction_service, in the same DB transaction
      as the matching counter mutation.
    - Never updated or deleted by application code.
    - promoter_id is required for take_out/return/burn and NULL for restock.
    - This table is the sole source of truth for promoter holdings.
    """
    __tablename__ = "stock_transactions"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_tx_quantity_positive"),
        db.Index("ix_stock_tx_promoter_type", "promoter_id", "transaction_type"),
        db.Index("ix_stock_tx_item_occurred", "item_id", "occurred_at"),
        db.Index("ix_stock_tx_occurred", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    transaction_type = db.Column(db.String(16), nullable=False, index=True)

    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    item_size_id = db.Column(db.Integer, db.ForeignKey("item_sizes.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)

    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    promoter_id = db.Column(db.Integer, db.ForeignKey("promoters.id"), nullable=True)

    note = db.Column(db.String(500), nullable=True)

    # Business time; microsecond precision keeps newest-first ordering stable
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    item = db.relationship("Item", foreign_keys=[item_id])
    item_size = db.relationship("ItemSize", foreign_keys=[item_size_id])
    employee = db.relationship("Employee", foreign_keys=[employee_id])
    promoter = db.relationship("Promoter", foreign_keys=[promoter_id])

    def __repr__(self) -> str:
        return (
            f"<StockTransaction id={self.id} type={self.transaction_type} "
            f"size_id={self.item_size_id} qty={self.quantity} promoter_id={self.promoter_id}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_type": self.transaction_type,
            "item_id": self.item_id,
            "item_size_id": self.item_size_id,
            "quantity": self.quantity,
            "employee_id": self.employee_id,
            "promoter_id": self.promoter_id,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
        }
