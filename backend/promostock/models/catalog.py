from __future__ import annotations

from ..extensions import db
from promostock.time_utils import to_utc_z


class Employee(db.Model):
    """
    Warehouse staff acting on the ledger.

    WHY: Every mutation must be attributable. An inactive employee can no
    longer record movements but stays referenced by historical transactions.
    """
    __tablename__ = "employees"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=False)
    initials = db.Column(db.String(8), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Employee id={self.id} initials={self.initials!r} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "initials": self.initials,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Brand(db.Model):
    """Owning group for items. Shared items may additionally be linked here."""
    __tablename__ = "brands"
    __table_args__ = (
        db.Index("ix_brands_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    logo_url = db.Column(db.String(1024), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    created_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "logo_url": self.logo_url,
            "is_active": self.is_active,
            "is_pinned": self.is_pinned,
            "created_by_employee_id": self.created_by_employee_id,
            "created_at": to_utc_z(self.created_at),
        }


class Item(db.Model):
    """
    Promotional item master data.

    OWNERSHIP: brand_id is the PRIMARY brand. When is_shared is True the item
    is also visible from every brand in shared_items, and all of them display
    the same ItemSize counters (there is only ever one set).

    Quantities are NOT stored here; they are summed from item_sizes.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_brand_name", "brand_id", "name"),
        db.Index("ix_items_product_code", "product_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    product_code = db.Column(db.String(64), nullable=False)
    image_url = db.Column(db.String(1024), nullable=True)

    is_shared = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    brand = db.relationship("Brand", backref=db.backref("items", lazy=True))
    sizes = db.relationship("ItemSize", back_populates="item", lazy=True, order_by="ItemSize.size")
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Item id={self.id} code={self.product_code!r} brand_id={self.brand_id} shared={self.is_shared}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brand_id": self.brand_id,
            "name": self.name,
            "product_code": self.product_code,
            "image_url": self.image_url,
            "is_shared": self.is_shared,
            "is_active": self.is_active,
            "created_by_employee_id": self.created_by_employee_id,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ItemSize(db.Model):
    """
    Per-size stock bucket; the only mutable quantity state in the system.

    CONSERVATION: destroyed = original - available - in_circulation, and it
    only grows (via burn). The CHECK constraints are a storage-level backstop;
    the quantity mutator enforces the same bounds in its conditional UPDATEs.

    WRITES: counters change only through services.quantity_mutator.
    """
    __tablename__ = "item_sizes"
    __table_args__ = (
        db.UniqueConstraint("item_id", "size", name="uq_item_sizes_item_size"),
        db.CheckConstraint("available_quantity >= 0", name="ck_item_sizes_available_nonneg"),
        db.CheckConstraint("in_circulation >= 0", name="ck_item_sizes_circulation_nonneg"),
        db.CheckConstraint(
            "available_quantity + in_circulation <= original_quantity",
            name="ck_item_sizes_conservation",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    size = db.Column(db.String(32), nullable=False)

    original_quantity = db.Column(db.Integer, nullable=False, default=0)
    available_quantity = db.Column(db.Integer, nullable=False, default=0)
    in_circulation = db.Column(db.Integer, nullable=False, default=0)

    item = db.relationship("Item", back_populates="sizes")

    @property
    def destroyed_quantity(self) -> int:
        return self.original_quantity - self.available_quantity - self.in_circulation

    def __repr__(self) -> str:
        return (
            f"<ItemSize id={self.id} item_id={self.item_id} size={self.size!r} "
            f"orig={self.original_quantity} avail={self.available_quantity} circ={self.in_circulation}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "size": self.size,
            "original_quantity": self.original_quantity,
            "available_quantity": self.available_quantity,
            "in_circulation": self.in_circulation,
            "destroyed_quantity": self.destroyed_quantity,
        }


class SharedItemLink(db.Model):
    """Brand visibility link for a shared item. Present only while Item.is_shared."""
    __tablename__ = "shared_items"
    __table_args__ = (
        db.UniqueConstraint("item_id", "brand_id", name="uq_shared_items_item_brand"),
        db.Index("ix_shared_items_brand", "brand_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "brand_id": self.brand_id,
            "created_at": to_utc_z(self.created_at),
        }


class Promoter(db.Model):
    """Field promoter who takes stock out of the warehouse."""
    __tablename__ = "promoters"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    photo_url = db.Column(db.String(1024), nullable=True)
    address = db.Column(db.String(512), nullable=True)
    clothing_size = db.Column(db.String(16), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "photo_url": self.photo_url,
            "address": self.address,
            "clothing_size": self.clothing_size,
            "phone_number": self.phone_number,
            "notes": self.notes,
            "is_active": self.is_active,
            "created_by_employee_id": self.created_by_employee_id,
            "created_at": to_utc_z(self.created_at),
        }
