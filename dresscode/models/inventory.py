from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ASSIGNED_STATUS_ASSIGNED = "ASSIGNED"
ASSIGNED_STATUS_RECEIVED = "RECEIVED"
# Warehouse stock correction; lines carry the signed quantity change
ASSIGNED_STATUS_ADJUSTED = "ADJUSTED"

RAISED_STATUS_DRAFT = "DRAFT"
RAISED_STATUS_PENDING = "PENDING"
RAISED_STATUS_APPROVED = "APPROVED"
RAISED_STATUS_REJECTED = "REJECTED"
RAISED_STATUS_RECEIVED = "RECEIVED"


class ProductSnapshotMixin:
    """Columns shared by every embedded product snapshot line."""

    group = db.Column(db.String(64), nullable=False)
    product_id = db.Column(db.String(255), nullable=False)
    variant_id = db.Column(db.String(16), nullable=True)
    color_name = db.Column(db.String(64), nullable=False)
    hexcode = db.Column(db.String(16), nullable=True)
    size = db.Column(db.String(16), nullable=False)
    style_coat = db.Column(db.String(64), nullable=True)
    sku = db.Column(db.String(64), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False)

    def snapshot_dict(self) -> dict:
        return {
            "group": self.group,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "color": {"name": self.color_name, "hexcode": self.hexcode},
            "size": self.size,
            "style_coat": self.style_coat,
            "sku": self.sku,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
        }


class AssignedInventory(db.Model):
    """
    Ledger document for a stock movement into a store (or into the warehouse).

    Never deleted. Only status and received_date change after creation.
    """
    __tablename__ = "assigned_inventories"
    __table_args__ = (
        db.UniqueConstraint("assigned_inventory_id", name="uq_assigned_inventories_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    assigned_inventory_id = db.Column(db.String(16), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    group = db.Column(db.String(64), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=ASSIGNED_STATUS_ASSIGNED, index=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    assigned_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    received_date = db.Column(db.DateTime, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    received_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    store = db.relationship("Store")
    lines = db.relationship(
        "AssignedInventoryLine",
        backref="assigned_inventory",
        lazy=True,
        order_by="AssignedInventoryLine.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "assigned_inventory_id": self.assigned_inventory_id,
            "store_id": self.store_id,
            "group": self.group,
            "status": self.status,
            "total_amount_cents": self.total_amount_cents,
            "assigned_date": to_utc_z(self.assigned_date),
            "received_date": to_utc_z(self.received_date),
            "version_id": self.version_id,
        }
        if include_lines:
            data["products"] = [line.to_dict() for line in self.lines]
        return data


class AssignedInventoryLine(ProductSnapshotMixin, db.Model):
    __tablename__ = "assigned_inventory_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    assigned_inventory_pk = db.Column(
        db.Integer, db.ForeignKey("assigned_inventories.id"), nullable=False, index=True
    )
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False)

    def to_dict(self) -> dict:
        return self.snapshot_dict()


class RaisedInventory(db.Model):
    """
    Store-initiated replenishment request.

    DRAFT/PENDING -> APPROVED | REJECTED; APPROVED -> RECEIVED once the
    warehouse has fulfilled it with a linked assignment.
    """
    __tablename__ = "raised_inventories"
    __table_args__ = (
        db.UniqueConstraint("raised_inventory_id", name="uq_raised_inventories_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    raised_inventory_id = db.Column(db.String(16), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    group = db.Column(db.String(64), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=RAISED_STATUS_PENDING, index=True)
    total_amount_raised_cents = db.Column(db.Integer, nullable=False, default=0)

    raised_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    approved_date = db.Column(db.DateTime, nullable=True)
    rejected_date = db.Column(db.DateTime, nullable=True)
    received_date = db.Column(db.DateTime, nullable=True)
    decision_note = db.Column(db.String(512), nullable=True)

    assigned_inventory_pk = db.Column(
        db.Integer, db.ForeignKey("assigned_inventories.id"), nullable=True
    )

    raised_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    decided_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    store = db.relationship("Store")
    assigned_inventory = db.relationship("AssignedInventory")
    lines = db.relationship(
        "RaisedInventoryLine",
        backref="raised_inventory",
        lazy=True,
        order_by="RaisedInventoryLine.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "raised_inventory_id": self.raised_inventory_id,
            "store_id": self.store_id,
            "group": self.group,
            "status": self.status,
            "total_amount_raised_cents": self.total_amount_raised_cents,
            "raised_date": to_utc_z(self.raised_date),
            "approved_date": to_utc_z(self.approved_date),
            "rejected_date": to_utc_z(self.rejected_date),
            "received_date": to_utc_z(self.received_date),
            "decision_note": self.decision_note,
            "assigned_inventory_id": (
                self.assigned_inventory.assigned_inventory_id if self.assigned_inventory else None
            ),
            "version_id": self.version_id,
        }
        if include_lines:
            data["products"] = [line.to_dict() for line in self.lines]
        return data


class RaisedInventoryLine(ProductSnapshotMixin, db.Model):
    __tablename__ = "raised_inventory_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    raised_inventory_pk = db.Column(
        db.Integer, db.ForeignKey("raised_inventories.id"), nullable=False, index=True
    )
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False)

    def to_dict(self) -> dict:
        return self.snapshot_dict()
