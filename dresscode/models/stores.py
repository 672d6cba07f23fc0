from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


STORE_TYPE_WAREHOUSE = "WAREHOUSE"
STORE_TYPE_STORE = "STORE"


class Store(db.Model):
    """
    A physical location that holds stock.

    The central warehouse is a Store row with store_type=WAREHOUSE. Stock
    uploaded to it is central catalog stock (VariantSize.quantity); stock
    pushed to any other store is tracked per store in StoreQuantity.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("store_name", name="uq_stores_store_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_name = db.Column(db.String(120), nullable=False)
    store_type = db.Column(db.String(16), nullable=False, default=STORE_TYPE_STORE, index=True)

    store_address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(80), nullable=True)
    pincode = db.Column(db.String(12), nullable=True)
    state = db.Column(db.String(80), nullable=True)
    phone_no = db.Column(db.String(20), nullable=True)
    email_id = db.Column(db.String(255), nullable=True)
    commission_percentage = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def is_warehouse(self) -> bool:
        return self.store_type == STORE_TYPE_WAREHOUSE

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.store_name!r} type={self.store_type}>"

    def to_dict(self) -> dict:
        return {
            "store_id": self.id,
            "store_name": self.store_name,
            "store_type": self.store_type,
            "store_address": self.store_address,
            "city": self.city,
            "pincode": self.pincode,
            "state": self.state,
            "phone_no": self.phone_no,
            "email_id": self.email_id,
            "commission_percentage": self.commission_percentage,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class DocumentSequence(db.Model):
    """
    Atomic per-store document sequences (invoice numbers).
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("store_id", "document_type", name="uq_doc_sequences_store_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    document_type = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
