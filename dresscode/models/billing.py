from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


MODE_OF_PAYMENT_CASH = "CASH"
MODE_OF_PAYMENT_UPI = "UPI"
MODE_OF_PAYMENT_CARD = "CARD"
MODES_OF_PAYMENT = (MODE_OF_PAYMENT_CASH, MODE_OF_PAYMENT_UPI, MODE_OF_PAYMENT_CARD)

# deleteReqStatus / editStatus are None until a request is made
REQUEST_STATUS_PENDING = "PENDING"
REQUEST_STATUS_APPROVED = "APPROVED"
REQUEST_STATUS_REJECTED = "REJECTED"


class Customer(db.Model):
    """Point-of-sale customer, identified by phone number."""
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("phone", name="uq_customers_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "customer_id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
        }


class BillLineMixin:
    group = db.Column(db.String(64), nullable=False)
    product_id = db.Column(db.String(255), nullable=False)
    variant_id = db.Column(db.String(16), nullable=True)
    color_name = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(16), nullable=False)
    style_coat = db.Column(db.String(64), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "variant_size_id": self.variant_size_id,
            "group": self.group,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "color": self.color_name,
            "size": self.size,
            "style_coat": self.style_coat,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "line_total_cents": self.price_cents * self.quantity,
        }


class Bill(db.Model):
    """
    Point-of-sale bill issued by a store.

    Bills are never hard-deleted: an approved delete request sets is_deleted.
    An approved edit request archives the current state in OldBill first.
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.UniqueConstraint("bill_id", name="uq_bills_bill_id"),
        db.UniqueConstraint("store_id", "invoice_no", name="uq_bills_store_invoice"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.String(16), nullable=False)
    invoice_no = db.Column(db.String(32), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    price_after_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    mode_of_payment = db.Column(db.String(8), nullable=False, default=MODE_OF_PAYMENT_CASH)

    delete_req_status = db.Column(db.String(16), nullable=True)
    delete_req_note = db.Column(db.String(512), nullable=True)
    delete_validate_note = db.Column(db.String(512), nullable=True)
    delete_requested_at = db.Column(db.DateTime, nullable=True)
    delete_validated_at = db.Column(db.DateTime, nullable=True)

    edit_status = db.Column(db.String(16), nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    invoice_url = db.Column(db.String(1024), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer")
    store = db.relationship("Store")
    lines = db.relationship(
        "BillLine",
        backref="bill",
        lazy=True,
        order_by="BillLine.id",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "bill_id": self.bill_id,
            "invoice_no": self.invoice_no,
            "store_id": self.store_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "products": [line.to_dict() for line in self.lines],
            "total_amount_cents": self.total_amount_cents,
            "discount_percentage": self.discount_percentage,
            "discount_amount_cents": self.discount_amount_cents,
            "price_after_discount_cents": self.price_after_discount_cents,
            "mode_of_payment": self.mode_of_payment,
            "delete_req_status": self.delete_req_status,
            "delete_req_note": self.delete_req_note,
            "delete_validate_note": self.delete_validate_note,
            "edit_status": self.edit_status,
            "is_deleted": self.is_deleted,
            "invoice_url": self.invoice_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class BillLine(BillLineMixin, db.Model):
    __tablename__ = "bill_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    bill_pk = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False)


class BillEditRequest(db.Model):
    """Requested replacement contents for a bill, pending warehouse approval."""
    __tablename__ = "bill_edit_requests"
    __table_args__ = (
        db.UniqueConstraint("edit_bill_req_id", name="uq_bill_edit_requests_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    edit_bill_req_id = db.Column(db.String(16), nullable=False)
    bill_pk = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    requested_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    validated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=REQUEST_STATUS_PENDING, index=True)
    req_note = db.Column(db.String(512), nullable=True)
    validate_note = db.Column(db.String(512), nullable=True)

    customer_name = db.Column(db.String(120), nullable=True)
    customer_phone = db.Column(db.String(20), nullable=True)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)
    mode_of_payment = db.Column(db.String(8), nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    price_after_discount_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    validated_at = db.Column(db.DateTime, nullable=True)

    bill = db.relationship("Bill", backref=db.backref("edit_requests", lazy=True))
    lines = db.relationship(
        "BillEditRequestLine",
        backref="edit_request",
        lazy=True,
        order_by="BillEditRequestLine.id",
    )

    def to_dict(self) -> dict:
        return {
            "edit_bill_req_id": self.edit_bill_req_id,
            "bill_id": self.bill.bill_id,
            "store_id": self.store_id,
            "status": self.status,
            "req_note": self.req_note,
            "validate_note": self.validate_note,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "discount_percentage": self.discount_percentage,
            "mode_of_payment": self.mode_of_payment,
            "total_amount_cents": self.total_amount_cents,
            "discount_amount_cents": self.discount_amount_cents,
            "price_after_discount_cents": self.price_after_discount_cents,
            "products": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
            "validated_at": to_utc_z(self.validated_at),
        }


class BillEditRequestLine(BillLineMixin, db.Model):
    __tablename__ = "bill_edit_request_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    edit_request_pk = db.Column(
        db.Integer, db.ForeignKey("bill_edit_requests.id"), nullable=False, index=True
    )
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False)


class OldBill(db.Model):
    """Archived state of a bill taken just before an approved edit overwrote it."""
    __tablename__ = "old_bills"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    bill_pk = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    edit_request_pk = db.Column(db.Integer, db.ForeignKey("bill_edit_requests.id"), nullable=False)
    snapshot = db.Column(db.JSON, nullable=False)
    archived_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    bill = db.relationship("Bill", backref=db.backref("history", lazy=True))

    def to_dict(self) -> dict:
        return {
            "bill_id": self.bill.bill_id,
            "snapshot": self.snapshot,
            "archived_at": to_utc_z(self.archived_at),
        }
