from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


DELIVERY_STATUS_PENDING = "Pending"
DELIVERY_STATUS_SHIPPED = "Shipped"
DELIVERY_STATUS_DELIVERED = "Delivered"
DELIVERY_STATUS_CANCELLED = "Cancelled"

DELIVERY_STATUSES = (
    DELIVERY_STATUS_PENDING,
    DELIVERY_STATUS_SHIPPED,
    DELIVERY_STATUS_DELIVERED,
    DELIVERY_STATUS_CANCELLED,
)

RETURN_STATUS_PENDING = "PENDING"
RETURN_STATUS_APPROVED = "APPROVED"
RETURN_STATUS_REJECTED = "REJECTED"

REFUND_STATUS_PENDING = "PENDING"
REFUND_STATUS_COMPLETED = "COMPLETED"


class Order(db.Model):
    """
    E-commerce order.

    Stock is not reserved when the order is created; it is decremented when
    the payment is verified (order_created flips to True at that point).
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_orders_order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(16), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    address_id = db.Column(db.Integer, db.ForeignKey("addresses.id"), nullable=False)

    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    coupon_discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_price_after_discount_cents = db.Column(db.Integer, nullable=False, default=0)

    delivery_status = db.Column(db.String(16), nullable=False, default=DELIVERY_STATUS_PENDING, index=True)
    order_created = db.Column(db.Boolean, nullable=False, default=False, index=True)

    gateway_order_id = db.Column(db.String(64), nullable=True, index=True)
    payment_id = db.Column(db.String(64), nullable=True)

    coupon_code = db.Column(db.String(16), nullable=True)
    coupon_type = db.Column(db.String(16), nullable=True)
    # Set when a paid order could not consume its coupon (already used elsewhere)
    coupon_conflict = db.Column(db.Boolean, nullable=False, default=False)

    refund_status = db.Column(db.String(16), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    paid_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    refunded_at = db.Column(db.DateTime, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    address = db.relationship("Address")
    lines = db.relationship(
        "OrderLine",
        backref="order",
        lazy=True,
        order_by="OrderLine.id",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "address_id": self.address_id,
            "products": [line.to_dict() for line in self.lines],
            "total_amount_cents": self.total_amount_cents,
            "total_discount_cents": self.total_discount_cents,
            "coupon_discount_cents": self.coupon_discount_cents,
            "total_price_after_discount_cents": self.total_price_after_discount_cents,
            "delivery_status": self.delivery_status,
            "order_created": self.order_created,
            "gateway_order_id": self.gateway_order_id,
            "payment_id": self.payment_id,
            "coupon_code": self.coupon_code,
            "coupon_type": self.coupon_type,
            "coupon_conflict": self.coupon_conflict,
            "refund_status": self.refund_status,
            "created_at": to_utc_z(self.created_at),
            "paid_at": to_utc_z(self.paid_at),
            "delivered_at": to_utc_z(self.delivered_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "refunded_at": to_utc_z(self.refunded_at),
            "version_id": self.version_id,
        }


class OrderLine(db.Model):
    __tablename__ = "order_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_pk = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False)

    group = db.Column(db.String(64), nullable=False)
    product_id = db.Column(db.String(255), nullable=False)
    variant_id = db.Column(db.String(16), nullable=True)
    color_name = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(16), nullable=False)

    quantity_ordered = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    coupon_discount_cents = db.Column(db.Integer, nullable=False, default=0)

    return_status = db.Column(db.String(16), nullable=True)

    def to_dict(self) -> dict:
        return {
            "line_id": self.id,
            "group": self.group,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "color": self.color_name,
            "size": self.size,
            "quantity_ordered": self.quantity_ordered,
            "price_cents": self.price_cents,
            "discount_percentage": self.discount_percentage,
            "discount_amount_cents": self.discount_amount_cents,
            "coupon_discount_cents": self.coupon_discount_cents,
            "return_status": self.return_status,
        }


class Payment(db.Model):
    """Verified gateway payment linked to an order."""
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("razorpay_payment_id", name="uq_payments_razorpay_payment_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_pk = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    razorpay_order_id = db.Column(db.String(64), nullable=False)
    razorpay_payment_id = db.Column(db.String(64), nullable=False)
    razorpay_signature = db.Column(db.String(128), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    order = db.relationship("Order", backref=db.backref("payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "order_id": self.order.order_id,
            "razorpay_order_id": self.razorpay_order_id,
            "razorpay_payment_id": self.razorpay_payment_id,
            "amount_cents": self.amount_cents,
            "created_at": to_utc_z(self.created_at),
        }


class ReturnOrder(db.Model):
    """Customer return request against a delivered order."""
    __tablename__ = "return_orders"
    __table_args__ = (
        db.UniqueConstraint("return_id", name="uq_return_orders_return_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(db.String(16), nullable=False)
    order_pk = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=RETURN_STATUS_PENDING, index=True)
    reason = db.Column(db.String(512), nullable=True)
    decision_note = db.Column(db.String(512), nullable=True)
    refund_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    refund_status = db.Column(db.String(16), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    decided_at = db.Column(db.DateTime, nullable=True)
    refunded_at = db.Column(db.DateTime, nullable=True)

    order = db.relationship("Order")
    lines = db.relationship("ReturnOrderLine", backref="return_order", lazy=True, order_by="ReturnOrderLine.id")

    def to_dict(self) -> dict:
        return {
            "return_id": self.return_id,
            "order_id": self.order.order_id,
            "user_id": self.user_id,
            "status": self.status,
            "reason": self.reason,
            "decision_note": self.decision_note,
            "refund_amount_cents": self.refund_amount_cents,
            "refund_status": self.refund_status,
            "lines": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
            "decided_at": to_utc_z(self.decided_at),
            "refunded_at": to_utc_z(self.refunded_at),
        }


class ReturnOrderLine(db.Model):
    __tablename__ = "return_order_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    return_order_pk = db.Column(db.Integer, db.ForeignKey("return_orders.id"), nullable=False, index=True)
    order_line_id = db.Column(db.Integer, db.ForeignKey("order_lines.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    order_line = db.relationship("OrderLine")

    def to_dict(self) -> dict:
        return {
            "line_id": self.order_line_id,
            "product_id": self.order_line.product_id,
            "color": self.order_line.color_name,
            "size": self.order_line.size,
            "quantity": self.quantity,
        }


class Quote(db.Model):
    """
    Bulk quote request for one product size with a customer logo.

    A quote prices the request at the catalog price of the moment; it does
    not reserve or move stock.
    """
    __tablename__ = "quotes"
    __table_args__ = (
        db.UniqueConstraint("quote_id", name="uq_quotes_quote_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    quote_id = db.Column(db.String(16), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    variant_size_id = db.Column(db.Integer, db.ForeignKey("variant_sizes.id"), nullable=False)

    group = db.Column(db.String(64), nullable=False)
    product_id = db.Column(db.String(255), nullable=False)
    color_name = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(16), nullable=False)
    quantity_ordered = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)

    logo_url = db.Column(db.String(1024), nullable=False)
    logo_position = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "quote_id": self.quote_id,
            "user_id": self.user_id,
            "customer_name": self.user.name if self.user else None,
            "customer_email": self.user.email if self.user else None,
            "group": self.group,
            "product_id": self.product_id,
            "color": self.color_name,
            "size": self.size,
            "quantity_ordered": self.quantity_ordered,
            "price_cents": self.price_cents,
            "total_amount_cents": self.price_cents * self.quantity_ordered,
            "logo_url": self.logo_url,
            "logo_position": self.logo_position,
            "created_at": to_utc_z(self.created_at),
        }
