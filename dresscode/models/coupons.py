from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


COUPON_STATUS_PENDING = "pending"
COUPON_STATUS_EXPIRED = "expired"
COUPON_STATUS_USED = "used"

# TRUMZ coupons come from the partner and are consumed once.
# DRESSCODE coupons are issued in-house and may be multi-use.
COUPON_TYPE_TRUMZ = "TRUMZ"
COUPON_TYPE_DRESSCODE = "DRESSCODE"


class Coupon(db.Model):
    __tablename__ = "coupons"
    __table_args__ = (
        db.UniqueConstraint("coupon_code", name="uq_coupons_coupon_code"),
        db.CheckConstraint(
            "discount_percentage >= 1 AND discount_percentage <= 100",
            name="discount_percentage_range",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    coupon_code = db.Column(db.String(16), nullable=False)
    coupon_type = db.Column(db.String(16), nullable=False, default=COUPON_TYPE_DRESSCODE)
    discount_percentage = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=COUPON_STATUS_PENDING, index=True)
    expiry_date = db.Column(db.DateTime, nullable=False, index=True)
    is_single_use = db.Column(db.Boolean, nullable=False, default=True)

    linked_group = db.Column(db.String(64), nullable=True)
    linked_product_id = db.Column(db.String(255), nullable=True)

    # Set once a single-use coupon is consumed
    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    order_id = db.Column(db.String(16), nullable=True)
    used_date = db.Column(db.DateTime, nullable=True)

    issued_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    usages = db.relationship("CouponUsage", backref="coupon", lazy=True, order_by="CouponUsage.id")

    def applies_to(self, group: str, product_id: str) -> bool:
        if self.linked_group and self.linked_group != group:
            return False
        if self.linked_product_id and self.linked_product_id != product_id:
            return False
        return True

    def to_dict(self) -> dict:
        return {
            "coupon_code": self.coupon_code,
            "coupon_type": self.coupon_type,
            "discount_percentage": self.discount_percentage,
            "status": self.status,
            "expiry_date": to_utc_z(self.expiry_date),
            "is_single_use": self.is_single_use,
            "linked_group": self.linked_group,
            "linked_product_id": self.linked_product_id,
            "customer_id": self.customer_id,
            "order_id": self.order_id,
            "used_date": to_utc_z(self.used_date),
            "used_by": [u.to_dict() for u in self.usages],
            "created_at": to_utc_z(self.created_at),
        }


class CouponUsage(db.Model):
    """usedBy audit entry for multi-use coupons."""
    __tablename__ = "coupon_usages"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    coupon_pk = db.Column(db.Integer, db.ForeignKey("coupons.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    order_id = db.Column(db.String(16), nullable=False)
    used_date = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "order_id": self.order_id,
            "used_date": to_utc_z(self.used_date),
        }
