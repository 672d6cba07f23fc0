# Overview: Coupon issuance, partner coupon requests, validation and consumption.

"""
Coupons

TRUMZ coupons are minted for the partner platform from a signed JWT and are
single use: status goes pending -> used with the consuming order recorded.

DRESSCODE coupons are issued by the warehouse. With is_single_use each
customer may redeem the code once; otherwise it is unlimited. Every
redemption appends a CouponUsage row (the usedBy audit list).

Coupons past expiry_date are rejected at check time and flipped to
"expired" by the periodic sweep. A paid order always records its redemption,
even if the code expired between checkout and payment.
"""

from __future__ import annotations

from datetime import datetime

import jwt
from flask import current_app
from sqlalchemy import update

from ..errors import BadRequest, NotFound, Unauthorized
from ..extensions import db
from ..models import Coupon, CouponUsage
from ..models.auth import ROLE_WAREHOUSE_MANAGER
from ..models.coupons import (
    COUPON_STATUS_EXPIRED,
    COUPON_STATUS_PENDING,
    COUPON_STATUS_USED,
    COUPON_TYPE_DRESSCODE,
    COUPON_TYPE_TRUMZ,
)
from ..permissions import AuthContext, require_role
from ..time_utils import days_from_now, utcnow
from ..validation import parse_percentage
from . import catalog_service
from .concurrency import run_in_transaction
from .identifier_service import random_coupon_code, unique_code


def issue_coupon(
    *,
    actor: AuthContext,
    discount_percentage,
    expiry_date: datetime,
    is_single_use: bool = True,
    linked_group: str | None = None,
    linked_product_id: str | None = None,
) -> Coupon:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)
    pct = parse_percentage(discount_percentage, minimum=1)
    if expiry_date is None or expiry_date <= utcnow():
        raise BadRequest("expiry_date must be in the future")
    if linked_group:
        linked_group = catalog_service.normalize_group(linked_group)
    if linked_product_id and not linked_group:
        raise BadRequest("linked_product_id requires linked_group")

    def _op():
        coupon = Coupon(
            coupon_code=unique_code(Coupon.coupon_code, random_coupon_code),
            coupon_type=COUPON_TYPE_DRESSCODE,
            discount_percentage=pct,
            status=COUPON_STATUS_PENDING,
            expiry_date=expiry_date,
            is_single_use=bool(is_single_use),
            linked_group=linked_group,
            linked_product_id=linked_product_id or None,
            issued_by_user_id=actor.user_id,
        )
        db.session.add(coupon)
        db.session.flush()
        return coupon

    return run_in_transaction(_op)


def request_partner_coupon(token: str, *, secret_key: str, issuer: str, validity_days: int) -> Coupon:
    """
    Mint a TRUMZ coupon from a partner-signed JWT.

    The token must be signed with the shared coupon secret and carry the
    expected issuer and a discountPercentage claim in 1..100.
    """
    if not token:
        raise Unauthorized("Please provide token")
    if not secret_key:
        raise Unauthorized("Coupon requests are not enabled")
    try:
        claims = jwt.decode(token, secret_key, algorithms=["HS256"], issuer=issuer)
    except jwt.PyJWTError:
        raise Unauthorized("Invalid token or request")

    raw = claims.get("discountPercentage")
    try:
        pct = float(raw)
    except (TypeError, ValueError):
        raise BadRequest("Invalid discount percentage in token")
    if pct <= 0 or pct > 100 or pct != int(pct):
        raise BadRequest("Invalid discount percentage in token")

    def _op():
        coupon = Coupon(
            coupon_code=unique_code(Coupon.coupon_code, random_coupon_code),
            coupon_type=COUPON_TYPE_TRUMZ,
            discount_percentage=int(pct),
            status=COUPON_STATUS_PENDING,
            expiry_date=days_from_now(validity_days),
            is_single_use=True,
        )
        db.session.add(coupon)
        db.session.flush()
        return coupon

    return run_in_transaction(_op)


def _has_used(coupon: Coupon, user_id: int) -> bool:
    return (
        db.session.query(CouponUsage.id)
        .filter_by(coupon_pk=coupon.id, user_id=user_id)
        .first()
        is not None
    )


def check_coupon(coupon_code: str, user_id: int | None = None) -> Coupon:
    """Return the coupon if it can be redeemed now, else raise."""
    coupon = db.session.query(Coupon).filter_by(coupon_code=(coupon_code or "").strip().upper()).first()
    if not coupon:
        raise NotFound("Coupon not found")
    if coupon.expiry_date < utcnow():
        raise BadRequest("Coupon has expired")
    if coupon.status != COUPON_STATUS_PENDING:
        raise BadRequest("Coupon is not available for use")
    if (
        coupon.coupon_type == COUPON_TYPE_DRESSCODE
        and coupon.is_single_use
        and user_id is not None
        and _has_used(coupon, user_id)
    ):
        raise BadRequest("Coupon has already been used")
    return coupon


def record_redemption(coupon_code: str, *, user_id: int, order_id: str) -> bool:
    """
    Record that a paid order redeemed a coupon. Runs inside the payment transaction.

    The discount was priced into the order when it was created, so nothing is
    re-validated here: an expired code is still recorded. TRUMZ consumption
    is a conditional UPDATE (pending or expired -> used); when another order got there
    first this returns False instead of raising, and the caller flags the
    order for review.
    """
    coupon = db.session.query(Coupon).filter_by(coupon_code=(coupon_code or "").strip().upper()).first()
    if coupon is None:
        current_app.logger.warning("Paid order %s references unknown coupon %s", order_id, coupon_code)
        return False
    now = utcnow()

    if coupon.coupon_type == COUPON_TYPE_TRUMZ:
        result = db.session.execute(
            update(Coupon)
            .where(Coupon.id == coupon.id, Coupon.status.in_((COUPON_STATUS_PENDING, COUPON_STATUS_EXPIRED)))
            .values(status=COUPON_STATUS_USED, customer_id=user_id, order_id=order_id, used_date=now)
            .execution_options(synchronize_session=False)
        )
        db.session.expire(coupon)
        if result.rowcount != 1:
            current_app.logger.warning(
                "Coupon %s was already used when order %s was paid", coupon.coupon_code, order_id
            )
            return False

    db.session.add(CouponUsage(coupon_pk=coupon.id, user_id=user_id, order_id=order_id, used_date=now))
    db.session.flush()
    return True


def list_coupons(*, actor: AuthContext, status: str | None = None) -> list[Coupon]:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)
    q = db.session.query(Coupon)
    if status:
        q = q.filter(Coupon.status == status)
    return q.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
