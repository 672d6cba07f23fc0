# Overview: Periodic sweeps for expired coupons and abandoned unpaid orders.

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import update

from ..extensions import db
from ..models import Coupon, Order
from ..models.coupons import COUPON_STATUS_EXPIRED, COUPON_STATUS_PENDING
from ..time_utils import utcnow
from .concurrency import run_in_transaction


def expire_coupons() -> int:
    """Flip pending coupons past their expiry date to expired."""
    def _op():
        result = db.session.execute(
            update(Coupon)
            .where(Coupon.status == COUPON_STATUS_PENDING, Coupon.expiry_date < utcnow())
            .values(status=COUPON_STATUS_EXPIRED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    return run_in_transaction(_op)


def purge_unpaid_orders(*, ttl_hours: int = 24) -> int:
    """
    Delete orders that never completed payment within ttl_hours.

    Unpaid orders hold no stock, so nothing is restored.
    """
    cutoff = utcnow() - timedelta(hours=ttl_hours)

    def _op():
        stale = (
            db.session.query(Order)
            .filter(Order.order_created.is_(False), Order.created_at < cutoff)
            .all()
        )
        for order in stale:
            db.session.delete(order)
        return len(stale)

    return run_in_transaction(_op)
