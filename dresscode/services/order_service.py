# Overview: Order reservation engine; pricing, payment verification, cancellation and returns.

"""
Order Reservation Engine

PRICING:
- Per line: price x quantity, then the quantity tier discount
  (1-5: 0%, 6-10: 5%, 11-20: 10%, 21+: 15%).
- An optional coupon takes its percentage off the post-tier amount of the
  lines it applies to; that amount is folded into the total discount.
- total_price_after_discount = total_amount - total_discount.

STOCK:
- create_order only checks availability (advisory, nothing is reserved).
- verify_payment is the commit point: one transaction records the payment,
  conditionally decrements every line and records the coupon redemption.
  If any line is short the whole transaction aborts with InsufficientStock.
- A second verify_payment for an already paid order is a no-op.
- A signature mismatch deletes the unpaid order and reports success.
- Cancelling a paid, undelivered order and approving a return put the
  stock back and open a refund (PENDING) that the warehouse marks
  COMPLETED once the money has been returned.

COUPONS:
- The coupon is validated when the order is priced. At payment time the
  redemption is only recorded; a TRUMZ code that another order consumed
  in between sets coupon_conflict on the order instead of failing a
  payment the customer has already made.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app

from ..errors import BadRequest, Forbidden, InsufficientStock, NotFound
from ..extensions import db
from ..models import Address, Order, OrderLine, Payment, Quote, ReturnOrder, ReturnOrderLine, User
from ..models.auth import ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER
from ..models.orders import (
    DELIVERY_STATUS_CANCELLED,
    DELIVERY_STATUS_DELIVERED,
    DELIVERY_STATUS_PENDING,
    DELIVERY_STATUS_SHIPPED,
    REFUND_STATUS_COMPLETED,
    REFUND_STATUS_PENDING,
    RETURN_STATUS_APPROVED,
    RETURN_STATUS_PENDING,
    RETURN_STATUS_REJECTED,
)
from ..permissions import AuthContext, require_role
from ..time_utils import utcnow
from ..validation import parse_quantity, percent_of
from . import catalog_service, coupon_service
from .concurrency import lock_for_update, run_in_transaction
from .identifier_service import unique_code


PAYMENT_VERIFIED = "verified"
PAYMENT_ALREADY_VERIFIED = "already_verified"
PAYMENT_ORDER_DELETED = "deleted"

# Forward-only delivery transitions a warehouse manager may apply
DELIVERY_TRANSITIONS = {
    DELIVERY_STATUS_PENDING: {DELIVERY_STATUS_SHIPPED, DELIVERY_STATUS_DELIVERED},
    DELIVERY_STATUS_SHIPPED: {DELIVERY_STATUS_DELIVERED},
}


@dataclass
class PaymentOutcome:
    status: str
    order_id: str
    order: Order | None = None

    @property
    def message(self) -> str:
        if self.status == PAYMENT_ORDER_DELETED:
            return "Order deleted successfully"
        if self.status == PAYMENT_ALREADY_VERIFIED:
            return "Payment already verified"
        return "Payment verified successfully"


def tier_discount_percentage(quantity: int) -> int:
    """Quantity discount tier, capped at 15%."""
    if quantity >= 21:
        return 15
    if quantity >= 11:
        return 10
    if quantity >= 6:
        return 5
    return 0


def _get_order_for(order_id: str, actor: AuthContext, *, lock: bool = False) -> Order:
    query = db.session.query(Order).filter_by(order_id=order_id)
    if lock:
        query = lock_for_update(query)
    order = query.first()
    if not order:
        raise NotFound("Order not found")
    if actor.is_customer and order.user_id != actor.user_id:
        raise NotFound("Order not found")
    if not (actor.is_customer or actor.is_warehouse_manager):
        raise Forbidden("Role not permitted")
    return order


def create_order(
    *,
    actor: AuthContext,
    address_id: int,
    lines: list[dict],
    coupon_code: str | None = None,
    gateway,
    currency: str = "INR",
) -> Order:
    """
    Price and persist an order, then open a gateway order intent.

    Each line is {group, product_id, color, size, quantity}.
    """
    require_role(actor, ROLE_CUSTOMER)
    if not lines:
        raise BadRequest("Order must contain at least one product")

    def _op():
        address = db.session.get(Address, address_id)
        if not address or address.user_id != actor.user_id or address.is_deleted:
            raise BadRequest("Invalid delivery address")

        coupon = coupon_service.check_coupon(coupon_code, actor.user_id) if coupon_code else None

        priced = []
        for raw in lines:
            qty = parse_quantity(raw.get("quantity"), "quantity")
            try:
                vs = catalog_service.find_variant_size(
                    raw.get("group"), raw.get("product_id"), raw.get("color"), raw.get("size")
                )
            except NotFound as e:
                raise BadRequest(e.message, e.details)
            if vs.quantity < qty:
                raise InsufficientStock(
                    details={"product_id": raw.get("product_id"), "size": raw.get("size"), "available": vs.quantity},
                )

            snap = catalog_service.snapshot_of(vs)
            gross = snap["price_cents"] * qty
            pct = tier_discount_percentage(qty)
            discount = percent_of(gross, pct)
            coupon_discount = 0
            if coupon and coupon.applies_to(snap["group"], snap["product_id"]):
                coupon_discount = percent_of(gross - discount, coupon.discount_percentage)
            priced.append((vs, snap, qty, pct, discount, coupon_discount))

        if coupon and not any(p[5] for p in priced):
            raise BadRequest("Coupon does not apply to these products")

        total = sum(p[1]["price_cents"] * p[2] for p in priced)
        tier_total = sum(p[4] for p in priced)
        coupon_total = sum(p[5] for p in priced)

        order = Order(
            order_id=unique_code(Order.order_id),
            user_id=actor.user_id,
            address_id=address.id,
            total_amount_cents=total,
            total_discount_cents=tier_total + coupon_total,
            coupon_discount_cents=coupon_total,
            total_price_after_discount_cents=total - tier_total - coupon_total,
            delivery_status=DELIVERY_STATUS_PENDING,
            order_created=False,
            coupon_code=coupon.coupon_code if coupon else None,
            coupon_type=coupon.coupon_type if coupon else None,
        )
        db.session.add(order)
        db.session.flush()

        for vs, snap, qty, pct, discount, coupon_discount in priced:
            db.session.add(
                OrderLine(
                    order_pk=order.id,
                    variant_size_id=vs.id,
                    group=snap["group"],
                    product_id=snap["product_id"],
                    variant_id=snap["variant_id"],
                    color_name=snap["color_name"],
                    size=snap["size"],
                    quantity_ordered=qty,
                    price_cents=snap["price_cents"],
                    discount_percentage=pct,
                    discount_amount_cents=discount,
                    coupon_discount_cents=coupon_discount,
                )
            )
        db.session.flush()
        return order

    order = run_in_transaction(_op)

    # Opened once, after the order is committed, so a retried transaction
    # never creates a second gateway order
    try:
        intent = gateway.create_order_intent(order.total_price_after_discount_cents, currency, order.order_id)
    except Exception:
        run_in_transaction(lambda: _discard_unpaid_order(order.id))
        raise

    def _attach_intent():
        row = db.session.get(Order, order.id)
        row.gateway_order_id = intent["id"]
        return row

    return run_in_transaction(_attach_intent)


def _discard_unpaid_order(order_pk: int) -> None:
    order = db.session.get(Order, order_pk)
    if order is not None and not order.order_created:
        db.session.delete(order)


def verify_payment(
    *,
    order_id: str,
    razorpay_order_id: str,
    razorpay_payment_id: str,
    razorpay_signature: str,
    actor: AuthContext,
    gateway,
    notifier=None,
    admin_email: str | None = None,
) -> PaymentOutcome:
    """
    Commit point of an order. See the module docstring for the rules.

    Emails are sent after the commit and never affect the outcome.
    """
    if not (order_id and razorpay_order_id and razorpay_payment_id and razorpay_signature):
        raise BadRequest("order_id, razorpay_order_id, razorpay_payment_id and razorpay_signature are required")

    def _op():
        order = _get_order_for(order_id, actor, lock=True)

        if order.order_created:
            paid = (
                db.session.query(Payment.id)
                .filter_by(order_pk=order.id, razorpay_payment_id=razorpay_payment_id)
                .first()
            )
            if paid is None:
                raise BadRequest("Order has already been paid")
            return PaymentOutcome(PAYMENT_ALREADY_VERIFIED, order.order_id, order)

        if order.delivery_status == DELIVERY_STATUS_CANCELLED:
            raise BadRequest("Order has been cancelled")
        if order.gateway_order_id != razorpay_order_id:
            raise BadRequest("Gateway order id does not match this order")

        if not gateway.verify_signature(razorpay_order_id, razorpay_payment_id, razorpay_signature):
            db.session.delete(order)
            return PaymentOutcome(PAYMENT_ORDER_DELETED, order_id)

        db.session.add(
            Payment(
                order_pk=order.id,
                razorpay_order_id=razorpay_order_id,
                razorpay_payment_id=razorpay_payment_id,
                razorpay_signature=razorpay_signature,
                amount_cents=order.total_price_after_discount_cents,
            )
        )
        # Sequential so lines on the same size see each other's decrement
        for line in order.lines:
            catalog_service.decrement_quantity(line.variant_size_id, line.quantity_ordered)

        if order.coupon_code:
            redeemed = coupon_service.record_redemption(
                order.coupon_code, user_id=order.user_id, order_id=order.order_id
            )
            order.coupon_conflict = not redeemed

        order.order_created = True
        order.payment_id = razorpay_payment_id
        order.paid_at = utcnow()
        return PaymentOutcome(PAYMENT_VERIFIED, order.order_id, order)

    outcome = run_in_transaction(_op)

    if outcome.status == PAYMENT_VERIFIED and notifier is not None:
        _send_order_emails(outcome.order, notifier, admin_email)
    return outcome


def _send_best_effort(notifier, to: str, subject: str, html_body: str) -> None:
    try:
        notifier.send_email(to, subject, html_body)
    except Exception:
        current_app.logger.exception("Failed to send email to %s", to)


def _send_order_emails(order: Order, notifier, admin_email: str | None) -> None:
    user = db.session.get(User, order.user_id)
    amount = Decimal(order.total_price_after_discount_cents) / 100
    rows = "".join(
        f"<tr><td>{l.product_id}</td><td>{l.color_name}</td><td>{l.size}</td><td>{l.quantity_ordered}</td></tr>"
        for l in order.lines
    )
    body = (
        f"<h2>Order {order.order_id} confirmed</h2>"
        f"<table>{rows}</table>"
        f"<p>Amount paid: {amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}</p>"
    )
    if user and user.email:
        _send_best_effort(notifier, user.email, f"Your order {order.order_id} is confirmed", body)
    if admin_email:
        _send_best_effort(notifier, admin_email, f"New order {order.order_id}", body)


def cancel_order(order_id: str, *, actor: AuthContext) -> Order:
    """Cancel a Pending order; paid orders get their stock back."""
    require_role(actor, ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)

    def _op():
        order = _get_order_for(order_id, actor, lock=True)
        if order.delivery_status != DELIVERY_STATUS_PENDING:
            raise BadRequest(f"Cannot cancel an order with status {order.delivery_status}")

        if order.order_created:
            for line in order.lines:
                catalog_service.increment_quantity(line.variant_size_id, line.quantity_ordered)
            order.refund_status = REFUND_STATUS_PENDING

        order.delivery_status = DELIVERY_STATUS_CANCELLED
        order.cancelled_at = utcnow()
        return order

    return run_in_transaction(_op)


def update_delivery_status(order_id: str, status: str, *, actor: AuthContext) -> Order:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        order = _get_order_for(order_id, actor, lock=True)
        if not order.order_created:
            raise BadRequest("Order has not been paid")
        allowed = DELIVERY_TRANSITIONS.get(order.delivery_status, set())
        if status not in allowed:
            raise BadRequest(f"Cannot change delivery status from {order.delivery_status} to {status}")

        order.delivery_status = status
        if status == DELIVERY_STATUS_DELIVERED:
            order.delivered_at = utcnow()
        return order

    return run_in_transaction(_op)


def list_orders(*, actor: AuthContext, status: str | None = None) -> list[Order]:
    require_role(actor, ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
    q = db.session.query(Order)
    if actor.is_customer:
        q = q.filter(Order.user_id == actor.user_id)
    else:
        q = q.filter(Order.order_created.is_(True))
    if status:
        q = q.filter(Order.delivery_status == status)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(order_id: str, *, actor: AuthContext) -> Order:
    return _get_order_for(order_id, actor)


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------

def _line_refund_cents(line: OrderLine, quantity: int) -> int:
    net = line.price_cents * line.quantity_ordered - line.discount_amount_cents - line.coupon_discount_cents
    value = Decimal(net) * Decimal(quantity) / Decimal(line.quantity_ordered)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def create_return(order_id: str, *, actor: AuthContext, lines: list[dict], reason: str | None = None) -> ReturnOrder:
    """Customer requests a return of delivered lines: [{line_id, quantity}]."""
    require_role(actor, ROLE_CUSTOMER)
    if not lines:
        raise BadRequest("Return must contain at least one line")

    def _op():
        order = _get_order_for(order_id, actor, lock=True)
        if not order.order_created or order.delivery_status != DELIVERY_STATUS_DELIVERED:
            raise BadRequest("Only delivered orders can be returned")

        by_id = {line.id: line for line in order.lines}
        ret = ReturnOrder(
            return_id=unique_code(ReturnOrder.return_id),
            order_pk=order.id,
            user_id=actor.user_id,
            status=RETURN_STATUS_PENDING,
            reason=reason,
        )
        db.session.add(ret)
        db.session.flush()

        refund = 0
        seen = set()
        for raw in lines:
            line = by_id.get(raw.get("line_id"))
            if line is None:
                raise BadRequest(f"Line {raw.get('line_id')} is not part of this order")
            if line.id in seen or line.return_status in (RETURN_STATUS_PENDING, RETURN_STATUS_APPROVED):
                raise BadRequest(f"Line {line.id} already has a return")
            seen.add(line.id)

            qty = parse_quantity(raw.get("quantity", line.quantity_ordered), "quantity")
            if qty > line.quantity_ordered:
                raise BadRequest(f"Cannot return more than ordered for line {line.id}")

            line.return_status = RETURN_STATUS_PENDING
            refund += _line_refund_cents(line, qty)
            db.session.add(ReturnOrderLine(return_order_pk=ret.id, order_line_id=line.id, quantity=qty))

        ret.refund_amount_cents = refund
        db.session.flush()
        return ret

    return run_in_transaction(_op)


def _locked_return(return_id: str) -> ReturnOrder:
    ret = lock_for_update(db.session.query(ReturnOrder).filter_by(return_id=return_id)).first()
    if not ret:
        raise NotFound("Return not found")
    if ret.status != RETURN_STATUS_PENDING:
        raise BadRequest(f"Return already {ret.status.lower()}")
    return ret


def approve_return(return_id: str, *, actor: AuthContext, note: str | None = None) -> ReturnOrder:
    """Approve a return and put the returned units back into central stock."""
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        ret = _locked_return(return_id)
        for rl in ret.lines:
            catalog_service.increment_quantity(rl.order_line.variant_size_id, rl.quantity)
            rl.order_line.return_status = RETURN_STATUS_APPROVED
        ret.status = RETURN_STATUS_APPROVED
        ret.refund_status = REFUND_STATUS_PENDING
        ret.decision_note = note
        ret.decided_at = utcnow()
        return ret

    return run_in_transaction(_op)


def reject_return(return_id: str, *, actor: AuthContext, note: str | None = None) -> ReturnOrder:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        ret = _locked_return(return_id)
        for rl in ret.lines:
            rl.order_line.return_status = RETURN_STATUS_REJECTED
        ret.status = RETURN_STATUS_REJECTED
        ret.decision_note = note
        ret.decided_at = utcnow()
        return ret

    return run_in_transaction(_op)


def list_returns(*, actor: AuthContext, status: str | None = None) -> list[ReturnOrder]:
    require_role(actor, ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
    q = db.session.query(ReturnOrder)
    if actor.is_customer:
        q = q.filter(ReturnOrder.user_id == actor.user_id)
    if status:
        q = q.filter(ReturnOrder.status == status)
    return q.order_by(ReturnOrder.created_at.desc(), ReturnOrder.id.desc()).all()


# ---------------------------------------------------------------------------
# Refunds
# ---------------------------------------------------------------------------

def _send_refund_email(notifier, user: User | None, reference: str, amount_cents: int) -> None:
    if notifier is None or not user or not user.email:
        return
    amount = (Decimal(amount_cents) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    body = (
        "<h2>Refund Processed Successfully</h2>"
        f"<p>Your refund for <strong>{reference}</strong> has been processed.</p>"
        f"<p>Amount refunded: {amount}</p>"
    )
    _send_best_effort(notifier, user.email, "Refund Processed Successfully", body)


def complete_refund(order_id: str, *, actor: AuthContext, notifier=None) -> Order:
    """Mark the refund of a cancelled, paid order as completed."""
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        order = _get_order_for(order_id, actor, lock=True)
        if order.refund_status != REFUND_STATUS_PENDING:
            raise BadRequest("Order has no pending refund")
        order.refund_status = REFUND_STATUS_COMPLETED
        order.refunded_at = utcnow()
        return order

    order = run_in_transaction(_op)
    _send_refund_email(notifier, order.user, f"order {order.order_id}", order.total_price_after_discount_cents)
    return order


def complete_return_refund(return_id: str, *, actor: AuthContext, notifier=None) -> ReturnOrder:
    require_role(actor, ROLE_WAREHOUSE_MANAGER)

    def _op():
        ret = lock_for_update(db.session.query(ReturnOrder).filter_by(return_id=return_id)).first()
        if not ret:
            raise NotFound("Return not found")
        if ret.status != RETURN_STATUS_APPROVED or ret.refund_status != REFUND_STATUS_PENDING:
            raise BadRequest("Return has no pending refund")
        ret.refund_status = REFUND_STATUS_COMPLETED
        ret.refunded_at = utcnow()
        return ret

    ret = run_in_transaction(_op)
    _send_refund_email(
        notifier, db.session.get(User, ret.user_id), f"return {ret.return_id}", ret.refund_amount_cents
    )
    return ret


def list_refunds(*, actor: AuthContext, status: str = REFUND_STATUS_PENDING) -> list[Order]:
    """Cancelled paid orders whose refund is in the given state."""
    require_role(actor, ROLE_WAREHOUSE_MANAGER)
    if status not in (REFUND_STATUS_PENDING, REFUND_STATUS_COMPLETED):
        raise BadRequest(f"Unknown refund status: {status}")
    sort_key = Order.refunded_at if status == REFUND_STATUS_COMPLETED else Order.cancelled_at
    return (
        db.session.query(Order)
        .filter(
            Order.delivery_status == DELIVERY_STATUS_CANCELLED,
            Order.order_created.is_(True),
            Order.refund_status == status,
        )
        .order_by(sort_key.desc(), Order.id.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# Bulk quotes
# ---------------------------------------------------------------------------

def create_quote(
    *,
    actor: AuthContext,
    line: dict,
    logo_url: str | None,
    logo_position: str | None,
) -> Quote:
    """
    Record a bulk quote request: {group, product_id, color, size, quantity}
    plus the customer's logo and where it goes on the garment.
    """
    require_role(actor, ROLE_CUSTOMER)
    logo_url = (logo_url or "").strip()
    logo_position = (logo_position or "").strip()
    if not logo_url or not logo_position:
        raise BadRequest("logo_url and logo_position are required")
    qty = parse_quantity(line.get("quantity"), "quantity")

    def _op():
        try:
            vs = catalog_service.find_variant_size(
                line.get("group"), line.get("product_id"), line.get("color"), line.get("size")
            )
        except NotFound as e:
            raise BadRequest(e.message, e.details)
        snap = catalog_service.snapshot_of(vs)
        quote = Quote(
            quote_id=unique_code(Quote.quote_id),
            user_id=actor.user_id,
            variant_size_id=vs.id,
            group=snap["group"],
            product_id=snap["product_id"],
            color_name=snap["color_name"],
            size=snap["size"],
            quantity_ordered=qty,
            price_cents=snap["price_cents"],
            logo_url=logo_url,
            logo_position=logo_position,
        )
        db.session.add(quote)
        db.session.flush()
        return quote

    return run_in_transaction(_op)


def list_quotes(*, actor: AuthContext) -> list[Quote]:
    require_role(actor, ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
    q = db.session.query(Quote)
    if actor.is_customer:
        q = q.filter(Quote.user_id == actor.user_id)
    return q.order_by(Quote.created_at.desc(), Quote.id.desc()).all()


def get_quote(quote_id: str, *, actor: AuthContext) -> Quote:
    require_role(actor, ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
    quote = db.session.query(Quote).filter_by(quote_id=quote_id).first()
    if not quote or (actor.is_customer and quote.user_id != actor.user_id):
        raise NotFound("Quote not found")
    return quote
