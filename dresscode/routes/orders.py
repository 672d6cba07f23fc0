# Overview: Flask API routes for e-commerce orders, payment verification and returns.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import ServiceError
from ..models.auth import ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER
from ..models.orders import REFUND_STATUS_PENDING
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
@require_roles(ROLE_CUSTOMER)
def create_order_route():
    """
    Price the cart and open a gateway order.

    Body: {"address_id": 1, "products": [{group, product_id, color, size, quantity}],
           "coupon_code": "OPTIONAL"}
    """
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.create_order(
            actor=g.auth,
            address_id=data.get("address_id"),
            lines=data.get("products") or [],
            coupon_code=data.get("coupon_code"),
            gateway=current_app.extensions["payment_gateway"],
            currency=current_app.config["PAYMENT_CURRENCY"],
        )
        return jsonify({
            "order": order.to_dict(),
            "razorpay_order_id": order.gateway_order_id,
            "key_id": current_app.config["RAZORPAY_KEY_ID"],
        }), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<order_id>/verify-payment")
@require_auth
@require_roles(ROLE_CUSTOMER)
def verify_payment_route(order_id: str):
    data = request.get_json(silent=True) or {}
    try:
        outcome = order_service.verify_payment(
            order_id=order_id,
            razorpay_order_id=data.get("razorpay_order_id"),
            razorpay_payment_id=data.get("razorpay_payment_id"),
            razorpay_signature=data.get("razorpay_signature"),
            actor=g.auth,
            gateway=current_app.extensions["payment_gateway"],
            notifier=current_app.extensions["notifier"],
            admin_email=current_app.config.get("ADMIN_EMAIL"),
        )
        body = {"message": outcome.message, "order_id": outcome.order_id, "status": outcome.status}
        if outcome.order is not None:
            body["order"] = outcome.order.to_dict()
        return jsonify(body), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to verify payment")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
@require_roles(ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
def list_orders_route():
    orders = order_service.list_orders(actor=g.auth, status=request.args.get("status"))
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@orders_bp.get("/<order_id>")
@require_auth
@require_roles(ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(order_id, actor=g.auth)
        return jsonify({"order": order.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@orders_bp.post("/<order_id>/cancel")
@require_auth
@require_roles(ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
def cancel_order_route(order_id: str):
    try:
        order = order_service.cancel_order(order_id, actor=g.auth)
        return jsonify({"order": order.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<order_id>/delivery-status")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def update_delivery_status_route(order_id: str):
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.update_delivery_status(order_id, data.get("delivery_status"), actor=g.auth)
        return jsonify({"order": order.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@orders_bp.post("/<order_id>/returns")
@require_auth
@require_roles(ROLE_CUSTOMER)
def create_return_route(order_id: str):
    """Body: {"lines": [{"line_id": 1, "quantity": 1}], "reason": "..."}"""
    data = request.get_json(silent=True) or {}
    try:
        ret = order_service.create_return(
            order_id, actor=g.auth, lines=data.get("lines") or [], reason=data.get("reason")
        )
        return jsonify({"return": ret.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create return")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/returns")
@require_auth
@require_roles(ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
def list_returns_route():
    returns = order_service.list_returns(actor=g.auth, status=request.args.get("status"))
    return jsonify({"returns": [r.to_dict() for r in returns]}), 200


@orders_bp.post("/returns/<return_id>/approve")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def approve_return_route(return_id: str):
    note = (request.get_json(silent=True) or {}).get("note")
    try:
        ret = order_service.approve_return(return_id, actor=g.auth, note=note)
        return jsonify({"return": ret.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to approve return")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/returns/<return_id>/reject")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def reject_return_route(return_id: str):
    note = (request.get_json(silent=True) or {}).get("note")
    try:
        ret = order_service.reject_return(return_id, actor=g.auth, note=note)
        return jsonify({"return": ret.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@orders_bp.get("/refunds")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def list_refunds_route():
    """Cancelled paid orders by refund state; ?status=PENDING (default) or COMPLETED."""
    try:
        status = (request.args.get("status") or REFUND_STATUS_PENDING).upper()
        orders = order_service.list_refunds(actor=g.auth, status=status)
        return jsonify({"orders": [o.to_dict() for o in orders]}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@orders_bp.post("/<order_id>/refund")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def complete_refund_route(order_id: str):
    try:
        order = order_service.complete_refund(
            order_id, actor=g.auth, notifier=current_app.extensions["notifier"]
        )
        return jsonify({"order": order.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to complete refund")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/returns/<return_id>/refund")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def complete_return_refund_route(return_id: str):
    try:
        ret = order_service.complete_return_refund(
            return_id, actor=g.auth, notifier=current_app.extensions["notifier"]
        )
        return jsonify({"return": ret.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to complete return refund")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/quotes")
@require_auth
@require_roles(ROLE_CUSTOMER)
def create_quote_route():
    """
    Request a bulk quote for a logo-customised product.

    Body: {"product": {group, product_id, color, size, quantity},
           "logo_url": "...", "logo_position": "left-chest"}
    """
    data = request.get_json(silent=True) or {}
    try:
        quote = order_service.create_quote(
            actor=g.auth,
            line=data.get("product") or {},
            logo_url=data.get("logo_url"),
            logo_position=data.get("logo_position"),
        )
        return jsonify({"quote": quote.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create quote")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/quotes")
@require_auth
@require_roles(ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
def list_quotes_route():
    quotes = order_service.list_quotes(actor=g.auth)
    return jsonify({"quotes": [q.to_dict() for q in quotes]}), 200


@orders_bp.get("/quotes/<quote_id>")
@require_auth
@require_roles(ROLE_CUSTOMER, ROLE_WAREHOUSE_MANAGER)
def get_quote_route(quote_id: str):
    try:
        quote = order_service.get_quote(quote_id, actor=g.auth)
        return jsonify({"quote": quote.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
