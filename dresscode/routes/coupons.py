# Overview: Flask API routes for coupons; partner requests, checks and issuance.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import BadRequest, ServiceError
from ..models.auth import ROLE_WAREHOUSE_MANAGER
from ..services import coupon_service
from ..time_utils import parse_iso_datetime, to_utc_z


coupons_bp = Blueprint("coupons", __name__, url_prefix="/api/coupons")


@coupons_bp.post("/request-coupon")
def request_coupon_route():
    """
    Partner endpoint. Authorization: Bearer <JWT signed with the coupon secret>.

    The JWT carries discountPercentage; the response is the minted code.
    """
    auth_header = request.headers.get("Authorization") or ""
    token = auth_header.split(" ", 1)[1].strip() if auth_header.startswith("Bearer ") else None
    try:
        coupon = coupon_service.request_partner_coupon(
            token,
            secret_key=current_app.config["COUPON_SECRET_KEY"],
            issuer=current_app.config["COUPON_ISSUER"],
            validity_days=current_app.config["COUPON_VALIDITY_DAYS"],
        )
        return jsonify({
            "couponCode": coupon.coupon_code,
            "discountPercentage": coupon.discount_percentage,
            "expiryDate": to_utc_z(coupon.expiry_date),
        }), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to issue partner coupon")
        return jsonify({"error": "Internal server error"}), 500


@coupons_bp.get("/check/<coupon_code>")
@require_auth
def check_coupon_route(coupon_code: str):
    try:
        coupon = coupon_service.check_coupon(coupon_code, g.auth.user_id)
        return jsonify({"message": "Coupon is valid", "coupon": coupon.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@coupons_bp.get("")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def list_coupons_route():
    coupons = coupon_service.list_coupons(actor=g.auth, status=request.args.get("status"))
    return jsonify({"coupons": [c.to_dict() for c in coupons]}), 200


@coupons_bp.post("")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def issue_coupon_route():
    data = request.get_json(silent=True) or {}
    try:
        try:
            expiry = parse_iso_datetime(data.get("expiry_date"))
        except (AttributeError, TypeError, ValueError):
            raise BadRequest("expiry_date must be an ISO-8601 date")
        if expiry is None:
            raise BadRequest("expiry_date is required")
        coupon = coupon_service.issue_coupon(
            actor=g.auth,
            discount_percentage=data.get("discount_percentage"),
            expiry_date=expiry,
            is_single_use=data.get("is_single_use", True),
            linked_group=data.get("linked_group"),
            linked_product_id=data.get("linked_product_id"),
        )
        return jsonify({"coupon": coupon.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to issue coupon")
        return jsonify({"error": "Internal server error"}), 500
