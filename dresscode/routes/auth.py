# Overview: Flask API routes for authentication and customer accounts.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import ServiceError
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_CUSTOMER
from ..services import address_service, auth_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """Customer self-registration."""
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.register_customer(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            phone_number=data.get("phone_number"),
        )
        return jsonify({"user": user.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Registration failed")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Exchange email and password for a bearer token.

    Response: {"user": {...}, "token": "<bearer token>"}
    """
    data = request.get_json(silent=True) or {}
    try:
        user, token = auth_service.login(data.get("email"), data.get("password"))
        return jsonify({"user": user.to_dict(), "token": token}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.token)
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = db.session.get(User, g.auth.user_id)
    return jsonify({"user": user.to_dict()}), 200


@auth_bp.get("/addresses")
@require_auth
@require_roles(ROLE_CUSTOMER)
def list_addresses_route():
    addresses = address_service.list_addresses(actor=g.auth)
    return jsonify({"addresses": [a.to_dict() for a in addresses]}), 200


@auth_bp.post("/addresses")
@require_auth
@require_roles(ROLE_CUSTOMER)
def add_address_route():
    try:
        address = address_service.add_address(request.get_json(silent=True) or {}, actor=g.auth)
        return jsonify({"address": address.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@auth_bp.post("/addresses/<int:address_id>/default")
@require_auth
@require_roles(ROLE_CUSTOMER)
def set_default_address_route(address_id: int):
    try:
        address = address_service.set_default_address(address_id, actor=g.auth)
        return jsonify({"address": address.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@auth_bp.delete("/addresses/<int:address_id>")
@require_auth
@require_roles(ROLE_CUSTOMER)
def delete_address_route(address_id: int):
    try:
        address_service.delete_address(address_id, actor=g.auth)
        return jsonify({"message": "Address deleted"}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
