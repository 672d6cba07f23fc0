# Overview: Flask API routes for stores operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import ServiceError
from ..models.auth import ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from ..services import store_service


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")


@stores_bp.get("")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def list_stores():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    stores = store_service.list_stores(actor=g.auth, include_inactive=include_inactive)
    return jsonify([store.to_dict() for store in stores]), 200


@stores_bp.post("")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def create_store():
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.create_store(
            actor=g.auth,
            store_name=data.get("store_name"),
            commission_percentage=data.get("commission_percentage", 0),
            **{k: data.get(k) for k in store_service.STORE_FIELDS},
        )
        return jsonify(store.to_dict()), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/<int:store_id>")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def get_store(store_id: int):
    try:
        store = store_service.get_store(store_id, actor=g.auth)
        return jsonify(store.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@stores_bp.put("/<int:store_id>")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def update_store(store_id: int):
    data = request.get_json(silent=True) or {}
    try:
        allowed = store_service.STORE_FIELDS + ("commission_percentage", "is_active")
        changes = {k: v for k, v in data.items() if k in allowed}
        store = store_service.update_store(store_id, actor=g.auth, **changes)
        return jsonify(store.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
