# Overview: Flask API routes for stock movement uploads, raise requests, receipts and catalog maintenance.

"""
Inventory Routes

Uploads are multipart (file + form fields) and accept CSV or Excel.
Raise requests also accept a JSON body: {"group": ..., "products": [...]}.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import BadRequest, ServiceError
from ..integrations.tabular import decode_rows
from ..models.auth import ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from ..services import inventory_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _uploaded_rows() -> list[dict]:
    if "file" not in request.files:
        raise BadRequest("file is required")
    file = request.files["file"]
    return decode_rows(file.stream.read(), file.filename or "")


def _note() -> str | None:
    return (request.get_json(silent=True) or {}).get("note")


def _store_id_arg() -> int | None:
    return request.args.get("store_id", type=int)


@inventory_bp.post("/upload")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def upload_route():
    """
    Warehouse stock movement upload.

    Form fields: group, store_id (destination). store_id of the warehouse
    records intake; any other store records an assignment.
    """
    try:
        store_id = request.form.get("store_id", type=int)
        if store_id is None:
            raise BadRequest("store_id is required")
        assignment = inventory_service.process_csv_file(
            _uploaded_rows(),
            group=request.form.get("group"),
            destination_store_id=store_id,
            actor=g.auth,
        )
        return jsonify({"message": "Inventory processed successfully", "assigned_inventory": assignment.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process inventory upload")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/assigned")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def list_assigned_route():
    items = inventory_service.list_assigned_inventories(
        actor=g.auth, store_id=_store_id_arg(), status=request.args.get("status")
    )
    return jsonify({"assigned_inventories": [a.to_dict() for a in items]}), 200


@inventory_bp.get("/assigned/<assigned_inventory_id>")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def get_assigned_route(assigned_inventory_id: str):
    try:
        assignment = inventory_service.get_assigned_inventory(assigned_inventory_id, actor=g.auth)
        return jsonify({"assigned_inventory": assignment.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.post("/assigned/<assigned_inventory_id>/receive")
@require_auth
@require_roles(ROLE_STORE_MANAGER)
def receive_assigned_route(assigned_inventory_id: str):
    try:
        assignment = inventory_service.receive_inventory(assigned_inventory_id, actor=g.auth)
        return jsonify({"message": "Inventory received", "assigned_inventory": assignment.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to receive inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/raised")
@require_auth
@require_roles(ROLE_STORE_MANAGER)
def create_raised_route():
    try:
        if request.files:
            rows = _uploaded_rows()
            group = request.form.get("group")
            draft = request.form.get("draft", "false").lower() == "true"
        else:
            data = request.get_json(silent=True) or {}
            rows = data.get("products") or []
            group = data.get("group")
            draft = bool(data.get("draft"))
        raised = inventory_service.create_raised_inventory(rows, group=group, actor=g.auth, draft=draft)
        return jsonify({"raised_inventory": raised.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to raise inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/raised")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def list_raised_route():
    items = inventory_service.list_raised_inventories(
        actor=g.auth, store_id=_store_id_arg(), status=request.args.get("status")
    )
    return jsonify({"raised_inventories": [r.to_dict() for r in items]}), 200


@inventory_bp.get("/raised/<raised_inventory_id>")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def get_raised_route(raised_inventory_id: str):
    try:
        raised = inventory_service.get_raised_inventory(raised_inventory_id, actor=g.auth)
        return jsonify({"raised_inventory": raised.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.post("/raised/<raised_inventory_id>/submit")
@require_auth
@require_roles(ROLE_STORE_MANAGER)
def submit_raised_route(raised_inventory_id: str):
    try:
        raised = inventory_service.submit_raised_inventory(raised_inventory_id, actor=g.auth)
        return jsonify({"raised_inventory": raised.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.post("/raised/<raised_inventory_id>/approve")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def approve_raised_route(raised_inventory_id: str):
    try:
        raised = inventory_service.approve_inventory(raised_inventory_id, actor=g.auth, note=_note())
        return jsonify({"raised_inventory": raised.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.post("/raised/<raised_inventory_id>/reject")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def reject_raised_route(raised_inventory_id: str):
    try:
        raised = inventory_service.reject_inventory(raised_inventory_id, actor=g.auth, note=_note())
        return jsonify({"raised_inventory": raised.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.post("/raised/<raised_inventory_id>/fulfill")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def fulfill_raised_route(raised_inventory_id: str):
    try:
        assignment = inventory_service.fulfill_raised_inventory(raised_inventory_id, actor=g.auth)
        return jsonify({"assigned_inventory": assignment.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to fulfill raised inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/raised/<raised_inventory_id>/receive")
@require_auth
@require_roles(ROLE_STORE_MANAGER)
def receive_raised_route(raised_inventory_id: str):
    try:
        raised = inventory_service.receive_inventory_request(raised_inventory_id, actor=g.auth)
        return jsonify({"raised_inventory": raised.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.get("/stores/<int:store_id>/stock")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def store_stock_route(store_id: int):
    try:
        stock = inventory_service.get_store_stock(store_id, actor=g.auth)
        return jsonify({"store_id": store_id, "stock": stock}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.patch("/variants/<style_coat>")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def update_variant_size_route(style_coat: str):
    """
    Correct a size's central stock and/or its product price.

    Body: {"quantity": 40, "price": "499.00"}; quantity is the new absolute count.
    """
    data = request.get_json(silent=True) or {}
    try:
        size = inventory_service.update_variant_size(
            style_coat, actor=g.auth, quantity=data.get("quantity"), price=data.get("price")
        )
        return jsonify({"variant_size": size.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update variant size")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/products/<group>/<product_id>/variants/<color>")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def remove_variant_route(group: str, product_id: str, color: str):
    try:
        variant = inventory_service.remove_variant(group, product_id, color, actor=g.auth)
        return jsonify({"variant": variant.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@inventory_bp.delete("/products/<group>/<product_id>")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def delete_product_route(group: str, product_id: str):
    try:
        product = inventory_service.soft_delete_product(group, product_id, actor=g.auth)
        return jsonify({"product": product.to_dict(include_variants=False)}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
