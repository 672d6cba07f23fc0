# Overview: Flask API routes for store bills and their edit/delete approval workflow.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import BadRequest, ServiceError
from ..models.auth import ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from ..services import billing_service


billing_bp = Blueprint("billing", __name__, url_prefix="/api/bills")


def _is_approved(data: dict) -> bool:
    value = data.get("is_approved")
    if not isinstance(value, bool):
        raise BadRequest("is_approved must be true or false")
    return value


@billing_bp.post("")
@require_auth
@require_roles(ROLE_STORE_MANAGER)
def create_bill_route():
    """
    Issue a bill at the caller's store.

    Body: {"customer": {name, phone, email?}, "products": [{style_coat | group,
           product_id, color, size; quantity}], "discount_percentage": 0,
           "mode_of_payment": "CASH" | "UPI" | "CARD"}
    """
    data = request.get_json(silent=True) or {}
    try:
        bill = billing_service.create_bill(
            actor=g.auth,
            customer=data.get("customer") or {},
            lines=data.get("products") or [],
            discount_percentage=data.get("discount_percentage", 0),
            mode_of_payment=data.get("mode_of_payment", "CASH"),
        )
        return jsonify({"bill": bill.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create bill")
        return jsonify({"error": "Internal server error"}), 500


@billing_bp.get("")
@require_auth
@require_roles(ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
def list_bills_route():
    bills = billing_service.list_bills(
        actor=g.auth,
        store_id=request.args.get("store_id", type=int),
        include_deleted=request.args.get("include_deleted", "false").lower() == "true",
        delete_req_status=request.args.get("delete_req_status"),
    )
    return jsonify({"bills": [b.to_dict() for b in bills]}), 200


@billing_bp.get("/<bill_id>")
@require_auth
@require_roles(ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
def get_bill_route(bill_id: str):
    try:
        bill = billing_service.get_bill(bill_id, actor=g.auth)
        return jsonify({"bill": bill.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@billing_bp.get("/<bill_id>/history")
@require_auth
@require_roles(ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
def bill_history_route(bill_id: str):
    try:
        history = billing_service.get_bill_history(bill_id, actor=g.auth)
        return jsonify({"history": [h.to_dict() for h in history]}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@billing_bp.post("/<bill_id>/delete-request")
@require_auth
@require_roles(ROLE_STORE_MANAGER)
def delete_request_route(bill_id: str):
    data = request.get_json(silent=True) or {}
    try:
        bill = billing_service.create_bill_delete_request(bill_id, actor=g.auth, note=data.get("note"))
        return jsonify({"bill": bill.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@billing_bp.post("/<bill_id>/delete-request/validate")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def validate_delete_request_route(bill_id: str):
    data = request.get_json(silent=True) or {}
    try:
        bill = billing_service.validate_bill_delete_request(
            bill_id, actor=g.auth, is_approved=_is_approved(data), note=data.get("note")
        )
        return jsonify({"bill": bill.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to validate bill delete request")
        return jsonify({"error": "Internal server error"}), 500


@billing_bp.post("/<bill_id>/edit-requests")
@require_auth
@require_roles(ROLE_STORE_MANAGER)
def create_edit_request_route(bill_id: str):
    data = request.get_json(silent=True) or {}
    try:
        req = billing_service.create_bill_edit_request(
            bill_id,
            actor=g.auth,
            lines=data.get("products") or [],
            discount_percentage=data.get("discount_percentage", 0),
            mode_of_payment=data.get("mode_of_payment", "CASH"),
            customer=data.get("customer"),
            note=data.get("note"),
        )
        return jsonify({"edit_request": req.to_dict()}), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create bill edit request")
        return jsonify({"error": "Internal server error"}), 500


@billing_bp.get("/edit-requests")
@require_auth
@require_roles(ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
def list_edit_requests_route():
    reqs = billing_service.list_bill_edit_requests(actor=g.auth, status=request.args.get("status"))
    return jsonify({"edit_requests": [r.to_dict() for r in reqs]}), 200


@billing_bp.get("/edit-requests/<edit_bill_req_id>")
@require_auth
@require_roles(ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
def get_edit_request_route(edit_bill_req_id: str):
    try:
        req = billing_service.get_bill_edit_request(edit_bill_req_id, actor=g.auth)
        return jsonify({"edit_request": req.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@billing_bp.post("/edit-requests/<edit_bill_req_id>/validate")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def validate_edit_request_route(edit_bill_req_id: str):
    data = request.get_json(silent=True) or {}
    try:
        req = billing_service.validate_bill_edit_request(
            edit_bill_req_id, actor=g.auth, is_approved=_is_approved(data), note=data.get("note")
        )
        return jsonify({"edit_request": req.to_dict(), "bill": req.bill.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to validate bill edit request")
        return jsonify({"error": "Internal server error"}), 500


@billing_bp.post("/<bill_id>/invoice")
@require_auth
@require_roles(ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER)
def upload_invoice_route(bill_id: str):
    if "file" not in request.files:
        return jsonify({"error": "file is required"}), 400
    try:
        bill = billing_service.attach_invoice(
            bill_id,
            request.files["file"].stream.read(),
            actor=g.auth,
            blob_store=current_app.extensions["blob_store"],
        )
        return jsonify({"bill": bill.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to upload invoice")
        return jsonify({"error": "Internal server error"}), 500
