# Overview: Flask API routes for dashboard counts and stock exports.

from flask import Blueprint, Response, current_app, g, jsonify

from ..decorators import require_auth, require_roles
from ..errors import ServiceError
from ..models.auth import ROLE_STORE_MANAGER, ROLE_WAREHOUSE_MANAGER
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/overview")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER)
def overview_route():
    try:
        return jsonify(reporting_service.get_overview(actor=g.auth)), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@reports_bp.get("/stores/<int:store_id>/stock.csv")
@require_auth
@require_roles(ROLE_WAREHOUSE_MANAGER, ROLE_STORE_MANAGER)
def export_stock_route(store_id: int):
    try:
        body = reporting_service.export_store_stock(store_id, actor=g.auth)
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to export stock for store %s", store_id)
        return jsonify({"error": "Internal server error"}), 500
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename=store-{store_id}-stock.csv"},
    )
