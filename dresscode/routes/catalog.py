# Overview: Public catalog browsing; product search, facets and product detail.

from flask import Blueprint, jsonify, request

from ..errors import BadRequest, ServiceError
from ..services import catalog_service


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/catalog")

_PAGING_ARGS = {"limit", "offset"}


def _filters_from_args() -> dict:
    """Repeated query args become lists: ?color=RED&color=BLUE."""
    filters = {}
    for key, values in request.args.to_dict(flat=False).items():
        if key in _PAGING_ARGS:
            continue
        filters[key] = values if len(values) > 1 else values[0]
    return filters


def _paging() -> tuple[int, int]:
    try:
        limit = min(max(int(request.args.get("limit", 50)), 1), 200)
        offset = max(int(request.args.get("offset", 0)), 0)
    except ValueError:
        raise BadRequest("limit and offset must be integers")
    return limit, offset


@catalog_bp.get("/groups")
def list_groups_route():
    return jsonify({
        "groups": [
            {"group": name, "facets": list(capability.facets)}
            for name, capability in catalog_service.BRANDS.items()
        ]
    }), 200


@catalog_bp.get("/<group>/products")
def search_products_route(group: str):
    try:
        limit, offset = _paging()
        products = catalog_service.search_products(group, _filters_from_args(), limit=limit, offset=offset)
        return jsonify({"products": [p.to_dict() for p in products], "limit": limit, "offset": offset}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@catalog_bp.get("/<group>/facets/<facet>")
def facet_values_route(group: str, facet: str):
    try:
        values = catalog_service.get_facet_values(group, facet, _filters_from_args())
        return jsonify({"facet": facet, "values": values}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@catalog_bp.get("/<group>/products/<product_id>")
def get_product_route(group: str, product_id: str):
    try:
        product = catalog_service.get_product(group, product_id)
        return jsonify({"product": product.to_dict()}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
