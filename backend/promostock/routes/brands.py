# Overview: Flask API routes for brands; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import catalog_service, sharing_service
from ..decorators import require_employee


brands_bp = Blueprint("brands", __name__, url_prefix="/api/brands")


@brands_bp.post("")
@require_employee
def create_brand_route():
    """Request body: {"name": "Acme", "logo_url": null, "is_pinned": false}"""
    try:
        brand = catalog_service.create_brand(request.get_json(silent=True), g.current_employee.id)
        return jsonify({"brand": brand.to_dict()}), 201
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create brand")
        return jsonify({"error": "Internal server error"}), 500


@brands_bp.patch("/<int:brand_id>")
@require_employee
def update_brand_route(brand_id: int):
    """Request body: {"name"?, "logo_url"?, "is_pinned"?, "is_active"?}"""
    try:
        brand = catalog_service.update_brand(brand_id, request.get_json(silent=True), g.current_employee.id)
        return jsonify({"brand": brand.to_dict()}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update brand")
        return jsonify({"error": "Internal server error"}), 500


@brands_bp.get("")
def list_brands_route():
    """Query params: include_inactive=true to list deactivated brands too."""
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    brands = catalog_service.list_brands(active_only=not include_inactive)
    return jsonify({"brands": [b.to_dict() for b in brands]}), 200


@brands_bp.get("/<int:brand_id>/items")
def brand_items_route(brand_id: int):
    """
    Items shown under a brand: its own plus items shared into it.

    A shared item reports the same quantities under every linked brand.
    """
    active_only = request.args.get("active_only", "false").lower() == "true"
    try:
        return jsonify({
            "brand_id": brand_id,
            "items": sharing_service.brand_items(brand_id, active_only=active_only),
        }), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
