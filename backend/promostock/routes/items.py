# Overview: Flask API routes for items, sizes, quantities and shared-brand links.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import catalog_service, quantity_service, sharing_service, transaction_service
from ..validation import ValidationError
from ..decorators import require_employee


items_bp = Blueprint("items", __name__, url_prefix="/api/items")


def _item_body(item_id: int) -> dict:
    item = catalog_service.get_item(item_id)
    data = item.to_dict()
    data["sizes"] = quantity_service.size_quantities(item_id)
    data["quantities"] = quantity_service.project(item_id)
    data["brand_ids"] = sharing_service.visible_brand_ids(item)
    return data


@items_bp.post("")
@require_employee
def create_item_route():
    """
    Create an item with its sizes.

    Request body:
    {
        "brand_id": 1,
        "name": "Festival T-shirt",
        "product_code": "TS-2024",
        "image_url": null,
        "sizes": [{"size": "M", "quantity": 10}, {"size": "L", "quantity": 5}]
    }
    An empty or missing sizes list creates a single "ONE SIZE" size.
    """
    payload = request.get_json(silent=True) or {}
    try:
        if payload.get("brand_id") is None:
            raise ValidationError("brand_id is required")
        sizes = payload.get("sizes") or []
        if not isinstance(sizes, list):
            raise ValidationError("sizes must be a list")

        item = catalog_service.create_item(
            brand_id=payload["brand_id"],
            name=payload.get("name"),
            product_code=payload.get("product_code"),
            sizes=sizes,
            employee_id=g.current_employee.id,
            image_url=payload.get("image_url"),
        )
        return jsonify({"item": _item_body(item.id)}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.get("/<int:item_id>")
def get_item_route(item_id: int):
    try:
        return jsonify({"item": _item_body(item_id)}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status


@items_bp.patch("/<int:item_id>")
@require_employee
def update_item_route(item_id: int):
    try:
        catalog_service.update_item(item_id, request.get_json(silent=True), g.current_employee.id)
        return jsonify({"item": _item_body(item_id)}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.post("/<int:item_id>/sizes")
@require_employee
def add_size_route(item_id: int):
    """Request body: {"size": "XL", "quantity": 4}"""
    payload = request.get_json(silent=True) or {}
    try:
        item_size = catalog_service.add_item_size(
            item_id, payload.get("size"), payload.get("quantity", 0), g.current_employee.id
        )
        return jsonify({"item_size": item_size.to_dict()}), 201
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add item size")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.get("/<int:item_id>/sizes")
def list_sizes_route(item_id: int):
    try:
        return jsonify({"sizes": quantity_service.size_quantities(item_id)}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status


@items_bp.get("/<int:item_id>/quantities")
def item_quantities_route(item_id: int):
    try:
        return jsonify({"item_id": item_id, "quantities": quantity_service.project(item_id)}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status


@items_bp.get("/<int:item_id>/stats")
def item_stats_route(item_id: int):
    try:
        return jsonify(transaction_service.item_transaction_stats(item_id)), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status


@items_bp.post("/<int:item_id>/shared-links")
@require_employee
def link_brand_route(item_id: int):
    """Request body: {"brand_id": 2}"""
    payload = request.get_json(silent=True) or {}
    brand_id = payload.get("brand_id")
    try:
        if isinstance(brand_id, bool) or not isinstance(brand_id, int):
            raise ValidationError("brand_id must be an integer", details={"brand_id": brand_id})
        brand_ids = sharing_service.link_existing_shared_item(
            item_id, brand_id, employee_id=g.current_employee.id
        )
        return jsonify({"item_id": item_id, "brand_ids": brand_ids}), 201
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to link shared item")
        return jsonify({"error": "Internal server error"}), 500


@items_bp.delete("/<int:item_id>/shared-links/<int:brand_id>")
@require_employee
def unlink_brand_route(item_id: int, brand_id: int):
    try:
        remaining = sharing_service.unlink(item_id, brand_id, employee_id=g.current_employee.id)
        return jsonify({"item_id": item_id, "brand_ids": remaining}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to unlink shared item")
        return jsonify({"error": "Internal server error"}), 500
