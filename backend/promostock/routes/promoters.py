# Overview: Flask API routes for promoters and their derived holdings.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import catalog_service, holdings_service
from ..decorators import require_employee


promoters_bp = Blueprint("promoters", __name__, url_prefix="/api/promoters")


@promoters_bp.post("")
@require_employee
def create_promoter_route():
    try:
        promoter = catalog_service.create_promoter(request.get_json(silent=True), g.current_employee.id)
        return jsonify({"promoter": promoter.to_dict()}), 201
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create promoter")
        return jsonify({"error": "Internal server error"}), 500


@promoters_bp.patch("/<int:promoter_id>")
@require_employee
def update_promoter_route(promoter_id: int):
    """Request body: any subset of the promoter's contact fields and is_active."""
    try:
        promoter = catalog_service.update_promoter(promoter_id, request.get_json(silent=True), g.current_employee.id)
        return jsonify({"promoter": promoter.to_dict()}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update promoter")
        return jsonify({"error": "Internal server error"}), 500


@promoters_bp.get("")
def list_promoters_route():
    """Query params: search (name contains), include_inactive=true."""
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    promoters = catalog_service.list_promoters(
        active_only=not include_inactive,
        search=request.args.get("search"),
    )
    return jsonify({"promoters": [p.to_dict() for p in promoters]}), 200


@promoters_bp.get("/<int:promoter_id>/holdings")
def promoter_holdings_route(promoter_id: int):
    """Current stock held by the promoter, replayed from the transaction log."""
    try:
        return jsonify({
            "promoter_id": promoter_id,
            "holdings": holdings_service.holdings_detailed(promoter_id),
        }), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status


@promoters_bp.get("/<int:promoter_id>/stats")
def promoter_stats_route(promoter_id: int):
    try:
        return jsonify(holdings_service.promoter_stats(promoter_id)), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
