# Overview: Flask API routes for employees; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import catalog_service
from ..decorators import require_employee


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.post("")
@require_employee
def create_employee_route():
    """Request body: {"full_name": "Jane Doe", "initials": "JD"}"""
    payload = request.get_json(silent=True) or {}
    try:
        employee = catalog_service.create_employee(payload.get("full_name"), payload.get("initials"))
        current_app.logger.info("Employee #%s created by #%s", employee.id, g.current_employee.id)
        return jsonify({"employee": employee.to_dict()}), 201
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.patch("/<int:employee_id>")
@require_employee
def update_employee_route(employee_id: int):
    """Request body: {"full_name"?, "initials"?, "is_active"?}"""
    try:
        employee = catalog_service.update_employee(
            employee_id, request.get_json(silent=True), g.current_employee.id
        )
        return jsonify({"employee": employee.to_dict()}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update employee")
        return jsonify({"error": "Internal server error"}), 500


@employees_bp.get("")
def list_employees_route():
    active_only = request.args.get("active_only", "false").lower() == "true"
    employees = catalog_service.list_employees(active_only=active_only)
    return jsonify({"employees": [e.to_dict() for e in employees]}), 200
