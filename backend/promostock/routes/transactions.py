# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

# backend/promostock/routes/transactions.py
"""
Stock Movement API Routes

WHY: Warehouse staff record every take-out, return, burn and restock here.

DESIGN:
- One POST records one movement (one atomic unit in transaction_service).
- The batch POST applies one kind/promoter to many lines; the response is 200
  even when some lines failed, with per-line results.
- History is read-only and paginated, newest first.

SECURITY:
- Mutations require X-Employee-Id (require_employee).
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import batch_service, transaction_service
from ..validation import parse_batch_payload, parse_transaction_payload, ValidationError
from ..decorators import require_employee


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
@require_employee
def record_transaction_route():
    """
    Record one stock movement.

    Request body:
    {
        "transaction_type": "take_out",
        "item_id": 1,
        "item_size_id": 3,
        "quantity": 5,
        "promoter_id": 2,     (required for take_out/return/burn, forbidden for restock)
        "note": "Event X"     (optional)
    }
    """
    try:
        data = parse_transaction_payload(request.get_json(silent=True))
        tx = transaction_service.record(
            data["kind"],
            data["item_id"],
            data["item_size_id"],
            data["quantity"],
            g.current_employee.id,
            promoter_id=data["promoter_id"],
            note=data["note"],
        )
        return jsonify({"transaction": tx.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record transaction")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.post("/batch")
@require_employee
def record_batch_route():
    """
    Apply one movement kind for one promoter across many lines.

    Request body:
    {
        "transaction_type": "take_out",
        "promoter_id": 2,
        "lines": [{"item_id": 1, "item_size_id": 3, "quantity": 2}, ...],
        "note": "optional"
    }
    """
    try:
        data = parse_batch_payload(request.get_json(silent=True))
        result = batch_service.apply_batch(
            data["kind"],
            data["promoter_id"],
            g.current_employee.id,
            data["lines"],
            note=data["note"],
        )
        body = result.to_dict()
        body["all_succeeded"] = result.all_succeeded
        return jsonify(body), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to apply batch")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.get("")
def list_transactions_route():
    """
    Transaction history.

    Query params:
    - transaction_type: repeatable
    - item_id, promoter_id, employee_id: int
    - start_date, end_date: ISO-8601 (a bare end date includes that whole day)
    - page: int (default 1)
    - per_page: int (default 20, max 100)
    """
    filters = {
        "transaction_type": request.args.getlist("transaction_type") or None,
        "item_id": request.args.get("item_id", type=int),
        "promoter_id": request.args.get("promoter_id", type=int),
        "employee_id": request.args.get("employee_id", type=int),
        "start_date": request.args.get("start_date"),
        "end_date": request.args.get("end_date"),
    }
    page = request.args.get("page", default=1, type=int)
    per_page = request.args.get("per_page", default=20, type=int)

    try:
        return jsonify(transaction_service.list_transactions(filters, page=page, per_page=per_page)), 200
    except ValueError:
        return jsonify(ValidationError("start_date and end_date must be ISO-8601 datetimes").to_dict()), 400
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status


@transactions_bp.get("/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    try:
        return jsonify({"transaction": transaction_service.get_transaction_details(transaction_id)}), 200
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
