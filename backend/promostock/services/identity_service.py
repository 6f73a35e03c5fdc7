# Overview: Resolves the acting employee for ledger mutations.

from __future__ import annotations

from ..errors import Unauthenticated
from ..extensions import db
from ..models import Employee


def resolve_active_employee(employee_id) -> Employee:
    """
    Resolve an employee id to an active Employee.

    SECURITY: Every mutating ledger call goes through here. A missing id,
    unknown id, or deactivated employee is a hard failure; nothing is recorded.
    """
    if employee_id is None or isinstance(employee_id, bool):
        raise Unauthenticated()
    try:
        employee_id = int(employee_id)
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid employee identity", details={"employee_id": str(employee_id)})

    employee = db.session.get(Employee, employee_id)
    if employee is None:
        raise Unauthenticated("Unknown employee", details={"employee_id": employee_id})
    if not employee.is_active:
        raise Unauthenticated("Employee is inactive", details={"employee_id": employee_id})
    return employee
