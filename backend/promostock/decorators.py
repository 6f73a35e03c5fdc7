# Overview: Request decorators for API routes; attaches the acting employee.

from functools import wraps
from flask import request, jsonify, g

from .errors import Unauthenticated
from .services import identity_service


EMPLOYEE_HEADER = "X-Employee-Id"


def require_employee(f):
    """
    Require an active acting employee for the request.

    Sets g.current_employee to the resolved Employee.

    SECURITY: Returns 401 if:
    - No X-Employee-Id header
    - Header is not an employee id
    - Employee unknown or deactivated

    Services re-check the employee inside their own unit of work, so a
    deactivation that lands mid-request still blocks the mutation.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get(EMPLOYEE_HEADER)
        if not raw or not raw.strip():
            return jsonify(Unauthenticated().to_dict()), 401

        try:
            g.current_employee = identity_service.resolve_active_employee(raw.strip())
        except Unauthenticated as e:
            return jsonify(e.to_dict()), e.http_status

        return f(*args, **kwargs)

    return decorated_function
