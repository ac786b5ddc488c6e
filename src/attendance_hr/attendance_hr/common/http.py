"""JSON helpers and session guards shared by the Flask controllers."""
from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Any, Optional

from flask import g, jsonify, request

from ..core.context import RequestContext
from ..core.enums import ErrorKind
from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from .datetime_utils import parse_iso_date

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.REMOTE_UNAVAILABLE: 503,
    ErrorKind.UNAUTHORIZED: 403,
}


def status_for(error: DomainError) -> int:
    if isinstance(error, AuthenticationError):
        return 401
    return STATUS_BY_KIND.get(error.kind, 400)


def error_response(error: DomainError):
    return jsonify(error.to_dict()), status_for(error)


def ok(message: Optional[str] = None, status: int = 200, **payload: Any):
    body = {"success": True}
    if message:
        body["message"] = message
    body.update(payload)
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def date_arg(name: str, default: Optional[date] = None) -> Optional[date]:
    value = request.args.get(name)
    if not value:
        return default
    return parse_iso_date(value)


def int_arg(name: str, default: int) -> int:
    value = request.args.get(name)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer") from None


def bool_arg(name: str, default: bool = False) -> bool:
    value = request.args.get(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def current_context() -> RequestContext:
    return g.ctx


def make_guards(container):
    """Build login_required / admin_required / viewer_required for a container.

    The guards resolve the session identity into a RequestContext stored on
    flask.g; failures surface as domain errors handled by the app.
    """

    def _load_context() -> RequestContext:
        identity = container.auth.get_current_session()
        if identity is None:
            raise AuthenticationError("Please sign in to continue")
        ctx = container.employee_service.context_for(identity)
        g.ctx = ctx
        return ctx

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            _load_context()
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            _load_context().require_manager()
            return view(*args, **kwargs)

        return wrapper

    def viewer_required(view):
        """Managers and administrators."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            _load_context().require_viewer()
            return view(*args, **kwargs)

        return wrapper

    return login_required, admin_required, viewer_required
