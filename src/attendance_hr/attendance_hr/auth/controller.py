from __future__ import annotations

import logging

from flask import Flask

from ..common.http import current_context, json_body, make_guards, ok
from ..common.validators import require_fields
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container) -> None:
    login_required, _, _ = make_guards(container)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        require_fields(data, ("email", "password"))
        auth_session = container.auth.sign_in(data["email"], data["password"])
        try:
            ctx = container.employee_service.context_for(auth_session.identity)
        except DomainError:
            # credentials are fine but there is no usable employee profile
            container.auth.sign_out()
            raise
        employee = container.employee_service.profile(ctx)
        return ok(
            "Signed in",
            user={"id": auth_session.identity.identity_id, "email": auth_session.identity.email},
            employee=employee.to_dict(),
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        container.auth.sign_out()
        return ok("Signed out")

    @app.route("/api/auth/session", methods=["GET"], endpoint="auth_session")
    def current_session():
        identity = container.auth.get_current_session()
        if identity is None:
            return ok(authenticated=False)
        return ok(authenticated=True, user={"id": identity.identity_id, "email": identity.email})

    @app.route("/api/me", methods=["GET"], endpoint="me_profile")
    @login_required
    def me():
        ctx = current_context()
        return ok(employee=container.employee_service.profile(ctx).to_dict())
