from __future__ import annotations

import logging
from typing import Any, Mapping

from flask import Flask, jsonify, request

from ..common.http import bool_arg, current_context, json_body, make_guards, ok
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, DomainError, ValidationError
from ..reports.export import XLSX_MIMETYPE, employees_csv, employees_xlsx

logger = logging.getLogger(__name__)

# camelCase names accepted from browser forms
FIELD_ALIASES = {
    "firstName": "first_name",
    "lastName": "last_name",
    "hireDate": "hire_date",
    "organizationId": "organization_id",
    "departmentId": "department_id",
    "positionId": "position_id",
    "workSchedule": "work_schedule",
}


def normalize_payload(data: Mapping[str, Any]) -> dict:
    return {FIELD_ALIASES.get(k, k): v for k, v in data.items()}


def _created_body(created) -> dict:
    body = {
        "user": {
            "id": created.identity.identity_id,
            "email": created.identity.email,
            "metadata": dict(created.identity.metadata),
        },
        "employee": created.employee.to_dict(),
    }
    if created.temporary_password:
        body["temporary_password"] = created.temporary_password
    return body


def register(app: Flask, container) -> None:
    login_required, admin_required, viewer_required = make_guards(container)
    employees = container.employee_service

    @app.route("/api/employee/create", methods=["POST"], endpoint="employee_create")
    def create_employee_account():
        """Privileged account creation: provisions the login identity and the employee row.

        Answers {user, employee} with 201, or {error, details} with 400/401/403/500.
        """
        try:
            identity = container.auth.get_current_session()
            if identity is None:
                raise AuthenticationError("Please sign in to continue")
            ctx = employees.context_for(identity)
            data = normalize_payload(json_body())
            created = employees.create_employee(ctx, data)
        except (ValidationError, ConflictError) as e:
            return jsonify({"error": e.message, "details": e.details}), 400
        except AuthenticationError as e:
            return jsonify({"error": e.message, "details": e.details}), 401
        except AuthorizationError as e:
            return jsonify({"error": e.message, "details": e.details}), 403
        except DomainError as e:
            logger.error("employee account creation failed: %s", e.message)
            return jsonify({"error": "Could not create employee", "details": e.message}), 500
        return jsonify(_created_body(created)), 201

    @app.route("/api/admin/employees", methods=["GET"], endpoint="admin_employees")
    @viewer_required
    def list_employees():
        items = employees.list_employees(
            current_context(),
            active_only=bool_arg("active_only"),
            department_id=request.args.get("department_id") or None,
        )
        return ok(employees=[e.to_dict() for e in items])

    @app.route("/api/admin/employees", methods=["POST"], endpoint="admin_employees_create")
    @admin_required
    def create_employee():
        created = employees.create_employee(current_context(), normalize_payload(json_body()))
        return ok("Employee created", status=201, **_created_body(created))

    @app.route("/api/admin/employees.csv", methods=["GET"], endpoint="admin_employees_csv")
    @viewer_required
    def employees_export_csv():
        ctx = current_context()
        items = employees.list_employees(ctx, active_only=bool_arg("active_only"))
        lookups = _lookups(ctx)
        csv_bytes = employees_csv(items, **lookups).encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=employees.csv"},
        )

    @app.route("/api/admin/employees.xlsx", methods=["GET"], endpoint="admin_employees_xlsx")
    @viewer_required
    def employees_export_xlsx():
        ctx = current_context()
        items = employees.list_employees(ctx, active_only=bool_arg("active_only"))
        return app.response_class(
            employees_xlsx(items, **_lookups(ctx)),
            mimetype=XLSX_MIMETYPE,
            headers={"Content-Disposition": "attachment; filename=employees.xlsx"},
        )

    def _lookups(ctx) -> dict:
        org = container.organization_service
        return {
            "departments": {d.department_id: d.name for d in org.list_departments(ctx, include_inactive=True)},
            "positions": {p.position_id: p.title for p in org.list_positions(ctx)},
        }

    @app.route("/api/admin/employees/<employee_id>", methods=["GET"], endpoint="admin_employee_detail")
    @login_required
    def get_employee(employee_id: str):
        return ok(employee=employees.get_employee(current_context(), employee_id).to_dict())

    @app.route("/api/admin/employees/<employee_id>", methods=["PATCH"], endpoint="admin_employee_update")
    @admin_required
    def update_employee(employee_id: str):
        updated = employees.update_employee(current_context(), employee_id, normalize_payload(json_body()))
        return ok("Employee updated", employee=updated.to_dict())

    @app.route("/api/admin/employees/<employee_id>/schedule", methods=["PUT"], endpoint="admin_employee_schedule")
    @admin_required
    def update_schedule(employee_id: str):
        data = json_body()
        updated = employees.update_schedule(current_context(), employee_id, data or None)
        return ok("Schedule updated", employee=updated.to_dict())

    @app.route("/api/admin/employees/<employee_id>/deactivate", methods=["POST"], endpoint="admin_employee_deactivate")
    @admin_required
    def deactivate_employee(employee_id: str):
        return ok("Employee deactivated", employee=employees.deactivate(current_context(), employee_id).to_dict())

    @app.route("/api/admin/employees/<employee_id>/activate", methods=["POST"], endpoint="admin_employee_activate")
    @admin_required
    def activate_employee(employee_id: str):
        return ok("Employee activated", employee=employees.activate(current_context(), employee_id).to_dict())

    @app.route("/api/admin/employees/<employee_id>", methods=["DELETE"], endpoint="admin_employee_delete")
    @admin_required
    def delete_employee(employee_id: str):
        employees.delete(current_context(), employee_id)
        return ok("Employee deleted")
