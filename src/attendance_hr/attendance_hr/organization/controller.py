from __future__ import annotations

from flask import Flask, request

from ..common.http import bool_arg, current_context, json_body, make_guards, ok


def register(app: Flask, container) -> None:
    login_required, admin_required, _ = make_guards(container)
    org = container.organization_service

    # departments

    @app.route("/api/admin/departments", methods=["GET"], endpoint="admin_departments")
    @login_required
    def list_departments():
        items = org.list_departments(current_context(), include_inactive=bool_arg("include_inactive"))
        return ok(departments=[d.to_dict() for d in items])

    @app.route("/api/admin/departments", methods=["POST"], endpoint="admin_departments_create")
    @admin_required
    def create_department():
        department = org.create_department(current_context(), json_body())
        return ok("Department created", status=201, department=department.to_dict())

    @app.route("/api/admin/departments/<department_id>", methods=["PATCH"], endpoint="admin_department_update")
    @admin_required
    def update_department(department_id: str):
        department = org.update_department(current_context(), department_id, json_body())
        return ok("Department updated", department=department.to_dict())

    @app.route("/api/admin/departments/<department_id>", methods=["DELETE"], endpoint="admin_department_deactivate")
    @admin_required
    def deactivate_department(department_id: str):
        department = org.deactivate_department(current_context(), department_id)
        return ok("Department deactivated", department=department.to_dict())

    # positions

    @app.route("/api/admin/positions", methods=["GET"], endpoint="admin_positions")
    @login_required
    def list_positions():
        items = org.list_positions(current_context(), department_id=request.args.get("department_id") or None)
        return ok(positions=[p.to_dict() for p in items])

    @app.route("/api/admin/positions", methods=["POST"], endpoint="admin_positions_create")
    @admin_required
    def create_position():
        position = org.create_position(current_context(), json_body())
        return ok("Position created", status=201, position=position.to_dict())

    @app.route("/api/admin/positions/<position_id>", methods=["PATCH"], endpoint="admin_position_update")
    @admin_required
    def update_position(position_id: str):
        position = org.update_position(current_context(), position_id, json_body())
        return ok("Position updated", position=position.to_dict())

    @app.route("/api/admin/positions/<position_id>", methods=["DELETE"], endpoint="admin_position_deactivate")
    @admin_required
    def deactivate_position(position_id: str):
        position = org.deactivate_position(current_context(), position_id)
        return ok("Position deactivated", position=position.to_dict())

    # work policy

    @app.route("/api/admin/policy", methods=["GET"], endpoint="admin_policy")
    @login_required
    def get_policy():
        policy = org.get_active_policy(current_context().organization_id)
        return ok(policy=policy.to_dict() if policy else None)

    @app.route("/api/admin/policy", methods=["PUT"], endpoint="admin_policy_save")
    @admin_required
    def save_policy():
        policy = org.save_policy(current_context(), json_body())
        return ok("Work policy saved", policy=policy.to_dict())

    # settings

    @app.route("/api/admin/settings", methods=["GET"], endpoint="admin_settings")
    @login_required
    def list_settings():
        items = org.list_settings(current_context(), category=request.args.get("category") or None)
        return ok(settings=[s.to_dict() for s in items])

    @app.route("/api/admin/settings", methods=["PUT"], endpoint="admin_settings_save")
    @admin_required
    def save_setting():
        setting = org.set_setting(current_context(), json_body())
        return ok("Setting saved", setting=setting.to_dict())
