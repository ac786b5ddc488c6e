"""Create a first organization: default work policy plus a super admin account.

Usage: python scripts/seed_db.py <organization_id> <admin_email> <admin_password>
"""
from __future__ import annotations

import importlib
import sys
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_hr.attendance_hr.container import build_container, build_data_client
from src.attendance_hr.attendance_hr.core.context import RequestContext
from src.attendance_hr.attendance_hr.core.enums import Role
from src.attendance_hr.attendance_hr.employees.model import Employee
from src.attendance_hr.attendance_hr.employees.service import generate_employee_code


def main(argv: list[str]) -> None:
    if len(argv) != 3:
        raise SystemExit(__doc__)
    organization_id, email, password = argv

    settings = importlib.import_module(get_settings_module())
    data, missing = build_data_client(dict(settings.DB_CONFIG))
    if missing:
        raise SystemExit("Database is not configured, missing: " + ", ".join(missing))
    container = build_container(data=data, session_store={}, org_timezone=settings.ORG_TIMEZONE)

    # the first account cannot be created through the API: nobody is signed in yet
    identity = container.auth.create_identity(email, password, {"role": Role.SUPER_ADMIN.value})
    admin = container.employees_repo.create(
        Employee(
            employee_id=identity.identity_id,
            organization_id=organization_id,
            employee_code=generate_employee_code(date.today().year),
            first_name="System",
            last_name="Administrator",
            email=identity.email,
            role=Role.SUPER_ADMIN,
            hire_date=date.today(),
        )
    )

    ctx = RequestContext(organization_id=organization_id, employee_id=admin.employee_id, role=admin.role)
    container.organization_service.save_policy(
        ctx,
        {"name": "Default", "start_time": "09:00", "end_time": "18:00", "break_duration": 60, "late_threshold": 15},
    )
    container.organization_service.set_setting(
        ctx, {"category": "general", "key": "timezone", "value": settings.ORG_TIMEZONE, "is_public": True}
    )
    print(f"OK: organization {organization_id} seeded, admin {admin.email} ({admin.employee_code})")


if __name__ == "__main__":
    main(sys.argv[1:])
