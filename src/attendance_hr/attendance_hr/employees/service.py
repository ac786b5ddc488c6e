from __future__ import annotations

import logging
import random
import secrets
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..auth.client import AuthClient
from ..auth.model import Identity
from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_email, require_fields, require_non_empty
from ..core.constants import EMPLOYEE_CODE_PREFIX
from ..core.context import RequestContext
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, DomainError, NotFoundError, ValidationError
from ..organization.repository import DepartmentRepository, PositionRepository
from .model import Employee, WorkSchedule, parse_role
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)

REQUIRED_EMPLOYEE_FIELDS = ("email", "first_name", "last_name", "role", "hire_date")
EDITABLE_FIELDS = frozenset({"first_name", "last_name", "email", "phone", "department_id", "position_id", "role"})


def generate_employee_code(year: int, rng: Optional[random.Random] = None) -> str:
    """EMP + year + 4 random digits, e.g. EMP20261234."""
    rng = rng or random.Random()
    return f"{EMPLOYEE_CODE_PREFIX}{year}{rng.randint(1000, 9999)}"


@dataclass(frozen=True)
class CreatedEmployee:
    identity: Identity
    employee: Employee
    temporary_password: Optional[str] = None


class EmployeeService:
    """Use cases: administer employee records (and their login identities)."""

    def __init__(
        self,
        employees: EmployeeRepository,
        auth: AuthClient,
        departments: Optional[DepartmentRepository] = None,
        positions: Optional[PositionRepository] = None,
        *,
        rng: Optional[random.Random] = None,
    ):
        self._employees = employees
        self._auth = auth
        self._departments = departments
        self._positions = positions
        self._rng = rng or random.Random()

    def _check_role_grant(self, ctx: RequestContext, role: Role) -> None:
        if role == Role.SUPER_ADMIN and ctx.role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only a super admin can grant the super_admin role")

    def _check_references(self, ctx: RequestContext, *, department_id: Optional[str], position_id: Optional[str]) -> None:
        if department_id and self._departments and not self._departments.get_by_id(ctx.organization_id, department_id):
            raise ValidationError("Department does not exist")
        if position_id and self._positions and not self._positions.get_by_id(ctx.organization_id, position_id):
            raise ValidationError("Position does not exist")

    def _require(self, ctx: RequestContext, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(ctx.organization_id, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def create_employee(self, ctx: RequestContext, payload: Mapping[str, Any], *, today: Optional[date] = None) -> CreatedEmployee:
        ctx.require_manager()
        require_fields(payload, REQUIRED_EMPLOYEE_FIELDS)

        organization_id = payload.get("organization_id") or ctx.organization_id
        if organization_id != ctx.organization_id:
            raise AuthorizationError("Cannot create employees in another organization")

        email = require_email(payload["email"])
        first_name = require_non_empty(payload["first_name"], "first_name")
        last_name = require_non_empty(payload["last_name"], "last_name")
        role = parse_role(payload["role"])
        hire_date = parse_iso_date(payload["hire_date"])
        department_id = payload.get("department_id") or None
        position_id = payload.get("position_id") or None
        schedule = payload.get("work_schedule")

        self._check_role_grant(ctx, role)
        self._check_references(ctx, department_id=department_id, position_id=position_id)
        work_schedule = WorkSchedule.from_dict(schedule) if schedule else None

        if self._employees.get_by_email(ctx.organization_id, email):
            raise ConflictError("An employee with this email already exists")

        password = payload.get("password") or None
        temporary_password = None
        if not password:
            temporary_password = password = secrets.token_urlsafe(12)

        identity = self._auth.create_identity(
            email,
            password,
            {
                "full_name": f"{first_name} {last_name}",
                "first_name": first_name,
                "last_name": last_name,
                "role": role.value,
                "organization_id": organization_id,
                "hire_date": hire_date.isoformat(),
            },
        )

        year = (today or date.today()).year
        employee = Employee(
            employee_id=identity.identity_id,
            organization_id=organization_id,
            employee_code=generate_employee_code(year, self._rng),
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=role,
            hire_date=hire_date,
            phone=payload.get("phone") or None,
            department_id=department_id,
            position_id=position_id,
            is_active=True,
            work_schedule=work_schedule,
        )
        try:
            created = self._employees.create(employee)
        except DomainError:
            # identity and employee writes are independent; the identity stays behind
            logger.error("identity %s was created but its employee row was not", identity.identity_id)
            raise

        logger.info("employee %s (%s) created by %s", created.employee_id, created.employee_code, ctx.employee_id)
        return CreatedEmployee(identity=identity, employee=created, temporary_password=temporary_password)

    def update_employee(self, ctx: RequestContext, employee_id: str, patch: Mapping[str, Any]) -> Employee:
        ctx.require_manager()
        current = self._require(ctx, employee_id)

        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError("Fields cannot be edited: " + ", ".join(sorted(unknown)))

        changes: dict[str, Any] = {}
        for name in ("first_name", "last_name"):
            if name in patch:
                changes[name] = require_non_empty(patch[name], name)
        if "email" in patch:
            email = require_email(patch["email"])
            other = self._employees.get_by_email(ctx.organization_id, email)
            if other and other.employee_id != employee_id:
                raise ConflictError("An employee with this email already exists")
            changes["email"] = email
        if "phone" in patch:
            changes["phone"] = patch["phone"] or None
        if "role" in patch:
            role = parse_role(patch["role"])
            if employee_id == ctx.employee_id and role != current.role:
                raise ValidationError("You cannot change your own role")
            self._check_role_grant(ctx, role)
            changes["role"] = role.value
        for name in ("department_id", "position_id"):
            if name in patch:
                changes[name] = patch[name] or None
        self._check_references(
            ctx,
            department_id=changes.get("department_id"),
            position_id=changes.get("position_id"),
        )

        if not changes:
            return current
        return self._employees.update(ctx.organization_id, employee_id, changes)

    def update_schedule(self, ctx: RequestContext, employee_id: str, schedule: Optional[Mapping[str, Any]]) -> Employee:
        ctx.require_manager()
        self._require(ctx, employee_id)
        work_schedule = WorkSchedule.from_dict(schedule) if schedule else None
        return self._employees.update(ctx.organization_id, employee_id, {"work_schedule": work_schedule})

    def set_active(self, ctx: RequestContext, employee_id: str, *, is_active: bool) -> Employee:
        ctx.require_manager()
        self._require(ctx, employee_id)
        if employee_id == ctx.employee_id and not is_active:
            raise ValidationError("You cannot deactivate your own account")
        return self._employees.update(ctx.organization_id, employee_id, {"is_active": is_active})

    def deactivate(self, ctx: RequestContext, employee_id: str) -> Employee:
        return self.set_active(ctx, employee_id, is_active=False)

    def activate(self, ctx: RequestContext, employee_id: str) -> Employee:
        return self.set_active(ctx, employee_id, is_active=True)

    def delete(self, ctx: RequestContext, employee_id: str) -> None:
        ctx.require_manager()
        employee = self._require(ctx, employee_id)
        if employee_id == ctx.employee_id:
            raise ValidationError("You cannot delete your own account")
        if employee.role.can_manage and ctx.role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only a super admin can delete administrators")
        if not self._employees.delete(ctx.organization_id, employee_id):
            raise NotFoundError("Employee not found")
        logger.info("employee %s deleted by %s", employee_id, ctx.employee_id)

    def list_employees(self, ctx: RequestContext, *, active_only: bool = False, department_id: Optional[str] = None):
        ctx.require_viewer()
        return self._employees.list_for_organization(
            ctx.organization_id, active_only=active_only, department_id=department_id
        )

    def get_employee(self, ctx: RequestContext, employee_id: str) -> Employee:
        ctx.require_self_or_viewer(employee_id)
        return self._require(ctx, employee_id)

    def profile(self, ctx: RequestContext) -> Employee:
        """The signed-in employee's own record."""
        return self._require(ctx, ctx.employee_id)

    def context_for(self, identity: Identity) -> RequestContext:
        """Build the request context of a signed-in identity."""
        employee = self._employees.get_by_identity(identity.identity_id)
        if not employee:
            raise AuthorizationError("No employee profile is linked to this account")
        if not employee.is_active:
            raise AuthorizationError("This account is deactivated")
        return RequestContext(
            organization_id=employee.organization_id,
            employee_id=employee.employee_id,
            role=employee.role,
        )
