from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.exceptions import NotFoundError
from ..database.client import DataClient, Entity, Order, eq
from .model import Employee, WorkSchedule, employee_from_row, employee_to_row
from .repository import EmployeeRepository


class DataEmployeeRepository(EmployeeRepository):
    def __init__(self, data: DataClient):
        self._data = data

    def get_by_id(self, organization_id: str, employee_id: str) -> Optional[Employee]:
        rows = self._data.query(
            Entity.EMPLOYEES,
            filters=[eq("organization_id", organization_id), eq("id", employee_id)],
            limit=1,
        )
        return employee_from_row(rows[0]) if rows else None

    def get_by_identity(self, identity_id: str) -> Optional[Employee]:
        # employee.id is the auth identity id
        rows = self._data.query(Entity.EMPLOYEES, filters=[eq("id", identity_id)], limit=1)
        return employee_from_row(rows[0]) if rows else None

    def get_by_email(self, organization_id: str, email: str) -> Optional[Employee]:
        rows = self._data.query(
            Entity.EMPLOYEES,
            filters=[eq("organization_id", organization_id), eq("email", email)],
            limit=1,
        )
        return employee_from_row(rows[0]) if rows else None

    def list_for_organization(
        self,
        organization_id: str,
        *,
        active_only: bool = False,
        department_id: Optional[str] = None,
    ) -> Sequence[Employee]:
        filters = [eq("organization_id", organization_id)]
        if active_only:
            filters.append(eq("is_active", True))
        if department_id:
            filters.append(eq("department_id", department_id))
        rows = self._data.query(
            Entity.EMPLOYEES,
            filters=filters,
            order=[Order("last_name"), Order("first_name")],
        )
        return [employee_from_row(r) for r in rows]

    def create(self, employee: Employee) -> Employee:
        row = employee_to_row(employee)
        row["created_at"] = row["updated_at"] = now_utc()
        return employee_from_row(self._data.insert(Entity.EMPLOYEES, row))

    def update(self, organization_id: str, employee_id: str, patch: Mapping[str, Any]) -> Employee:
        if not self.get_by_id(organization_id, employee_id):
            raise NotFoundError("Employee not found")
        row = dict(patch)
        schedule = row.get("work_schedule")
        if isinstance(schedule, WorkSchedule):
            row["work_schedule"] = json.dumps(schedule.to_dict())
        if "role" in row and hasattr(row["role"], "value"):
            row["role"] = row["role"].value
        row["updated_at"] = now_utc()
        return employee_from_row(self._data.update(Entity.EMPLOYEES, employee_id, row))

    def delete(self, organization_id: str, employee_id: str) -> bool:
        if not self.get_by_id(organization_id, employee_id):
            return False
        return bool(self._data.delete(Entity.EMPLOYEES, employee_id))
