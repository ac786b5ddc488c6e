from __future__ import annotations

from datetime import time
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.exceptions import NotFoundError
from ..database.client import DataClient, Entity, Order, eq
from .model import (
    Department,
    Position,
    SystemSetting,
    WorkPolicy,
    department_from_row,
    policy_from_row,
    position_from_row,
    setting_from_row,
)


def _time_columns(data: Mapping[str, Any]) -> dict:
    row = dict(data)
    for key in ("start_time", "end_time"):
        if isinstance(row.get(key), time):
            row[key] = row[key].strftime("%H:%M:%S")
    return row


class _OrgScoped:
    entity: str

    def __init__(self, data: DataClient):
        self._data = data

    def _get_row(self, organization_id: str, row_id: str) -> Optional[dict]:
        rows = self._data.query(
            self.entity,
            filters=[eq("organization_id", organization_id), eq("id", row_id)],
            limit=1,
        )
        return rows[0] if rows else None

    def _insert(self, organization_id: str, data: Mapping[str, Any]) -> dict:
        row = dict(data)
        row["organization_id"] = organization_id
        row["created_at"] = row["updated_at"] = now_utc()
        return self._data.insert(self.entity, row)

    def _update(self, organization_id: str, row_id: str, patch: Mapping[str, Any]) -> dict:
        if not self._get_row(organization_id, row_id):
            raise NotFoundError(f"{self.entity} row not found")
        row = dict(patch)
        row.pop("organization_id", None)
        row["updated_at"] = now_utc()
        return self._data.update(self.entity, row_id, row)


class DataDepartmentRepository(_OrgScoped):
    entity = Entity.DEPARTMENTS

    def list_for_organization(self, organization_id: str, *, active_only: bool = True) -> Sequence[Department]:
        filters = [eq("organization_id", organization_id)]
        if active_only:
            filters.append(eq("is_active", True))
        rows = self._data.query(self.entity, filters=filters, order=[Order("name")])
        return [department_from_row(r) for r in rows]

    def get_by_id(self, organization_id: str, department_id: str) -> Optional[Department]:
        row = self._get_row(organization_id, department_id)
        return department_from_row(row) if row else None

    def create(self, organization_id: str, data: Mapping[str, Any]) -> Department:
        return department_from_row(self._insert(organization_id, data))

    def update(self, organization_id: str, department_id: str, patch: Mapping[str, Any]) -> Department:
        return department_from_row(self._update(organization_id, department_id, patch))


class DataPositionRepository(_OrgScoped):
    entity = Entity.POSITIONS

    def list_for_organization(
        self, organization_id: str, *, active_only: bool = True, department_id: Optional[str] = None
    ) -> Sequence[Position]:
        filters = [eq("organization_id", organization_id)]
        if active_only:
            filters.append(eq("is_active", True))
        if department_id:
            filters.append(eq("department_id", department_id))
        rows = self._data.query(self.entity, filters=filters, order=[Order("level"), Order("title")])
        return [position_from_row(r) for r in rows]

    def get_by_id(self, organization_id: str, position_id: str) -> Optional[Position]:
        row = self._get_row(organization_id, position_id)
        return position_from_row(row) if row else None

    def create(self, organization_id: str, data: Mapping[str, Any]) -> Position:
        return position_from_row(self._insert(organization_id, data))

    def update(self, organization_id: str, position_id: str, patch: Mapping[str, Any]) -> Position:
        return position_from_row(self._update(organization_id, position_id, patch))


class DataWorkPolicyRepository(_OrgScoped):
    entity = Entity.WORK_POLICIES

    def get_active(self, organization_id: str) -> Optional[WorkPolicy]:
        # at most one active policy per organization; the first match wins
        rows = self._data.query(
            self.entity,
            filters=[eq("organization_id", organization_id), eq("is_active", True)],
            order=[Order("created_at")],
            limit=1,
        )
        return policy_from_row(rows[0]) if rows else None

    def create(self, organization_id: str, data: Mapping[str, Any]) -> WorkPolicy:
        return policy_from_row(self._insert(organization_id, _time_columns(data)))

    def update(self, organization_id: str, policy_id: str, patch: Mapping[str, Any]) -> WorkPolicy:
        return policy_from_row(self._update(organization_id, policy_id, _time_columns(patch)))


class DataSettingRepository:
    def __init__(self, data: DataClient):
        self._data = data

    def list_for_organization(
        self, organization_id: str, *, category: Optional[str] = None, public_only: bool = False
    ) -> Sequence[SystemSetting]:
        filters = [eq("organization_id", organization_id), eq("is_active", True)]
        if category:
            filters.append(eq("category", category))
        if public_only:
            filters.append(eq("is_public", True))
        rows = self._data.query(Entity.SYSTEM_SETTINGS, filters=filters, order=[Order("category"), Order("key")])
        return [setting_from_row(r) for r in rows]

    def get(self, organization_id: str, category: str, key: str) -> Optional[SystemSetting]:
        rows = self._data.query(
            Entity.SYSTEM_SETTINGS,
            filters=[eq("organization_id", organization_id), eq("category", category), eq("key", key)],
            limit=1,
        )
        return setting_from_row(rows[0]) if rows else None

    def upsert(self, organization_id: str, data: Mapping[str, Any]) -> SystemSetting:
        row = dict(data)
        row["organization_id"] = organization_id
        row["updated_at"] = now_utc()
        row.setdefault("is_active", True)
        return setting_from_row(
            self._data.upsert(Entity.SYSTEM_SETTINGS, row, on_conflict=("organization_id", "category", "key"))
        )
