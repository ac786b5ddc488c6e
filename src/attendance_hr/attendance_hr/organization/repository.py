from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Department, Position, SystemSetting, WorkPolicy


class DepartmentRepository(Protocol):
    def list_for_organization(self, organization_id: str, *, active_only: bool = True) -> Sequence[Department]:
        raise NotImplementedError

    def get_by_id(self, organization_id: str, department_id: str) -> Optional[Department]:
        raise NotImplementedError

    def create(self, organization_id: str, data: Mapping[str, Any]) -> Department:
        raise NotImplementedError

    def update(self, organization_id: str, department_id: str, patch: Mapping[str, Any]) -> Department:
        raise NotImplementedError


class PositionRepository(Protocol):
    def list_for_organization(
        self, organization_id: str, *, active_only: bool = True, department_id: Optional[str] = None
    ) -> Sequence[Position]:
        raise NotImplementedError

    def get_by_id(self, organization_id: str, position_id: str) -> Optional[Position]:
        raise NotImplementedError

    def create(self, organization_id: str, data: Mapping[str, Any]) -> Position:
        raise NotImplementedError

    def update(self, organization_id: str, position_id: str, patch: Mapping[str, Any]) -> Position:
        raise NotImplementedError


class WorkPolicyRepository(Protocol):
    def get_active(self, organization_id: str) -> Optional[WorkPolicy]:
        raise NotImplementedError

    def create(self, organization_id: str, data: Mapping[str, Any]) -> WorkPolicy:
        raise NotImplementedError

    def update(self, organization_id: str, policy_id: str, patch: Mapping[str, Any]) -> WorkPolicy:
        raise NotImplementedError


class SettingRepository(Protocol):
    def list_for_organization(
        self, organization_id: str, *, category: Optional[str] = None, public_only: bool = False
    ) -> Sequence[SystemSetting]:
        raise NotImplementedError

    def get(self, organization_id: str, category: str, key: str) -> Optional[SystemSetting]:
        raise NotImplementedError

    def upsert(self, organization_id: str, data: Mapping[str, Any]) -> SystemSetting:
        raise NotImplementedError
