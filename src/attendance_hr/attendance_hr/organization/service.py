from __future__ import annotations

from datetime import tzinfo
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_time, resolve_timezone
from ..common.validators import require_non_empty, require_range
from ..core.context import RequestContext
from ..core.exceptions import NotFoundError, ValidationError
from .model import Department, Position, SystemSetting, WorkPolicy
from .repository import DepartmentRepository, PositionRepository, SettingRepository, WorkPolicyRepository

TIMEZONE_SETTING = ("general", "timezone")


def _code(value: Any) -> str:
    return require_non_empty(value, "code").upper()


class OrganizationService:
    """Use cases: departments, positions, work policy and system settings."""

    def __init__(
        self,
        departments: DepartmentRepository,
        positions: PositionRepository,
        policies: WorkPolicyRepository,
        settings: SettingRepository,
        *,
        default_timezone: str = "UTC",
    ):
        self._departments = departments
        self._positions = positions
        self._policies = policies
        self._settings = settings
        self._default_timezone = default_timezone

    # departments

    def list_departments(self, ctx: RequestContext, *, include_inactive: bool = False):
        return self._departments.list_for_organization(ctx.organization_id, active_only=not include_inactive)

    def create_department(self, ctx: RequestContext, data: Mapping[str, Any]) -> Department:
        ctx.require_manager()
        return self._departments.create(
            ctx.organization_id,
            {
                "name": require_non_empty(data.get("name"), "name"),
                "code": _code(data.get("code")),
                "manager_id": data.get("manager_id") or None,
                "is_active": True,
            },
        )

    def update_department(self, ctx: RequestContext, department_id: str, data: Mapping[str, Any]) -> Department:
        ctx.require_manager()
        patch: dict[str, Any] = {}
        if "name" in data:
            patch["name"] = require_non_empty(data["name"], "name")
        if "code" in data:
            patch["code"] = _code(data["code"])
        if "manager_id" in data:
            patch["manager_id"] = data["manager_id"] or None
        if not patch:
            raise ValidationError("Nothing to update")
        return self._departments.update(ctx.organization_id, department_id, patch)

    def deactivate_department(self, ctx: RequestContext, department_id: str) -> Department:
        ctx.require_manager()
        return self._departments.update(ctx.organization_id, department_id, {"is_active": False})

    # positions

    def list_positions(self, ctx: RequestContext, *, department_id: Optional[str] = None):
        return self._positions.list_for_organization(ctx.organization_id, department_id=department_id)

    def create_position(self, ctx: RequestContext, data: Mapping[str, Any]) -> Position:
        ctx.require_manager()
        department_id = data.get("department_id") or None
        if department_id and not self._departments.get_by_id(ctx.organization_id, department_id):
            raise ValidationError("Department does not exist")
        return self._positions.create(
            ctx.organization_id,
            {
                "title": require_non_empty(data.get("title"), "title"),
                "code": _code(data.get("code")),
                "department_id": department_id,
                "level": int(require_range(data.get("level", 1), "level", low=1, high=20)),
                "is_active": True,
            },
        )

    def update_position(self, ctx: RequestContext, position_id: str, data: Mapping[str, Any]) -> Position:
        ctx.require_manager()
        patch: dict[str, Any] = {}
        if "title" in data:
            patch["title"] = require_non_empty(data["title"], "title")
        if "code" in data:
            patch["code"] = _code(data["code"])
        if "level" in data:
            patch["level"] = int(require_range(data["level"], "level", low=1, high=20))
        if "department_id" in data:
            department_id = data["department_id"] or None
            if department_id and not self._departments.get_by_id(ctx.organization_id, department_id):
                raise ValidationError("Department does not exist")
            patch["department_id"] = department_id
        if not patch:
            raise ValidationError("Nothing to update")
        return self._positions.update(ctx.organization_id, position_id, patch)

    def deactivate_position(self, ctx: RequestContext, position_id: str) -> Position:
        ctx.require_manager()
        return self._positions.update(ctx.organization_id, position_id, {"is_active": False})

    # work policy

    def get_active_policy(self, organization_id: str) -> Optional[WorkPolicy]:
        return self._policies.get_active(organization_id)

    def save_policy(self, ctx: RequestContext, data: Mapping[str, Any]) -> WorkPolicy:
        """Create the organization's policy or update the active one."""
        ctx.require_manager()
        start = parse_time(data.get("start_time"))
        end = parse_time(data.get("end_time"))
        if not start or not end:
            raise ValidationError("start_time and end_time are required")
        if end <= start:
            raise ValidationError("end_time must be later than start_time")

        values = {
            "name": (data.get("name") or "Default").strip(),
            "start_time": start,
            "end_time": end,
            "break_duration": int(require_range(data.get("break_duration", 60), "break_duration", low=0, high=480)),
            "late_threshold": int(require_range(data.get("late_threshold", 15), "late_threshold", low=0, high=240)),
            "working_days": int(require_range(data.get("working_days", 5), "working_days", low=1, high=7)),
            "allow_remote": bool(data.get("allow_remote", False)),
            "require_geolocation": bool(data.get("require_geolocation", False)),
            "max_daily_hours": require_range(data.get("max_daily_hours", 12), "max_daily_hours", low=1, high=24),
        }
        current = self._policies.get_active(ctx.organization_id)
        if current:
            return self._policies.update(ctx.organization_id, current.policy_id, values)
        return self._policies.create(ctx.organization_id, dict(values, is_active=True))

    # settings

    def list_settings(self, ctx: RequestContext, *, category: Optional[str] = None):
        return self._settings.list_for_organization(
            ctx.organization_id, category=category, public_only=not ctx.role.can_manage
        )

    def get_setting(self, ctx: RequestContext, category: str, key: str) -> SystemSetting:
        setting = self._settings.get(ctx.organization_id, category, key)
        if not setting or (not setting.is_public and not ctx.role.can_manage):
            raise NotFoundError(f"Setting {category}/{key} not found")
        return setting

    def set_setting(self, ctx: RequestContext, data: Mapping[str, Any]) -> SystemSetting:
        ctx.require_manager()
        category = require_non_empty(data.get("category"), "category")
        key = require_non_empty(data.get("key"), "key")
        value = data.get("value")
        if (category, key) == TIMEZONE_SETTING:
            resolve_timezone(str(value or ""))
        return self._settings.upsert(
            ctx.organization_id,
            {
                "category": category,
                "key": key,
                "value": None if value is None else str(value),
                "description": data.get("description"),
                "is_public": bool(data.get("is_public", False)),
            },
        )

    def timezone_for(self, organization_id: str) -> tzinfo:
        setting = self._settings.get(organization_id, *TIMEZONE_SETTING)
        if setting and setting.value:
            return resolve_timezone(setting.value)
        return resolve_timezone(self._default_timezone)
