from __future__ import annotations

from dataclasses import dataclass

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class RequestContext:
    """Who is acting and in which organization.

    Passed explicitly to every service call; services never fall back to a
    default organization or employee.
    """

    organization_id: str
    employee_id: str
    role: Role

    def require_manager(self) -> None:
        if not self.role.can_manage:
            raise AuthorizationError("Administrator role required")

    def require_viewer(self) -> None:
        if not self.role.can_view_all:
            raise AuthorizationError("Manager role required")

    def require_self_or_viewer(self, employee_id: str) -> None:
        if employee_id != self.employee_id and not self.role.can_view_all:
            raise AuthorizationError("You can only access your own records")
