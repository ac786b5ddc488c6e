from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Employee repository interface.

    Note (DIP): the service layer depends on this interface, not on a concrete backend.
    """

    def get_by_id(self, organization_id: str, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_identity(self, identity_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, organization_id: str, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_for_organization(
        self,
        organization_id: str,
        *,
        active_only: bool = False,
        department_id: Optional[str] = None,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def create(self, employee: Employee) -> Employee:
        raise NotImplementedError

    def update(self, organization_id: str, employee_id: str, patch: Mapping[str, Any]) -> Employee:
        raise NotImplementedError

    def delete(self, organization_id: str, employee_id: str) -> bool:
        raise NotImplementedError
