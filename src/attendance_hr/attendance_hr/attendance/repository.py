from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, organization_id: str, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, organization_id: str, employee_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee(
        self,
        organization_id: str,
        employee_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest first."""
        raise NotImplementedError

    def list_for_organization(
        self,
        organization_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        employee_ids: Optional[Sequence[str]] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        """Oldest first."""
        raise NotImplementedError

    def record_checkin(self, record: AttendanceRecord) -> tuple[AttendanceRecord, bool]:
        """Store the first check-in of the day.

        Returns (stored record, created). When a record for the same employee
        and date already exists it is returned untouched with created=False.
        """
        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError
